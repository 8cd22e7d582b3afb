# silverfish/report/json_report.py

"""
Генерация JSON-отчёта для проекта Silverfish.

Сериализация итога запуска (метрики и записанные сайты) в файл.
"""
import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict

from silverfish.engine import CrawlSummary


def summary_to_dict(summary: CrawlSummary) -> Dict[str, Any]:
    """Словарь для JSON: метрики, статистика приёмника и записи сайтов."""
    return {
        "metrics": summary.metrics.as_dict(),
        "sink": {
            "written": summary.stats.written,
            "duplicates": summary.stats.duplicates,
            "failed": summary.stats.failed,
        },
        "sites": [asdict(record) for record in summary.records],
    }


def render_json(summary: CrawlSummary, output_path: Path | str, *, pretty: bool = False) -> Path:
    """
    Сохраняет отчёт summary в формате JSON по указанному пути.

    :param summary: итог запуска CrawlSummary
    :param output_path: путь к JSON-файлу
    :param pretty: отступ 2 вместо компактной записи
    :return: Path сохранённого файла

    Пример:
    ```python
    from silverfish.report.json_report import render_json
    report_path = render_json(summary, 'reports/run.json', pretty=True)
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)

    with output.open('w', encoding='utf-8') as f:
        json.dump(summary_to_dict(summary), f, ensure_ascii=False, indent=2 if pretty else None)

    return output
