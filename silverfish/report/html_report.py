"""silverfish.report.html_report: Генерация HTML-отчёта с помощью Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from silverfish.engine import CrawlSummary

#: Шаблоны, поставляемые вместе с пакетом.
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_html(
    summary: CrawlSummary,
    template_dir: Union[Path, str, None],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит HTML-отчёт из шаблона и сохраняет его по указанному пути.

    Args:
        summary: итог запуска CrawlSummary.
        template_dir: директория с шаблоном ``report.html.j2`` (None — встроенный).
        output_path: путь к итоговому HTML-файлу.

    Returns:
        Path до сохранённого HTML-файла.
    """
    template_dir = Path(template_dir) if template_dir else DEFAULT_TEMPLATE_DIR
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
    )
    template = env.get_template("report.html.j2")

    context: dict[str, Any] = {
        "metrics": summary.metrics.as_dict(),
        "stats": summary.stats,
        "records": summary.records,
    }

    html_content = template.render(**context)
    output_path.write_text(html_content, encoding="utf-8")

    return output_path
