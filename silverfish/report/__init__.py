# File: silverfish/report/__init__.py
"""silverfish.report: отчёты о запуске (JSON и HTML), используемые CLI и тестами."""

from silverfish.report.html_report import render_html
from silverfish.report.json_report import render_json, summary_to_dict

__all__ = ["render_json", "render_html", "summary_to_dict"]
