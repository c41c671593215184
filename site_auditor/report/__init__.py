# File: site_auditor/report/__init__.py
"""site_auditor.report: Сохранение отчётов аудита в JSON для CLI."""

from .json_report import render_json, report_filename, save_report

__all__ = ["render_json", "report_filename", "save_report"]
