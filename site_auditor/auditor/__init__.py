# File: site_auditor/auditor/__init__.py
"""site_auditor.auditor: Контракт аудитора страницы и реализация через PageSpeed Insights."""

from .base import PageAuditor
from .issues import extract_issues
from .pagespeed import PageSpeedAuditor

__all__ = ["PageAuditor", "PageSpeedAuditor", "extract_issues"]
