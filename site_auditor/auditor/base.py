# File: site_auditor/auditor/base.py
"""site_auditor.auditor.base: Контракт аудитора одной страницы."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from site_auditor.models import PageAuditResult

__all__ = ["PageAuditor"]


@runtime_checkable
class PageAuditor(Protocol):
    """Проверяет одну страницу.

    Возвращает PageAuditResult; при неудаче бросает исключение с понятным
    сообщением. NonRetryableAuditError означает, что повтор бесполезен.
    """

    async def audit(self, url: str) -> PageAuditResult:
        ...
