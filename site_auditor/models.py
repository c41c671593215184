# File: site_auditor/models.py
"""site_auditor.models: Контракты данных аудита и итогового отчёта.

Все модели неизменяемы (frozen dataclasses). ``to_dict()`` отдаёт форму,
которую ожидают потребители отчёта (API, PDF, кеш): имена полей в camelCase.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TypedDict, Union

__all__ = [
    "Category",
    "Severity",
    "RunStatus",
    "Scores",
    "AffectedElement",
    "Issue",
    "PageAuditResult",
    "AuditError",
    "IssueCounts",
    "Summary",
    "ReportMetadata",
    "SiteAuditReport",
]


class Category(str, Enum):
    PERFORMANCE = "Performance"
    ACCESSIBILITY = "Accessibility"
    SEO = "SEO"


class Severity(str, Enum):
    CRITICAL = "Critical"
    MODERATE = "Moderate"
    MINOR = "Minor"


class RunStatus(str, Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ScoresDict(TypedDict):
    performance: int
    accessibility: int
    seo: int


class PageRefDict(TypedDict):
    url: str
    scores: ScoresDict


@dataclass(frozen=True, slots=True)
class Scores:
    """Три оценки страницы, каждая в диапазоне 0..100."""

    performance: int
    accessibility: int
    seo: int

    def __post_init__(self) -> None:
        for name in ("performance", "accessibility", "seo"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} score must be within 0..100, got {value}")

    @property
    def mean(self) -> float:
        return (self.performance + self.accessibility + self.seo) / 3

    def to_dict(self) -> ScoresDict:
        return {"performance": self.performance, "accessibility": self.accessibility, "seo": self.seo}


@dataclass(frozen=True, slots=True)
class AffectedElement:
    """Элемент страницы, к которому относится замечание."""

    element: str
    line: Union[int, str] = "N/A"
    line_approximate: bool = False
    details: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "element": self.element,
            "line": self.line,
            "lineApproximate": self.line_approximate,
            "details": self.details,
        }


@dataclass(frozen=True, slots=True)
class Issue:
    """Одно замечание аудитора. Ядро передаёт его дальше без изменений."""

    title: str
    category: Category
    severity: Severity
    description: str
    suggestion: str = ""
    criteria: Optional[str] = None
    elements: Tuple[AffectedElement, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.title,
            "category": self.category.value,
            "description": self.description,
            "impact": self.severity.value,
            "suggestion": self.suggestion,
            "wcagCriteria": self.criteria,
            "elements": [e.to_dict() for e in self.elements],
        }


@dataclass(frozen=True, slots=True)
class PageAuditResult:
    """Результат аудита одной страницы."""

    url: str
    scores: Scores
    issues: Tuple[Issue, ...]
    timestamp: str

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    def issues_for(self, category: Category) -> List[Issue]:
        return [i for i in self.issues if i.category is category]

    def ref(self) -> PageRefDict:
        return {"url": self.url, "scores": self.scores.to_dict()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "scores": self.scores.to_dict(),
            "performance": [i.to_dict() for i in self.issues_for(Category.PERFORMANCE)],
            "accessibility": [i.to_dict() for i in self.issues_for(Category.ACCESSIBILITY)],
            "seo": [i.to_dict() for i in self.issues_for(Category.SEO)],
            "timestamp": self.timestamp,
            "totalIssues": self.total_issues,
        }


@dataclass(frozen=True, slots=True)
class AuditError:
    """Страница, которую не удалось проверить и после повтора."""

    url: str
    error: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "error": self.error, "timestamp": self.timestamp}


@dataclass(frozen=True, slots=True)
class IssueCounts:
    critical: int = 0
    moderate: int = 0
    minor: int = 0

    @property
    def total(self) -> int:
        return self.critical + self.moderate + self.minor

    def to_dict(self) -> Dict[str, int]:
        return {"critical": self.critical, "moderate": self.moderate, "minor": self.minor}


@dataclass(frozen=True, slots=True)
class Summary:
    """Сводка по всем страницам: средние оценки, счётчики замечаний, лучшая и худшая страницы."""

    average_scores: Scores
    total_issues: IssueCounts
    page_count: int
    best_page: Optional[PageAuditResult] = None
    worst_page: Optional[PageAuditResult] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "averageScores": self.average_scores.to_dict(),
            "totalIssues": self.total_issues.to_dict(),
            "pageCount": self.page_count,
        }
        if self.best_page is not None:
            data["bestPerformingPage"] = self.best_page.ref()
        if self.worst_page is not None:
            data["worstPerformingPage"] = self.worst_page.ref()
        return data


@dataclass(frozen=True, slots=True)
class ReportMetadata:
    start_url: str
    total_pages_discovered: int
    total_pages_audited: int
    total_errors: int
    audit_timestamp: str
    max_pages: int
    status: RunStatus = RunStatus.COMPLETED
    # страницы, не дошедшие до аудита из-за отмены
    total_pages_skipped: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "startUrl": self.start_url,
            "totalPagesDiscovered": self.total_pages_discovered,
            "totalPagesAudited": self.total_pages_audited,
            "totalErrors": self.total_errors,
            "totalPagesSkipped": self.total_pages_skipped,
            "auditTimestamp": self.audit_timestamp,
            "options": {"maxPages": self.max_pages},
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class SiteAuditReport:
    """Итоговый отчёт аудита сайта. Создаётся один раз в конце прогона."""

    summary: Summary
    audit_results: Tuple[PageAuditResult, ...]
    errors: Tuple[AuditError, ...]
    metadata: ReportMetadata = field(repr=False)

    @property
    def cancelled(self) -> bool:
        return self.metadata.status is RunStatus.CANCELLED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "auditResults": [r.to_dict() for r in self.audit_results],
            "errors": [e.to_dict() for e in self.errors],
            "metadata": self.metadata.to_dict(),
        }

    def json(self, *, pretty: bool = False) -> str:
        """JSON-представление отчёта."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)
