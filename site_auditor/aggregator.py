# File: site_auditor/aggregator.py
"""site_auditor.aggregator: Свёртка результатов страниц в сводку отчёта."""

from __future__ import annotations

from typing import Optional, Sequence

from site_auditor.models import AuditError, IssueCounts, PageAuditResult, Scores, Severity, Summary
from site_auditor.utils import round_half_up

__all__ = ["summarize", "average_scores", "count_issues", "best_page", "worst_page"]


def average_scores(results: Sequence[PageAuditResult]) -> Scores:
    """Среднее по каждой категории, округлённое до целого; нули для пустого списка."""
    if not results:
        return Scores(0, 0, 0)
    n = len(results)
    return Scores(
        performance=round_half_up(sum(r.scores.performance for r in results) / n),
        accessibility=round_half_up(sum(r.scores.accessibility for r in results) / n),
        seo=round_half_up(sum(r.scores.seo for r in results) / n),
    )


def count_issues(results: Sequence[PageAuditResult]) -> IssueCounts:
    """Считает замечания всех страниц по уровню серьёзности."""
    critical = moderate = minor = 0
    for result in results:
        for issue in result.issues:
            if issue.severity is Severity.CRITICAL:
                critical += 1
            elif issue.severity is Severity.MODERATE:
                moderate += 1
            elif issue.severity is Severity.MINOR:
                minor += 1
    return IssueCounts(critical=critical, moderate=moderate, minor=minor)


def best_page(results: Sequence[PageAuditResult]) -> Optional[PageAuditResult]:
    """Страница с максимальным средним трёх оценок; при равенстве побеждает первая."""
    best: Optional[PageAuditResult] = None
    for current in results:
        if best is None or current.scores.mean > best.scores.mean:
            best = current
    return best


def worst_page(results: Sequence[PageAuditResult]) -> Optional[PageAuditResult]:
    """Страница с минимальным средним трёх оценок; при равенстве побеждает первая."""
    worst: Optional[PageAuditResult] = None
    for current in results:
        if worst is None or current.scores.mean < worst.scores.mean:
            worst = current
    return worst


def summarize(results: Sequence[PageAuditResult], errors: Sequence[AuditError] = ()) -> Summary:
    """
    Собирает Summary. Чистая функция: определена и для пустого списка результатов.

    Ошибки на сводные показатели не влияют; параметр сохранён ради
    симметрии с отчётом.
    """
    return Summary(
        average_scores=average_scores(results),
        total_issues=count_issues(results),
        page_count=len(results),
        best_page=best_page(results),
        worst_page=worst_page(results),
    )
