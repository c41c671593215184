# File: site_auditor/orchestrator.py
"""site_auditor.orchestrator: Аудит всего сайта: обход, затем последовательный аудит страниц.

Страницы проверяются строго по одной. Неудачная страница повторяется один
раз (RetryPolicy), после чего записывается в список ошибок; прогон при этом
не прерывается. Фатальны только ошибки входных данных: некорректный seed URL
(InvalidUrlError) и пустой обход (NoPagesFoundError).
"""

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol, Union

from site_auditor.aggregator import summarize
from site_auditor.auditor.base import PageAuditor
from site_auditor.errors import NoPagesFoundError
from site_auditor.logger import logger
from site_auditor.models import (
    AuditError,
    PageAuditResult,
    ReportMetadata,
    RunStatus,
    SiteAuditReport,
)
from site_auditor.retry import RetryPolicy
from site_auditor.utils import pause, utc_timestamp, validate_url

__all__ = ["SiteAuditOrchestrator", "ProgressCallback", "UrlSource", "audit_with_retry"]

ProgressCallback = Callable[[int, int, str, Union[PageAuditResult, AuditError]], None]


async def audit_with_retry(
    auditor: PageAuditor,
    url: str,
    retry_policy: RetryPolicy,
    timeout: float,
) -> PageAuditResult:
    """Вызывает auditor.audit(url) не более retry_policy.max_attempts раз, каждую попытку ограничивает timeout."""

    async def _attempt() -> PageAuditResult:
        try:
            return await asyncio.wait_for(auditor.audit(url), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"Audit of {url} timed out after {timeout:g} s") from exc

    return await retry_policy.call(_attempt, label=url)


class UrlSource(Protocol):
    """Источник списка страниц (см. Crawler)."""

    async def crawl(
        self, seed_url: str, max_pages: int, cancel_event: Optional[asyncio.Event] = None
    ) -> List[str]:
        ...


class SiteAuditOrchestrator:
    """Оркестратор аудита сайта."""

    def __init__(
        self,
        crawler: UrlSource,
        auditor: PageAuditor,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        audit_delay: float = 1.0,
        audit_timeout: float = 120.0,
    ) -> None:
        if audit_delay < 0:
            raise ValueError("audit_delay must be >= 0")
        if audit_timeout <= 0:
            raise ValueError("audit_timeout must be > 0")
        self.crawler = crawler
        self.auditor = auditor
        self.retry_policy = retry_policy or RetryPolicy()
        self.audit_delay = audit_delay
        self.audit_timeout = audit_timeout

    async def audit_page(self, url: str) -> PageAuditResult:
        """Аудит одной страницы с повтором по RetryPolicy. Последняя ошибка пробрасывается."""
        return await audit_with_retry(self.auditor, url, self.retry_policy, self.audit_timeout)

    async def audit_site(
        self,
        seed_url: str,
        max_pages: int = 50,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SiteAuditReport:
        """
        Обходит сайт и проверяет каждую найденную страницу.

        Raises
        ------
        InvalidUrlError
            seed_url не является абсолютным http(s) URL.
        NoPagesFoundError
            Обход не дал ни одной страницы; аудитор при этом не вызывается.
            Если обход прерван отменой, вместо ошибки возвращается пустой
            отчёт со статусом cancelled.

        Для любого прогона audited + errors + skipped == discovered.
        """
        seed = validate_url(seed_url)
        logger.info("Starting whole site audit for: %s (maxPages=%d)", seed, max_pages)

        urls = await self.crawler.crawl(seed, max_pages, cancel_event)
        if not urls and cancel_event is not None and cancel_event.is_set():
            logger.warning("Audit cancelled before any page was discovered for %s", seed)
            return self._build_report(seed, max_pages, [], [], [], RunStatus.CANCELLED)
        if not urls:
            logger.error("No pages found to audit for %s", seed)
            raise NoPagesFoundError(seed)

        logger.info("Running audits on %d pages", len(urls))
        results: List[PageAuditResult] = []
        errors: List[AuditError] = []
        status = RunStatus.COMPLETED
        total = len(urls)

        for index, url in enumerate(urls, start=1):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Audit cancelled after %d of %d pages", index - 1, total)
                status = RunStatus.CANCELLED
                break

            logger.info("[%d/%d] Auditing: %s", index, total, url)
            outcome: Union[PageAuditResult, AuditError]
            try:
                outcome = await self.audit_page(url)
            except Exception as exc:
                logger.error("Failed to audit %s: %s", url, exc)
                outcome = AuditError(url=url, error=str(exc) or type(exc).__name__, timestamp=utc_timestamp())
                errors.append(outcome)
            else:
                scores = outcome.scores
                logger.info(
                    "Completed %s - Performance: %d, Accessibility: %d, SEO: %d",
                    url, scores.performance, scores.accessibility, scores.seo,
                )
                results.append(outcome)

            if on_progress is not None:
                on_progress(index, total, url, outcome)

            if index < total:
                await pause(self.audit_delay, cancel_event)

        if cancel_event is not None and cancel_event.is_set():
            # also covers a cancel during the crawl or during the last page
            status = RunStatus.CANCELLED

        report = self._build_report(seed, max_pages, urls, results, errors, status)
        logger.info(
            "Whole site audit %s: %d audited, %d failed, %d skipped",
            status.value, len(results), len(errors), report.metadata.total_pages_skipped,
        )
        return report

    @staticmethod
    def _build_report(
        seed: str,
        max_pages: int,
        urls: List[str],
        results: List[PageAuditResult],
        errors: List[AuditError],
        status: RunStatus,
    ) -> SiteAuditReport:
        return SiteAuditReport(
            summary=summarize(results, errors),
            audit_results=tuple(results),
            errors=tuple(errors),
            metadata=ReportMetadata(
                start_url=seed,
                total_pages_discovered=len(urls),
                total_pages_audited=len(results),
                total_errors=len(errors),
                audit_timestamp=utc_timestamp(),
                max_pages=max_pages,
                status=status,
                total_pages_skipped=len(urls) - len(results) - len(errors),
            ),
        )
