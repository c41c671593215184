# File: site_auditor/engine.py
"""site_auditor.engine: Фасад для CLI и внешних слоёв: сборка компонентов по конфигу и запуск аудита."""

from __future__ import annotations

import asyncio
import signal
import uuid
from contextlib import AsyncExitStack
from typing import Optional

from site_auditor.auditor.base import PageAuditor
from site_auditor.auditor.pagespeed import PageSpeedAuditor
from site_auditor.cache import ReportCache
from site_auditor.config import AuditConfig, load_config
from site_auditor.crawler.crawler import Crawler, LinkSource
from site_auditor.crawler.link_extractor import LinkExtractor
from site_auditor.errors import SiteAuditorError
from site_auditor.logger import logger
from site_auditor.models import PageAuditResult, SiteAuditReport
from site_auditor.orchestrator import ProgressCallback, SiteAuditOrchestrator, audit_with_retry
from site_auditor.retry import RetryPolicy
from site_auditor.utils import ensure_scheme, validate_url

__all__ = ["Engine"]


class Engine:
    """Собирает Crawler, аудитор и оркестратор из AuditConfig.

    Аудитор и экстрактор ссылок можно подменить (тесты, другой движок
    аудита); по умолчанию используются PageSpeedAuditor и LinkExtractor
    со своими aiohttp-сессиями.
    """

    @staticmethod
    def load_config(path: Optional[str]) -> AuditConfig:
        """Загружает конфиг из YAML/JSON или использует значения по умолчанию."""
        return load_config(path)

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        *,
        auditor: Optional[PageAuditor] = None,
        extractor: Optional[LinkSource] = None,
        cache: Optional[ReportCache[SiteAuditReport]] = None,
    ) -> None:
        self.config = config or AuditConfig()
        self._auditor = auditor
        self._extractor = extractor
        self.cache = cache if cache is not None else ReportCache(self.config.cache_size)

    # ------------------------------------------------------------------ #
    # Component wiring                                                   #
    # ------------------------------------------------------------------ #

    def _retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=2, backoff=self.config.retry_backoff)

    async def _open_auditor(self, stack: AsyncExitStack) -> PageAuditor:
        if self._auditor is not None:
            return self._auditor
        psi = self.config.pagespeed
        return await stack.enter_async_context(
            PageSpeedAuditor(
                api_key=psi.api_key,
                strategy=psi.strategy,
                endpoint=psi.endpoint,
                timeout=self.config.audit_timeout,
                map_lines=psi.map_lines,
                fetch_timeout=self.config.fetch_timeout,
                max_redirects=self.config.max_redirects,
                user_agent=self.config.user_agent,
            )
        )

    async def _open_extractor(self, stack: AsyncExitStack) -> LinkSource:
        if self._extractor is not None:
            return self._extractor
        return await stack.enter_async_context(
            LinkExtractor(
                user_agent=self.config.user_agent,
                timeout=self.config.fetch_timeout,
                max_redirects=self.config.max_redirects,
            )
        )

    def _orchestrator(self, extractor: LinkSource, auditor: PageAuditor) -> SiteAuditOrchestrator:
        crawler = Crawler(
            extractor,
            delay=self.config.crawl_delay,
            drop_unreachable_seed=self.config.drop_unreachable_seed,
        )
        return SiteAuditOrchestrator(
            crawler,
            auditor,
            retry_policy=self._retry_policy(),
            audit_delay=self.config.audit_delay,
            audit_timeout=self.config.audit_timeout,
        )

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    async def audit_site(
        self,
        url: str,
        max_pages: Optional[int] = None,
        *,
        cancel_event: Optional[asyncio.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SiteAuditReport:
        """Аудит всего сайта. URL без схемы дополняется https://."""
        seed = validate_url(ensure_scheme(url))
        limit = max_pages if max_pages is not None else self.config.max_pages
        async with AsyncExitStack() as stack:
            extractor = await self._open_extractor(stack)
            auditor = await self._open_auditor(stack)
            try:
                return await self._orchestrator(extractor, auditor).audit_site(
                    seed, limit, cancel_event=cancel_event, on_progress=on_progress
                )
            except SiteAuditorError as exc:
                logger.error("Whole site audit failed: %s", exc)
                raise

    async def audit_page(self, url: str) -> PageAuditResult:
        """Аудит одной страницы (с тем же правилом повтора, что и для сайта)."""
        target = validate_url(ensure_scheme(url))
        async with AsyncExitStack() as stack:
            auditor = await self._open_auditor(stack)
            try:
                return await audit_with_retry(
                    auditor, target, self._retry_policy(), self.config.audit_timeout
                )
            except Exception as exc:
                logger.error("Single page audit failed for %s: %s", target, exc)
                raise

    def run_site_audit(self, url: str, max_pages: Optional[int] = None) -> SiteAuditReport:
        """Синхронная обёртка: Ctrl+C прекращает аудит и возвращает частичный отчёт."""

        async def _runner() -> SiteAuditReport:
            cancel_event = asyncio.Event()
            loop = asyncio.get_running_loop()
            try:
                loop.add_signal_handler(signal.SIGINT, cancel_event.set)
                installed = True
            except (NotImplementedError, RuntimeError, ValueError):
                # Windows loops and non-main threads have no signal support
                installed = False
            try:
                return await self.audit_site(url, max_pages, cancel_event=cancel_event)
            finally:
                if installed:
                    loop.remove_signal_handler(signal.SIGINT)

        return asyncio.run(_runner())

    def run_page_audit(self, url: str) -> PageAuditResult:
        return asyncio.run(self.audit_page(url))

    def remember(self, report: SiteAuditReport) -> str:
        """Кладёт отчёт в кеш и возвращает его идентификатор."""
        report_id = uuid.uuid4().hex
        self.cache.put(report_id, report)
        logger.debug("Cached report %s for %s", report_id, report.metadata.start_url)
        return report_id

    def recall(self, report_id: str) -> Optional[SiteAuditReport]:
        return self.cache.get(report_id)

