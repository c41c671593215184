# === FILE: site_auditor/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Deque, List, Optional, Protocol, Set
from urllib.parse import urljoin, urlparse

from site_auditor.crawler.link_extractor import LinkExtractor
from site_auditor.logger import get_logger
from site_auditor.utils import is_same_host, normalize_url, pause, strip_fragment, validate_url

__all__ = ("LinkSource", "Crawler", "crawl")

logger = get_logger("crawler")


class LinkSource(Protocol):
    """Anything that can list the internal links of a page (see LinkExtractor)."""

    async def extract_links(self, page_url: str, base_host: str) -> Optional[List[str]]:
        ...


class Crawler:
    """
    Обход сайта в ширину в пределах одного hostname.

    Страницы загружаются строго по одной, между загрузками выдерживается
    пауза ``delay``. Каждый URL передаётся экстрактору не более одного раза.
    """

    def __init__(
        self,
        extractor: LinkSource,
        *,
        delay: float = 0.5,
        drop_unreachable_seed: bool = True,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        self.extractor = extractor
        self.delay = delay
        self.drop_unreachable_seed = drop_unreachable_seed

    async def crawl(
        self,
        seed_url: str,
        max_pages: int,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[str]:
        """Возвращает до max_pages URL, первым всегда идёт seed_url."""
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        seed = validate_url(seed_url)
        base_host = urlparse(seed).hostname or ""

        logger.info("Старт обхода: %s (max %d pages)", seed, max_pages)
        start = time.monotonic()

        frontier: Deque[str] = deque([seed])
        queued: Set[str] = {normalize_url(seed)}
        visited: Set[str] = set()
        discovered: List[str] = []

        while frontier and len(discovered) < max_pages:
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Обход прерван после %d страниц", len(discovered))
                break

            current = frontier.popleft()
            key = normalize_url(current)
            queued.discard(key)
            if key in visited:
                continue
            visited.add(key)
            discovered.append(current)
            logger.info("Crawling [%d/%d]: %s", len(discovered), max_pages, current)

            links = await self.extractor.extract_links(current, base_host)
            if links is None:
                if len(discovered) == 1 and self.drop_unreachable_seed:
                    logger.warning("Start URL %s is unreachable", seed)
                    return []
                links = []

            for link in links:
                absolute = strip_fragment(urljoin(current, link))
                if not is_same_host(absolute, base_host):
                    continue
                link_key = normalize_url(absolute)
                if link_key in visited or link_key in queued:
                    continue
                queued.add(link_key)
                frontier.append(absolute)

            if frontier and len(discovered) < max_pages:
                await pause(self.delay, cancel_event)

        duration = time.monotonic() - start
        logger.info("Обход завершён: %d страниц за %.2f с", len(discovered), duration)
        return discovered


async def crawl(
    seed_url: str,
    max_pages: int = 50,
    extractor: Optional[LinkSource] = None,
    *,
    delay: float = 0.5,
    drop_unreachable_seed: bool = True,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[str]:
    """Обход сайта одной функцией; без extractor создаёт LinkExtractor со своей сессией."""
    if extractor is not None:
        crawler = Crawler(extractor, delay=delay, drop_unreachable_seed=drop_unreachable_seed)
        return await crawler.crawl(seed_url, max_pages, cancel_event)

    async with LinkExtractor() as own:
        crawler = Crawler(own, delay=delay, drop_unreachable_seed=drop_unreachable_seed)
        return await crawler.crawl(seed_url, max_pages, cancel_event)
