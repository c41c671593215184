# site_auditor/crawler/link_extractor.py
"""
Link extraction for SiteAuditor: same-host anchors of a page, minus non-content URLs.
"""
from __future__ import annotations

from types import TracebackType
from typing import List, Optional, Type
from urllib.parse import urljoin

from aiohttp import ClientSession
from bs4 import BeautifulSoup
from bs4.element import Tag

from site_auditor.crawler.fetcher import Fetcher, new_session
from site_auditor.logger import get_logger
from site_auditor.utils import is_excluded_url, is_same_host, strip_fragment

__all__ = ["LinkExtractor", "parse_links"]

logger = get_logger("crawler.links")


def parse_links(html: str, page_url: str, base_host: str) -> List[str]:
    """
    Extract internal HTTP(S) links from *html*.

    Relative hrefs are resolved against *page_url*; only hosts equal to
    *base_host* survive. Fragments are dropped, excluded URLs skipped and
    the order of first occurrence is kept.
    """
    soup = BeautifulSoup(html, "html.parser")
    seen: set[str] = set()
    links: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str) or not href_val.strip():
            continue
        try:
            absolute = strip_fragment(urljoin(page_url, href_val.strip()))
        except ValueError:
            # malformed netloc, e.g. an unbalanced IPv6 bracket
            continue
        if not is_same_host(absolute, base_host):
            continue
        if absolute in seen or is_excluded_url(absolute):
            continue
        seen.add(absolute)
        links.append(absolute)
    return links


class LinkExtractor:
    """Fetches a page and returns the same-host links it contains.

    Usable as an async context manager, in which case it owns its aiohttp
    session; a caller-provided session is left open.
    """

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        user_agent: str = "Mozilla/5.0 (compatible; WebsiteAuditor/1.0)",
        timeout: float = 10.0,
        max_redirects: int = 5,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._user_agent = user_agent
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._fetcher: Optional[Fetcher] = (
            Fetcher(session, timeout=timeout, max_redirects=max_redirects) if session else None
        )

    async def __aenter__(self) -> LinkExtractor:
        if self._session is None:
            self._session = new_session(self._user_agent, self._timeout)
            self._fetcher = Fetcher(
                self._session, timeout=self._timeout, max_redirects=self._max_redirects
            )
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        if self._owns_session:
            self._session = None
            self._fetcher = None

    @property
    def fetcher(self) -> Fetcher:
        if self._fetcher is None:
            raise RuntimeError("Session not initialized; use 'async with LinkExtractor()'")
        return self._fetcher

    async def extract_links(self, page_url: str, base_host: str) -> Optional[List[str]]:
        """
        Return the internal links of *page_url*.

        None means the page could not be fetched as HTML; an empty list means
        it was fetched but holds no usable links. Nothing is raised for
        network or parse problems.
        """
        page = await self.fetcher.fetch(page_url)
        if page is None:
            return None
        try:
            links = parse_links(page.content, page.url, base_host)
        except Exception as exc:  # pragma: no cover - bs4 html.parser is lenient
            logger.warning("Failed to parse %s: %s", page_url, exc)
            return []
        logger.debug("Found %d internal links on %s", len(links), page_url)
        return links
