# site_auditor/crawler/fetcher.py
"""
Fetcher module: downloads HTML pages with a bounded timeout and redirect limit.
"""
from __future__ import annotations

import asyncio
from typing import Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_auditor.crawler.models import PageData
from site_auditor.logger import get_logger

__all__ = ["Fetcher", "new_session"]

logger = get_logger("crawler.fetch")


def new_session(user_agent: str, timeout: float) -> ClientSession:
    """Create the shared aiohttp session used for page fetches."""
    return ClientSession(
        timeout=ClientTimeout(total=timeout),
        headers={"User-Agent": user_agent},
        raise_for_status=False,
    )


class Fetcher:
    """Fetches HTML documents. Never raises for network-level problems."""

    def __init__(
        self,
        session: ClientSession,
        *,
        timeout: float = 10.0,
        max_redirects: int = 5,
    ) -> None:
        self.session = session
        self.timeout = ClientTimeout(total=timeout)
        self.max_redirects = max_redirects

    async def fetch(self, url: str) -> Optional[PageData]:
        """
        Fetch *url* and return its markup.

        Returns None on timeout, transport error, non-2xx status
        or a content type other than text/html.
        """
        try:
            async with self.session.get(
                url,
                timeout=self.timeout,
                # aiohttp fails on the max_redirects-th hop, not after it
                max_redirects=self.max_redirects + 1,
                allow_redirects=self.max_redirects > 0,
            ) as resp:
                if not 200 <= resp.status < 300:
                    logger.debug("Skip %s: HTTP %s", url, resp.status)
                    return None
                ctype = resp.headers.get("Content-Type", "").lower()
                if "text/html" not in ctype:
                    logger.debug("Skip %s: content type %r", url, ctype)
                    return None
                text = await resp.text(errors="replace")
                return PageData(url, text)
        except asyncio.TimeoutError:
            logger.warning("Timed out fetching %s", url)
            return None
        except (ClientError, ValueError) as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            return None
