# File: site_auditor/auditor/pagespeed.py
"""site_auditor.auditor.pagespeed: Аудит страницы через Google PageSpeed Insights (Lighthouse).

Один вызов :meth:`PageSpeedAuditor.audit` делает ровно один запрос к API;
повторы остаются на совести оркестратора.
"""

from __future__ import annotations

import asyncio
import json
from types import TracebackType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_auditor.auditor.issues import extract_issues
from site_auditor.config import DEFAULT_USER_AGENT, PAGESPEED_API
from site_auditor.crawler.fetcher import Fetcher
from site_auditor.errors import NonRetryableAuditError, PageAuditError
from site_auditor.logger import get_logger
from site_auditor.models import PageAuditResult, Scores
from site_auditor.utils import round_half_up, utc_timestamp

__all__ = ["PageSpeedAuditor", "CATEGORIES", "PROTOCOL_ERROR_MARKERS"]

logger = get_logger("psi")

CATEGORIES: Tuple[str, ...] = ("performance", "accessibility", "seo")

PROTOCOL_ERROR_MARKERS: Tuple[str, ...] = (
    "ERR_HTTP2_PROTOCOL_ERROR",
    "ERR_SPDY_PROTOCOL_ERROR",
    "Protocol error",
)


def _is_protocol_error(message: str) -> bool:
    return any(marker in message for marker in PROTOCOL_ERROR_MARKERS)


def _api_message(body: str) -> str:
    """Достаёт error.message из JSON-ответа API, иначе возвращает начало тела."""
    try:
        data = json.loads(body)
    except ValueError:
        return body[:500]
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or body[:500])
    return body[:500]


def _failure(url: str, message: str, status: Optional[int] = None) -> PageAuditError:
    if _is_protocol_error(message):
        return NonRetryableAuditError(
            url,
            f"Website {url} has HTTP/2 protocol issues. This can happen with some websites "
            f"that have misconfigured HTTP/2 servers or strict bot detection. ({message})",
            status=status,
        )
    return PageAuditError(url, f"Failed to audit {url}: {message}", status=status)


def _scores(url: str, lhr: Mapping[str, Any]) -> Scores:
    categories = lhr.get("categories") or {}
    values: Dict[str, int] = {}
    for name in CATEGORIES:
        score = (categories.get(name) or {}).get("score")
        if score is None:
            raise PageAuditError(url, f"Failed to audit {url}: no {name} score in Lighthouse result")
        values[name] = max(0, min(100, round_half_up(float(score) * 100)))
    return Scores(**values)


class PageSpeedAuditor:
    """PageAuditor поверх PageSpeed Insights API v5.

    Можно передать готовую aiohttp-сессию или использовать объект как
    async context manager, и тогда сессия создаётся и закрывается им самим.
    При ``map_lines=True`` дополнительно загружается HTML страницы, чтобы
    указать приблизительные строки проблемных элементов.
    """

    def __init__(
        self,
        session: Optional[ClientSession] = None,
        *,
        api_key: Optional[str] = None,
        strategy: str = "mobile",
        endpoint: str = PAGESPEED_API,
        timeout: float = 120.0,
        map_lines: bool = True,
        fetch_timeout: float = 10.0,
        max_redirects: int = 5,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self.api_key = api_key
        self.strategy = strategy
        self.endpoint = endpoint
        self.timeout = timeout
        self.map_lines = map_lines
        self.fetch_timeout = fetch_timeout
        self.max_redirects = max_redirects
        self.user_agent = user_agent

    async def __aenter__(self) -> PageSpeedAuditor:
        if self._session is None:
            self._session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
                raise_for_status=False,
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

    @property
    def session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError("Session not initialized; use 'async with PageSpeedAuditor()'")
        return self._session

    def _params(self, url: str) -> List[Tuple[str, str]]:
        params = [("url", url), ("strategy", self.strategy)]
        params += [("category", c) for c in CATEGORIES]
        if self.api_key:
            params.append(("key", self.api_key))
        return params

    async def _run_pagespeed(self, url: str) -> Mapping[str, Any]:
        try:
            async with self.session.get(self.endpoint, params=self._params(url)) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    message = _api_message(body)
                    logger.warning("[PSI] HTTP %s for %s: %s", resp.status, url, message)
                    raise _failure(url, f"HTTP {resp.status}: {message}", resp.status)
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise PageAuditError(url, f"Failed to audit {url}: PageSpeed request timed out") from exc
        except ClientError as exc:
            raise _failure(url, str(exc)) from exc
        except ValueError as exc:
            raise PageAuditError(url, f"Failed to audit {url}: malformed PageSpeed response") from exc
        if not isinstance(data, dict):
            raise PageAuditError(url, f"Failed to audit {url}: malformed PageSpeed response")
        return data

    async def _page_html(self, url: str) -> Optional[str]:
        if not self.map_lines:
            return None
        page = await Fetcher(
            self.session, timeout=self.fetch_timeout, max_redirects=self.max_redirects
        ).fetch(url)
        return page.content if page else None

    async def audit(self, url: str) -> PageAuditResult:
        """Один аудит одной страницы."""
        logger.info("Auditing: %s", url)
        payload = await self._run_pagespeed(url)

        runtime_error = (payload.get("lighthouseResult") or {}).get("runtimeError")
        if isinstance(runtime_error, dict) and runtime_error.get("message"):
            raise _failure(url, str(runtime_error["message"]))

        lhr = payload.get("lighthouseResult")
        if not isinstance(lhr, dict):
            raise PageAuditError(url, f"Failed to audit {url}: response has no lighthouseResult")

        scores = _scores(url, lhr)
        html = await self._page_html(url)
        issues = extract_issues(lhr, html)
        result = PageAuditResult(url=url, scores=scores, issues=tuple(issues), timestamp=utc_timestamp())
        logger.info(
            "Audit completed for %s - P:%d A:%d S:%d",
            url, scores.performance, scores.accessibility, scores.seo,
        )
        return result
