# File: site_auditor/utils.py
"""site_auditor.utils: URL helpers, the crawl exclusion policy and small numeric/time utilities."""

from __future__ import annotations

import asyncio
import math
import re
from datetime import datetime, timezone
from typing import Optional, Sequence
from urllib.parse import urldefrag, urlparse, urlunparse

from site_auditor.errors import InvalidUrlError
from site_auditor.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "strip_fragment",
    "is_same_host",
    "validate_url",
    "ensure_scheme",
    "is_excluded_url",
    "round_half_up",
    "pause",
    "utc_timestamp",
)

_EXCLUDE_PATTERNS: Sequence[re.Pattern[str]] = tuple(
    re.compile(p)
    for p in (
        r"/wp-admin/",
        r"/admin/",
        r"/login",
        r"/logout",
        r"/register",
        r"/cart",
        r"/checkout",
        r"/search\?",
        r"(?i)\.(pdf|doc|docx|xls|xlsx|ppt|pptx|zip|rar|tar|gz)$",
        r"(?i)\.(jpg|jpeg|png|gif|svg|ico|webp)$",
        r"(?i)\.(css|js|json|xml|txt)$",
        r"mailto:",
        r"tel:",
        r"javascript:",
        r"#$",
    )
)


def strip_fragment(url: str) -> str:
    """Отбрасывает #fragment, остальное оставляет как есть."""
    return urldefrag(url).url


def normalize_url(url: str) -> str:
    """Ключ для дедупликации: scheme и host в нижнем регистре, пустой path становится '/', фрагмент отбрасывается."""
    parsed = urlparse(strip_fragment(url))
    scheme = parsed.scheme.lower()
    netloc = parsed.netloc.lower()
    path = parsed.path or "/"
    normalized = urlunparse((scheme, netloc, path, parsed.params, parsed.query, ""))
    logger.debug("Normalized URL: %s -> %s", url, normalized)
    return normalized


def is_same_host(url: str, base_host: str) -> bool:
    """True для http(s) URL, hostname которого в точности равен base_host."""
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and parsed.hostname == base_host.lower()


def ensure_scheme(url: str) -> str:
    """Добавляет https:// к адресу без схемы (``example.com`` даёт ``https://example.com``)."""
    u = url.strip()
    if u and not u.startswith(("http://", "https://")) and "://" not in u:
        return "https://" + u
    return u


def validate_url(url: str) -> str:
    """Проверяет seed URL и возвращает его без фрагмента.

    Raises
    ------
    InvalidUrlError
        Если схема не http/https или отсутствует хост.
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError(str(url), "empty URL")
    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError as exc:
        raise InvalidUrlError(url, str(exc)) from exc
    if parsed.scheme not in ("http", "https"):
        raise InvalidUrlError(url, "scheme must be http or https")
    if not hostname:
        raise InvalidUrlError(url, "missing host")
    return strip_fragment(url.strip())


def is_excluded_url(url: str) -> bool:
    """Административные, служебные и не-HTML ссылки в обход не попадают."""
    return any(p.search(url) for p in _EXCLUDE_PATTERNS)


def round_half_up(value: float) -> int:
    """Округление как в Math.round: .5 всегда вверх (в отличие от встроенного round)."""
    return int(math.floor(value + 0.5))


async def pause(delay: float, cancel_event: Optional[asyncio.Event] = None) -> None:
    """Спит delay секунд; установленный cancel_event будит раньше срока."""
    if delay <= 0:
        return
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        pass


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 в UTC с миллисекундами и суффиксом Z."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
