# File: site_auditor/errors.py
"""site_auditor.errors: Exception hierarchy shared by the crawler, the auditors and the orchestrator."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SiteAuditorError",
    "InvalidUrlError",
    "NoPagesFoundError",
    "PageAuditError",
    "NonRetryableAuditError",
]


class SiteAuditorError(Exception):
    """Base class for every error raised by SiteAuditor."""


class InvalidUrlError(SiteAuditorError, ValueError):
    """The seed URL is not an absolute http(s) URL."""

    def __init__(self, url: str, reason: str = "not an absolute http(s) URL") -> None:
        super().__init__(f"Invalid URL {url!r}: {reason}")
        self.url = url
        self.reason = reason


class NoPagesFoundError(SiteAuditorError):
    """The crawl did not produce a single page to audit."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No pages found to audit for {url}. Please check the URL and try again.")
        self.url = url


class PageAuditError(SiteAuditorError):
    """A single page could not be audited. Retried once by the orchestrator."""

    def __init__(self, url: str, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class NonRetryableAuditError(PageAuditError):
    """Failure that will not go away on a second attempt (protocol-level errors)."""
