# site_auditor/crawler/models.py
"""
Data models for the SiteAuditor crawler.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PageData:
    """An HTML page as fetched: requested URL and markup."""

    url: str
    content: str
