# File: site_auditor/crawler/__init__.py
"""site_auditor.crawler: Обход сайта в ширину и извлечение внутренних ссылок."""

from .crawler import Crawler, crawl
from .fetcher import Fetcher
from .link_extractor import LinkExtractor, parse_links
from .models import PageData

__all__ = ["Crawler", "crawl", "Fetcher", "LinkExtractor", "parse_links", "PageData"]
