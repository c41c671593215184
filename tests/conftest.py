# File: tests/conftest.py
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

import pytest

from site_auditor.config import AuditConfig
from site_auditor.models import Category, Issue, PageAuditResult, Scores, Severity


class FakeExtractor:
    """
    LinkSource без сети: url -> список ссылок, None означает недоступную страницу.
    Неизвестные URL считаются страницами без ссылок.
    """

    def __init__(self, graph: Mapping[str, Optional[Sequence[str]]]) -> None:
        self.graph = dict(graph)
        self.calls: List[str] = []

    async def extract_links(self, page_url: str, base_host: str) -> Optional[List[str]]:
        self.calls.append(page_url)
        links = self.graph.get(page_url, [])
        return None if links is None else list(links)


Outcome = Union[PageAuditResult, Exception]


class FakeAuditor:
    """
    PageAuditor со сценарием: для каждого URL очередь исходов.
    Исключение в очереди выбрасывается, результат возвращается.
    Когда очередь исчерпана, повторяется последний исход.
    """

    def __init__(
        self,
        outcomes: Optional[Mapping[str, Iterable[Outcome]]] = None,
        default: Optional[Scores] = None,
    ) -> None:
        self.outcomes: Dict[str, List[Outcome]] = {k: list(v) for k, v in (outcomes or {}).items()}
        self.default = default or Scores(90, 90, 90)
        self.calls: Dict[str, int] = defaultdict(int)
        self.order: List[str] = []

    async def audit(self, url: str) -> PageAuditResult:
        self.calls[url] += 1
        self.order.append(url)
        queue = self.outcomes.get(url)
        if not queue:
            return make_result(url, self.default)
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_issue(severity: Severity = Severity.MINOR, category: Category = Category.SEO) -> Issue:
    return Issue(
        title="Document doesn't have a <title> element",
        category=category,
        severity=severity,
        description="Title elements give screen reader users an overview of the page.",
        suggestion="Add a <title> element.",
        criteria="2.4.2 - Level A",
    )


def make_result(
    url: str,
    scores: Union[Scores, Sequence[int]] = (90, 90, 90),
    issues: Sequence[Issue] = (),
) -> PageAuditResult:
    if not isinstance(scores, Scores):
        scores = Scores(*scores)
    return PageAuditResult(url=url, scores=scores, issues=tuple(issues), timestamp="2024-05-01T12:00:00.000Z")


@pytest.fixture()
def fast_config() -> AuditConfig:
    """
    AuditConfig без пауз, чтобы тесты не спали.
    """
    return AuditConfig(crawl_delay=0, audit_delay=0, retry_backoff=0)


@pytest.fixture()
def sample_lhr() -> dict:
    """
    Урезанный lighthouseResult: одна проблема доступности, одна производительности, одна SEO.
    """
    return {
        "categories": {
            "performance": {"score": 0.875},
            "accessibility": {"score": 0.9},
            "seo": {"score": 1},
        },
        "audits": {
            "image-alt": {
                "id": "image-alt",
                "title": "Image elements do not have [alt] attributes",
                "description": "Informative elements should aim for short, descriptive alternate text.",
                "score": 0,
                "details": {
                    "items": [
                        {"node": {"selector": "img.hero", "snippet": '<img class="hero" src="/a.png">'}},
                        {"node": {"snippet": '<img src="/b.png">'}, "failureMessage": "Missing alt"},
                    ]
                },
            },
            "largest-contentful-paint": {
                "id": "largest-contentful-paint",
                "title": "Largest Contentful Paint",
                "description": "LCP marks the time at which the largest text or image is painted.",
                "score": 0.6,
            },
            "speed-index": {
                "id": "speed-index",
                "title": "Speed Index",
                "description": "Speed Index shows how quickly the contents of a page are visibly populated.",
                "score": 0.95,
            },
            "meta-description": {
                "id": "meta-description",
                "title": "Document does not have a meta description",
                "description": "Meta descriptions may be included in search results.",
                "score": 0,
            },
            "hreflang": {
                "id": "hreflang",
                "title": "Document has a valid hreflang",
                "description": "hreflang links tell search engines what version of a page to list.",
                "score": None,
            },
        },
    }
