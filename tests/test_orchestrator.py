# File: tests/test_orchestrator.py
"""Тесты аудита всего сайта: обход, повторы, учёт ошибок, отмена."""
from __future__ import annotations

import asyncio

import pytest

from site_auditor.crawler.crawler import Crawler
from site_auditor.errors import InvalidUrlError, NonRetryableAuditError, NoPagesFoundError, PageAuditError
from site_auditor.models import AuditError, RunStatus, Scores, Severity
from site_auditor.orchestrator import SiteAuditOrchestrator, audit_with_retry
from site_auditor.retry import RetryPolicy

from conftest import FakeAuditor, FakeExtractor, make_issue, make_result

SEED = "https://example.com"
THREE_PAGES = {SEED: ["/a", "/b"]}


def build(graph, auditor, **kwargs) -> SiteAuditOrchestrator:
    crawler = Crawler(FakeExtractor(graph), delay=0)
    kwargs.setdefault("retry_policy", RetryPolicy(backoff=0))
    kwargs.setdefault("audit_delay", 0)
    return SiteAuditOrchestrator(crawler, auditor, **kwargs)


@pytest.mark.asyncio()
async def test_all_pages_succeed():
    auditor = FakeAuditor(
        {
            SEED: [make_result(SEED, (90, 80, 70))],
            f"{SEED}/a": [make_result(f"{SEED}/a", (70, 90, 80))],
            f"{SEED}/b": [make_result(f"{SEED}/b", (80, 70, 90))],
        }
    )
    report = await build(THREE_PAGES, auditor).audit_site(SEED, 10)

    assert report.summary.average_scores == Scores(80, 80, 80)
    # all three pages tie at mean 80: the first page is both best and worst
    assert report.summary.best_page.url == SEED
    assert report.summary.worst_page.url == SEED
    assert [r.url for r in report.audit_results] == [SEED, f"{SEED}/a", f"{SEED}/b"]
    assert report.errors == ()
    assert report.metadata.status is RunStatus.COMPLETED


@pytest.mark.asyncio()
async def test_page_failing_twice_recorded_once():
    bad = f"{SEED}/b"
    auditor = FakeAuditor({bad: [PageAuditError(bad, "boom 1"), PageAuditError(bad, "boom 2")]})
    report = await build(THREE_PAGES, auditor).audit_site(SEED, 10)

    assert [e.url for e in report.errors] == [bad]
    assert report.errors[0].error == "boom 2"
    assert bad not in [r.url for r in report.audit_results]
    assert auditor.calls[bad] == 2
    assert report.metadata.status is RunStatus.COMPLETED


@pytest.mark.asyncio()
async def test_failure_then_success_is_recovered():
    flaky = f"{SEED}/a"
    auditor = FakeAuditor({flaky: [PageAuditError(flaky, "transient"), make_result(flaky, (50, 50, 50))]})
    report = await build(THREE_PAGES, auditor).audit_site(SEED, 10)

    assert report.errors == ()
    assert auditor.calls[flaky] == 2
    assert report.summary.worst_page.url == flaky


@pytest.mark.asyncio()
async def test_unreachable_seed_raises_before_any_audit():
    auditor = FakeAuditor()
    with pytest.raises(NoPagesFoundError, match="No pages found to audit for https://example.com"):
        await build({SEED: None}, auditor).audit_site(SEED, 10)
    assert auditor.order == []


@pytest.mark.asyncio()
async def test_invalid_seed_url():
    with pytest.raises(InvalidUrlError):
        await build({}, FakeAuditor()).audit_site("not a url", 10)


@pytest.mark.asyncio()
async def test_auditor_called_at_most_twice_per_page():
    graph = {SEED: [f"/p{i}" for i in range(6)]}
    auditor = FakeAuditor({f"{SEED}/p{i}": [RuntimeError("down")] for i in range(6)})
    report = await build(graph, auditor).audit_site(SEED, 10)

    assert all(count <= 2 for count in auditor.calls.values())
    assert len(report.errors) == 6


@pytest.mark.asyncio()
@pytest.mark.parametrize("failing", [0, 1, 3])
async def test_totals_add_up(failing):
    graph = {SEED: ["/a", "/b", "/c"]}
    urls = [SEED, f"{SEED}/a", f"{SEED}/b", f"{SEED}/c"]
    auditor = FakeAuditor({u: [PageAuditError(u, "x")] for u in urls[:failing]})
    report = await build(graph, auditor).audit_site(SEED, 10)

    meta = report.metadata
    assert meta.total_pages_discovered == 4
    assert meta.total_pages_audited + meta.total_errors == meta.total_pages_discovered
    assert meta.total_errors == failing


@pytest.mark.asyncio()
async def test_non_retryable_error_not_retried():
    auditor = FakeAuditor({SEED: [NonRetryableAuditError(SEED, "Website has HTTP/2 protocol issues")]})
    report = await build({}, auditor).audit_site(SEED, 10)

    assert auditor.calls[SEED] == 1
    assert report.errors[0].url == SEED


@pytest.mark.asyncio()
async def test_audit_timeout_recorded_as_error():
    class SlowAuditor(FakeAuditor):
        async def audit(self, url):
            self.calls[url] += 1
            await asyncio.sleep(1)
            return make_result(url)

    auditor = SlowAuditor()
    report = await build({}, auditor, audit_timeout=0.05).audit_site(SEED, 10)

    assert auditor.calls[SEED] == 2
    assert "timed out" in report.errors[0].error


@pytest.mark.asyncio()
async def test_error_without_message_uses_type_name():
    auditor = FakeAuditor({SEED: [RuntimeError()]})
    report = await build({}, auditor).audit_site(SEED, 10)
    assert report.errors[0].error == "RuntimeError"


@pytest.mark.asyncio()
async def test_issue_counts_in_summary():
    issues = [make_issue(Severity.CRITICAL), make_issue(Severity.MINOR), make_issue(Severity.MINOR)]
    auditor = FakeAuditor({SEED: [make_result(SEED, issues=issues)]})
    report = await build({}, auditor).audit_site(SEED, 10)

    counts = report.summary.total_issues
    assert (counts.critical, counts.moderate, counts.minor) == (1, 0, 2)


@pytest.mark.asyncio()
async def test_progress_callback():
    bad = f"{SEED}/a"
    auditor = FakeAuditor({bad: [PageAuditError(bad, "x")]})
    seen = []

    def on_progress(index, total, url, outcome):
        seen.append((index, total, url, isinstance(outcome, AuditError)))

    await build(THREE_PAGES, auditor).audit_site(SEED, 10, on_progress=on_progress)
    assert seen == [
        (1, 3, SEED, False),
        (2, 3, bad, True),
        (3, 3, f"{SEED}/b", False),
    ]


@pytest.mark.asyncio()
async def test_cancel_returns_partial_report():
    cancel = asyncio.Event()
    auditor = FakeAuditor()

    def on_progress(index, total, url, outcome):
        cancel.set()

    report = await build(THREE_PAGES, auditor).audit_site(
        SEED, 10, cancel_event=cancel, on_progress=on_progress
    )

    assert report.cancelled
    assert report.metadata.status is RunStatus.CANCELLED
    assert [r.url for r in report.audit_results] == [SEED]
    assert report.metadata.total_pages_discovered == 3
    assert auditor.order == [SEED]
    assert report.metadata.total_pages_skipped == 2
    meta = report.metadata
    assert meta.total_pages_audited + meta.total_errors + meta.total_pages_skipped == meta.total_pages_discovered


@pytest.mark.asyncio()
async def test_cancel_before_crawl_gives_empty_cancelled_report():
    cancel = asyncio.Event()
    cancel.set()
    auditor = FakeAuditor()

    report = await build(THREE_PAGES, auditor).audit_site(SEED, 10, cancel_event=cancel)

    assert report.cancelled
    assert report.audit_results == ()
    assert report.metadata.total_pages_discovered == 0
    assert report.metadata.total_pages_skipped == 0
    assert auditor.order == []


@pytest.mark.asyncio()
async def test_max_pages_recorded_in_metadata():
    graph = {SEED: [f"/p{i}" for i in range(10)]}
    report = await build(graph, FakeAuditor()).audit_site(SEED, 4)
    assert report.metadata.max_pages == 4
    assert report.metadata.total_pages_discovered == 4


@pytest.mark.asyncio()
async def test_audit_with_retry_reraises_last_error():
    auditor = FakeAuditor({SEED: [PageAuditError(SEED, "first"), PageAuditError(SEED, "second")]})
    with pytest.raises(PageAuditError, match="second"):
        await audit_with_retry(auditor, SEED, RetryPolicy(backoff=0), timeout=5)


def test_invalid_orchestrator_settings():
    crawler = Crawler(FakeExtractor({}), delay=0)
    with pytest.raises(ValueError):
        SiteAuditOrchestrator(crawler, FakeAuditor(), audit_delay=-1)
    with pytest.raises(ValueError):
        SiteAuditOrchestrator(crawler, FakeAuditor(), audit_timeout=0)
