# File: tests/test_engine.py
"""Тесты фасада Engine с подменёнными аудитором и экстрактором ссылок."""
import pytest

from site_auditor.cache import ReportCache
from site_auditor.engine import Engine
from site_auditor.errors import InvalidUrlError, NoPagesFoundError, PageAuditError

from conftest import FakeAuditor, FakeExtractor, make_result

SEED = "https://example.com"


def _engine(config, graph=None, auditor=None, **kwargs):
    return Engine(
        config,
        auditor=auditor or FakeAuditor(),
        extractor=FakeExtractor(graph if graph is not None else {SEED: ["/a"]}),
        **kwargs,
    )


@pytest.mark.asyncio()
async def test_audit_site_adds_scheme(fast_config):
    report = await _engine(fast_config).audit_site("example.com")
    assert report.metadata.start_url == SEED
    assert [r.url for r in report.audit_results] == [SEED, f"{SEED}/a"]


@pytest.mark.asyncio()
async def test_max_pages_defaults_to_config(fast_config):
    config = fast_config.model_copy(update={"max_pages": 1})
    report = await _engine(config).audit_site(SEED)
    assert report.metadata.max_pages == 1
    assert report.metadata.total_pages_discovered == 1


@pytest.mark.asyncio()
async def test_max_pages_override(fast_config):
    report = await _engine(fast_config, {SEED: ["/a", "/b", "/c"]}).audit_site(SEED, 2)
    assert report.metadata.total_pages_discovered == 2


@pytest.mark.asyncio()
async def test_no_pages_found(fast_config):
    with pytest.raises(NoPagesFoundError):
        await _engine(fast_config, {SEED: None}).audit_site(SEED)


@pytest.mark.asyncio()
async def test_unreachable_seed_kept_by_config(fast_config):
    config = fast_config.model_copy(update={"drop_unreachable_seed": False})
    report = await _engine(config, {SEED: None}).audit_site(SEED)
    assert report.metadata.total_pages_discovered == 1


@pytest.mark.asyncio()
async def test_invalid_url(fast_config):
    with pytest.raises(InvalidUrlError):
        await _engine(fast_config).audit_site("ftp://example.com")


@pytest.mark.asyncio()
async def test_audit_page_retries_once(fast_config):
    page = f"{SEED}/about"
    auditor = FakeAuditor({page: [PageAuditError(page, "flaky"), make_result(page, (70, 70, 70))]})
    result = await _engine(fast_config, auditor=auditor).audit_page(page)
    assert result.scores.performance == 70
    assert auditor.calls[page] == 2


@pytest.mark.asyncio()
async def test_audit_page_failure_propagates(fast_config):
    page = f"{SEED}/about"
    auditor = FakeAuditor({page: [PageAuditError(page, "down")]})
    with pytest.raises(PageAuditError):
        await _engine(fast_config, auditor=auditor).audit_page(page)


def test_run_site_audit_sync(fast_config):
    report = _engine(fast_config).run_site_audit(SEED)
    assert not report.cancelled
    assert report.metadata.total_pages_audited == 2


def test_run_page_audit_sync(fast_config):
    result = _engine(fast_config).run_page_audit("example.com/contact")
    assert result.url == "https://example.com/contact"


def test_remember_and_recall(fast_config):
    engine = _engine(fast_config, cache=ReportCache(1))
    first = engine.run_site_audit(SEED)
    second = engine.run_site_audit(SEED)
    first_id = engine.remember(first)
    second_id = engine.remember(second)

    assert first_id != second_id
    assert engine.recall(second_id) is second
    assert engine.recall(first_id) is None
