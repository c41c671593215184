# File: tests/test_issues.py
"""Тесты преобразования аудитов Lighthouse в замечания."""
import pytest

from site_auditor.auditor.issues import (
    extract_issues,
    find_line_number,
    severity_for,
    wcag_criteria,
)
from site_auditor.models import Category, Severity

HTML = "\n".join(
    [
        "<html>",
        "<head><title>Shop</title></head>",
        "<body>",
        '<img class="hero" src="/a.png">',
        '<img src="/b.png">',
        "</body>",
        "</html>",
    ]
)


@pytest.mark.parametrize(
    "score, expected",
    [
        (0, Severity.CRITICAL),
        (0.49, Severity.CRITICAL),
        (0.5, Severity.MODERATE),
        (0.89, Severity.MODERATE),
        (0.9, Severity.MINOR),
        (0.99, Severity.MINOR),
    ],
)
def test_severity_for(score, expected):
    assert severity_for(score) is expected


def test_wcag_criteria_known_and_default():
    assert wcag_criteria("color-contrast") == "1.4.3 - Level AA"
    assert wcag_criteria("meta-description") == "General - Level A"


def test_extract_issues_order_and_thresholds(sample_lhr):
    issues = extract_issues(sample_lhr)
    summary = [(i.category, i.title) for i in issues]
    assert summary == [
        (Category.ACCESSIBILITY, "Image elements do not have [alt] attributes"),
        (Category.PERFORMANCE, "Largest Contentful Paint"),
        (Category.SEO, "Document does not have a meta description"),
        (Category.SEO, "Image elements do not have [alt] attributes"),
    ]


def test_extract_issues_severity_and_criteria(sample_lhr):
    issues = extract_issues(sample_lhr)
    image_alt, lcp, meta, _ = issues
    assert image_alt.severity is Severity.CRITICAL
    assert image_alt.criteria == "1.1.1 - Level A"
    assert lcp.severity is Severity.MODERATE
    assert meta.criteria == "General - Level A"
    assert meta.suggestion == meta.description


def test_performance_audit_at_threshold_is_not_an_issue(sample_lhr):
    sample_lhr["audits"]["largest-contentful-paint"]["score"] = 0.9
    titles = [i.title for i in extract_issues(sample_lhr)]
    assert "Largest Contentful Paint" not in titles


def test_audit_without_score_is_skipped(sample_lhr):
    titles = [i.title for i in extract_issues(sample_lhr)]
    assert "Document has a valid hreflang" not in titles


def test_elements_without_html_have_no_line(sample_lhr):
    image_alt = extract_issues(sample_lhr)[0]
    first, second = image_alt.elements
    assert first.element == '<img class="hero" src="/a.png">'
    assert first.line == "N/A"
    assert first.line_approximate is False
    assert second.details == "Missing alt"


def test_elements_mapped_to_distinct_lines(sample_lhr):
    image_alt = extract_issues(sample_lhr, HTML)[0]
    lines = [e.line for e in image_alt.elements]
    assert lines == [4, 5]
    assert all(e.line_approximate for e in image_alt.elements)


def test_find_line_number_css_selector():
    lines = HTML.split("\n")
    assert find_line_number("div.card > img", lines, set()) == 4


def test_find_line_number_skips_used_lines():
    lines = ["<p>a</p>", "<p>b</p>"]
    assert find_line_number("<p>", lines, {1}) == 2


def test_find_line_number_not_found():
    assert find_line_number("#missing", ["<div></div>"], set()) is None
    assert find_line_number("", ["<div></div>"], set()) is None
