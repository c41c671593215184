# File: site_auditor/auditor/issues.py
"""site_auditor.auditor.issues: Преобразование аудитов Lighthouse (lhr) в список Issue.

Берутся только аудиты из фиксированных списков ниже. Для доступности и SEO
замечанием считается любая оценка ниже 1, для производительности ниже 0.9.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Union

from site_auditor.models import AffectedElement, Category, Issue, Severity

__all__ = [
    "ACCESSIBILITY_AUDITS",
    "PERFORMANCE_AUDITS",
    "SEO_AUDITS",
    "WCAG_CRITERIA",
    "extract_issues",
    "severity_for",
    "wcag_criteria",
    "find_line_number",
]

ACCESSIBILITY_AUDITS: Sequence[str] = (
    "aria-allowed-attr", "aria-hidden-body", "aria-hidden-focus", "aria-input-field-name",
    "aria-required-attr", "aria-required-children", "aria-required-parent", "aria-roles",
    "aria-valid-attr", "aria-valid-attr-value", "button-name", "bypass", "color-contrast",
    "definition-list", "dlitem", "document-title", "duplicate-id-active", "duplicate-id-aria",
    "form-field-multiple-labels", "frame-title", "heading-order", "html-has-lang",
    "html-lang-valid", "image-alt", "input-image-alt", "label", "landmark-one-main",
    "link-name", "list", "listitem", "meta-refresh", "meta-viewport", "object-alt",
    "tabindex", "td-headers-attr", "th-has-data-cells", "valid-lang",
)

PERFORMANCE_AUDITS: Sequence[str] = (
    "first-contentful-paint", "largest-contentful-paint", "first-meaningful-paint",
    "speed-index", "total-blocking-time", "cumulative-layout-shift", "server-response-time",
    "render-blocking-resources", "unused-css-rules", "unused-javascript",
    "modern-image-formats", "offscreen-images", "unminified-css", "unminified-javascript",
)

SEO_AUDITS: Sequence[str] = (
    "document-title", "meta-description", "http-status-code", "link-text",
    "crawlable-anchors", "is-crawlable", "robots-txt", "image-alt", "hreflang", "canonical",
)

_THRESHOLDS: Dict[Category, float] = {
    Category.ACCESSIBILITY: 1.0,
    Category.PERFORMANCE: 0.9,
    Category.SEO: 1.0,
}

_AUDITS_BY_CATEGORY: Dict[Category, Sequence[str]] = {
    Category.ACCESSIBILITY: ACCESSIBILITY_AUDITS,
    Category.PERFORMANCE: PERFORMANCE_AUDITS,
    Category.SEO: SEO_AUDITS,
}

WCAG_CRITERIA: Mapping[str, str] = {
    "aria-allowed-attr": "4.1.2 - Level A",
    "aria-hidden-body": "4.1.2 - Level A",
    "aria-hidden-focus": "4.1.2 - Level A",
    "aria-input-field-name": "4.1.2 - Level A",
    "aria-required-attr": "4.1.2 - Level A",
    "aria-required-children": "4.1.1 - Level A",
    "aria-required-parent": "4.1.1 - Level A",
    "aria-roles": "4.1.2 - Level A",
    "aria-valid-attr": "4.1.2 - Level A",
    "aria-valid-attr-value": "4.1.2 - Level A",
    "button-name": "4.1.2 - Level A",
    "bypass": "2.4.1 - Level A",
    "color-contrast": "1.4.3 - Level AA",
    "document-title": "2.4.2 - Level A",
    "duplicate-id-active": "4.1.1 - Level A",
    "duplicate-id-aria": "4.1.1 - Level A",
    "form-field-multiple-labels": "3.3.2 - Level A",
    "frame-title": "4.1.2 - Level A",
    "heading-order": "1.3.1 - Level A",
    "html-has-lang": "3.1.1 - Level A",
    "html-lang-valid": "3.1.1 - Level A",
    "image-alt": "1.1.1 - Level A",
    "input-image-alt": "1.1.1 - Level A",
    "label": "1.3.1 - Level A",
    "landmark-one-main": "1.3.6 - Level AAA",
    "link-name": "4.1.2 - Level A",
    "list": "1.3.1 - Level A",
    "listitem": "1.3.1 - Level A",
    "meta-refresh": "2.2.1 - Level A",
    "meta-viewport": "1.4.4 - Level AA",
    "object-alt": "1.1.1 - Level A",
    "tabindex": "2.4.3 - Level A",
    "td-headers-attr": "1.3.1 - Level A",
    "th-has-data-cells": "1.3.1 - Level A",
    "valid-lang": "3.1.2 - Level AA",
}
_DEFAULT_CRITERIA = "General - Level A"

_SELECTOR_SPLIT_RE = re.compile(r"[\s>+~]")
_TAG_RE = re.compile(r"<(\w+)[^>]*>")
_ATTR_VALUE_RE = re.compile(r"\w+=[\"']([^\"']+)[\"']")


def severity_for(score: float) -> Severity:
    if score < 0.5:
        return Severity.CRITICAL
    if score < 0.9:
        return Severity.MODERATE
    return Severity.MINOR


def wcag_criteria(audit_id: str) -> str:
    return WCAG_CRITERIA.get(audit_id, _DEFAULT_CRITERIA)


def _search_terms(identifier: str) -> List[str]:
    terms: List[str] = []
    if "#" in identifier or "." in identifier or "[" in identifier:
        terms.extend(part for part in _SELECTOR_SPLIT_RE.split(identifier) if part.strip())
        terms.append(identifier)
    elif "<" in identifier and ">" in identifier:
        tag = _TAG_RE.search(identifier)
        if tag:
            terms.append(tag.group(0))
            terms.append(f"<{tag.group(1)}")
        terms.extend(_ATTR_VALUE_RE.findall(identifier))
    else:
        terms.append(identifier)
    return list(dict.fromkeys(t for t in terms if t and t.strip()))


def find_line_number(identifier: str, html_lines: Sequence[str], used: Set[int]) -> Optional[int]:
    """Первая ещё не занятая строка HTML (с 1), содержащая один из поисковых терминов."""
    if not identifier or not html_lines:
        return None
    lowered = [line.lower() for line in html_lines]
    for term in _search_terms(identifier):
        needle = term.lower().strip()
        for index, line in enumerate(lowered, start=1):
            if index not in used and needle in line:
                return index
    return None


def _element_identifier(item: Mapping[str, Any], index: int) -> str:
    node = item.get("node") or {}
    for candidate in (
        item.get("selector"),
        item.get("url"),
        item.get("source"),
        item.get("snippet"),
        node.get("snippet") if isinstance(node, Mapping) else None,
    ):
        if candidate:
            return candidate if isinstance(candidate, str) else str(candidate)
    return f"Element {index + 1}"


def _elements(
    audit: Mapping[str, Any], html_lines: Sequence[str]
) -> List[AffectedElement]:
    details = audit.get("details") or {}
    items = details.get("items") if isinstance(details, Mapping) else None
    if not items:
        return []

    used: Set[int] = set()
    elements: List[AffectedElement] = []
    for index, item in enumerate(items):
        if not isinstance(item, Mapping):
            item = {}
        identifier = _element_identifier(item, index)
        line: Union[int, str] = "N/A"
        approximate = False
        found = find_line_number(identifier, html_lines, used)
        if found is not None:
            line = found
            approximate = True
            used.add(found)
        elements.append(
            AffectedElement(
                element=identifier,
                line=line,
                line_approximate=approximate,
                details=item.get("failureMessage") or item.get("reason") or audit.get("explanation"),
            )
        )
    return elements


def _to_issue(audit: Mapping[str, Any], audit_id: str, category: Category, html_lines: Sequence[str]) -> Issue:
    description = audit.get("description") or ""
    return Issue(
        title=audit.get("title") or audit_id,
        category=category,
        severity=severity_for(float(audit["score"])),
        description=description,
        suggestion=description,
        criteria=wcag_criteria(audit.get("id") or audit_id),
        elements=tuple(_elements(audit, html_lines)),
    )


def extract_issues(lhr: Mapping[str, Any], html: Optional[str] = None) -> List[Issue]:
    """
    Собирает замечания из отчёта Lighthouse.

    Порядок: доступность, производительность, SEO. Аудиты без оценки
    (score is None) пропускаются. Если передан HTML, элементам
    проставляются приблизительные номера строк.
    """
    audits = lhr.get("audits") or {}
    html_lines = html.split("\n") if html else []
    issues: List[Issue] = []
    for category in (Category.ACCESSIBILITY, Category.PERFORMANCE, Category.SEO):
        threshold = _THRESHOLDS[category]
        for audit_id in _AUDITS_BY_CATEGORY[category]:
            audit = audits.get(audit_id)
            if not isinstance(audit, Mapping):
                continue
            score = audit.get("score")
            if score is None or score >= threshold:
                continue
            issues.append(_to_issue(audit, audit_id, category, html_lines))
    return issues
