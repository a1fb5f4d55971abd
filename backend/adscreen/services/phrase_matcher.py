"""Forbidden-phrase matching over OCR text."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from adscreen.models.schemas import Finding, ForbiddenPhraseRule

DEFAULT_VIOLATION_TYPE = "Forbidden phrase detected"

# Whitespace plus zero-width space, which OCR output often contains between glyphs.
_STRIP_PATTERN = re.compile(r"[\s\u200b]+")


def normalize_for_match(value: str) -> str:
    return _STRIP_PATTERN.sub("", (value or "").casefold())


def phrase_matches(text: str, phrase: Optional[str]) -> bool:
    """Raw case-insensitive containment, or containment after whitespace folding."""
    keyword = (phrase or "").strip()
    if not keyword or not text:
        return False
    if keyword.casefold() in text.casefold():
        return True
    normalized_keyword = normalize_for_match(keyword)
    return bool(normalized_keyword) and normalized_keyword in normalize_for_match(text)


def match_forbidden_phrases(text: str, rules: Iterable[ForbiddenPhraseRule]) -> List[Finding]:
    """
    Return one finding per matched phrase, in rule order.

    A phrase that appears in several rules only yields the first rule's finding.
    """
    findings: List[Finding] = []
    if not text:
        return findings

    seen = set()
    for rule in rules:
        keyword = (rule.phrase or "").strip()
        if not keyword or keyword in seen:
            continue
        if not phrase_matches(text, keyword):
            continue
        seen.add(keyword)
        findings.append(
            Finding(
                text=keyword,
                violation_type=rule.violation_type or DEFAULT_VIOLATION_TYPE,
                risk_level=rule.risk_level or "low",
                reference_id=rule.reference_id or None,
            )
        )
    return findings
