"""Default forbidden-phrase list and YAML phrase-list loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from adscreen.models.schemas import RISK_LEVELS, ForbiddenPhraseRule
from adscreen.services.legal_references import LEGAL_REFERENCE_MAP

logger = logging.getLogger(__name__)

_T56_02 = "Treatment effect may mislead consumers"
_T56_02_TESTIMONIAL = "Testimonial misleading about treatment effects"
_T56_08 = "Exaggeration of objective facts"
_T56_04 = "Comparative advertising"
_T56_14 = "Certification, guarantee or recommendation"
_T56_14_AWARD = "Awards, letters of appreciation, certification or recommendation"
_T56_10 = "Advertising disguised as article or expert opinion"
_T56_13 = "Discount or waiver of non-covered fees"
_T56_12 = "Domestic advertising for foreign patients"


def _rule(phrase: str, risk_level: str, violation_type: str, reference_id: str) -> ForbiddenPhraseRule:
    return ForbiddenPhraseRule(phrase=phrase, risk_level=risk_level, violation_type=violation_type, reference_id=reference_id)


DEFAULT_FORBIDDEN_PHRASES: List[ForbiddenPhraseRule] = [
    _rule("100% 보장", "high", _T56_02, "ML56-02"),
    _rule("완치", "high", _T56_02, "ML56-02"),
    _rule("치료효과 보장", "high", _T56_02, "ML56-02"),
    _rule("전후", "medium", _T56_02_TESTIMONIAL, "ML56-02"),
    _rule("후기", "medium", _T56_02_TESTIMONIAL, "ML56-02"),
    _rule("세계 최고", "medium", _T56_08, "ML56-08"),
    _rule("국내 최고", "medium", _T56_08, "ML56-08"),
    _rule("즉각적인 효과", "medium", _T56_08, "ML56-08"),
    _rule("부작용 없음", "high", _T56_08, "ML56-08"),
    _rule("1위", "medium", _T56_04, "ML56-04"),
    _rule("No.1", "medium", _T56_04, "ML56-04"),
    _rule("타 병원보다", "medium", _T56_04, "ML56-04"),
    _rule("전문의", "low", "Qualification or title claim", "ML56-09"),
    _rule("인증", "medium", _T56_14, "ML56-14"),
    _rule("보증", "medium", _T56_14, "ML56-14"),
    _rule("추천", "medium", _T56_14, "ML56-14"),
    _rule("상장", "medium", _T56_14_AWARD, "ML56-14"),
    _rule("감사장", "medium", _T56_14_AWARD, "ML56-14"),
    _rule("수상", "medium", _T56_14_AWARD, "ML56-14"),
    _rule("기사", "low", _T56_10, "ML56-10"),
    _rule("보도", "low", _T56_10, "ML56-10"),
    _rule("전문가 의견", "low", _T56_10, "ML56-10"),
    _rule("할인", "medium", _T56_13, "ML56-13"),
    _rule("무료", "medium", _T56_13, "ML56-13"),
    _rule("면제", "medium", _T56_13, "ML56-13"),
    _rule("이벤트", "low", _T56_13, "ML56-13"),
    _rule("쿠폰", "low", _T56_13, "ML56-13"),
    _rule("외국인환자", "medium", _T56_12, "ML56-12"),
    _rule("의료관광", "medium", _T56_12, "ML56-12"),
    _rule("medical tourism", "medium", _T56_12, "ML56-12"),
]


@dataclass(frozen=True)
class PhraseIssue:
    index: int
    phrase: str
    reason: str


def _raw_entries(loaded: Any) -> List[Any]:
    if isinstance(loaded, dict):
        loaded = loaded.get("phrases")
    return loaded if isinstance(loaded, list) else []


def read_phrase_file(path: Path) -> List[Any]:
    return _raw_entries(yaml.safe_load(path.read_text(encoding="utf-8")) or {})


def validate_phrase_entries(entries: List[Any]) -> List[PhraseIssue]:
    """Report blank or duplicate phrases, bad risk levels and unknown reference ids."""
    issues: List[PhraseIssue] = []
    seen: Dict[str, int] = {}
    for idx, entry in enumerate(entries):
        if not isinstance(entry, dict):
            issues.append(PhraseIssue(idx, "", "entry is not a mapping"))
            continue
        phrase = str(entry.get("phrase") or "").strip()
        if not phrase:
            issues.append(PhraseIssue(idx, phrase, "blank phrase"))
            continue
        if phrase in seen:
            issues.append(PhraseIssue(idx, phrase, f"duplicate of entry {seen[phrase]}"))
        else:
            seen[phrase] = idx
        risk_level = entry.get("risk_level", "low")
        if risk_level not in RISK_LEVELS:
            issues.append(PhraseIssue(idx, phrase, f"invalid risk_level: {risk_level!r}"))
        reference_id = entry.get("reference_id")
        if reference_id and reference_id not in LEGAL_REFERENCE_MAP:
            issues.append(PhraseIssue(idx, phrase, f"unknown reference_id: {reference_id}"))
    return issues


def load_phrase_rules(path: Optional[str]) -> List[ForbiddenPhraseRule]:
    """Rules from a YAML file when one is configured and readable, otherwise the defaults."""
    if not path:
        return list(DEFAULT_FORBIDDEN_PHRASES)
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("Forbidden phrase file %s not found, using defaults", path)
        return list(DEFAULT_FORBIDDEN_PHRASES)

    rules: List[ForbiddenPhraseRule] = []
    for entry in read_phrase_file(file_path):
        if not isinstance(entry, dict):
            continue
        try:
            rules.append(ForbiddenPhraseRule.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping invalid forbidden phrase %r: %s", entry.get("phrase"), exc)
    return rules
