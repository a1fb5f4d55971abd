"""Parsing and normalization of the generative judge's answer."""

from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from adscreen.models.schemas import RISK_LEVELS, AnalysisCandidate, Finding, ReferenceEntry
from adscreen.services.legal_references import LEGAL_REFERENCE_MAP
from adscreen.services.risk_aggregator import summarize_risk

DEFAULT_AI_VIOLATION_TYPE = "Potential legal violation"


class AIJudgementError(ValueError):
    """The judge answered, but not with a usable JSON object."""


def _balanced_object_spans(text: str) -> List[Tuple[int, int]]:
    """Return `(start, end)` of every balanced `{...}` span, ordered by start.

    One pass with a stack of open braces. Quotes only start a string inside
    a brace, so stray quotes in surrounding prose are ignored.
    """
    spans = []
    opened: List[int] = []
    in_string = False
    escaped = False
    for idx, c in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
        elif c == "{":
            opened.append(idx)
        elif c == "}":
            if opened:
                spans.append((opened.pop(), idx))
        elif c == '"' and opened:
            in_string = True
    spans.sort()
    return spans


def parse_json_output(value: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a JSON object, tolerating code fences and surrounding prose."""
    if not value:
        return None
    raw = value.strip()
    # Some models still wrap JSON in markdown fences.
    if raw.startswith("```"):
        raw = re.sub(r"^```(?:json)?\s*", "", raw)
        raw = re.sub(r"\s*```$", "", raw)
    try:
        parsed = json.loads(raw)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    decoder = json.JSONDecoder()
    for start, end in _balanced_object_spans(raw):
        try:
            parsed, stop = decoder.raw_decode(raw, start)
        except json.JSONDecodeError:
            continue
        if stop == end + 1 and isinstance(parsed, dict):
            return parsed
    return None


def _normalize_risk(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value in RISK_LEVELS else None


def _clean_str(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_findings(
    items: Any,
    catalog: Mapping[str, ReferenceEntry] = LEGAL_REFERENCE_MAP,
) -> List[Finding]:
    if not isinstance(items, list):
        return []
    findings: List[Finding] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = _clean_str(item.get("text"))
        if not text:
            continue
        reference_id = item.get("referenceId")
        findings.append(
            Finding(
                text=text,
                violation_type=_clean_str(item.get("violationType")) or DEFAULT_AI_VIOLATION_TYPE,
                risk_level=_normalize_risk(item.get("riskLevel")) or "low",
                reference_id=reference_id if isinstance(reference_id, str) and reference_id in catalog else None,
                rationale=_clean_str(item.get("rationale")),
            )
        )
    return findings


def _pass_score_of(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    # Round half up, matching Math.round on the client side.
    return max(0, min(100, math.floor(value + 0.5)))


def normalize_ai_result(
    parsed: Mapping[str, Any],
    catalog: Mapping[str, ReferenceEntry] = LEGAL_REFERENCE_MAP,
) -> AnalysisCandidate:
    findings = normalize_findings(parsed.get("findings"), catalog)
    derived = summarize_risk(findings)
    pass_score = _pass_score_of(parsed.get("passScore"))
    return AnalysisCandidate(
        pass_score=derived.pass_score if pass_score is None else pass_score,
        risk_level=_normalize_risk(parsed.get("riskLevel")) or derived.overall_risk,
        findings=findings,
        rationale=_clean_str(parsed.get("rationale")),
    )


def candidate_from_raw(
    raw_text: Optional[str],
    catalog: Mapping[str, ReferenceEntry] = LEGAL_REFERENCE_MAP,
) -> AnalysisCandidate:
    parsed = parse_json_output(raw_text)
    if parsed is None:
        raise AIJudgementError("Could not parse JSON from the AI response.")
    return normalize_ai_result(parsed, catalog)
