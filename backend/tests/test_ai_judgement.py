import pytest

from adscreen.services.ai_judgement import (
    DEFAULT_AI_VIOLATION_TYPE,
    AIJudgementError,
    candidate_from_raw,
    normalize_ai_result,
    parse_json_output,
)


def test_parse_plain_fenced_and_embedded_json():
    assert parse_json_output('{"passScore": 80}') == {"passScore": 80}
    assert parse_json_output('```json\n{"passScore": 70}\n```') == {"passScore": 70}
    embedded = 'Here is my review: {"riskLevel": "low", "rationale": "uses {braces} in text"} thanks'
    assert parse_json_output(embedded) == {"riskLevel": "low", "rationale": "uses {braces} in text"}


def test_parse_skips_broken_spans():
    assert parse_json_output('{broken {"ok": true}') == {"ok": True}
    assert parse_json_output("no json here") is None
    assert parse_json_output("[1, 2]") is None
    assert parse_json_output("") is None


def test_parse_prefers_outermost_object_in_prose():
    text = 'Verdict: {"riskLevel": "high", "findings": [{"phrase": "\\"cure\\" {x}"}]} end "quote'
    assert parse_json_output(text) == {"riskLevel": "high", "findings": [{"phrase": "\"cure\" {x}"}]}


def test_parse_handles_long_runs_of_unbalanced_braces():
    assert parse_json_output("{" * 20000 + '{"ok": true}') == {"ok": True}
    assert parse_json_output("{" * 20000 + "}" * 20000) is None
    assert parse_json_output("}" * 5000 + ' {"ok": 1}') == {"ok": 1}


def test_score_is_rounded_and_clamped():
    assert normalize_ai_result({"passScore": 72.5, "riskLevel": "low"}).pass_score == 73
    assert normalize_ai_result({"passScore": 140, "riskLevel": "low"}).pass_score == 100
    assert normalize_ai_result({"passScore": -3, "riskLevel": "low"}).pass_score == 0


def test_invalid_score_and_risk_are_derived_from_findings():
    parsed = {
        "passScore": "ninety",
        "riskLevel": "critical",
        "findings": [{"text": "완치", "riskLevel": "high"}, {"text": "후기", "riskLevel": "medium"}],
    }
    candidate = normalize_ai_result(parsed)
    assert candidate.pass_score == 55
    assert candidate.risk_level == "high"


def test_boolean_and_non_finite_scores_are_rejected():
    assert normalize_ai_result({"passScore": True}).pass_score == 100
    assert normalize_ai_result({"passScore": float("nan")}).pass_score == 100


def test_findings_are_filtered_and_defaulted():
    parsed = {
        "riskLevel": "medium",
        "findings": [
            {"text": "  1위  ", "referenceId": "ML56-04", "riskLevel": "medium"},
            {"text": "No.1", "referenceId": "ML99-99"},
            {"text": "   "},
            "not an object",
        ],
    }
    findings = normalize_ai_result(parsed).findings
    assert [f.text for f in findings] == ["1위", "No.1"]
    assert findings[0].reference_id == "ML56-04"
    assert findings[1].reference_id is None
    assert findings[1].violation_type == DEFAULT_AI_VIOLATION_TYPE
    assert findings[1].risk_level == "low"


def test_unparsable_answer_raises():
    with pytest.raises(AIJudgementError):
        candidate_from_raw("I cannot help with that.")
