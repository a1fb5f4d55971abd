import itertools

from adscreen.models.schemas import Finding, risk_rank
from adscreen.services.risk_aggregator import PenaltyPolicy, summarize_risk


def _tiers(high=0, medium=0, low=0):
    return ["high"] * high + ["medium"] * medium + ["low"] * low


def test_two_high_findings_score_forty():
    findings = [
        Finding(text="100% 보장", violation_type="x", risk_level="high"),
        Finding(text="완치", violation_type="x", risk_level="high"),
    ]
    summary = summarize_risk(findings)
    assert summary.overall_risk == "high"
    assert summary.pass_score == 40
    assert summary.high_count == 2


def test_empty_input_is_a_clean_pass():
    summary = summarize_risk([])
    assert summary.overall_risk == "low"
    assert summary.pass_score == 100


def test_none_tier_is_not_counted():
    summary = summarize_risk(["none", "none"])
    assert summary.pass_score == 100
    assert summary.low_count == 0


def test_score_stays_within_bounds():
    assert summarize_risk(_tiers(high=10)).pass_score == 0
    for high, medium, low in itertools.product(range(5), repeat=3):
        score = summarize_risk(_tiers(high, medium, low)).pass_score
        assert 0 <= score <= 100


def test_adding_a_finding_never_raises_score_or_lowers_risk():
    for high, medium, low in itertools.product(range(4), repeat=3):
        base = summarize_risk(_tiers(high, medium, low))
        for extra in ("high", "medium", "low"):
            more = summarize_risk(_tiers(high, medium, low) + [extra])
            assert more.pass_score <= base.pass_score
            assert risk_rank(more.overall_risk) >= risk_rank(base.overall_risk)


def test_custom_policy_changes_penalties():
    policy = PenaltyPolicy(high=50, medium=20, low=1)
    assert summarize_risk(["high", "low"], policy).pass_score == 49
