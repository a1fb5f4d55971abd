"""Overall risk tier and pass score from per-finding risk levels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from adscreen.models.schemas import Finding


@dataclass(frozen=True, slots=True)
class PenaltyPolicy:
    """Points deducted per finding tier, and the score bounds."""

    high: int = 30
    medium: int = 15
    low: int = 5
    floor: int = 0
    ceiling: int = 100


DEFAULT_PENALTY_POLICY = PenaltyPolicy()


@dataclass(frozen=True, slots=True)
class RiskSummary:
    overall_risk: str
    pass_score: int
    high_count: int = 0
    medium_count: int = 0
    low_count: int = 0


def _level_of(item: Union[Finding, str, None]) -> str:
    if isinstance(item, Finding):
        return item.risk_level
    return str(item or "none")


def summarize_risk(
    items: Iterable[Union[Finding, str]],
    policy: PenaltyPolicy = DEFAULT_PENALTY_POLICY,
) -> RiskSummary:
    counts = {"high": 0, "medium": 0, "low": 0}
    for item in items:
        level = _level_of(item)
        if level in counts:
            counts[level] += 1

    if counts["high"] > 0:
        overall = "high"
    elif counts["medium"] > 0:
        overall = "medium"
    else:
        overall = "low"

    penalty = counts["high"] * policy.high + counts["medium"] * policy.medium + counts["low"] * policy.low
    pass_score = max(policy.floor, min(policy.ceiling, policy.ceiling - penalty))
    return RiskSummary(
        overall_risk=overall,
        pass_score=pass_score,
        high_count=counts["high"],
        medium_count=counts["medium"],
        low_count=counts["low"],
    )
