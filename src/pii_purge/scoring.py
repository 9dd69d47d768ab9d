"""Re-identification confidence and risk banding."""

from __future__ import annotations
import math

from .types import RiskLevel

SEMANTIC_WEIGHT = 0.5
CROSS_REFERENCE_WEIGHT = 0.3
ATTRIBUTE_WEIGHT = 0.2
POINTS_PER_ATTRIBUTE = 10

# (lower bound, level), checked top-down
RISK_BANDS: tuple[tuple[float, RiskLevel], ...] = (
    (80, "critical"),
    (60, "high"),
    (40, "medium"),
    (20, "low"),
)


def round_half_up(value: float) -> int:
    # round() is banker's rounding; 80.5 must become 81
    return math.floor(value + 0.5)


def classify_risk_level(score: float) -> RiskLevel:
    for bound, level in RISK_BANDS:
        if score >= bound:
            return level
    return "minimal"


def attribute_score(attribute_count: int) -> int:
    return min(100, POINTS_PER_ATTRIBUTE * attribute_count)


def aggregate_confidence(semantic_risk: float, cross_reference_risk: float, attribute_count: int) -> int:
    """Weighted 0-100 confidence that the redacted text can be re-identified."""
    overall = (
        SEMANTIC_WEIGHT * semantic_risk
        + CROSS_REFERENCE_WEIGHT * cross_reference_risk
        + ATTRIBUTE_WEIGHT * attribute_score(attribute_count)
    )
    return max(0, min(100, round_half_up(overall)))
