"""Semantic fingerprint — how many people could the remaining text describe?

Starting from the world population, each leaked attribute multiplies the
candidate pool by its category's narrowing factor.  Treating attributes as
independent overstates narrowing when they are correlated (a CEO is very
likely affiliated with a company), so the figure is an advisory heuristic,
not a statistical bound.
"""

from __future__ import annotations
import math
from typing import Sequence

from .attributes import CATEGORY_BY_TYPE
from .scoring import classify_risk_level
from .types import Impact, LeakedAttribute, SemanticFingerprint, UniquenessDriver

WORLD_POPULATION = 8_000_000_000
MAX_DRIVERS = 10

# (upper bound on narrowing factor, impact), checked top-down
IMPACT_BANDS: tuple[tuple[float, Impact], ...] = (
    (1e-4, "critical"),
    (1e-3, "high"),
    (1e-2, "medium"),
)
_IMPACT_ORDER: dict[str, int] = {"critical": 0, "high": 1, "medium": 2, "low": 3}

# (population at most, description), checked top-down
_DESCRIPTIONS: tuple[tuple[int, str], ...] = (
    (1, "Single individual identifiable"),
    (10, "Fewer than 10 people match"),
    (100, "Fewer than 100 people match"),
    (1_000, "Approximately 1,000 people match"),
    (10_000, "Approximately 10,000 people match"),
    (100_000, "Approximately 100,000 people match"),
    (1_000_000, "Approximately 1 million people match"),
)
_LARGE_POPULATION = "Large population matches (lower risk)"


def classify_impact(narrowing_factor: float) -> Impact:
    for bound, impact in IMPACT_BANDS:
        if narrowing_factor <= bound:
            return impact
    return "low"


def describe_population(population: int) -> str:
    for bound, description in _DESCRIPTIONS:
        if population <= bound:
            return description
    return _LARGE_POPULATION


def population_risk(population: float) -> float:
    """About 1 for the whole world, 100 for a single person."""
    score = 100 - 10 * math.log10(max(1.0, population))
    return round(max(0.0, min(100.0, score)), 2)


def narrowing_factor_for(attribute: LeakedAttribute) -> float:
    # The category constant wins over whatever the attribute carries
    category = CATEGORY_BY_TYPE.get(attribute.type)
    return category.narrowing_factor if category else attribute.narrowing_factor


def compute_fingerprint(attributes: Sequence[LeakedAttribute]) -> SemanticFingerprint:
    population = float(WORLD_POPULATION)
    drivers: list[UniquenessDriver] = []

    for attribute in attributes:
        factor = narrowing_factor_for(attribute)
        population *= factor
        category = CATEGORY_BY_TYPE.get(attribute.type)
        drivers.append(UniquenessDriver(
            phrase=attribute.phrase,
            impact=classify_impact(factor),
            narrowing_factor=factor,
            suggestion=attribute.suggestion or (category.suggestion if category else ""),
            attribute_type=attribute.type,
            location=attribute.location,
        ))

    drivers.sort(key=lambda d: _IMPACT_ORDER[d.impact])
    estimated = max(1, round(population))
    # Nothing leaked means nothing narrows the pool
    risk = population_risk(estimated) if attributes else 0.0

    return SemanticFingerprint(
        estimated_population_size=estimated,
        population_description=describe_population(estimated),
        uniqueness_drivers=drivers[:MAX_DRIVERS],
        risk_score=risk,
        risk_level=classify_risk_level(risk),
    )


def neutral_fingerprint() -> SemanticFingerprint:
    return SemanticFingerprint(
        estimated_population_size=WORLD_POPULATION,
        population_description="Analysis disabled",
        uniqueness_drivers=[],
        risk_score=0.0,
        risk_level="minimal",
    )
