"""Mitigation suggestions derived from an adversarial analysis."""

from __future__ import annotations
import secrets
from typing import Iterable

from .fingerprint import WORLD_POPULATION
from .types import AdversarialAnalysis, AdversarialSuggestion

MAX_SUGGESTIONS = 10
CONTEXT_REDACTION = "[CONTEXT REDACTED]"
REDACT_RISK_REDUCTION = 15

RISK_REDUCTION_BY_IMPACT: dict[str, int] = {
    "critical": 25,
    "high": 15,
    "medium": 8,
    "low": 3,
}


def _new_id() -> str:
    return f"sug_{secrets.token_hex(8)}"


def _generalize_rationale(narrowing_factor: float, combined_population: int) -> str:
    alone = max(1, round(WORLD_POPULATION * narrowing_factor))
    return (
        f"On its own this phrase narrows identification to approximately {alone:,} people; "
        f"combined with the other details the estimate is {combined_population:,}"
    )


def generate_suggestions(analysis: AdversarialAnalysis) -> list[AdversarialSuggestion]:
    """Generalize high-impact drivers, redact trivially searchable fragments.

    Priority follows generation order starting at 1, so generalizations
    always outrank fragment redactions.
    """
    suggestions: list[AdversarialSuggestion] = []
    fingerprint = analysis.semantic_fingerprint

    for driver in fingerprint.uniqueness_drivers:
        if driver.impact not in ("critical", "high"):
            continue
        suggestions.append(AdversarialSuggestion(
            id=_new_id(),
            type="generalize",
            priority=len(suggestions) + 1,
            original_phrase=driver.phrase,
            suggested_replacement=driver.suggestion,
            expected_risk_reduction=RISK_REDUCTION_BY_IMPACT[driver.impact],
            location=driver.location,
            rationale=_generalize_rationale(driver.narrowing_factor, fingerprint.estimated_population_size),
        ))

    for fragment in analysis.cross_reference_risk.searchable_fragments:
        if fragment.searchability != "trivial":
            continue
        suggestions.append(AdversarialSuggestion(
            id=_new_id(),
            type="redact",
            priority=len(suggestions) + 1,
            original_phrase=fragment.fragment,
            suggested_replacement=CONTEXT_REDACTION,
            expected_risk_reduction=REDACT_RISK_REDUCTION,
            location=fragment.location,
            rationale=fragment.reason,
        ))

    suggestions.sort(key=lambda s: s.priority)
    return suggestions[:MAX_SUGGESTIONS]


def mark_accepted(suggestions: Iterable[AdversarialSuggestion], suggestion_id: str) -> bool:
    """Flip ``accepted`` on the matching suggestion; False if none matched."""
    for suggestion in suggestions:
        if suggestion.id == suggestion_id:
            suggestion.accepted = True
            return True
    return False
