"""Review session — the loop an operator drives around the verifier.

Usage:

    session = ReviewSession.create(config=AdversarialConfig(max_iterations=3))

    result = session.run(sections, accepted)      # iteration 1
    session.accept(result.suggestions[0].id)
    # ... operator edits the selection ...
    result = session.run(sections, accepted)      # iteration 2, with delta
    print(result.improvement)
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Iterable

from .errors import describe_error
from .suggestions import mark_accepted
from .types import AdversarialVerificationResult, ContentSection, Detection
from .verifier import AdversarialConfig, AdversarialVerifier

logger = logging.getLogger(__name__)


@dataclass
class ReviewSession:
    """Holds the latest result and threads iteration state into the verifier."""

    verifier: AdversarialVerifier
    result: AdversarialVerificationResult | None = None

    @classmethod
    def create(cls, *, config: AdversarialConfig | None = None) -> ReviewSession:
        """Factory — a fresh session with its own verifier."""
        return cls(verifier=AdversarialVerifier(config))

    @property
    def config(self) -> AdversarialConfig:
        return self.verifier.config

    @property
    def iteration(self) -> int:
        return self.result.iteration if self.result else 0

    def run(
        self,
        sections: Iterable[ContentSection | dict[str, Any]],
        accepted_detections: Iterable[Detection | dict[str, Any]],
    ) -> AdversarialVerificationResult | None:
        """Run the next iteration and return the current result.

        Disabled analysis, an exhausted iteration budget, or a failing
        analysis all leave the previous result in place.
        """
        if not self.config.enabled:
            return self.result
        if self.iteration >= self.config.max_iterations:
            logger.debug("Iteration limit %d reached", self.config.max_iterations)
            return self.result

        previous = self.result.analysis.reidentification_confidence if self.result else None
        try:
            self.result = self.verifier.analyze(
                sections,
                accepted_detections,
                iteration=self.iteration + 1,
                previous_confidence=previous,
            )
        except Exception as e:
            logger.warning("Adversarial analysis failed: %s", describe_error(e))
        return self.result

    def accept(self, suggestion_id: str) -> bool:
        if self.result is None:
            return False
        return mark_accepted(self.result.suggestions, suggestion_id)

    def accept_all(self) -> int:
        if self.result is None:
            return 0
        for suggestion in self.result.suggestions:
            suggestion.accepted = True
        return len(self.result.suggestions)

    def clear(self) -> None:
        self.result = None

    def update_config(self, **changes: Any) -> None:
        self.verifier = self.verifier.with_config(**changes)

    @property
    def stats(self) -> dict:
        if self.result is None:
            return {"iteration": 0, "confidence": None, "passes_threshold": None}
        return {
            "iteration": self.result.iteration,
            "confidence": self.result.analysis.reidentification_confidence,
            "passes_threshold": self.result.passes_threshold,
            "improvement": self.result.improvement,
        }
