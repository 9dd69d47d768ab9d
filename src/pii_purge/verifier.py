"""Adversarial verifier — the re-identification check run before redacting.

Usage:
    from pii_purge import AdversarialVerifier, AdversarialConfig

    verifier = AdversarialVerifier(AdversarialConfig(risk_threshold=25))
    result = verifier.analyze(sections, accepted_detections)

    if not result.passes_threshold:
        for s in result.suggestions:
            print(s.priority, s.original_phrase, "->", s.suggested_replacement)

The verifier keeps no history.  Callers that want iteration deltas pass
``iteration`` and ``previous_confidence`` back in (see ReviewSession).
"""

from __future__ import annotations
import asyncio
import dataclasses
import logging
import secrets
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Literal

from .attributes import extract_leaked_attributes
from .cross_reference import assess_cross_reference_risk, neutral_cross_reference_risk
from .fingerprint import compute_fingerprint, neutral_fingerprint
from .redaction import simulate_redacted_output
from .scoring import aggregate_confidence, classify_risk_level
from .suggestions import generate_suggestions
from .types import (
    AdversarialAnalysis,
    AdversarialVerificationResult,
    ContentSection,
    Detection,
)

logger = logging.getLogger(__name__)

AnalysisDepth = Literal["quick", "standard", "thorough"]
ANALYSIS_DEPTHS: tuple[str, ...] = ("quick", "standard", "thorough")


@dataclass(frozen=True, slots=True)
class EnabledAnalyses:
    attribute_leakage: bool = True
    semantic_fingerprinting: bool = True
    cross_reference_check: bool = True

    @property
    def any_enabled(self) -> bool:
        return self.attribute_leakage or self.semantic_fingerprinting or self.cross_reference_check


@dataclass(frozen=True, slots=True)
class AdversarialConfig:
    """Configuration for the AdversarialVerifier."""
    enabled: bool = True
    risk_threshold: float = 30          # max acceptable confidence, 0-100
    max_iterations: int = 3             # enforced by ReviewSession
    auto_apply_low_risk: bool = False   # carried, not acted on
    analysis_depth: AnalysisDepth = "standard"  # carried, not acted on
    enabled_analyses: EnabledAnalyses = field(default_factory=EnabledAnalyses)

    def __post_init__(self) -> None:
        if not 0 <= self.risk_threshold <= 100:
            raise ValueError(f"risk_threshold must be within 0-100, got {self.risk_threshold}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")
        if self.analysis_depth not in ANALYSIS_DEPTHS:
            raise ValueError(f"analysis_depth must be one of {ANALYSIS_DEPTHS}, got {self.analysis_depth!r}")


def _coerce_detection(obj: Detection | dict[str, Any]) -> Detection:
    return obj if isinstance(obj, Detection) else Detection.from_dict(obj)


class AdversarialVerifier:
    """Stateless analysis over a frozen config.

    Stages, each independently switchable:
      1. attribute leakage   (what contextual phrases survived redaction)
      2. semantic fingerprint (how many people those phrases leave)
      3. cross-reference      (what is searchable in public sources)
    """

    def __init__(self, config: AdversarialConfig | None = None) -> None:
        self.config = config or AdversarialConfig()

    def with_config(self, **changes: Any) -> AdversarialVerifier:
        """A new verifier with some config fields replaced."""
        return AdversarialVerifier(dataclasses.replace(self.config, **changes))

    def analyze(
        self,
        sections: Iterable[ContentSection | dict[str, Any]],
        accepted_detections: Iterable[Detection | dict[str, Any]],
        *,
        iteration: int = 1,
        previous_confidence: int | None = None,
    ) -> AdversarialVerificationResult:
        """Score how re-identifiable the text is once the accepted detections are redacted."""
        config = self.config  # one snapshot for the whole call
        enabled = config.enabled_analyses
        started = time.perf_counter()

        section_list = [ContentSection.coerce(s) for s in sections]
        detections = [_coerce_detection(d) for d in accepted_detections]
        redacted = simulate_redacted_output(section_list, detections)

        # Extraction also feeds the fingerprint, so it runs if either needs it
        need_attributes = enabled.attribute_leakage or enabled.semantic_fingerprinting
        attributes = extract_leaked_attributes(redacted) if need_attributes else []
        fingerprint = compute_fingerprint(attributes) if enabled.semantic_fingerprinting else neutral_fingerprint()
        cross_reference = (
            assess_cross_reference_risk(redacted) if enabled.cross_reference_check
            else neutral_cross_reference_risk()
        )
        reported = attributes if enabled.attribute_leakage else []

        confidence = aggregate_confidence(fingerprint.risk_score, cross_reference.risk_score, len(reported))
        analysis = AdversarialAnalysis(
            id=f"adv_{secrets.token_hex(8)}",
            timestamp=time.time(),
            reidentification_confidence=confidence,
            risk_level=classify_risk_level(confidence),
            leaked_attributes=reported,
            semantic_fingerprint=fingerprint,
            cross_reference_risk=cross_reference,
            sections_analyzed=[s.id for s in section_list],
            processing_time_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        logger.debug(
            "Adversarial analysis over %d sections: confidence %d (%s), %d attributes",
            len(section_list), confidence, analysis.risk_level, len(reported),
        )

        return AdversarialVerificationResult(
            analysis=analysis,
            suggestions=generate_suggestions(analysis),
            passes_threshold=confidence <= config.risk_threshold,
            risk_threshold=config.risk_threshold,
            iteration=iteration,
            previous_confidence=previous_confidence,
        )

    async def analyze_async(
        self,
        sections: Iterable[ContentSection | dict[str, Any]],
        accepted_detections: Iterable[Detection | dict[str, Any]],
        *,
        iteration: int = 1,
        previous_confidence: int | None = None,
    ) -> AdversarialVerificationResult:
        await asyncio.sleep(0)
        return self.analyze(
            sections,
            accepted_detections,
            iteration=iteration,
            previous_confidence=previous_confidence,
        )
