"""Detection engine — the scanning API.

Usage:
    from pii_purge import DetectionEngine, ScrubConfig, filter_by_sensitivity

    engine = DetectionEngine()                 # reusable, holds no scan state
    result = engine.detect(sections, ScrubConfig(), file_id="f1")

    # Scanning always runs at maximum recall; the operator's sensitivity
    # is applied afterwards on the same result set.
    shown = filter_by_sensitivity(result.detections, "medium")
"""

from __future__ import annotations
import asyncio
import logging
import secrets
import time
from typing import Any, Iterable, Iterator, Sequence

from . import __version__
from .errors import MalformedSectionError, describe_error
from .patterns import PatternDefinition, find_matches, get_patterns_for_categories, merge_custom_patterns
from .regex_guard import admit_custom_patterns
from .types import (
    BatchScanResult,
    ContentSection,
    Detection,
    DetectionResult,
    DocumentContent,
    FileScanStatus,
    ScrubConfig,
)

logger = logging.getLogger(__name__)

ENGINE_VERSION = f"regex-v{__version__}"

SENSITIVITY_THRESHOLDS: dict[str, float] = {
    "low": 0.9,
    "medium": 0.7,
    "high": 0.5,
}

CONTEXT_CHARS = 25


def score_match(priority: int, validated: bool) -> float:
    """Deterministic confidence from pattern priority and validator outcome.

    Priority 30 (broad, unvalidated) maps to 0.45 and priority 100 to 0.90;
    a passed structural validator adds 0.05.  So SSN and card numbers clear
    the "low" threshold, email sits exactly on it, and capitalized word pairs
    only surface at "high".

    US phone numbers (priority 90, validated) land at 0.886, just under the
    "low" cutoff.  At "low" an operator sees email but not phone; phones
    appear from "medium" up.
    """
    clamped = min(100, max(30, priority))
    confidence = 0.45 + 0.45 * (clamped - 30) / 70
    if validated:
        confidence += 0.05
    return round(min(1.0, confidence), 3)


def sensitivity_threshold(sensitivity: str) -> float:
    return SENSITIVITY_THRESHOLDS.get(sensitivity, SENSITIVITY_THRESHOLDS["medium"])


def filter_by_sensitivity(detections: Iterable[Detection], sensitivity: str) -> list[Detection]:
    """Keep detections at or above the sensitivity's confidence threshold."""
    threshold = sensitivity_threshold(sensitivity)
    return [d for d in detections if d.confidence >= threshold]


def extract_context(text: str, start: int, end: int, chars: int = CONTEXT_CHARS) -> str:
    """A bounded window around a match, with ``...`` where text was cut."""
    lo = max(0, start - chars)
    hi = min(len(text), end + chars)
    prefix = "..." if lo > 0 else ""
    suffix = "..." if hi < len(text) else ""
    return f"{prefix}{text[lo:hi]}{suffix}"


def _new_id() -> str:
    return f"det_{secrets.token_hex(8)}"


class DetectionEngine:
    """Regex detection over document sections.

    Layer 1: built-in pattern library (enabled categories only)
    Layer 2: operator custom patterns, admitted through regex_guard
    Overlaps across both layers resolve by priority.
    """

    version = ENGINE_VERSION

    def detect(
        self,
        sections: Iterable[ContentSection | dict[str, Any]],
        config: ScrubConfig | None = None,
        *,
        file_id: str = "",
    ) -> DetectionResult:
        """Scan sections and return every detection at maximum recall."""
        started = time.perf_counter()
        definitions, warnings = self._active_patterns(config or ScrubConfig())

        detections: list[Detection] = []
        for found in self._iter_sections(sections, definitions, file_id, warnings):
            detections.extend(found)
        return self._result(detections, warnings, started, file_id)

    async def detect_async(
        self,
        sections: Iterable[ContentSection | dict[str, Any]],
        config: ScrubConfig | None = None,
        *,
        file_id: str = "",
    ) -> DetectionResult:
        """Same as detect(), yielding to the event loop between sections."""
        started = time.perf_counter()
        definitions, warnings = self._active_patterns(config or ScrubConfig())

        detections: list[Detection] = []
        for found in self._iter_sections(sections, definitions, file_id, warnings):
            detections.extend(found)
            await asyncio.sleep(0)
        return self._result(detections, warnings, started, file_id)

    def scan_documents(
        self,
        documents: Iterable[DocumentContent],
        config: ScrubConfig | None = None,
    ) -> BatchScanResult:
        """Scan several files.  One file failing never aborts the batch."""
        started = time.perf_counter()
        batch = BatchScanResult(engine_version=self.version)
        for document in documents:
            self._scan_into(batch, document, config)
        batch.processing_time_ms = round((time.perf_counter() - started) * 1000)
        return batch

    async def scan_documents_async(
        self,
        documents: Iterable[DocumentContent],
        config: ScrubConfig | None = None,
    ) -> BatchScanResult:
        started = time.perf_counter()
        batch = BatchScanResult(engine_version=self.version)
        for document in documents:
            self._scan_into(batch, document, config)
            await asyncio.sleep(0)
        batch.processing_time_ms = round((time.perf_counter() - started) * 1000)
        return batch

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _scan_into(
        self,
        batch: BatchScanResult,
        document: DocumentContent,
        config: ScrubConfig | None,
    ) -> None:
        try:
            result = self.detect(document.sections, config, file_id=document.file_id)
        except Exception as e:
            logger.warning("Error scanning file %r: %s", document.file_id, describe_error(e))
            batch.files.append(FileScanStatus(
                file_id=document.file_id,
                file_name=document.file_name,
                status="error",
                error=describe_error(e),
            ))
            return
        batch.detections.extend(result.detections)
        batch.files.append(FileScanStatus(
            file_id=document.file_id,
            file_name=document.file_name,
            status="detected",
            detection_count=len(result.detections),
        ))

    def _iter_sections(
        self,
        sections: Iterable[ContentSection | dict[str, Any]],
        definitions: Sequence[PatternDefinition],
        file_id: str,
        warnings: list[str],
    ) -> Iterator[list[Detection]]:
        """Detections one section at a time; malformed sections become warnings."""
        for section in self._coerce_sections(sections, warnings):
            yield self._scan_section(section, definitions, file_id)

    def _result(
        self,
        detections: list[Detection],
        warnings: list[str],
        started: float,
        file_id: str,
    ) -> DetectionResult:
        logger.debug("Scanned file %r: %d detections", file_id, len(detections))
        return DetectionResult(
            detections=detections,
            processing_time_ms=round((time.perf_counter() - started) * 1000),
            engine_version=self.version,
            warnings=warnings,
        )

    @staticmethod
    def _active_patterns(config: ScrubConfig) -> tuple[Sequence[PatternDefinition], list[str]]:
        builtin = get_patterns_for_categories(config.enabled_categories)
        if not config.categories.get("custom", False):
            return builtin, []
        custom, rejected = admit_custom_patterns(config.custom_patterns)
        warnings = [f"Custom pattern rejected: {reason}" for reason in rejected]
        return merge_custom_patterns(builtin, custom), warnings

    @staticmethod
    def _coerce_sections(
        sections: Iterable[ContentSection | dict[str, Any]],
        warnings: list[str],
    ) -> Iterator[ContentSection]:
        for index, raw in enumerate(sections):
            try:
                yield ContentSection.coerce(raw)
            except MalformedSectionError as e:
                logger.warning("Skipping malformed section #%d: %s", index, describe_error(e))
                warnings.append(f"Skipped section #{index}: {e}")

    @staticmethod
    def _scan_section(
        section: ContentSection,
        definitions: Sequence[PatternDefinition],
        file_id: str,
    ) -> list[Detection]:
        text = section.text
        return [
            Detection(
                id=_new_id(),
                file_id=file_id,
                section_id=section.id,
                category=m.definition.category,
                value=m.value,
                start_offset=m.start,
                end_offset=m.end,
                confidence=score_match(m.definition.priority, m.validated),
                context=extract_context(text, m.start, m.end),
            )
            for m in find_matches(text, definitions)
        ]
