"""Redaction — splice substitutes into section text.

Two consumers:
  - the adversarial verifier, which needs a uniform ``[REDACTED]`` view of
    what an operator's selection would leave behind (simulate_redacted_output)
  - the redaction-application collaborator, which needs exact offsets and a
    style-dependent replacement per detection (build_redactions)

Spans within one section are always applied right-to-left so offsets of
spans not yet applied stay valid.
"""

from __future__ import annotations
import dataclasses
import random
from collections import defaultdict
from typing import Iterable, Sequence

from .errors import MalformedSectionError
from .masking import partial_mask
from .types import ContentSection, Detection, Redaction, ScrubConfig

REDACTION_MARKER = "[REDACTED]"

_BLACKOUT_CHAR = "█"
_BLACKOUT_MAX = 20

_PSEUDONYMS: dict[str, list[str]] = {
    "person_name": ["John Doe", "Jane Smith", "Bob Johnson", "Alice Williams"],
    "email": ["user@example.com", "contact@company.org", "info@domain.net"],
    "phone": ["(555) 000-0000", "555-123-4567", "+1-555-EXAMPLE"],
    "address": ["123 Example St, Anytown, USA 12345"],
    "ssn": ["XXX-XX-XXXX"],
    "credit_card": ["XXXX-XXXX-XXXX-XXXX"],
    "ip_address": ["0.0.0.0", "127.0.0.1"],
    "date_of_birth": ["01/01/1900"],
    "custom": ["[CUSTOM DATA]"],
}


def _merge_spans(spans: Iterable[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start < merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


def _check_unique_ids(sections: Sequence[ContentSection]) -> None:
    seen: set[str] = set()
    for section in sections:
        if section.id in seen:
            raise MalformedSectionError(f"duplicate section id {section.id!r}")
        seen.add(section.id)


def simulate_redacted_output(
    sections: Sequence[ContentSection],
    detections: Iterable[Detection],
    marker: str = REDACTION_MARKER,
) -> dict[str, str]:
    """Section id → text with every selected span replaced by ``marker``.

    Spans are clamped to the section text and empty results dropped.
    Overlapping selections are merged first so a marker is never spliced
    into the middle of another marker.  Raises MalformedSectionError when
    two sections share an id.
    """
    _check_unique_ids(sections)
    by_section: dict[str, list[tuple[int, int]]] = defaultdict(list)
    for d in detections:
        by_section[d.section_id].append((d.start_offset, d.end_offset))

    result: dict[str, str] = {}
    for section in sections:
        text = section.text
        clamped = (
            (max(0, s), min(len(text), e))
            for s, e in by_section.get(section.id, [])
        )
        spans = _merge_spans((lo, hi) for lo, hi in clamped if lo < hi)
        for start, end in reversed(spans):
            text = text[:start] + marker + text[end:]
        result[section.id] = text
    return result


def replacement_for(detection: Detection, config: ScrubConfig, rng: random.Random | None = None) -> str:
    """Style-dependent substitute for one detection."""
    style = config.redaction_style
    if style == "blackout":
        return _BLACKOUT_CHAR * min(len(detection.value), _BLACKOUT_MAX)
    if style == "replacement":
        return config.replacement_text or REDACTION_MARKER
    if style == "pseudonym":
        options = _PSEUDONYMS.get(detection.category, [REDACTION_MARKER])
        return (rng or random).choice(options)
    if style == "partial":
        return partial_mask(detection.category, detection.value)
    return REDACTION_MARKER


def build_redactions(
    detections: Iterable[Detection],
    config: ScrubConfig,
    rng: random.Random | None = None,
) -> list[Redaction]:
    return [
        Redaction(
            detection_id=d.id,
            section_id=d.section_id,
            start_offset=d.start_offset,
            end_offset=d.end_offset,
            replacement=replacement_for(d, config, rng),
        )
        for d in detections
    ]


def apply_redactions(text: str, redactions: Iterable[Redaction]) -> str:
    """Apply one section's redactions, right-to-left to preserve offsets.

    A redaction that overlaps one already applied further right is skipped.
    """
    result = text
    limit = len(text)
    for r in sorted(redactions, key=lambda r: r.start_offset, reverse=True):
        if r.start_offset < 0 or r.end_offset > limit or r.start_offset >= r.end_offset:
            continue
        result = result[:r.start_offset] + r.replacement + result[r.end_offset:]
        limit = r.start_offset
    return result


def redact_sections(
    sections: Sequence[ContentSection],
    redactions: Iterable[Redaction],
) -> dict[str, str]:
    """Section id → preview text with the given splices applied.

    Pass the same list handed downstream; the preview then matches it
    exactly, pseudonyms included.
    """
    _check_unique_ids(sections)
    by_section: dict[str, list[Redaction]] = defaultdict(list)
    for r in redactions:
        by_section[r.section_id].append(r)
    return {s.id: apply_redactions(s.text, by_section.get(s.id, [])) for s in sections}


def scrub_detections(detections: Iterable[Detection]) -> list[Detection]:
    """Copies with value and context blanked, for once redaction is done."""
    return [dataclasses.replace(d, value="", context="") for d in detections]
