"""Attribute leakage — phrases that survive redaction and narrow identity.

Redacting a name does little if the text still says "the CEO of Acme Corp
testified before Congress".  Each category below pairs a set of patterns with
a population narrowing factor (smaller = more identifying), an explanation
and a generic phrase an operator could substitute.

Keywords are matched case-insensitively through scoped ``(?i:...)`` groups;
names are matched case-sensitively so a capitalized run stops at ordinary
lowercase prose.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Mapping

from .redaction import REDACTION_MARKER
from .types import AttributeType, LeakedAttribute, TextLocation

MIN_PHRASE_LENGTH = 5

# Up to five capitalized words: "Acme Corp", "Stanford Medical Center"
_NAME = r"[A-Z][\w&'\-]*(?:\s+[A-Z][\w&'\-]*){0,4}"
# Up to four words of any case: "machine learning"
_PHRASE = r"[A-Za-z][\w'\-]*(?:\s+[A-Za-z][\w'\-]*){0,3}"
_MONTH = (
    r"(?:January|February|March|April|May|June|July|August|"
    r"September|October|November|December)"
)
_YEAR = r"(?:19|20)\d{2}"


@dataclass(frozen=True, slots=True)
class AttributeCategory:
    type: AttributeType
    patterns: tuple[re.Pattern, ...]
    narrowing_factor: float
    explanation: str
    suggestion: str


def _compile(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(s) for s in sources)


ATTRIBUTE_CATEGORIES: tuple[AttributeCategory, ...] = (
    AttributeCategory(
        type="profession",
        patterns=_compile(
            r"\b(?:CEO|CFO|CTO|COO|CMO|CIO|CISO)\b(?:\s+(?i:of|at)\s+" + _NAME + r")?",
            r"\b(?i:chief)\s+[A-Za-z]{2,20}(?:\s+[A-Za-z]{2,20})?\s+(?i:officer|executive)\b",
            r"\b(?i:head|director|vice\s+president|vp)\s+(?i:of)\s+[A-Za-z][\w&\-]{1,30}",
            r"\b(?i:surgeon|neurosurgeon|doctor|physician|attorney|lawyer|judge|professor|dean)\b",
            r"\b(?i:architect|engineer|scientist|researcher)\s+(?i:at|for|of)\s+" + _NAME,
            r"\b(?i:founder)\s+(?i:of|and\s+CEO\s+of)\s+" + _NAME,
            r"\b(?i:partner|principal|managing\s+director)\s+(?i:at)\s+" + _NAME,
        ),
        narrowing_factor=1e-4,  # few people hold a specific C-suite title
        explanation='Job title "{phrase}" significantly narrows identification',
        suggestion="a senior executive",
    ),
    AttributeCategory(
        type="affiliation",
        patterns=_compile(
            r"\b(?i:at)\s+(?:Google|Apple|Microsoft|Amazon|Meta|Facebook|Netflix|Tesla|SpaceX)\b",
            r"\b(?i:at)\s+(?:Harvard|Stanford|MIT|Yale|Princeton|Oxford|Cambridge)\b",
            r"\b(?i:works?|worked|employed)\s+(?i:at|for|with)\s+" + _NAME,
            r"\b(?i:member|fellow|associate)\s+(?i:of)\s+(?:the\s+)?(?:[A-Z][\w&'\-]*\s+){0,4}"
            r"(?:Association|Society|Institute|Academy)\b",
            r"\b(?i:at|of|for|with)\s+(?:[A-Z][\w&'\-]*\s+){1,4}"
            r"(?:Inc|Corp|Corporation|LLC|Ltd|Company|Group|Holdings|University|College|Hospital)\b",
        ),
        narrowing_factor=1e-3,
        explanation='Affiliation with "{phrase}" narrows potential matches',
        suggestion="a technology company",
    ),
    AttributeCategory(
        type="temporal_marker",
        patterns=_compile(
            r"\b(?i:in)\s+" + _MONTH + r"\s+(?:of\s+)?" + _YEAR + r"\b",
            r"\b(?i:on)\s+" + _MONTH + r"\s+\d{1,2}(?:st|nd|rd|th)?,?\s*" + _YEAR + r"\b",
            r"\b(?i:during)\s+(?:the\s+)?" + _YEAR + r"\s+[A-Za-z][\w'\-]*(?:\s+[A-Za-z][\w'\-]*){0,2}",
            r"\b(?i:class|batch|cohort)\s+(?i:of)\s+" + _YEAR + r"\b",
            r"\bQ[1-4]\s+" + _YEAR + r"\b",
        ),
        narrowing_factor=0.1,
        explanation='Specific time reference "{phrase}" helps narrow search',
        suggestion="during that period",
    ),
    AttributeCategory(
        type="geographic_signal",
        patterns=_compile(
            r"\b(?i:based|located|headquartered)\s+(?i:in)\s+" + _NAME + r"(?:,\s*[A-Z]{2}\b)?",
            r"\b(?i:downtown|midtown|uptown)\s+" + _NAME,
            r"\b(?:[A-Z][\w&'\-]*\s+){1,3}(?i:office|campus|facility|branch)\b",
            r"\b(?i:native)\s+(?i:of)\s+" + _NAME,
            r"\b(?i:from)\s+(?:the\s+)?(?:[A-Z][\w&'\-]*\s+){1,3}(?i:area|region|district|neighborhood)\b",
        ),
        narrowing_factor=0.01,
        explanation='Location "{phrase}" limits geographic scope',
        suggestion="a major metropolitan area",
    ),
    AttributeCategory(
        type="relational_context",
        patterns=_compile(
            r"\b(?i:his|her|their)\s+"
            r"(?i:wife|husband|spouse|partner|son|daughter|father|mother|brother|sister)\b",
            r"\b(?i:married|divorced|widowed)\s+(?i:to|from)\s+" + _NAME,
            r"\b(?i:colleague|mentor|mentee|protégé|protege|advisor)\s+(?i:of|to)\s+" + _NAME,
            r"\b(?i:co-founder)\s+(?i:with)\s+" + _NAME,
        ),
        narrowing_factor=0.1,
        explanation='Relationship context "{phrase}" provides additional linkage',
        suggestion="a family member",
    ),
    AttributeCategory(
        type="unique_event",
        patterns=_compile(
            r"\b(?i:testified)\s+(?i:before|at|to)\s+(?:the\s+)?(?:[A-Za-z][\w'\-]*\s+){0,4}"
            r"(?:Congress|Senate|Committee|Court|Parliament|Commission)\b",
            r"\b(?i:won)\s+(?:the\s+)?(?:[A-Za-z][\w'\-]*\s+){0,5}(?:Award|Prize|Medal|Trophy)\b",
            r"\b(?i:named)\s+(?i:to|in)\s+(?:the\s+)?(?:[\w'\-]+\s+){0,5}(?i:list|ranking|100)\b",
            r"\b(?i:first)\s+(?i:woman|man|person|African[\s\-]American|Asian)\s+(?i:to)\b",
            r"\b(?i:only)\s+(?i:person|individual|one)\s+(?i:to)\s+(?:have\s+)?"
            r"[a-z][\w'\-]*(?:\s+[a-z][\w'\-]*){0,3}",
            r"\b(?i:record[\s\-]setting)\b",
            r"\b(?i:pioneer(?:ed|ing)?)\s+[a-z][\w'\-]*(?:\s+[a-z][\w'\-]*){0,2}",
        ),
        narrowing_factor=1e-5,  # unique events often point at one person
        explanation='Unique event "{phrase}" likely identifies a single individual',
        suggestion="received recognition",
    ),
    AttributeCategory(
        type="demographic",
        patterns=_compile(
            r"\b(?i:youngest|oldest|first)\s+(?i:female|male|woman|man)\b",
            r"\b\d{2}[\s\-](?i:year)[\s\-](?i:old)\b",
            r"\b(?i:born)\s+(?i:in)\s+" + _YEAR + r"\b",
            r"\b(?i:generation)\s+(?:X|Y|Z|Alpha)\b",
            r"\b(?i:baby\s+boomer|millennial)\b",
        ),
        narrowing_factor=0.05,
        explanation='Demographic detail "{phrase}" narrows population',
        suggestion="an individual",
    ),
    AttributeCategory(
        type="achievement",
        patterns=_compile(
            r"\bPhD\s+(?i:in|from)\s+" + _PHRASE,
            r"\b(?i:author\s+of|authored)\s+[\"“']?" + _PHRASE,
            r"\b(?i:published)\s+(?i:in|by)\s+" + _NAME,
            r"\b(?i:patent(?:ed|s)?)\s+(?i:for|on)\s+" + _PHRASE,
            r"\b(?i:founded)\s+" + _NAME,
            r"\b(?i:invented)\s+(?:the\s+)?" + _PHRASE,
        ),
        narrowing_factor=1e-3,
        explanation='Achievement "{phrase}" is potentially searchable',
        suggestion="has relevant credentials",
    ),
    AttributeCategory(
        type="public_role",
        patterns=_compile(
            r"\b(?i:senator|congressman|congresswoman|representative|mayor|governor|president)\b",
            r"\b(?i:elected|appointed|nominated)\s+(?i:to|as)\s+(?:the\s+)?" + _PHRASE,
            r"\b(?i:served)\s+(?i:on|as|in)\s+(?:the\s+)?(?:[\w'\-]+\s+){0,4}"
            r"(?i:board|committee|council|commission)\b",
            r"\b(?i:former)\s+(?:[\w'\-]+\s+){0,3}(?i:secretary|minister|ambassador|director)\b",
        ),
        narrowing_factor=1e-4,
        explanation='Public role "{phrase}" is easily searchable',
        suggestion="held a public position",
    ),
)

CATEGORY_BY_TYPE: dict[str, AttributeCategory] = {c.type: c for c in ATTRIBUTE_CATEGORIES}


def marker_spans(text: str, marker: str = REDACTION_MARKER) -> list[tuple[int, int]]:
    spans = []
    start = text.find(marker)
    while start != -1:
        spans.append((start, start + len(marker)))
        start = text.find(marker, start + len(marker))
    return spans


def inside_marker(spans: list[tuple[int, int]], position: int) -> bool:
    return any(s <= position < e for s, e in spans)


def extract_leaked_attributes(redacted: Mapping[str, str]) -> list[LeakedAttribute]:
    """Find identity-narrowing phrases in section id → redacted text.

    Matches that start inside a redaction marker are redaction artifacts and
    are skipped.  Results are deduplicated by (type, lowercased phrase),
    keeping the first occurrence in section order.
    """
    attributes: list[LeakedAttribute] = []
    seen: set[tuple[str, str]] = set()

    for section_id, text in redacted.items():
        markers = marker_spans(text)
        for category in ATTRIBUTE_CATEGORIES:
            for pattern in category.patterns:
                for m in pattern.finditer(text):
                    if inside_marker(markers, m.start()):
                        continue
                    phrase = m.group().strip()
                    if len(phrase) < MIN_PHRASE_LENGTH:
                        continue
                    key = (category.type, phrase.lower())
                    if key in seen:
                        continue
                    seen.add(key)
                    attributes.append(LeakedAttribute(
                        type=category.type,
                        phrase=phrase,
                        narrowing_factor=category.narrowing_factor,
                        explanation=category.explanation.format(phrase=phrase),
                        suggestion=category.suggestion,
                        location=TextLocation(section_id, m.start(), m.end()),
                    ))
    return attributes
