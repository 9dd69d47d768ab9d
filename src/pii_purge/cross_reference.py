"""Cross-reference risk — could a search engine or public dataset finish the job?

Two views of the redacted text:
  - searchable fragments: phrases an adversary could paste into a search box
    (quotes, testimony, lawsuits, awards, titled executives...)
  - vulnerable sources: public datasets whose contents the text overlaps
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Mapping

from .attributes import inside_marker, marker_spans
from .types import CrossReferenceRisk, MatchLikelihood, Searchability, SearchableFragment, SourceExposure, TextLocation

MAX_FRAGMENTS = 10

TRIVIAL_POINTS = 30
MODERATE_POINTS = 15
SOURCE_POINTS = 10

_NAME = r"[A-Z][\w&'\-]*(?:\s+[A-Z][\w&'\-]*){0,4}"
_WORDS = r"(?:[A-Za-z][\w'\-]*\s+){0,5}"


@dataclass(frozen=True, slots=True)
class SearchabilityRule:
    pattern: re.Pattern
    searchability: Searchability
    reason: str


@dataclass(frozen=True, slots=True)
class PublicSource:
    name: str
    data_types: tuple[str, ...]
    patterns: tuple[re.Pattern, ...]


SEARCHABILITY_RULES: tuple[SearchabilityRule, ...] = (
    SearchabilityRule(
        re.compile(r"[\"“][^\"“”\n]{10,200}[\"”]"),
        "trivial", "Exact quote can be searched directly",
    ),
    SearchabilityRule(
        re.compile(
            r"\b(?i:testified)\s+(?i:before|at|to)\s+(?:the\s+)?(?:[A-Za-z][\w'\-]*\s+){0,4}[A-Z][\w'\-]*"
            r"(?:\s+(?i:on|about|regarding)\s+[\w'\-]+(?:\s+[\w'\-]+){0,5})?"
        ),
        "trivial", "Congressional testimony is public record",
    ),
    SearchabilityRule(
        re.compile(
            r"\b(?i:filed|settled|won|lost)\s+(?:a\s+)?(?i:lawsuit|case|suit)\s+(?i:against|with)\s+" + _NAME
        ),
        "trivial", "Legal proceedings are searchable",
    ),
    SearchabilityRule(
        re.compile(r"\b(?i:awarded|received|won)\s+(?:the\s+)?" + _WORDS + r"(?:Award|Prize|Medal)\b"),
        "trivial", "Awards are typically announced publicly",
    ),
    SearchabilityRule(
        re.compile(r"\b(?:CEO|CFO|CTO)\s+(?i:of|at)\s+" + _NAME),
        "moderate", "Executive titles at named companies are findable",
    ),
    SearchabilityRule(
        re.compile(r"\b(?i:professor|researcher)\s+(?i:of|at)\s+(?:[A-Za-z][\w'\-]*\s+){0,4}University\b"),
        "moderate", "Academic positions are often listed online",
    ),
    SearchabilityRule(
        re.compile(
            r"\b(?i:worked|employed)\s+(?i:at|for)\s+" + _NAME
            + r"\s+(?i:from|during|in)\s+[\w'\-]+(?:\s+[\w'\-]+){0,3}"
        ),
        "difficult", "Employment history with dates may appear in professional profiles",
    ),
)

_PREDICTED_RESULTS: dict[str, str] = {
    "trivial": "Direct search likely returns exact match",
    "moderate": "Search combined with other context may identify",
    "difficult": "Requires additional context to narrow results",
}


def _ci(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(s, re.IGNORECASE) for s in sources)


PUBLIC_SOURCES: tuple[PublicSource, ...] = (
    PublicSource(
        "LinkedIn",
        ("employment history", "education", "skills", "connections"),
        _ci(r"\bworked?\s+(?:at|for)\b", r"\bemployed\b", r"\b(?:CEO|CTO|CFO|Director|Manager|Engineer)\b"),
    ),
    PublicSource(
        "Public Records",
        ("property ownership", "court records", "voter registration"),
        _ci(r"\bowned\s+property\b", r"\bfiled\s+(?:lawsuit|bankruptcy)\b", r"\bregistered\s+voter\b"),
    ),
    PublicSource(
        "News Archives",
        ("news mentions", "press releases", "interviews"),
        _ci(r"\bannounced\b", r"\bquoted\b", r"\binterview(?:ed)?\b", r"\btestified\b"),
    ),
    PublicSource(
        "Academic Databases",
        ("publications", "citations", "institutional affiliations"),
        _ci(r"\bpublished\b", r"\bprofessor\b", r"\bresearcher\b", r"\bPhD\b"),
    ),
    PublicSource(
        "Corporate Filings",
        ("SEC filings", "board memberships", "executive compensation"),
        _ci(r"\b(?:CEO|CFO|CTO|COO|board)\b", r"\bfiled\s+with\b", r"\bpublic(?:ly)?\s+traded\b"),
    ),
)


def match_likelihood(match_count: int) -> MatchLikelihood:
    if match_count >= 3:
        return "certain"
    if match_count == 2:
        return "likely"
    if match_count == 1:
        return "possible"
    return "unlikely"


def find_searchable_fragments(redacted: Mapping[str, str]) -> list[SearchableFragment]:
    """Every searchable fragment, most searchable rules first."""
    markers = {section_id: marker_spans(text) for section_id, text in redacted.items()}
    fragments: list[SearchableFragment] = []
    for rule in SEARCHABILITY_RULES:
        for section_id, text in redacted.items():
            for m in rule.pattern.finditer(text):
                if inside_marker(markers[section_id], m.start()):
                    continue
                fragments.append(SearchableFragment(
                    fragment=m.group().strip(),
                    searchability=rule.searchability,
                    reason=rule.reason,
                    predicted_results=_PREDICTED_RESULTS[rule.searchability],
                    location=TextLocation(section_id, m.start(), m.end()),
                ))
    return fragments


def find_vulnerable_sources(redacted: Mapping[str, str]) -> list[SourceExposure]:
    full_text = " ".join(redacted.values())
    exposures = []
    for source in PUBLIC_SOURCES:
        count = sum(1 for p in source.patterns if p.search(full_text))
        if count == 0:
            continue
        exposures.append(SourceExposure(
            source=source.name,
            match_likelihood=match_likelihood(count),
            data_points=list(source.data_types),
            match_count=count,
        ))
    return exposures


def assess_cross_reference_risk(redacted: Mapping[str, str]) -> CrossReferenceRisk:
    fragments = find_searchable_fragments(redacted)
    sources = find_vulnerable_sources(redacted)

    # Scored on every fragment, not just the ones returned
    trivial = sum(1 for f in fragments if f.searchability == "trivial")
    moderate = sum(1 for f in fragments if f.searchability == "moderate")
    risk = min(100, TRIVIAL_POINTS * trivial + MODERATE_POINTS * moderate + SOURCE_POINTS * len(sources))

    return CrossReferenceRisk(
        searchable_fragments=fragments[:MAX_FRAGMENTS],
        vulnerable_sources=sources,
        risk_score=float(risk),
    )


def neutral_cross_reference_risk() -> CrossReferenceRisk:
    return CrossReferenceRisk(searchable_fragments=[], vulnerable_sources=[], risk_score=0.0)
