"""Core types."""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Literal, Mapping

from .errors import MalformedSectionError

PIICategory = Literal[
    "person_name", "email", "phone", "address", "ssn",
    "credit_card", "ip_address", "date_of_birth", "custom",
]
SectionType = Literal["paragraph", "cell", "slide", "heading", "footer", "header"]
Sensitivity = Literal["low", "medium", "high"]
RedactionStyle = Literal["blackout", "replacement", "pseudonym", "partial"]
RiskLevel = Literal["critical", "high", "medium", "low", "minimal"]
Impact = Literal["critical", "high", "medium", "low"]
Searchability = Literal["trivial", "moderate", "difficult"]
MatchLikelihood = Literal["certain", "likely", "possible", "unlikely"]
AttributeType = Literal[
    "profession", "affiliation", "temporal_marker", "geographic_signal",
    "relational_context", "unique_event", "demographic", "achievement",
    "public_role",
]
SuggestionType = Literal["redact", "generalize", "rephrase", "remove"]

ALL_CATEGORIES: tuple[str, ...] = (
    "person_name", "email", "phone", "address", "ssn",
    "credit_card", "ip_address", "date_of_birth", "custom",
)
SECTION_TYPES: tuple[str, ...] = ("paragraph", "cell", "slide", "heading", "footer", "header")


class _Serializable:
    __slots__ = ()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)  # type: ignore[call-overload]


# ── Document input ───────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class SectionLocation(_Serializable):
    """Where a section sits in its source document (all optional)."""
    page: int | None = None
    sheet: str | None = None
    cell: str | None = None
    slide: int | None = None
    paragraph: int | None = None


@dataclass(frozen=True, slots=True)
class ContentSection(_Serializable):
    """A run of text produced by the document parser."""
    id: str
    text: str
    type: SectionType = "paragraph"
    location: SectionLocation = field(default_factory=SectionLocation)

    @classmethod
    def coerce(cls, obj: ContentSection | Mapping[str, Any]) -> ContentSection:
        """Accept a section or a plain mapping (e.g. parsed JSON)."""
        if isinstance(obj, ContentSection):
            return obj
        if not isinstance(obj, Mapping):
            raise MalformedSectionError(f"section must be a mapping, got {type(obj).__name__}")
        section_id = obj.get("id")
        text = obj.get("text")
        if not isinstance(section_id, str) or not section_id:
            raise MalformedSectionError("section is missing a string 'id'")
        if not isinstance(text, str):
            raise MalformedSectionError(f"section {section_id!r} is missing a string 'text'")
        section_type = obj.get("type", "paragraph")
        if section_type not in SECTION_TYPES:
            raise MalformedSectionError(f"section {section_id!r} has unknown type {section_type!r}")
        raw_location = obj.get("location") or {}
        try:
            location = SectionLocation(**raw_location)
        except TypeError as e:
            raise MalformedSectionError(f"section {section_id!r} has a bad location: {e}") from e
        return cls(id=section_id, text=text, type=section_type, location=location)


@dataclass(slots=True)
class DocumentContent:
    """All sections extracted from one file."""
    file_id: str
    file_name: str = ""
    sections: list[Any] = field(default_factory=list)  # ContentSection or raw mappings


# ── Detection ────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Detection(_Serializable):
    """A located, categorized, confidence-scored PII span."""
    id: str
    file_id: str
    section_id: str
    category: str          # a PIICategory
    value: str
    start_offset: int
    end_offset: int
    confidence: float      # 0.0–1.0
    context: str           # bounded window around the match

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Detection:
        return cls(
            id=str(data["id"]),
            file_id=str(data.get("file_id", "")),
            section_id=str(data["section_id"]),
            category=str(data["category"]),
            value=str(data.get("value", "")),
            start_offset=int(data["start_offset"]),
            end_offset=int(data["end_offset"]),
            confidence=float(data.get("confidence", 1.0)),
            context=str(data.get("context", "")),
        )


@dataclass(slots=True)
class DetectionResult(_Serializable):
    """Result of scanning one document."""
    detections: list[Detection] = field(default_factory=list)
    processing_time_ms: int = 0
    engine_version: str = ""
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class FileScanStatus(_Serializable):
    file_id: str
    file_name: str
    status: Literal["detected", "error"]
    detection_count: int = 0
    error: str | None = None


@dataclass(slots=True)
class BatchScanResult(_Serializable):
    """Result of scanning several documents; failures are per file."""
    detections: list[Detection] = field(default_factory=list)
    files: list[FileScanStatus] = field(default_factory=list)
    processing_time_ms: int = 0
    engine_version: str = ""


# ── Scrub configuration ──────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class CustomPattern(_Serializable):
    """A user-supplied regex; admitted only after regex_guard validation."""
    id: str
    name: str
    regex: str
    enabled: bool = True


def default_categories() -> dict[str, bool]:
    return {c: c != "ip_address" for c in ALL_CATEGORIES}


@dataclass(slots=True)
class ScrubConfig(_Serializable):
    """Operator choices for scanning and redaction."""
    categories: dict[str, bool] = field(default_factory=default_categories)
    redaction_style: RedactionStyle = "replacement"
    replacement_text: str = "[REDACTED]"
    custom_patterns: list[CustomPattern] = field(default_factory=list)
    sensitivity: Sensitivity = "medium"

    @property
    def enabled_categories(self) -> list[str]:
        return [c for c, on in self.categories.items() if on]


@dataclass(frozen=True, slots=True)
class Redaction(_Serializable):
    """An exact splice for the redaction-application collaborator."""
    detection_id: str
    section_id: str
    start_offset: int
    end_offset: int
    replacement: str


# ── Adversarial analysis ─────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class TextLocation(_Serializable):
    section_id: str
    start_offset: int
    end_offset: int


@dataclass(frozen=True, slots=True)
class LeakedAttribute(_Serializable):
    """A contextual phrase that narrows who the redacted text could describe."""
    type: AttributeType
    phrase: str
    narrowing_factor: float
    explanation: str
    suggestion: str | None
    location: TextLocation


@dataclass(frozen=True, slots=True)
class UniquenessDriver(_Serializable):
    phrase: str
    impact: Impact
    narrowing_factor: float
    suggestion: str
    attribute_type: AttributeType
    location: TextLocation


@dataclass(frozen=True, slots=True)
class SemanticFingerprint(_Serializable):
    estimated_population_size: int
    population_description: str
    uniqueness_drivers: list[UniquenessDriver]
    risk_score: float
    risk_level: RiskLevel


@dataclass(frozen=True, slots=True)
class SearchableFragment(_Serializable):
    fragment: str
    searchability: Searchability
    reason: str
    predicted_results: str
    location: TextLocation


@dataclass(frozen=True, slots=True)
class SourceExposure(_Serializable):
    """A public data source the remaining text could be matched against."""
    source: str
    match_likelihood: MatchLikelihood
    data_points: list[str]
    match_count: int


@dataclass(frozen=True, slots=True)
class CrossReferenceRisk(_Serializable):
    searchable_fragments: list[SearchableFragment]
    vulnerable_sources: list[SourceExposure]
    risk_score: float


@dataclass(frozen=True, slots=True)
class AdversarialAnalysis(_Serializable):
    id: str
    timestamp: float
    reidentification_confidence: int   # 0–100
    risk_level: RiskLevel
    leaked_attributes: list[LeakedAttribute]
    semantic_fingerprint: SemanticFingerprint
    cross_reference_risk: CrossReferenceRisk
    sections_analyzed: list[str]
    processing_time_ms: float


@dataclass(slots=True)
class AdversarialSuggestion(_Serializable):
    """A proposed mitigation; ``accepted`` is the only field that changes."""
    id: str
    type: SuggestionType
    priority: int                  # 1 = highest
    original_phrase: str
    suggested_replacement: str
    expected_risk_reduction: int   # percentage points
    location: TextLocation
    rationale: str
    accepted: bool = False


@dataclass(slots=True)
class AdversarialVerificationResult(_Serializable):
    analysis: AdversarialAnalysis
    suggestions: list[AdversarialSuggestion]
    passes_threshold: bool
    risk_threshold: float
    iteration: int = 1
    previous_confidence: int | None = None

    @property
    def improvement(self) -> int | None:
        """Confidence points gained since the previous iteration."""
        if self.previous_confidence is None:
            return None
        return self.previous_confidence - self.analysis.reidentification_confidence
