"""pii-purge — PII detection and adversarial re-identification checks for documents."""

__version__ = "0.1.0"

from .detector import DetectionEngine, ENGINE_VERSION, filter_by_sensitivity
from .errors import PurgeError, InvalidPatternError, MalformedSectionError
from .redaction import simulate_redacted_output, build_redactions, apply_redactions, scrub_detections
from .regex_guard import validate_regex
from .verifier import AdversarialVerifier, AdversarialConfig, EnabledAnalyses
from .session import ReviewSession
from .config import create_session, load_config, load_from_yaml
from .types import (
    ContentSection,
    DocumentContent,
    Detection,
    DetectionResult,
    BatchScanResult,
    ScrubConfig,
    CustomPattern,
    Redaction,
    AdversarialVerificationResult,
    AdversarialSuggestion,
)

__all__ = [
    "DetectionEngine", "ENGINE_VERSION", "filter_by_sensitivity",
    "PurgeError", "InvalidPatternError", "MalformedSectionError",
    "simulate_redacted_output", "build_redactions", "apply_redactions", "scrub_detections",
    "validate_regex",
    "AdversarialVerifier", "AdversarialConfig", "EnabledAnalyses",
    "ReviewSession",
    "create_session", "load_config", "load_from_yaml",
    "ContentSection", "DocumentContent", "Detection", "DetectionResult", "BatchScanResult",
    "ScrubConfig", "CustomPattern", "Redaction",
    "AdversarialVerificationResult", "AdversarialSuggestion",
]
