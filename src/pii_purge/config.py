"""YAML/dict config loader for pii-purge.

Supports loading from a YAML file or a plain dict (for embedding in a
larger application config).

Example YAML:

    pii_purge:
      detection:
        categories:            # omitted categories keep their defaults
          ip_address: true
          date_of_birth: false
        redaction_style: partial
        replacement_text: "[REDACTED]"
        sensitivity: high
        custom_patterns:
          - id: emp
            name: Employee ID
            regex: "EMP-\\d{6}"
      adversarial:
        enabled: true
        risk_threshold: 25
        max_iterations: 3
        analysis_depth: standard
        analyses:
          cross_reference_check: false
"""

from __future__ import annotations
from pathlib import Path
from typing import Any

from .session import ReviewSession
from .types import ALL_CATEGORIES, CustomPattern, ScrubConfig, default_categories
from .verifier import AdversarialConfig, AdversarialVerifier, EnabledAnalyses

REDACTION_STYLES = ("blackout", "replacement", "pseudonym", "partial")
SENSITIVITIES = ("low", "medium", "high")


def _categories(raw: Any) -> dict[str, bool]:
    categories = default_categories()
    if raw is None:
        return categories
    unknown = set(raw) - set(ALL_CATEGORIES)
    if unknown:
        raise ValueError(f"Unknown PII categories: {sorted(unknown)}")
    if isinstance(raw, list):
        # A plain list means "exactly these"
        return {c: c in raw for c in ALL_CATEGORIES}
    categories.update({c: bool(on) for c, on in raw.items()})
    return categories


def _choice(value: str, allowed: tuple[str, ...], field_name: str) -> str:
    if value not in allowed:
        raise ValueError(f"{field_name} must be one of {allowed}, got {value!r}")
    return value


def load_config(data: dict[str, Any] | None) -> dict[str, Any]:
    """Normalize a config dict (from YAML or inline)."""
    data = data or {}
    # Support nested under "pii_purge" key or flat
    if "pii_purge" in data:
        data = data["pii_purge"] or {}

    detection = data.get("detection") or {}
    adversarial = data.get("adversarial") or {}
    analyses = adversarial.get("analyses") or {}

    return {
        "detection": {
            "categories": _categories(detection.get("categories")),
            "redaction_style": _choice(
                detection.get("redaction_style", "replacement"), REDACTION_STYLES, "redaction_style"),
            "replacement_text": detection.get("replacement_text", "[REDACTED]"),
            "sensitivity": _choice(detection.get("sensitivity", "medium"), SENSITIVITIES, "sensitivity"),
            "custom_patterns": [
                {
                    "id": str(p.get("id") or p.get("name") or f"custom_{i}"),
                    "name": str(p.get("name", "")),
                    "regex": str(p.get("regex", "")),
                    "enabled": bool(p.get("enabled", True)),
                }
                for i, p in enumerate(detection.get("custom_patterns") or [])
            ],
        },
        "adversarial": {
            "enabled": bool(adversarial.get("enabled", True)),
            "risk_threshold": float(adversarial.get("risk_threshold", 30)),
            "max_iterations": int(adversarial.get("max_iterations", 3)),
            "auto_apply_low_risk": bool(adversarial.get("auto_apply_low_risk", False)),
            "analysis_depth": adversarial.get("analysis_depth", "standard"),
            "analyses": {
                "attribute_leakage": bool(analyses.get("attribute_leakage", True)),
                "semantic_fingerprinting": bool(analyses.get("semantic_fingerprinting", True)),
                "cross_reference_check": bool(analyses.get("cross_reference_check", True)),
            },
        },
    }


def load_from_yaml(path: str | Path) -> dict[str, Any]:
    """Load config from a YAML file."""
    import yaml
    with open(path) as f:
        return load_config(yaml.safe_load(f))


def _normalized(config: dict[str, Any]) -> dict[str, Any]:
    # Already-normalized dicts pass through untouched
    if isinstance(config.get("detection"), dict) and "categories" in config["detection"] \
            and isinstance(config.get("adversarial"), dict) and "analyses" in config["adversarial"]:
        return config
    return load_config(config)


def build_scrub_config(config: dict[str, Any]) -> ScrubConfig:
    det = _normalized(config)["detection"]
    return ScrubConfig(
        categories=dict(det["categories"]),
        redaction_style=det["redaction_style"],
        replacement_text=det["replacement_text"],
        custom_patterns=[CustomPattern(**p) for p in det["custom_patterns"]],
        sensitivity=det["sensitivity"],
    )


def build_adversarial_config(config: dict[str, Any]) -> AdversarialConfig:
    adv = _normalized(config)["adversarial"]
    return AdversarialConfig(
        enabled=adv["enabled"],
        risk_threshold=adv["risk_threshold"],
        max_iterations=adv["max_iterations"],
        auto_apply_low_risk=adv["auto_apply_low_risk"],
        analysis_depth=adv["analysis_depth"],
        enabled_analyses=EnabledAnalyses(**adv["analyses"]),
    )


def create_session(config: dict[str, Any]) -> ReviewSession:
    """Create a review session from a config dict."""
    return ReviewSession(verifier=AdversarialVerifier(build_adversarial_config(config)))
