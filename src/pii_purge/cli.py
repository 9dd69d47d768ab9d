"""CLI interface for pii-purge.

Usage:
    # Scan sections (stdin: JSON list of sections, or {"file_id", "sections"},
    # or {"documents": [...]}; stdout: detections JSON)
    echo '[{"id":"s1","text":"Mail john@acme.com"}]' | pii-purge scan

    # Re-identification check (stdin: {"sections": [...], "detections": [...]};
    # detections default to everything the scan finds at the active sensitivity)
    pii-purge --threshold 25 analyze < selection.json

    # Redacted preview in the configured style
    pii-purge --config purge.yaml redact < selection.json

    # Check a custom pattern before saving it
    pii-purge validate-pattern 'EMP-\\d{6}'
"""

from __future__ import annotations
import argparse
import dataclasses
import json
import logging
import sys
from typing import Any

from .config import build_adversarial_config, build_scrub_config, load_config, load_from_yaml
from .detector import DetectionEngine, filter_by_sensitivity
from .redaction import build_redactions, redact_sections
from .regex_guard import validate_regex
from .types import ContentSection, Detection, DocumentContent, ScrubConfig
from .verifier import AdversarialVerifier


def _load(args: argparse.Namespace) -> dict[str, Any]:
    cfg = load_from_yaml(args.config) if args.config else load_config({})
    if args.sensitivity:
        cfg["detection"]["sensitivity"] = args.sensitivity
    if args.threshold is not None:
        cfg["adversarial"]["risk_threshold"] = args.threshold
    return cfg


def _read_stdin() -> Any:
    raw = sys.stdin.read()
    return json.loads(raw) if raw.strip() else {}


def _write(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")


def _sections(payload: Any) -> list[Any]:
    return payload if isinstance(payload, list) else payload.get("sections", [])


def _selected(payload: Any, sections: list[Any], scrub: ScrubConfig) -> list[Detection]:
    """Detections from the payload, or everything the scan keeps."""
    if isinstance(payload, dict) and "detections" in payload:
        return [Detection.from_dict(d) for d in payload["detections"]]
    found = DetectionEngine().detect(sections, scrub).detections
    return filter_by_sensitivity(found, scrub.sensitivity)


def cmd_scan(args: argparse.Namespace) -> int:
    """Detect PII in sections on stdin."""
    scrub = build_scrub_config(_load(args))
    engine = DetectionEngine()
    payload = _read_stdin()

    if isinstance(payload, dict) and "documents" in payload:
        batch = engine.scan_documents(
            [
                DocumentContent(d.get("file_id", ""), d.get("file_name", ""), d.get("sections", []))
                for d in payload["documents"]
            ],
            scrub,
        )
        batch.detections = filter_by_sensitivity(batch.detections, scrub.sensitivity)
        _write(batch.to_dict())
        return 0

    file_id = payload.get("file_id", "") if isinstance(payload, dict) else ""
    result = engine.detect(_sections(payload), scrub, file_id=file_id)
    result.detections = filter_by_sensitivity(result.detections, scrub.sensitivity)
    _write(result.to_dict())
    return 0


def cmd_analyze(args: argparse.Namespace) -> int:
    """Adversarial re-identification check for a redaction selection."""
    cfg = _load(args)
    scrub = build_scrub_config(cfg)
    verifier = AdversarialVerifier(build_adversarial_config(cfg))
    payload = _read_stdin()

    sections = _sections(payload)
    result = verifier.analyze(sections, _selected(payload, sections, scrub))
    output = result.to_dict()
    output["improvement"] = result.improvement
    _write(output)
    return 0


def cmd_redact(args: argparse.Namespace) -> int:
    """Redacted preview text plus the exact splices."""
    scrub = build_scrub_config(_load(args))
    payload = _read_stdin()

    sections = [ContentSection.coerce(s) for s in _sections(payload)]
    redactions = build_redactions(_selected(payload, sections, scrub), scrub)
    _write({
        "sections": redact_sections(sections, redactions),
        "redactions": [dataclasses.asdict(r) for r in redactions],
    })
    return 0


def cmd_validate_pattern(args: argparse.Namespace) -> int:
    """Check a custom regex against the admission rules."""
    reason = validate_regex(args.pattern)
    _write({"valid": reason is None, "error": reason})
    return 0 if reason is None else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-purge",
        description="PII detection and re-identification risk checks for documents",
    )
    parser.add_argument("--config", default=None, help="YAML config path")
    parser.add_argument("--sensitivity", choices=["low", "medium", "high"], default=None,
                        help="Detection sensitivity (overrides config)")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Max acceptable re-identification confidence, 0-100 (overrides config)")
    parser.add_argument("--verbose", action="store_true", help="Debug logging to stderr")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("scan", help="Detect PII (JSON stdin)")
    sub.add_parser("analyze", help="Adversarial re-identification check (JSON stdin)")
    sub.add_parser("redact", help="Redacted preview and splices (JSON stdin)")
    validate = sub.add_parser("validate-pattern", help="Validate a custom regex")
    validate.add_argument("pattern")

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr)

    cmds = {
        "scan": cmd_scan,
        "analyze": cmd_analyze,
        "redact": cmd_redact,
        "validate-pattern": cmd_validate_pattern,
    }
    return cmds[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
