"""HTTP sidecar server for pii-purge.

Runs as a lightweight stdlib HTTP server on localhost so a document tool
can call it per request instead of spawning a process.

Endpoints:
    GET  /health            — Health check
    POST /detect            — Scan sections     {"sections", "file_id"?, "sensitivity"?}
    POST /analyze           — Adversarial check {"sections", "detections"}
    POST /redact            — Redacted preview  {"sections", "detections", "redaction_style"?}
    POST /validate-pattern  — Check a regex     {"pattern"}

All endpoints expect/return JSON.
"""

from __future__ import annotations
import dataclasses
import json
import logging
import os
from http.server import HTTPServer, BaseHTTPRequestHandler
from typing import Any

from .config import build_adversarial_config, build_scrub_config, load_config, load_from_yaml
from .detector import DetectionEngine, filter_by_sensitivity
from .errors import PurgeError, describe_error
from .redaction import build_redactions, redact_sections
from .regex_guard import validate_regex
from .types import ContentSection, Detection, ScrubConfig
from .verifier import AdversarialVerifier

logger = logging.getLogger(__name__)

DEFAULT_PORT = int(os.environ.get("PII_PURGE_PORT", "18792"))

# Shared state
_engine: DetectionEngine | None = None
_verifier: AdversarialVerifier | None = None
_config: dict[str, Any] | None = None


def _get_config() -> dict[str, Any]:
    global _config
    if _config is None:
        path = os.environ.get("PII_PURGE_CONFIG", "")
        _config = load_from_yaml(path) if path else load_config({})
        threshold = os.environ.get("PII_PURGE_THRESHOLD", "")
        if threshold:
            _config["adversarial"]["risk_threshold"] = float(threshold)
    return _config


def _get_engine() -> DetectionEngine:
    global _engine
    if _engine is None:
        _engine = DetectionEngine()
    return _engine


def _get_verifier() -> AdversarialVerifier:
    global _verifier
    if _verifier is None:
        _verifier = AdversarialVerifier(build_adversarial_config(_get_config()))
    return _verifier


def _scrub_config(body: dict[str, Any]) -> ScrubConfig:
    scrub = build_scrub_config(_get_config())
    # Per-request overrides never touch the shared config
    overrides = {k: body[k] for k in ("sensitivity", "redaction_style", "replacement_text") if k in body}
    return dataclasses.replace(scrub, **overrides) if overrides else scrub


class PurgeHandler(BaseHTTPRequestHandler):
    """HTTP request handler for the pii-purge sidecar."""

    def _read_json(self) -> dict[str, Any]:
        length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(length).decode("utf-8")
        return json.loads(body) if body else {}

    def _respond(self, status: int, data: Any) -> None:
        body = json.dumps(data, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args: Any) -> None:
        # Request lines go to the module logger, never to stderr
        logger.debug(format, *args)

    def do_GET(self) -> None:
        if self.path == "/health":
            self._respond(200, {"status": "ok", "engine_version": _get_engine().version})
        else:
            self._respond(404, {"error": "not found"})

    def do_POST(self) -> None:
        try:
            body = self._read_json()

            if self.path == "/detect":
                scrub = _scrub_config(body)
                result = _get_engine().detect(body.get("sections", []), scrub, file_id=body.get("file_id", ""))
                result.detections = filter_by_sensitivity(result.detections, scrub.sensitivity)
                self._respond(200, result.to_dict())

            elif self.path == "/analyze":
                result = _get_verifier().analyze(
                    body.get("sections", []),
                    body.get("detections", []),
                    iteration=int(body.get("iteration", 1)),
                    previous_confidence=body.get("previous_confidence"),
                )
                output = result.to_dict()
                output["improvement"] = result.improvement
                self._respond(200, output)

            elif self.path == "/redact":
                scrub = _scrub_config(body)
                sections = [ContentSection.coerce(s) for s in body.get("sections", [])]
                selected = [Detection.from_dict(d) for d in body.get("detections", [])]
                redactions = build_redactions(selected, scrub)
                self._respond(200, {
                    "sections": redact_sections(sections, redactions),
                    "redactions": [dataclasses.asdict(r) for r in redactions],
                })

            elif self.path == "/validate-pattern":
                reason = validate_regex(str(body.get("pattern", "")))
                self._respond(200, {"valid": reason is None, "error": reason})

            else:
                self._respond(404, {"error": "not found"})

        except (PurgeError, ValueError, KeyError, TypeError) as e:
            self._respond(400, {"error": describe_error(e)})
        except Exception as e:
            logger.warning("Request to %s failed: %s", self.path, describe_error(e))
            self._respond(500, {"error": describe_error(e)})


def serve(port: int = DEFAULT_PORT) -> None:
    """Start the pii-purge HTTP sidecar."""
    cfg = _get_config()
    server = HTTPServer(("127.0.0.1", port), PurgeHandler)
    print(f"pii-purge sidecar listening on http://127.0.0.1:{port}")
    print(f"  risk threshold: {cfg['adversarial']['risk_threshold']}")
    print(f"  sensitivity: {cfg['detection']['sensitivity']}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        print("\nShutting down...")
        server.shutdown()


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="pii-purge HTTP sidecar")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args()
    serve(port=args.port)
