"""Tests for config loading, the CLI and the sidecar helpers."""

import io
import json
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from pii_purge import cli, server
from pii_purge.config import (
    build_adversarial_config,
    build_scrub_config,
    create_session,
    load_config,
    load_from_yaml,
)


# ── Config ───────────────────────────────────────────────────────────

def test_defaults():
    cfg = load_config({})
    assert cfg["detection"]["sensitivity"] == "medium"
    assert cfg["detection"]["categories"]["ip_address"] is False
    assert cfg["detection"]["categories"]["email"] is True
    assert cfg["adversarial"]["risk_threshold"] == 30
    assert cfg["adversarial"]["analyses"]["cross_reference_check"] is True


def test_nested_key():
    cfg = load_config({"pii_purge": {"adversarial": {"risk_threshold": 25}}})
    assert cfg["adversarial"]["risk_threshold"] == 25


def test_category_mapping_overrides_defaults():
    cfg = load_config({"detection": {"categories": {"ip_address": True, "email": False}}})
    cats = cfg["detection"]["categories"]
    assert cats["ip_address"] is True and cats["email"] is False
    assert cats["ssn"] is True


def test_category_list_is_exact():
    cfg = load_config({"detection": {"categories": ["email", "ssn"]}})
    assert [c for c, on in cfg["detection"]["categories"].items() if on] == ["email", "ssn"]


@pytest.mark.parametrize("data", [
    {"detection": {"categories": ["email", "fax"]}},
    {"detection": {"redaction_style": "shred"}},
    {"detection": {"sensitivity": "extreme"}},
])
def test_invalid_values_raise(data):
    with pytest.raises(ValueError):
        load_config(data)


def test_invalid_threshold_raises_on_build():
    with pytest.raises(ValueError):
        build_adversarial_config({"adversarial": {"risk_threshold": 150}})


def test_load_from_yaml(tmp_path):
    path = tmp_path / "purge.yaml"
    path.write_text(
        "pii_purge:\n"
        "  detection:\n"
        "    redaction_style: partial\n"
        "    sensitivity: high\n"
        "    custom_patterns:\n"
        "      - id: emp\n"
        "        name: Employee ID\n"
        "        regex: 'EMP-\\d{6}'\n"
        "  adversarial:\n"
        "    max_iterations: 5\n"
        "    analyses:\n"
        "      cross_reference_check: false\n"
    )
    cfg = load_from_yaml(path)
    scrub = build_scrub_config(cfg)
    assert scrub.redaction_style == "partial"
    assert scrub.sensitivity == "high"
    assert scrub.custom_patterns[0].regex == r"EMP-\d{6}"

    adv = build_adversarial_config(cfg)
    assert adv.max_iterations == 5
    assert adv.enabled_analyses.cross_reference_check is False
    assert adv.enabled_analyses.attribute_leakage is True


def test_empty_yaml(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_from_yaml(path) == load_config({})


def test_build_from_raw_dict():
    scrub = build_scrub_config({"detection": {"redaction_style": "blackout"}})
    assert scrub.redaction_style == "blackout"


def test_create_session():
    session = create_session({"adversarial": {"risk_threshold": 10, "max_iterations": 2}})
    assert session.config.risk_threshold == 10
    assert session.config.max_iterations == 2
    assert session.result is None


# ── CLI ──────────────────────────────────────────────────────────────

def _run_cli(monkeypatch, capsys, argv, payload=None):
    monkeypatch.setattr(sys, "stdin", io.StringIO(json.dumps(payload) if payload is not None else ""))
    code = cli.main(argv)
    out = capsys.readouterr().out
    return code, (json.loads(out) if out.strip() else None)


def test_cli_scan(monkeypatch, capsys):
    code, out = _run_cli(monkeypatch, capsys, ["scan"], [{"id": "s1", "text": "mail bob@corp.io"}])
    assert code == 0
    assert [d["category"] for d in out["detections"]] == ["email"]


def test_cli_scan_sensitivity_override(monkeypatch, capsys):
    payload = {"file_id": "f1", "sections": [{"id": "s1", "text": "Jane Smith emailed bob@corp.io"}]}
    _, medium = _run_cli(monkeypatch, capsys, ["scan"], payload)
    _, high = _run_cli(monkeypatch, capsys, ["--sensitivity", "high", "scan"], payload)
    assert len(high["detections"]) > len(medium["detections"])
    assert all(d["file_id"] == "f1" for d in high["detections"])


def test_cli_scan_documents(monkeypatch, capsys):
    payload = {"documents": [
        {"file_id": "f1", "file_name": "a.txt", "sections": [{"id": "s1", "text": "mail bob@corp.io"}]},
        {"file_id": "f2", "file_name": "b.txt", "sections": None},
    ]}
    _, out = _run_cli(monkeypatch, capsys, ["scan"], payload)
    assert [f["status"] for f in out["files"]] == ["detected", "error"]


def test_cli_analyze(monkeypatch, capsys):
    payload = {
        "sections": [{"id": "s1", "text": "Jane Doe, the CEO of Acme Corp, testified before Congress in March 2019."}],
        "detections": [{"id": "d1", "section_id": "s1", "category": "person_name", "start_offset": 0, "end_offset": 8}],
    }
    code, out = _run_cli(monkeypatch, capsys, ["--threshold", "90", "analyze"], payload)
    assert code == 0
    assert out["passes_threshold"] is True
    assert out["risk_threshold"] == 90
    assert out["analysis"]["reidentification_confidence"] == 81
    assert out["improvement"] is None


def test_cli_redact_scans_when_no_detections(monkeypatch, capsys):
    payload = {"sections": [{"id": "s1", "text": "SSN 123-45-6789"}]}
    _, out = _run_cli(monkeypatch, capsys, ["redact"], payload)
    assert out["sections"] == {"s1": "SSN [REDACTED]"}
    assert out["redactions"][0]["replacement"] == "[REDACTED]"


def test_cli_redact_preview_matches_pseudonym_splices(monkeypatch, capsys, tmp_path):
    path = tmp_path / "purge.yaml"
    path.write_text("detection:\n  redaction_style: pseudonym\n")
    text = "ann@corp.io, bob@corp.io, cat@corp.io, dan@corp.io"
    payload = {"sections": [{"id": "s1", "text": text}]}
    _, out = _run_cli(monkeypatch, capsys, ["--config", str(path), "redact"], payload)

    expected = text
    for r in sorted(out["redactions"], key=lambda r: r["start_offset"], reverse=True):
        expected = expected[:r["start_offset"]] + r["replacement"] + expected[r["end_offset"]:]
    assert len(out["redactions"]) == 4
    assert out["sections"] == {"s1": expected}


def test_cli_validate_pattern(monkeypatch, capsys):
    code, out = _run_cli(monkeypatch, capsys, ["validate-pattern", r"EMP-\d{6}"])
    assert code == 0 and out == {"valid": True, "error": None}
    code, out = _run_cli(monkeypatch, capsys, ["validate-pattern", "(a+)+"])
    assert code == 1 and out["valid"] is False


# ── Sidecar helpers ──────────────────────────────────────────────────

def test_server_config_from_env(monkeypatch, tmp_path):
    path = tmp_path / "purge.yaml"
    path.write_text("pii_purge:\n  detection:\n    redaction_style: partial\n")
    monkeypatch.setenv("PII_PURGE_CONFIG", str(path))
    monkeypatch.setenv("PII_PURGE_THRESHOLD", "12")
    monkeypatch.setattr(server, "_config", None)
    monkeypatch.setattr(server, "_verifier", None)

    assert server._get_verifier().config.risk_threshold == 12
    scrub = server._scrub_config({"sensitivity": "high"})
    assert scrub.redaction_style == "partial"
    assert scrub.sensitivity == "high"
    assert server._scrub_config({}).sensitivity == "medium"
