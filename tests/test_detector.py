"""Tests for the detection engine — scoring, sensitivity, batches."""

import asyncio
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pii_purge import DetectionEngine, ENGINE_VERSION, filter_by_sensitivity
from pii_purge.detector import extract_context, score_match, sensitivity_threshold
from pii_purge.types import ContentSection, CustomPattern, DocumentContent, ScrubConfig


def _section(text, section_id="s1"):
    return ContentSection(id=section_id, text=text)


# ── Scoring ──────────────────────────────────────────────────────────

def test_score_match_mapping():
    assert score_match(100, True) == 0.95     # SSN
    assert score_match(100, False) == 0.9     # email
    assert score_match(30, True) == 0.5       # capitalized pair
    assert score_match(10, False) == 0.45     # clamped


def test_validated_high_priority_clears_low_sensitivity():
    assert score_match(95, True) >= sensitivity_threshold("low")


def test_unknown_sensitivity_falls_back_to_medium():
    assert sensitivity_threshold("bogus") == 0.7


def test_us_phone_sits_below_low_but_email_clears_it():
    phone, email = score_match(90, True), score_match(100, False)
    assert phone == 0.886
    assert phone < sensitivity_threshold("low") <= email
    assert phone >= sensitivity_threshold("medium")


def test_low_sensitivity_keeps_email_drops_phone():
    result = DetectionEngine().detect([_section("a@b.co or 555-867-5309")])
    kept = filter_by_sensitivity(result.detections, "low")
    assert [d.category for d in kept] == ["email"]
    assert {d.category for d in filter_by_sensitivity(result.detections, "medium")} == {"email", "phone"}


# ── detect() ─────────────────────────────────────────────────────────

def test_detects_email_and_phone():
    engine = DetectionEngine()
    result = engine.detect([_section("Email alice@example.com or call (555) 123-4567.")], file_id="f1")
    assert {d.category for d in result.detections} == {"email", "phone"}
    assert all(d.file_id == "f1" for d in result.detections)
    assert result.engine_version == ENGINE_VERSION


def test_offsets_point_at_values():
    text = "SSN 123-45-6789, mail bob@corp.io, card 4111-1111-1111-1111, Dr. Jane Smith"
    result = DetectionEngine().detect([_section(text)])
    assert len(result.detections) == 4
    for d in result.detections:
        assert 0 <= d.start_offset < d.end_offset <= len(text)
        assert text[d.start_offset:d.end_offset] == d.value


def test_detections_ordered_by_offset():
    result = DetectionEngine().detect([_section("bob@corp.io then 123-45-6789")])
    starts = [d.start_offset for d in result.detections]
    assert starts == sorted(starts)


def test_confidence_per_category():
    result = DetectionEngine().detect([_section("SSN 123-45-6789 mail bob@corp.io")])
    by_cat = {d.category: d.confidence for d in result.detections}
    assert by_cat["ssn"] == 0.95
    assert by_cat["email"] == 0.9


def test_ids_are_unique_and_prefixed():
    result = DetectionEngine().detect([_section("a@b.co c@d.co e@f.co")])
    ids = [d.id for d in result.detections]
    assert len(set(ids)) == 3
    assert all(i.startswith("det_") for i in ids)


def test_disabled_category_not_scanned():
    config = ScrubConfig()
    config.categories["email"] = False
    result = DetectionEngine().detect([_section("mail bob@corp.io")], config)
    assert result.detections == []


def test_ip_address_off_by_default():
    result = DetectionEngine().detect([_section("Server 192.168.1.100")])
    assert not any(d.category == "ip_address" for d in result.detections)


def test_context_is_bounded():
    text = "x" * 100 + " bob@corp.io " + "y" * 100
    d = DetectionEngine().detect([_section(text)]).detections[0]
    assert d.context.startswith("...") and d.context.endswith("...")
    assert "bob@corp.io" in d.context
    assert len(d.context) < len(text)


def test_extract_context_at_edges():
    assert extract_context("bob@corp.io", 0, 11) == "bob@corp.io"


# ── Custom patterns ──────────────────────────────────────────────────

def test_custom_pattern_detection():
    config = ScrubConfig(custom_patterns=[CustomPattern("emp", "Employee ID", r"EMP-\d{6}")])
    result = DetectionEngine().detect([_section("Badge EMP-123456 issued")], config)
    custom = [d for d in result.detections if d.category == "custom"]
    assert [d.value for d in custom] == ["EMP-123456"]
    assert custom[0].confidence == 0.9


def test_custom_patterns_ignored_when_category_off():
    config = ScrubConfig(custom_patterns=[CustomPattern("emp", "Employee ID", r"EMP-\d{6}")])
    config.categories["custom"] = False
    result = DetectionEngine().detect([_section("Badge EMP-123456 issued")], config)
    assert result.detections == []


def test_rejected_custom_pattern_becomes_warning():
    config = ScrubConfig(custom_patterns=[CustomPattern("bad", "Bad", r"(a+)+")])
    result = DetectionEngine().detect([_section("mail bob@corp.io")], config)
    assert [d.category for d in result.detections] == ["email"]
    assert len(result.warnings) == 1
    assert result.warnings[0].startswith("Custom pattern rejected")


# ── Sensitivity ──────────────────────────────────────────────────────

def test_sensitivity_filter_without_rescanning():
    result = DetectionEngine().detect([_section("Jane Smith emailed bob@corp.io")])
    assert {d.category for d in result.detections} == {"person_name", "email"}

    high = filter_by_sensitivity(result.detections, "high")
    medium = filter_by_sensitivity(result.detections, "medium")
    low = filter_by_sensitivity(result.detections, "low")
    assert {d.category for d in high} == {"person_name", "email"}
    assert {d.category for d in medium} == {"email"}
    assert {d.category for d in low} == {"email"}


# ── Malformed input ──────────────────────────────────────────────────

def test_malformed_section_skipped_with_warning():
    result = DetectionEngine().detect([
        {"id": "s1", "text": "mail a@b.co"},
        {"text": "no id here"},
    ])
    assert len(result.detections) == 1
    assert result.detections[0].section_id == "s1"
    assert len(result.warnings) == 1


def test_log_messages_never_contain_values(caplog):
    caplog.set_level("DEBUG", logger="pii_purge")
    config = ScrubConfig(custom_patterns=[CustomPattern("bad", "Bad", r"(a+)+")])
    DetectionEngine().detect([_section("mail secret.person@corp.io")], config, file_id="f1")
    assert "secret.person" not in caplog.text


# ── Batches ──────────────────────────────────────────────────────────

def test_scan_documents_isolates_failures():
    docs = [
        DocumentContent("f1", "ok.txt", [_section("mail a@b.co")]),
        DocumentContent("f2", "broken.txt", None),
        DocumentContent("f3", "also-ok.txt", [_section("ssn 123-45-6789")]),
    ]
    batch = DetectionEngine().scan_documents(docs)
    statuses = {f.file_id: f for f in batch.files}
    assert statuses["f1"].status == "detected" and statuses["f1"].detection_count == 1
    assert statuses["f2"].status == "error"
    assert statuses["f2"].error.startswith("TypeError")
    assert statuses["f3"].status == "detected"
    assert {d.file_id for d in batch.detections} == {"f1", "f3"}


# ── Async ────────────────────────────────────────────────────────────

def test_detect_async_matches_sync():
    sections = [_section("mail a@b.co", "s1"), _section("ssn 123-45-6789", "s2")]
    engine = DetectionEngine()
    sync = engine.detect(sections)
    result = asyncio.run(engine.detect_async(sections))
    assert [d.value for d in result.detections] == [d.value for d in sync.detections]


def test_scan_documents_async():
    docs = [DocumentContent("f1", "a.txt", [_section("mail a@b.co")])]
    batch = asyncio.run(DetectionEngine().scan_documents_async(docs))
    assert batch.files[0].status == "detected"
    assert len(batch.detections) == 1


def test_detect_async_logs_scan_summary(caplog):
    caplog.set_level("DEBUG", logger="pii_purge.detector")
    asyncio.run(DetectionEngine().detect_async([_section("mail a@b.co")], file_id="f9"))
    assert "Scanned file 'f9': 1 detections" in caplog.text


def test_detect_async_reports_malformed_sections():
    result = asyncio.run(DetectionEngine().detect_async([{"id": "s1"}, _section("mail a@b.co", "s2")]))
    assert len(result.detections) == 1
    assert result.warnings and result.warnings[0].startswith("Skipped section #0")
