"""Tests for the review session loop."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from pii_purge import AdversarialConfig, ReviewSession
from pii_purge.types import ContentSection, Detection

TEXT = "Jane Doe, the CEO of Acme Corp, testified before Congress in March 2019."
SECTIONS = [ContentSection("s1", TEXT)]
NAME = Detection("d1", "f1", "s1", "person_name", "Jane Doe", 0, 8, 0.5, "")


def _title_detection():
    start = TEXT.index("the CEO")
    end = TEXT.index(", testified")
    return Detection("d2", "f1", "s1", "custom", TEXT[start:end], start, end, 0.9, "")


# ── Iteration ────────────────────────────────────────────────────────

def test_first_run_is_iteration_one():
    session = ReviewSession.create()
    result = session.run(SECTIONS, [NAME])
    assert result.iteration == 1
    assert result.previous_confidence is None
    assert result.improvement is None


def test_second_run_threads_previous_confidence():
    session = ReviewSession.create()
    first = session.run(SECTIONS, [NAME])
    second = session.run(SECTIONS, [NAME, _title_detection()])
    assert second.iteration == 2
    assert second.previous_confidence == first.analysis.reidentification_confidence
    assert second.improvement > 0


def test_max_iterations_keeps_last_result():
    session = ReviewSession.create(config=AdversarialConfig(max_iterations=1))
    first = session.run(SECTIONS, [NAME])
    again = session.run(SECTIONS, [NAME, _title_detection()])
    assert again is first
    assert session.iteration == 1


def test_disabled_session_never_runs():
    session = ReviewSession.create(config=AdversarialConfig(enabled=False))
    assert session.run(SECTIONS, [NAME]) is None


def test_failure_keeps_previous_result(caplog):
    session = ReviewSession.create()
    first = session.run(SECTIONS, [NAME])

    def boom(*args, **kwargs):
        raise RuntimeError("analysis exploded on Jane Doe\nsecond line")

    session.verifier.analyze = boom
    with caplog.at_level("WARNING", logger="pii_purge.session"):
        result = session.run(SECTIONS, [NAME])
    assert result is first
    assert "Adversarial analysis failed: RuntimeError" in caplog.text
    assert "second line" not in caplog.text


# ── Suggestions ──────────────────────────────────────────────────────

def test_accept_single_suggestion():
    session = ReviewSession.create()
    result = session.run(SECTIONS, [NAME])
    target = result.suggestions[0]
    assert session.accept(target.id) is True
    assert target.accepted is True
    assert len(session.result.suggestions) == len(result.suggestions)


def test_accept_without_result():
    session = ReviewSession.create()
    assert session.accept("sug_missing") is False
    assert session.accept_all() == 0


def test_accept_all():
    session = ReviewSession.create()
    result = session.run(SECTIONS, [NAME])
    assert session.accept_all() == len(result.suggestions)
    assert all(s.accepted for s in result.suggestions)


def test_clear_resets_iteration():
    session = ReviewSession.create()
    session.run(SECTIONS, [NAME])
    session.clear()
    assert session.result is None
    assert session.run(SECTIONS, [NAME]).iteration == 1


# ── Config ───────────────────────────────────────────────────────────

def test_update_config_replaces_verifier():
    session = ReviewSession.create()
    session.update_config(risk_threshold=90)
    assert session.config.risk_threshold == 90
    assert session.run(SECTIONS, [NAME]).passes_threshold is True


def test_stats():
    session = ReviewSession.create()
    assert session.stats["iteration"] == 0
    session.run(SECTIONS, [NAME])
    assert session.stats["iteration"] == 1
    assert session.stats["passes_threshold"] is False
