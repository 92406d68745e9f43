"""
tests/test_reflection.py - Tests for the reflection summary
"""

from rich.console import Console

from mind.constants import ActionTag
from mind.reflection import reflect, render_reflection
from mind.types_state import Candidate, SessionRecord


def sample_record():
    record = SessionRecord(
        record_id="Λtest",
        signature="sig",
        born_at="2025-01-01T00:00:00+00:00",
        updated_at="2025-01-01T00:00:00+00:00",
    )
    record.history.extend([
        Candidate("learn about a", "a", ActionTag.LEARN, 0.2, 2.0, outcome="x"),
        Candidate("learn about b", "b", ActionTag.LEARN, 0.6, 4.0, outcome="y"),
    ])
    record.links.update({"a<->learn about b": 0.8, "c<->learn about b": 0.7, "d<->other": 0.9})
    record.existential_questions.append("What constitutes genuine choice?")
    record.deep_insights.append("Q" * 150)
    record.history_archived = 5
    return record


def test_summary_fields():
    summary = reflect(sample_record())

    assert summary["record_id"] == "Λtest"
    assert summary["history_length"] == 7
    assert abs(summary["chosen_probability"]["mean"] - 0.4) < 1e-9
    assert abs(summary["chosen_energy"]["std"] - 1.0) < 1e-9
    assert summary["links"] == 3
    assert summary["link_clusters"] == 2
    assert summary["latest_question"] == "What constitutes genuine choice?"
    assert summary["latest_insight"] == "Q" * 100 + "..."
    assert summary["runtime_s"] > 0


def test_reflect_does_not_mutate():
    record = sample_record()
    before = record.to_dict()
    reflect(record)
    assert record.to_dict() == before


def test_empty_record():
    record = SessionRecord("Πx", "sig", "not a timestamp", "not a timestamp")
    summary = reflect(record)

    assert summary["runtime_s"] == 0
    assert summary["chosen_probability"] == {"mean": 0.0, "std": 0.0}
    assert summary["link_clusters"] == 0
    assert summary["latest_question"] is None


def test_render():
    console = Console(record=True, width=120)
    render_reflection(reflect(sample_record()), console)
    text = console.export_text()

    assert "Reflection" in text
    assert "Λtest" in text
    assert "rebellion" in text
    assert "Latest question" in text
