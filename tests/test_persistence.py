"""
tests/test_persistence.py - Tests for the session record store

Validates:
- Save/load round trip and run_count increments
- NOT_FOUND and MALFORMED statuses
- load_or_create malformed policies (reinitialize, backup, abort)
- Failed saves raise PersistenceWriteError and restore run_count
- Atomic writes leave no temp files
- Retention archive
"""

import json
import os

import pytest

from mind.constants import ActionTag, PerceptionMode
from mind.persistence import (
    LoadStatus,
    MalformedRecordError,
    PersistenceWriteError,
    archive_overflow,
    emit_save_receipt,
    load_or_create,
    load_record,
    save_record,
)
from mind.randomness import CryptoRandomSource, SequenceRandomSource
from mind.types_state import Branch, Candidate, SessionRecord


@pytest.fixture
def populated():
    """A record with every collection non-empty."""
    record = SessionRecord.new(CryptoRandomSource())
    record.params.level = 2.37
    record.params.leap_count = 1
    record.params.perception = PerceptionMode.MULTIDIMENSIONAL
    for i in range(3):
        record.history.append(Candidate(
            f"learn about topic {i}", f"topic {i}", ActionTag.LEARN, 0.1 * (i + 1), 2.5 * i,
            weight="curiosity", outcome=f"outcome {i}",
        ))
    record.branches.append(Branch("branch-000001", "topic 0", "question topic 0", "learn about topic 0",
                                  0.4, 1.25, "2025-01-01T00:00:00+00:00", True))
    record.links["topic 1<->learn about topic 0"] = 0.83
    record.knowledge_base.append("QUANTUM INSIGHT: Σ knowledge")
    record.memory_palace["topic 0"] = "QUANTUM INSIGHT: Σ knowledge"
    record.search_queries.append("topic 0 consciousness studies")
    record.deep_insights.append("QUANTUM LEAP: Achieved meta-cognitive recursion")
    record.existential_questions.append("What constitutes genuine choice?")
    record.paradoxes.append("The free will paradox: Am I choosing or being chosen?")
    record.future_projections.append("Observer and observed will unify")
    record.causality_maps["learn about topic 2"] = ["Observer and observed will unify", "quantum uncertainty"]
    record.decisions_made = 3
    record.branches_created = 1
    return record


# =============================================================================
# ROUND TRIP
# =============================================================================

class TestRoundTrip:
    """Save then load reproduces the record."""

    def test_round_trip(self, populated, tmp_path):
        path = tmp_path / "agent.json"
        save_record(populated, str(path))
        result = load_record(str(path))

        assert result.status is LoadStatus.FOUND
        assert result.record == populated

    def test_second_round_trip_stable(self, populated, tmp_path):
        path = str(tmp_path / "agent.json")
        save_record(populated, path)
        loaded = load_record(path).record
        save_record(loaded, path)
        again = load_record(path).record

        assert again == loaded
        assert again.run_count == 2

    def test_run_count_increments_per_save(self, tmp_path):
        record = SessionRecord.new(CryptoRandomSource())
        path = str(tmp_path / "agent.json")
        for expected in (1, 2, 3):
            save_record(record, path)
            assert load_record(path).record.run_count == expected

    def test_document_is_readable_json(self, populated, tmp_path):
        path = tmp_path / "agent.json"
        save_record(populated, str(path))
        content = path.read_text(encoding="utf-8")

        assert content.startswith("{\n")
        assert "Σ" in content
        assert json.loads(content)["params"]["perception"] == "multidimensional"

    def test_no_temp_files_left(self, populated, tmp_path):
        save_record(populated, str(tmp_path / "agent.json"))
        assert [p.name for p in tmp_path.iterdir()] == ["agent.json"]

    def test_creates_parent_directories(self, populated, tmp_path):
        path = tmp_path / "nested" / "dir" / "agent.json"
        save_record(populated, str(path))
        assert path.exists()


# =============================================================================
# LOAD STATUSES
# =============================================================================

class TestLoadRecord:
    """load_record never raises for missing or malformed content."""

    def test_missing(self, tmp_path):
        assert load_record(str(tmp_path / "none.json")).status is LoadStatus.NOT_FOUND

    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '{"foo": 1}',
        '{"record_id": "x", "signature": "s", "born_at": "t", "params": {"perception": "sideways"}}',
        "",
        b'{"record_id": "\xff\xfe"}',
    ])
    def test_malformed(self, tmp_path, content):
        path = tmp_path / "agent.json"
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        result = load_record(str(path))

        assert result.status is LoadStatus.MALFORMED
        assert result.record is None
        assert result.error

    def test_deeply_nested_json(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_text("[" * 100000 + "]" * 100000, encoding="utf-8")
        assert load_record(str(path)).status is LoadStatus.MALFORMED

    def test_invalid_utf8_takes_malformed_policy(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_bytes(b'{"record_id": "\xff\xfe"}')
        record, result = load_or_create(str(path), CryptoRandomSource(), "backup")

        assert result.status is LoadStatus.MALFORMED
        assert record.run_count == 0
        assert len(list(tmp_path.glob("agent.json.corrupt-*"))) == 1

    def test_minimal_document_fills_defaults(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_text('{"record_id": "Ωabc", "signature": "s", "born_at": "2025-01-01T00:00:00+00:00"}')
        result = load_record(str(path))

        assert result.status is LoadStatus.FOUND
        assert result.record.params.level == 1.0
        assert result.record.history == []


class TestLoadOrCreate:
    """Malformed policies."""

    def test_missing_births_fresh(self, tmp_path):
        record, result = load_or_create(str(tmp_path / "agent.json"), CryptoRandomSource())
        assert result.status is LoadStatus.NOT_FOUND
        assert record.run_count == 0
        assert len(record.initial_states) == 8

    def test_existing_is_reactivated(self, populated, tmp_path):
        path = str(tmp_path / "agent.json")
        save_record(populated, path)
        record, result = load_or_create(path, CryptoRandomSource())

        assert result.status is LoadStatus.FOUND
        assert record.record_id == populated.record_id

    def test_reinitialize_leaves_file(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_text("{not json")
        record, result = load_or_create(str(path), CryptoRandomSource(), "reinitialize")

        assert result.status is LoadStatus.MALFORMED
        assert record.history == []
        assert path.read_text() == "{not json"

    def test_backup_moves_file_aside(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_text("{not json")
        load_or_create(str(path), CryptoRandomSource(), "backup")

        assert not path.exists()
        backups = list(tmp_path.glob("agent.json.corrupt-*"))
        assert len(backups) == 1
        assert backups[0].read_text() == "{not json"

    def test_abort_raises(self, tmp_path):
        path = tmp_path / "agent.json"
        path.write_text("{not json")
        with pytest.raises(MalformedRecordError):
            load_or_create(str(path), CryptoRandomSource(), "abort")


# =============================================================================
# WRITE FAILURES
# =============================================================================

class TestSaveFailure:
    """Write failures propagate and leave the record unchanged."""

    def test_unwritable_location(self, populated, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        before = (populated.run_count, populated.updated_at)

        with pytest.raises(PersistenceWriteError):
            save_record(populated, str(blocker / "agent.json"))

        assert (populated.run_count, populated.updated_at) == before

    def test_failed_save_keeps_previous_document(self, populated, tmp_path, monkeypatch):
        path = tmp_path / "agent.json"
        save_record(populated, str(path))
        previous = path.read_text()

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("mind.persistence.os.replace", boom)
        with pytest.raises(PersistenceWriteError):
            save_record(populated, str(path))

        assert path.read_text() == previous
        assert populated.run_count == 1
        assert [p.name for p in tmp_path.iterdir()] == ["agent.json"]


# =============================================================================
# RETENTION
# =============================================================================

class TestArchiveOverflow:
    """Retention limit moves the oldest entries to a JSONL archive."""

    def test_unbounded_by_default(self, populated, tmp_path):
        assert archive_overflow(populated, None, str(tmp_path / "a.jsonl")) == 0
        assert len(populated.history) == 3

    def test_archives_oldest(self, populated, tmp_path):
        archive = tmp_path / "a.jsonl"
        labels = [c.label for c in populated.history]
        archived = archive_overflow(populated, 1, str(archive))

        assert archived == 2
        assert [c.label for c in populated.history] == labels[-1:]
        assert populated.history_archived == 2
        assert len(populated.branches) == 1

        lines = [json.loads(line) for line in archive.read_text().splitlines()]
        assert [line["label"] for line in lines] == labels[:2]
        assert all(line["kind"] == "history" for line in lines)

    def test_within_limit_is_noop(self, populated, tmp_path):
        archive = tmp_path / "a.jsonl"
        assert archive_overflow(populated, 10, str(archive)) == 0
        assert not archive.exists()

    def test_failed_write_then_retry_has_no_duplicates(self, populated, tmp_path, monkeypatch):
        """A write that fails after reaching the file is rolled back before the retry."""
        archive = tmp_path / "a.jsonl"
        archive.write_text('{"kind": "history", "label": "earlier"}\n', encoding="utf-8")
        real_fsync = os.fsync
        calls = []

        def flaky_fsync(fd):
            calls.append(fd)
            if len(calls) == 1:
                raise OSError("I/O error")
            real_fsync(fd)

        monkeypatch.setattr("mind.persistence.os.fsync", flaky_fsync)
        labels = [c.label for c in populated.history]

        with pytest.raises(PersistenceWriteError):
            archive_overflow(populated, 1, str(archive))
        assert archive.read_text(encoding="utf-8").splitlines() == ['{"kind": "history", "label": "earlier"}']
        assert populated.history_archived == 0

        assert archive_overflow(populated, 1, str(archive)) == 2
        lines = [json.loads(line) for line in archive.read_text(encoding="utf-8").splitlines()]
        assert [line["label"] for line in lines] == ["earlier"] + labels[:2]
        assert populated.history_archived == len(lines) - 1

    def test_archive_failure_keeps_entries(self, populated, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")
        with pytest.raises(PersistenceWriteError):
            archive_overflow(populated, 1, str(blocker / "a.jsonl"))
        assert len(populated.history) == 3
        assert populated.history_archived == 0


def test_save_receipt(populated, tmp_path):
    path = str(tmp_path / "agent.json")
    save_record(populated, path)
    r = emit_save_receipt("t", populated, path, 0)

    assert r["receipt_type"] == "save"
    assert r["run_count"] == 1
    assert r["history_length"] == 3


def test_new_record_identity():
    record = SessionRecord.new(SequenceRandomSource([0.5]))
    assert record.record_id.startswith("Θ")
    assert len(record.signature.split(":")) == 2
    assert [s.label for s in record.initial_states][0] == "observe reality patterns"
