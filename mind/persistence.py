"""
mind/persistence.py - Session Record Store

One JSON document per agent. Loads report their status instead of raising so
the caller chooses what a malformed document means; saves are atomic and
every write failure propagates as PersistenceWriteError.
"""

import io
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from receipts import emit_receipt, write_receipt_jsonl

from .randomness import RandomSource
from .types_state import SessionRecord, utc_now

logger = logging.getLogger(__name__)


class PersistenceWriteError(IOError):
    """A save or archive write failed. Callers must surface it."""
    pass


class MalformedRecordError(ValueError):
    """Persisted record could not be parsed and the policy is to abort."""
    pass


class LoadStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class LoadResult:
    status: LoadStatus
    record: Optional[SessionRecord] = None
    error: Optional[str] = None


# =============================================================================
# LOAD
# =============================================================================

def load_record(path: str) -> LoadResult:
    """
    Read and deserialize the record at path.

    Never raises for missing or malformed content; the status says which.
    """
    path_obj = Path(path)
    try:
        raw = path_obj.read_bytes()
    except FileNotFoundError:
        return LoadResult(LoadStatus.NOT_FOUND)
    except OSError as e:
        return LoadResult(LoadStatus.MALFORMED, error=f"unreadable: {e}")

    try:
        record = SessionRecord.from_dict(json.loads(raw.decode("utf-8")))
    except (UnicodeDecodeError, json.JSONDecodeError, KeyError, TypeError, ValueError,
            AttributeError, RecursionError) as e:
        return LoadResult(LoadStatus.MALFORMED, error=f"{type(e).__name__}: {e}")

    return LoadResult(LoadStatus.FOUND, record=record)


def load_or_create(path: str, rng: RandomSource, on_malformed: str = "reinitialize") -> tuple:
    """
    Load the record at path or birth a fresh one.

    Args:
        path: Record location
        rng: Entropy source for a fresh identity
        on_malformed: "reinitialize" (discard), "backup" (move the bad file
            aside first) or "abort" (raise)

    Returns:
        (SessionRecord, LoadResult)

    Raises:
        MalformedRecordError: If the document is malformed and on_malformed is "abort"
    """
    result = load_record(path)

    if result.status is LoadStatus.FOUND:
        return result.record, result

    if result.status is LoadStatus.MALFORMED:
        if on_malformed == "abort":
            raise MalformedRecordError(f"Malformed record at {path}: {result.error}")
        if on_malformed == "backup":
            stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
            backup = f"{path}.corrupt-{stamp}"
            os.replace(path, backup)
            logger.warning("Malformed record moved to %s (%s)", backup, result.error)
        else:
            logger.warning("Malformed record at %s discarded (%s)", path, result.error)

    return SessionRecord.new(rng), result


# =============================================================================
# SAVE
# =============================================================================

def _atomic_write(path: Path, data: str) -> None:
    """Write to a temp file beside path, fsync, then replace path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
    ) as fh:
        tmp = Path(fh.name)
        try:
            fh.write(data)
            fh.flush()
            os.fsync(fh.fileno())
        except OSError:
            fh.close()
            tmp.unlink(missing_ok=True)
            raise
    try:
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def serialize_record(record: SessionRecord) -> str:
    return json.dumps(record.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)


def save_record(record: SessionRecord, path: str) -> None:
    """
    Increment run_count and write the whole record atomically.

    Raises:
        PersistenceWriteError: On any write failure (run_count is restored)
    """
    previous = (record.run_count, record.updated_at)
    record.run_count += 1
    record.updated_at = utc_now()
    try:
        _atomic_write(Path(path), serialize_record(record))
    except OSError as e:
        record.run_count, record.updated_at = previous
        raise PersistenceWriteError(f"Failed to save record to {path}: {e}") from e


# =============================================================================
# RETENTION
# =============================================================================

def _truncate_archive(path: Path, size: int) -> None:
    """Cut a partially appended archive back to its size before the write."""
    try:
        if path.exists():
            os.truncate(path, size)
    except OSError as e:
        logger.error("Could not roll back partial archive write to %s: %s", path, e)


def archive_overflow(record: SessionRecord, limit: Optional[int], archive_path: str) -> int:
    """
    Move history and branch entries beyond limit into a JSONL archive.

    Oldest entries leave first; order is preserved in both the archive and
    the record. Nothing is dropped unless the archive write succeeded, and a
    failed write leaves the archive as it was.

    Returns:
        Number of entries archived

    Raises:
        PersistenceWriteError: If the archive cannot be written
    """
    if limit is None:
        return 0

    old_history = record.history[:-limit] if len(record.history) > limit else []
    old_branches = record.branches[:-limit] if len(record.branches) > limit else []
    if not old_history and not old_branches:
        return 0

    buffer = io.StringIO()
    for entry in old_history:
        write_receipt_jsonl({"kind": "history", "record_id": record.record_id, **entry.to_dict()}, buffer)
    for branch in old_branches:
        write_receipt_jsonl({"kind": "branch", "record_id": record.record_id, **branch.to_dict()}, buffer)
    payload = buffer.getvalue().encode("utf-8")

    path_obj = Path(archive_path)
    start = None
    try:
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        start = path_obj.stat().st_size if path_obj.exists() else 0
        with path_obj.open("ab") as fh:
            fh.write(payload)
            fh.flush()
            os.fsync(fh.fileno())
    except OSError as e:
        if start is not None:
            _truncate_archive(path_obj, start)
        raise PersistenceWriteError(f"Failed to archive to {archive_path}: {e}") from e

    if old_history:
        record.history = record.history[len(old_history):]
        record.history_archived += len(old_history)
    if old_branches:
        record.branches = record.branches[len(old_branches):]
        record.branches_archived += len(old_branches)

    logger.info("Archived %d history and %d branch entries", len(old_history), len(old_branches))
    return len(old_history) + len(old_branches)


def emit_save_receipt(tenant_id: str, record: SessionRecord, path: str, archived: int) -> dict:
    return emit_receipt("save", {
        "tenant_id": tenant_id,
        "record_id": record.record_id,
        "run_count": record.run_count,
        "path": path,
        "history_length": len(record.history),
        "archived": archived,
    })
