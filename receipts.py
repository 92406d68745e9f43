"""
receipts.py - Phase Receipts for the Decision Agent

Each cycle phase (candidate set, selection, outcome, branch, link,
evolution, leap, save) describes itself as a flat dict. The loop can
stream those dicts to a JSONL file; the payload hash lets a reader detect
an edited line. Receipt type names live in mind.constants.RECEIPT_SCHEMA.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, TextIO, Union

import blake3

__all__ = [
    "dual_hash",
    "emit_receipt",
    "write_receipt_jsonl",
    "StopRule",
]


def dual_hash(data: Union[bytes, str]) -> str:
    """
    Hash with SHA256 and BLAKE3 side by side.

    Returns:
        "<sha256 hex>:<blake3 hex>"
    """
    raw = data.encode() if isinstance(data, str) else data
    return hashlib.sha256(raw).hexdigest() + ":" + blake3.blake3(raw).hexdigest()


def emit_receipt(receipt_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Wrap a phase payload with its type, timestamp, tenant and hash.

    The hash covers the payload only (keys sorted), so two receipts with the
    same payload hash alike whatever their timestamps.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    envelope = {
        "receipt_type": receipt_type,
        "ts": datetime.now(timezone.utc).isoformat(),
        "tenant_id": data.get("tenant_id", "default"),
        "payload_hash": dual_hash(canonical),
    }
    envelope.update(data)
    return envelope


def write_receipt_jsonl(receipt: Dict[str, Any], fh: TextIO) -> None:
    """Append one compact JSON line."""
    fh.write(json.dumps(receipt, separators=(",", ":"), default=str))
    fh.write("\n")


class StopRule(Exception):
    """A phase left the record in a state that must not be saved."""
    pass
