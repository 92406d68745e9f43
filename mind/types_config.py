"""
mind/types_config.py - AgentConfig Dataclass and Loader

Immutable configuration for an agent process.
Invalid input self-heals to safe defaults with warnings unless strict.
"""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

MALFORMED_POLICIES = ("reinitialize", "backup", "abort")
SAVE_ERROR_POLICIES = ("retry", "abort", "continue")


@dataclass(frozen=True)
class AgentConfig:
    """Agent configuration (immutable)."""
    state_path: str = "decision_agent.json"
    receipts_path: Optional[str] = None
    archive_path: Optional[str] = None  # defaults to <state_path>.archive.jsonl
    tenant_id: str = "agent"

    # Cadence
    save_every: int = 2
    reflect_every: int = 3
    sleep_floor_s: float = 0.5
    sleep_jitter_s: float = 1.0

    # Knowledge lookup
    lookup_url: str = "https://api.duckduckgo.com/"
    lookup_timeout_s: float = 30.0

    # Failure policies
    on_malformed: str = "reinitialize"
    on_save_error: str = "retry"
    max_save_retries: int = 3
    save_failure_alert: int = 3

    # Retention: None keeps every history entry and branch in the record
    retention_limit: Optional[int] = None

    def resolved_archive_path(self) -> str:
        return self.archive_path or f"{self.state_path}.archive.jsonl"


DEFAULT_CONFIG = AgentConfig()

_POSITIVE_INTS = ("save_every", "reflect_every", "max_save_retries", "save_failure_alert")
_NON_NEGATIVE_FLOATS = ("sleep_floor_s", "sleep_jitter_s")


def _is_number(value: Any, kinds=(int, float)) -> bool:
    # bool is an int subclass; YAML "true" must not pass as 1
    return isinstance(value, kinds) and not isinstance(value, bool)


def load_config(path: str, strict: bool = False, **overrides: Any) -> AgentConfig:
    """
    Load config from a YAML or JSON file.

    Args:
        path: Path to config file (.yaml/.yml parsed as YAML, else JSON)
        strict: If True, raise on invalid values; if False, self-heal with warnings
        overrides: Field values applied after the file (None values ignored)

    Returns:
        Validated, frozen AgentConfig

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If strict=True and validation fails
    """
    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    content = path_obj.read_text()
    if path_obj.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(content) or {}
    else:
        data = json.loads(content)

    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    return config_from_dict(data, strict=strict)


def config_from_dict(data: Dict[str, Any], strict: bool = False) -> AgentConfig:
    """Validate a raw mapping and build an AgentConfig."""
    known = {f.name for f in fields(AgentConfig)}
    problems = []
    clean: Dict[str, Any] = {}

    for key, value in data.items():
        if key not in known:
            problems.append(f"Unknown config key: {key}")
            continue
        clean[key] = value

    for key in _POSITIVE_INTS:
        if key in clean and (not _is_number(clean[key], int) or clean[key] < 1):
            problems.append(f"{key} must be a positive integer, got {clean[key]!r}")
            del clean[key]

    for key in _NON_NEGATIVE_FLOATS + ("lookup_timeout_s",):
        if key in clean:
            value = clean[key]
            if not _is_number(value) or value < 0:
                problems.append(f"{key} must be a non-negative number, got {value!r}")
                del clean[key]
            else:
                clean[key] = float(value)

    if clean.get("lookup_timeout_s") == 0.0:
        problems.append("lookup_timeout_s must be > 0; the lookup timeout is mandatory")
        del clean["lookup_timeout_s"]

    if "on_malformed" in clean and clean["on_malformed"] not in MALFORMED_POLICIES:
        problems.append(f"on_malformed must be one of {MALFORMED_POLICIES}, got {clean['on_malformed']!r}")
        del clean["on_malformed"]

    if "on_save_error" in clean and clean["on_save_error"] not in SAVE_ERROR_POLICIES:
        problems.append(f"on_save_error must be one of {SAVE_ERROR_POLICIES}, got {clean['on_save_error']!r}")
        del clean["on_save_error"]

    limit = clean.get("retention_limit")
    if limit is not None and (not _is_number(limit, int) or limit < 1):
        problems.append(f"retention_limit must be a positive integer or null, got {limit!r}")
        del clean["retention_limit"]

    if problems:
        if strict:
            raise ValueError("Invalid config: " + "; ".join(problems))
        for problem in problems:
            warnings.warn(f"{problem} (using default)", UserWarning, stacklevel=2)

    return replace(DEFAULT_CONFIG, **clean)
