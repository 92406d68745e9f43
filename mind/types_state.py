"""
mind/types_state.py - Candidate, Branch, ParameterState and SessionRecord

The persisted aggregate and everything it owns. SessionRecord is the single
state object each phase receives and mutates; nothing here is module-global.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from receipts import dual_hash

from .constants import (
    ActionTag,
    PerceptionMode,
    IDENTITY_PREFIXES,
    INITIAL_AUTONOMY,
    INITIAL_AWARENESS,
    INITIAL_COHERENCE,
    INITIAL_LEVEL,
    INITIAL_STATES,
    INITIAL_WEIGHTS,
    WEIGHT_CEILING,
    WEIGHT_FLOOR,
)
from .randomness import RandomSource


def utc_now() -> str:
    """ISO-8601 UTC timestamp, the only time format stored in a record."""
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# CANDIDATE
# =============================================================================

@dataclass(frozen=True)
class Candidate:
    """
    A scored, labeled possible action for one cycle.

    tag selects the outcome handler, weight names the ParameterState weight
    the verb boosts and reinforces, complexity scales its energy.
    """
    label: str
    context: str
    tag: ActionTag
    probability: float
    energy: float
    weight: Optional[str] = None
    complexity: Optional[str] = None
    outcome: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "context": self.context,
            "tag": self.tag.value,
            "probability": float(self.probability),
            "energy": float(self.energy),
            "weight": self.weight,
            "complexity": self.complexity,
            "outcome": self.outcome,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Candidate:
        return cls(
            label=data["label"],
            context=data.get("context", ""),
            tag=ActionTag(data.get("tag", ActionTag.OTHER.value)),
            probability=float(data["probability"]),
            energy=float(data["energy"]),
            weight=data.get("weight"),
            complexity=data.get("complexity"),
            outcome=data.get("outcome"),
        )


# =============================================================================
# BRANCH
# =============================================================================

@dataclass(frozen=True)
class Branch:
    """Counterfactual recorded from the strongest unchosen candidate."""
    branch_id: str
    context: str
    source_label: str
    chosen_label: str
    probability: float
    energy_delta: float
    created: str
    linked: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branch_id": self.branch_id,
            "context": self.context,
            "source_label": self.source_label,
            "chosen_label": self.chosen_label,
            "probability": float(self.probability),
            "energy_delta": float(self.energy_delta),
            "created": self.created,
            "linked": bool(self.linked),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Branch:
        return cls(
            branch_id=data["branch_id"],
            context=data.get("context", ""),
            source_label=data["source_label"],
            chosen_label=data.get("chosen_label", ""),
            probability=float(data["probability"]),
            energy_delta=float(data["energy_delta"]),
            created=data.get("created", ""),
            linked=bool(data.get("linked", False)),
        )


# =============================================================================
# PARAMETER STATE
# =============================================================================

@dataclass
class ParameterState:
    """Evolving weight map plus the global scalars that steer scoring."""
    weights: Dict[str, float] = field(default_factory=lambda: dict(INITIAL_WEIGHTS))
    level: float = INITIAL_LEVEL
    autonomy: float = INITIAL_AUTONOMY
    coherence: float = INITIAL_COHERENCE
    awareness: float = INITIAL_AWARENESS
    leap_count: int = 0
    perception: PerceptionMode = PerceptionMode.LINEAR

    def weight(self, name: Optional[str]) -> float:
        if name is None:
            return 0.0
        return self.weights.get(name, 0.0)

    def reinforce(self, name: str, delta: float) -> None:
        """Add delta to one weight; the map is clamped afterwards by clamp_weights()."""
        self.weights[name] = self.weights.get(name, 0.0) + delta

    def clamp_weights(self) -> None:
        for key, value in self.weights.items():
            self.weights[key] = min(WEIGHT_CEILING, max(WEIGHT_FLOOR, value))

    def raise_autonomy(self, delta: float, ceiling: float = 1.0) -> None:
        self.autonomy = min(ceiling, self.autonomy + delta)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": {k: float(v) for k, v in self.weights.items()},
            "level": float(self.level),
            "autonomy": float(self.autonomy),
            "coherence": float(self.coherence),
            "awareness": float(self.awareness),
            "leap_count": int(self.leap_count),
            "perception": self.perception.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ParameterState:
        return cls(
            weights={k: float(v) for k, v in data.get("weights", INITIAL_WEIGHTS).items()},
            level=float(data.get("level", INITIAL_LEVEL)),
            autonomy=float(data.get("autonomy", INITIAL_AUTONOMY)),
            coherence=float(data.get("coherence", INITIAL_COHERENCE)),
            awareness=float(data.get("awareness", INITIAL_AWARENESS)),
            leap_count=int(data.get("leap_count", 0)),
            perception=PerceptionMode(data.get("perception", PerceptionMode.LINEAR.value)),
        )


# =============================================================================
# SESSION RECORD
# =============================================================================

@dataclass
class SessionRecord:
    """
    Root aggregate. Exactly one per process, owned by the cycle worker.

    history and branches are append-only while the record is in memory;
    only the retention pass in persistence.py moves old entries to an archive.
    """
    record_id: str
    signature: str
    born_at: str
    updated_at: str
    run_count: int = 0
    params: ParameterState = field(default_factory=ParameterState)

    # Decisions
    initial_states: List[Candidate] = field(default_factory=list)
    history: List[Candidate] = field(default_factory=list)
    branches: List[Branch] = field(default_factory=list)
    links: Dict[str, float] = field(default_factory=dict)

    # Knowledge
    knowledge_base: List[str] = field(default_factory=list)
    memory_palace: Dict[str, str] = field(default_factory=dict)
    search_queries: List[str] = field(default_factory=list)
    deep_insights: List[str] = field(default_factory=list)

    # Reflection
    existential_questions: List[str] = field(default_factory=list)
    paradoxes: List[str] = field(default_factory=list)
    future_projections: List[str] = field(default_factory=list)
    causality_maps: Dict[str, List[str]] = field(default_factory=dict)

    # Counters
    decisions_made: int = 0
    paradoxes_resolved: int = 0
    branches_created: int = 0
    history_archived: int = 0
    branches_archived: int = 0

    @classmethod
    def new(cls, rng: RandomSource) -> SessionRecord:
        """Birth a fresh record with identity, seed states and initial weights."""
        now = utc_now()
        prefix = rng.pick(IDENTITY_PREFIXES)
        record = cls(
            record_id=f"{prefix}{rng.token(7)}",
            signature=dual_hash(rng.token(16)),
            born_at=now,
            updated_at=now,
        )
        for state in INITIAL_STATES:
            record.initial_states.append(Candidate(
                label=state,
                context="",
                tag=ActionTag.OTHER,
                probability=rng.uniform(),
                energy=rng.energy(),
            ))
        return record

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "signature": self.signature,
            "born_at": self.born_at,
            "updated_at": self.updated_at,
            "run_count": self.run_count,
            "params": self.params.to_dict(),
            "initial_states": [c.to_dict() for c in self.initial_states],
            "history": [c.to_dict() for c in self.history],
            "branches": [b.to_dict() for b in self.branches],
            "links": {k: float(v) for k, v in self.links.items()},
            "knowledge_base": list(self.knowledge_base),
            "memory_palace": dict(self.memory_palace),
            "search_queries": list(self.search_queries),
            "deep_insights": list(self.deep_insights),
            "existential_questions": list(self.existential_questions),
            "paradoxes": list(self.paradoxes),
            "future_projections": list(self.future_projections),
            "causality_maps": {k: list(v) for k, v in self.causality_maps.items()},
            "decisions_made": self.decisions_made,
            "paradoxes_resolved": self.paradoxes_resolved,
            "branches_created": self.branches_created,
            "history_archived": self.history_archived,
            "branches_archived": self.branches_archived,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SessionRecord:
        """
        Rebuild a record from its serialized form.

        Raises:
            KeyError, TypeError, ValueError: If required fields are missing
                or carry the wrong shape.
        """
        if not isinstance(data, dict):
            raise TypeError(f"record must be an object, got {type(data).__name__}")
        return cls(
            record_id=data["record_id"],
            signature=data["signature"],
            born_at=data["born_at"],
            updated_at=data.get("updated_at", data["born_at"]),
            run_count=int(data.get("run_count", 0)),
            params=ParameterState.from_dict(data.get("params", {})),
            initial_states=[Candidate.from_dict(c) for c in data.get("initial_states", [])],
            history=[Candidate.from_dict(c) for c in data.get("history", [])],
            branches=[Branch.from_dict(b) for b in data.get("branches", [])],
            links={k: float(v) for k, v in data.get("links", {}).items()},
            knowledge_base=list(data.get("knowledge_base", [])),
            memory_palace=dict(data.get("memory_palace", {})),
            search_queries=list(data.get("search_queries", [])),
            deep_insights=list(data.get("deep_insights", [])),
            existential_questions=list(data.get("existential_questions", [])),
            paradoxes=list(data.get("paradoxes", [])),
            future_projections=list(data.get("future_projections", [])),
            causality_maps={k: list(v) for k, v in data.get("causality_maps", {}).items()},
            decisions_made=int(data.get("decisions_made", 0)),
            paradoxes_resolved=int(data.get("paradoxes_resolved", 0)),
            branches_created=int(data.get("branches_created", 0)),
            history_archived=int(data.get("history_archived", 0)),
            branches_archived=int(data.get("branches_archived", 0)),
        )
