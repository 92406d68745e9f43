"""
mind - Decision Agent Simulation Package

Public API for the decision/evolution cycle and its persisted state.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_config import AgentConfig, DEFAULT_CONFIG, load_config, config_from_dict
from .types_state import Candidate, Branch, ParameterState, SessionRecord

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    ActionTag,
    PerceptionMode,
    PERCEPTION_CYCLE,
    CONTEXT_BANK,
    RECEIPT_SCHEMA,
)

# =============================================================================
# RANDOMNESS
# =============================================================================
from .randomness import RandomSource, CryptoRandomSource, SequenceRandomSource

# =============================================================================
# PHASES
# =============================================================================
from .candidates import generate_candidates
from .selector import select_candidate, EmptyCandidateSet, Selection
from .outcome import record_outcome, update_weights, Lookup
from .branching import create_branch, form_links, state_similarity, link_graph
from .evolution import evolve, EvolutionReport

# =============================================================================
# PERSISTENCE
# =============================================================================
from .persistence import (
    load_record,
    load_or_create,
    save_record,
    archive_overflow,
    LoadResult,
    LoadStatus,
    PersistenceWriteError,
    MalformedRecordError,
)

# =============================================================================
# CORE LOOP
# =============================================================================
from .cycle import run_cycle, CycleLoop, CycleResult
from .reflection import reflect, render_reflection

# =============================================================================
# PUBLIC API
# =============================================================================
__all__ = [
    # Types
    "AgentConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "config_from_dict",
    "Candidate",
    "Branch",
    "ParameterState",
    "SessionRecord",
    # Constants
    "ActionTag",
    "PerceptionMode",
    "PERCEPTION_CYCLE",
    "CONTEXT_BANK",
    "RECEIPT_SCHEMA",
    # Randomness
    "RandomSource",
    "CryptoRandomSource",
    "SequenceRandomSource",
    # Phases
    "generate_candidates",
    "select_candidate",
    "EmptyCandidateSet",
    "Selection",
    "record_outcome",
    "update_weights",
    "Lookup",
    "create_branch",
    "form_links",
    "state_similarity",
    "link_graph",
    "evolve",
    "EvolutionReport",
    # Persistence
    "load_record",
    "load_or_create",
    "save_record",
    "archive_overflow",
    "LoadResult",
    "LoadStatus",
    "PersistenceWriteError",
    "MalformedRecordError",
    # Core loop
    "run_cycle",
    "CycleLoop",
    "CycleResult",
    "reflect",
    "render_reflection",
]
