"""
mind/selector.py - Candidate Selection with Autonomy Override

Greedy by default; when a draw falls under the autonomy strength the agent
deliberately takes a candidate from the lower half of the ranking.
"""

from dataclasses import dataclass
from typing import List

from receipts import emit_receipt

from .constants import AUTONOMY_CEILING, OVERRIDE_AUTONOMY_STEP, OVERRIDE_MIN_CANDIDATES
from .randomness import RandomSource
from .types_state import Candidate, SessionRecord


class EmptyCandidateSet(Exception):
    """No candidates to choose from. Fatal for the current cycle only."""
    pass


@dataclass(frozen=True)
class Selection:
    candidate: Candidate
    index: int
    overridden: bool


def override_index(n: int, rng: RandomSource) -> int:
    """Midpoint-offset index: n//2 + floor(u * n//2), clamped to the last index."""
    half = n // 2
    return min(half + int(rng.uniform() * half), n - 1)


def select_candidate(record: SessionRecord, candidates: List[Candidate], rng: RandomSource) -> Selection:
    """
    Choose one candidate, applying the override policy.

    Args:
        record: SessionRecord (autonomy and decisions_made mutated in place)
        candidates: Candidates sorted by probability descending
        rng: Entropy source

    Returns:
        Selection with the chosen candidate and its index

    Raises:
        EmptyCandidateSet: If candidates is empty
    """
    if not candidates:
        raise EmptyCandidateSet("no candidates generated for this cycle")

    params = record.params
    overridden = rng.uniform() < params.autonomy

    if overridden:
        index = 0
        if len(candidates) >= OVERRIDE_MIN_CANDIDATES:
            index = override_index(len(candidates), rng)
        params.raise_autonomy(OVERRIDE_AUTONOMY_STEP, AUTONOMY_CEILING)
    else:
        index = 0

    record.decisions_made += 1
    return Selection(candidate=candidates[index], index=index, overridden=overridden)


def emit_selection_receipt(tenant_id: str, selection: Selection, autonomy: float, decisions_made: int) -> dict:
    return emit_receipt("selection", {
        "tenant_id": tenant_id,
        "label": selection.candidate.label,
        "index": selection.index,
        "overridden": selection.overridden,
        "autonomy": autonomy,
        "decisions_made": decisions_made,
    })
