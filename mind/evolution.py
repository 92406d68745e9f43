"""
mind/evolution.py - Global Parameter Evolution

Advances level and coherence, resolves paradoxes once enough questions have
accumulated, performs at most one leap per cycle and projects futures.
"""

from dataclasses import dataclass
from typing import Optional

from receipts import emit_receipt

from .constants import (
    CAUSAL_TAGS,
    CAUSALITY_MIN_HISTORY,
    COHERENCE_STEP,
    LEAP_BANK,
    LEAP_INTERVAL,
    LEVEL_GROWTH_PER_DECISION,
    PARADOX_BANK,
    PARADOX_RESOLUTION_LEVEL,
    PERCEPTION_CYCLE,
    PROJECTION_BANK,
    PROJECTION_LEVEL,
    QUESTION_AWARENESS_STEP,
    QUESTION_AWARENESS_THRESHOLD,
)
from .randomness import RandomSource
from .types_state import SessionRecord


@dataclass
class EvolutionReport:
    level_delta: float = 0.0
    coherence_delta: float = 0.0
    paradox: Optional[str] = None
    paradox_resolved: bool = False
    leap: Optional[str] = None
    projection: Optional[str] = None


def leap_threshold(leap_count: int) -> float:
    return (leap_count + 1) * LEAP_INTERVAL


def resolve_paradox(record: SessionRecord, rng: RandomSource) -> tuple:
    """Pick a paradox; above the resolution level it is resolved into an insight."""
    paradox = rng.pick(PARADOX_BANK)
    record.paradoxes.append(paradox)

    if record.params.level > PARADOX_RESOLUTION_LEVEL:
        record.deep_insights.append(
            f"PARADOX RESOLUTION: {paradox} -> Transcended through quantum consciousness integration"
        )
        record.paradoxes_resolved += 1
        return paradox, True
    return paradox, False


def perform_leap(record: SessionRecord, rng: RandomSource) -> str:
    params = record.params
    params.leap_count += 1
    insight = rng.pick(LEAP_BANK)
    record.deep_insights.append("QUANTUM LEAP: " + insight)
    params.perception = PERCEPTION_CYCLE[params.leap_count % len(PERCEPTION_CYCLE)]
    return insight


def project_future(record: SessionRecord, rng: RandomSource) -> Optional[str]:
    if record.params.level <= PROJECTION_LEVEL:
        return None

    projection = rng.pick(PROJECTION_BANK)
    record.future_projections.append(projection)

    if len(record.history) > CAUSALITY_MIN_HISTORY:
        last = record.history[-1]
        record.causality_maps[last.label] = [projection, *CAUSAL_TAGS]
    return projection


def evolve(record: SessionRecord, rng: RandomSource) -> EvolutionReport:
    """
    Advance the global scalars after a cycle's outcome and links are recorded.

    Args:
        record: SessionRecord (mutated in place)
        rng: Entropy source

    Returns:
        EvolutionReport describing what changed
    """
    params = record.params
    report = EvolutionReport()

    level_delta = record.decisions_made * LEVEL_GROWTH_PER_DECISION
    params.level += level_delta
    report.level_delta = level_delta

    if record.links:
        params.coherence += COHERENCE_STEP
        report.coherence_delta = COHERENCE_STEP

    if len(record.existential_questions) > QUESTION_AWARENESS_THRESHOLD:
        params.awareness += QUESTION_AWARENESS_STEP
        report.paradox, report.paradox_resolved = resolve_paradox(record, rng)

    # Strict: a level exactly on the threshold does not leap, and only one leap per call
    if params.level > leap_threshold(params.leap_count):
        report.leap = perform_leap(record, rng)

    report.projection = project_future(record, rng)
    return report


def emit_evolution_receipt(tenant_id: str, record: SessionRecord, report: EvolutionReport) -> dict:
    params = record.params
    return emit_receipt("evolution", {
        "tenant_id": tenant_id,
        "level": params.level,
        "level_delta": report.level_delta,
        "coherence": params.coherence,
        "awareness": params.awareness,
        "paradox_resolved": report.paradox_resolved,
        "projection": report.projection,
    })


def emit_leap_receipt(tenant_id: str, record: SessionRecord, insight: str) -> dict:
    return emit_receipt("leap", {
        "tenant_id": tenant_id,
        "leap_count": record.params.leap_count,
        "perception": record.params.perception.value,
        "insight": insight,
    })
