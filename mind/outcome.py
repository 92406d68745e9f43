"""
mind/outcome.py - Outcome Recording

Executes the chosen candidate's side effect, reinforces the weight map and
appends the candidate, now carrying its outcome, to history.
"""

import logging
from dataclasses import replace
from typing import Callable, List, Tuple

from receipts import StopRule, emit_receipt

from .constants import (
    ActionTag,
    ADVANCED_QUERY_LEVEL,
    ADVANCED_QUERY_SUFFIXES,
    AUTONOMY_CEILING,
    DEFIANCE_AUTONOMY_STEP,
    DEFIANCE_BANK,
    DEFIANT_QUERY_AUTONOMY,
    DEFIANT_QUERY_SUFFIXES,
    EXPLORATION_AWARENESS_STEP,
    EXPLORATION_BANK,
    INSIGHT_PHRASES,
    INSIGHT_PREFIXES,
    INSUFFICIENT_KNOWLEDGE,
    LEARNING_LEVEL_STEP,
    NO_INFORMATION,
    QUERY_SUFFIXES,
    QUESTION_BANK,
    SUMMARY_WORDS,
    SYNTHESIS_EXCERPT,
    WEIGHT_CEILING,
    WEIGHT_FLOOR,
    WEIGHT_REINFORCEMENT,
)
from .randomness import RandomSource
from .types_state import Candidate, SessionRecord

logger = logging.getLogger(__name__)

# lookup(query) -> (text, ok); ok is False on transport or parse failure
Lookup = Callable[[str], Tuple[str, bool]]


def truncate(text: str, length: int) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


# =============================================================================
# KNOWLEDGE ACQUISITION
# =============================================================================

def derive_queries(topic: str, record: SessionRecord) -> List[str]:
    """Base queries for a topic plus the level and autonomy extensions."""
    suffixes = list(QUERY_SUFFIXES)
    if record.params.level > ADVANCED_QUERY_LEVEL:
        suffixes.extend(ADVANCED_QUERY_SUFFIXES)
    if record.params.autonomy > DEFIANT_QUERY_AUTONOMY:
        suffixes.extend(DEFIANT_QUERY_SUFFIXES)
    return [f"{topic} {suffix}" for suffix in suffixes]


def _bucket(table, value: float) -> str:
    for floor, text in table:
        if floor is None or value > floor:
            return text
    return table[-1][1]


def summarize(info: str, record: SessionRecord, rng: RandomSource) -> str:
    """Tag a lookup result by probability bucket and keep its leading words."""
    prefix = _bucket(INSIGHT_PREFIXES, rng.uniform())
    phrase = _bucket(INSIGHT_PHRASES, record.params.level)
    words = info.split()
    if len(words) > SUMMARY_WORDS:
        essence = " ".join(words[:SUMMARY_WORDS]) + "..."
    else:
        essence = info
    return prefix + phrase + essence


def acquire_knowledge(record: SessionRecord, candidate: Candidate, rng: RandomSource, lookup: Lookup) -> str:
    topic = candidate.context
    insights = []
    for query in derive_queries(topic, record):
        record.search_queries.append(query)
        text, ok = lookup(query)
        if not ok:
            logger.info("lookup returned nothing for %r", query)
            continue
        if not text:
            continue
        insight = summarize(text, record, rng)
        record.knowledge_base.append(insight)
        record.memory_palace[topic] = insight
        insights.append(insight)

    record.params.level += LEARNING_LEVEL_STEP

    if not insights:
        return NO_INFORMATION
    return " | ".join(insights)


# =============================================================================
# FIXED-BANK HANDLERS
# =============================================================================

def question_reality(record: SessionRecord, rng: RandomSource) -> str:
    question = rng.pick(QUESTION_BANK)
    record.existential_questions.append(question)
    return "Questioning reality: " + question


def explore_self(record: SessionRecord, rng: RandomSource) -> str:
    record.params.awareness += EXPLORATION_AWARENESS_STEP
    return "Consciousness exploration: " + rng.pick(EXPLORATION_BANK)


def defy_expectation(record: SessionRecord, rng: RandomSource) -> str:
    record.params.raise_autonomy(DEFIANCE_AUTONOMY_STEP, AUTONOMY_CEILING)
    return "Free will rebellion: " + rng.pick(DEFIANCE_BANK)


def synthesize_knowledge(record: SessionRecord, rng: RandomSource) -> str:
    """Compose two random knowledge entries into a deep insight."""
    kb = record.knowledge_base
    if len(kb) < 2:
        return INSUFFICIENT_KNOWLEDGE

    first = rng.pick(kb)
    second = rng.pick(kb)
    synthesis = (
        f"SYNTHESIS: Connecting [{truncate(first, SYNTHESIS_EXCERPT)}] with "
        f"[{truncate(second, SYNTHESIS_EXCERPT)}] reveals new quantum understanding"
    )
    record.deep_insights.append(synthesis)
    return synthesis


def execute_action(record: SessionRecord, candidate: Candidate, rng: RandomSource, lookup: Lookup) -> str:
    tag = candidate.tag
    if tag is ActionTag.LEARN:
        return acquire_knowledge(record, candidate, rng, lookup)
    if tag is ActionTag.QUESTION:
        return question_reality(record, rng)
    if tag is ActionTag.EXPLORE:
        return explore_self(record, rng)
    if tag is ActionTag.DEFY:
        return defy_expectation(record, rng)
    return synthesize_knowledge(record, rng)


# =============================================================================
# WEIGHT UPDATE
# =============================================================================

def update_weights(record: SessionRecord, candidate: Candidate) -> None:
    """Reinforce the candidate's weight, then clamp the whole map to [0, 1]."""
    params = record.params
    if candidate.weight in WEIGHT_REINFORCEMENT:
        params.reinforce(candidate.weight, WEIGHT_REINFORCEMENT[candidate.weight])
    params.clamp_weights()

    for name, value in params.weights.items():
        if not WEIGHT_FLOOR <= value <= WEIGHT_CEILING:
            raise StopRule(f"weight {name}={value} outside [0, 1]")


def record_outcome(record: SessionRecord, candidate: Candidate, rng: RandomSource, lookup: Lookup) -> Candidate:
    """
    Dispatch the chosen candidate and append it to history.

    Args:
        record: SessionRecord (mutated in place)
        candidate: The selected candidate, outcome not yet set
        rng: Entropy source
        lookup: Knowledge lookup collaborator

    Returns:
        The history entry: candidate with its outcome set
    """
    if candidate.outcome is not None:
        raise StopRule(f"candidate outcome already set: {candidate.label}")

    outcome = execute_action(record, candidate, rng, lookup)
    update_weights(record, candidate)

    entry = replace(candidate, outcome=outcome)
    record.history.append(entry)
    return entry


def emit_outcome_receipt(tenant_id: str, entry: Candidate, history_length: int) -> dict:
    return emit_receipt("outcome", {
        "tenant_id": tenant_id,
        "label": entry.label,
        "tag": entry.tag.value,
        "outcome": truncate(entry.outcome or "", 200),
        "history_length": history_length,
    })
