"""
mind/candidates.py - Candidate Generation

Builds the scored action list for one context from the verb templates
currently unlocked by level and autonomy.
"""

from typing import List, Optional, Tuple

from receipts import StopRule, emit_receipt

from .constants import (
    ActionTag,
    ADVANCED_TEMPLATES,
    ADVANCED_TEMPLATE_LEVEL,
    BASE_TEMPLATES,
    COMPLEXITY_DEFIANT,
    COMPLEXITY_TRANSCENDENT,
    DEFIANT_ENERGY_FACTOR,
    DEFIANT_TEMPLATES,
    DEFIANT_TEMPLATE_AUTONOMY,
    REBELLION_BOOST_FACTOR,
    TRANSCENDENT_ENERGY_FACTOR,
    WEIGHT_BOOSTS,
    WEIGHT_BOOST_THRESHOLD,
    WEIGHT_REBELLION,
)
from .randomness import RandomSource
from .types_state import Candidate, ParameterState

Template = Tuple[str, ActionTag, Optional[str], Optional[str], bool]


def unlocked_templates(params: ParameterState) -> List[Template]:
    """Base templates plus the advanced and defiant tiers the params unlock."""
    templates = list(BASE_TEMPLATES)
    if params.level > ADVANCED_TEMPLATE_LEVEL:
        templates.extend(ADVANCED_TEMPLATES)
    if params.autonomy > DEFIANT_TEMPLATE_AUTONOMY:
        templates.extend(DEFIANT_TEMPLATES)
    return templates


def tag_multiplier(weight: Optional[str], params: ParameterState) -> float:
    """Probability boost for a verb whose weight exceeds the boost threshold."""
    if weight is None or params.weight(weight) <= WEIGHT_BOOST_THRESHOLD:
        return 1.0
    if weight == WEIGHT_REBELLION:
        return params.autonomy * REBELLION_BOOST_FACTOR
    return WEIGHT_BOOSTS.get(weight, 1.0)


def complexity_multiplier(complexity: Optional[str], params: ParameterState) -> float:
    if complexity == COMPLEXITY_TRANSCENDENT:
        return TRANSCENDENT_ENERGY_FACTOR
    if complexity == COMPLEXITY_DEFIANT:
        return params.autonomy * DEFIANT_ENERGY_FACTOR
    return 1.0


def score_probability(weight: Optional[str], params: ParameterState, rng: RandomSource) -> float:
    probability = rng.uniform() * tag_multiplier(weight, params) * params.level
    return min(1.0, max(0.0, probability))


def score_energy(complexity: Optional[str], params: ParameterState, rng: RandomSource) -> float:
    return max(0.0, rng.energy() * complexity_multiplier(complexity, params))


def generate_candidates(context: str, params: ParameterState, rng: RandomSource) -> List[Candidate]:
    """
    Score every unlocked template for a context.

    Probability is drawn before energy for each template, in generation order.

    Args:
        context: Topic string for this cycle
        params: Current ParameterState (read only)
        rng: Entropy source

    Returns:
        Candidates sorted by probability descending; ties keep generation order
    """
    candidates = []
    for phrase, tag, weight, complexity, boosted in unlocked_templates(params):
        candidates.append(Candidate(
            label=phrase.format(context),
            context=context,
            tag=tag,
            probability=score_probability(weight if boosted else None, params, rng),
            energy=score_energy(complexity, params, rng),
            weight=weight,
            complexity=complexity,
        ))

    # sorted() is stable, reverse=True keeps equal probabilities in generation order
    return sorted(candidates, key=lambda c: c.probability, reverse=True)


def check_candidates(candidates: List[Candidate]) -> None:
    """StopRule if any candidate left the probability or energy range."""
    for c in candidates:
        if not 0.0 <= c.probability <= 1.0:
            raise StopRule(f"candidate probability {c.probability} outside [0, 1]: {c.label}")
        if c.energy < 0.0:
            raise StopRule(f"candidate energy {c.energy} negative: {c.label}")


def emit_candidate_set_receipt(tenant_id: str, context: str, candidates: List[Candidate]) -> dict:
    return emit_receipt("candidate_set", {
        "tenant_id": tenant_id,
        "context": context,
        "count": len(candidates),
        "top_label": candidates[0].label if candidates else None,
        "top_probability": candidates[0].probability if candidates else None,
    })
