"""
mind/branching.py - Counterfactual Branches and Similarity Links

A branch records the strongest unchosen alternative of a cycle. Links pair
the current context with past outcomes that resemble the chosen one.
"""

from typing import Callable, Dict, List, Optional, Tuple

import networkx as nx

from receipts import emit_receipt

from .constants import (
    BRANCH_LINK_THRESHOLD,
    ENERGY_SIMILARITY_SPAN,
    LINK_KEY_SEPARATOR,
    LINK_LABEL_CHARS,
    LINK_SIMILARITY_THRESHOLD,
)
from .randomness import RandomSource
from .types_state import Branch, Candidate, SessionRecord, utc_now


# =============================================================================
# BRANCHES
# =============================================================================

def strongest_alternative(candidates: List[Candidate], chosen: Candidate) -> Optional[Candidate]:
    for candidate in candidates:
        if candidate.label != chosen.label:
            return candidate
    return None


def create_branch(
    record: SessionRecord,
    context: str,
    candidates: List[Candidate],
    chosen: Candidate,
    rng: RandomSource,
    clock: Callable[[], str] = utc_now,
) -> Optional[Branch]:
    """
    Record a counterfactual from the first candidate not sharing the chosen label.

    clock stamps the branch; inject a fixed one for reproducible records.

    Returns:
        The appended Branch, or None when every candidate shares the label
    """
    alternative = strongest_alternative(candidates, chosen)
    if alternative is None:
        return None

    record.branches_created += 1
    branch = Branch(
        branch_id=f"branch-{record.branches_created:06d}",
        context=context,
        source_label=alternative.label,
        chosen_label=chosen.label,
        probability=alternative.probability,
        energy_delta=abs(chosen.energy - alternative.energy),
        created=clock(),
        linked=rng.uniform() > BRANCH_LINK_THRESHOLD,
    )
    record.branches.append(branch)
    return branch


# =============================================================================
# SIMILARITY
# =============================================================================

def word_overlap(label_a: str, label_b: str) -> float:
    """Share of words in a also found in b, over the longer word count."""
    words_a = label_a.lower().split()
    words_b = label_b.lower().split()
    longest = max(len(words_a), len(words_b))
    if longest == 0:
        return 0.0
    vocabulary = set(words_b)
    common = sum(1 for word in words_a if word in vocabulary)
    return common / longest


def energy_similarity(energy_a: float, energy_b: float) -> float:
    return 1.0 - min(1.0, abs(energy_a - energy_b) / ENERGY_SIMILARITY_SPAN)


def state_similarity(a: Candidate, b: Candidate) -> float:
    """(word_overlap + energy_similarity) / 2, a fixed heuristic in [0, 1]."""
    return (word_overlap(a.label, b.label) + energy_similarity(a.energy, b.energy)) / 2.0


# =============================================================================
# LINKS
# =============================================================================

def link_key(context: str, past_label: str) -> str:
    return f"{context}{LINK_KEY_SEPARATOR}{past_label[:LINK_LABEL_CHARS]}"


def parse_link_key(key: str) -> Tuple[str, str]:
    context, _, label = key.partition(LINK_KEY_SEPARATOR)
    return context, label


def form_links(record: SessionRecord, context: str, chosen: Candidate) -> Dict[str, float]:
    """
    Link the current context to every earlier history entry similar enough.

    The last history entry is the one just recorded and is skipped.

    Returns:
        The links written this call (key -> similarity)
    """
    formed = {}
    for past in record.history[:-1]:
        similarity = state_similarity(chosen, past)
        if similarity > LINK_SIMILARITY_THRESHOLD:
            key = link_key(context, past.label)
            record.links[key] = similarity
            formed[key] = similarity
    return formed


def link_graph(links: Dict[str, float]) -> nx.Graph:
    """Undirected graph of contexts and past labels weighted by similarity."""
    graph = nx.Graph()
    for key, similarity in links.items():
        context, label = parse_link_key(key)
        graph.add_node(context, kind="context")
        graph.add_node(label, kind="label")
        graph.add_edge(context, label, weight=similarity)
    return graph


def emit_branch_receipt(tenant_id: str, branch: Branch) -> dict:
    return emit_receipt("branch", {
        "tenant_id": tenant_id,
        **branch.to_dict(),
    })


def emit_link_receipt(tenant_id: str, context: str, formed: Dict[str, float], total_links: int) -> dict:
    return emit_receipt("link", {
        "tenant_id": tenant_id,
        "context": context,
        "formed": len(formed),
        "max_similarity": max(formed.values()) if formed else 0.0,
        "total_links": total_links,
    })
