"""
mind/reflection.py - Read-Only Reflection Summary

Summarizes a SessionRecord without touching it. Callers in other threads
must pass a snapshot, never the live record.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import networkx as nx
import numpy as np
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .branching import link_graph
from .outcome import truncate
from .types_state import SessionRecord


def _runtime_seconds(born_at: str, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    try:
        born = datetime.fromisoformat(born_at)
    except ValueError:
        return 0.0
    if born.tzinfo is None:
        born = born.replace(tzinfo=timezone.utc)
    return max(0.0, (now - born).total_seconds())


def _stats(values) -> Dict[str, float]:
    if not values:
        return {"mean": 0.0, "std": 0.0}
    arr = np.asarray(values, dtype=float)
    return {"mean": float(arr.mean()), "std": float(arr.std())}


def reflect(record: SessionRecord) -> Dict[str, Any]:
    """
    Build the reflection summary for a record.

    Returns:
        dict with identity, counters, parameters, history statistics,
        link graph shape and the latest question and insight
    """
    params = record.params
    graph = link_graph(record.links)

    return {
        "record_id": record.record_id,
        "run_count": record.run_count,
        "runtime_s": round(_runtime_seconds(record.born_at)),
        "level": params.level,
        "autonomy": params.autonomy,
        "coherence": params.coherence,
        "awareness": params.awareness,
        "leap_count": params.leap_count,
        "perception": params.perception.value,
        "weights": dict(params.weights),
        "decisions_made": record.decisions_made,
        "history_length": len(record.history) + record.history_archived,
        "branches": len(record.branches) + record.branches_archived,
        "searches": len(record.search_queries),
        "knowledge_items": len(record.knowledge_base),
        "deep_insights": len(record.deep_insights),
        "paradoxes_resolved": record.paradoxes_resolved,
        "chosen_probability": _stats([c.probability for c in record.history]),
        "chosen_energy": _stats([c.energy for c in record.history]),
        "links": graph.number_of_edges(),
        "link_nodes": graph.number_of_nodes(),
        "link_clusters": nx.number_connected_components(graph) if graph.number_of_nodes() else 0,
        "latest_question": record.existential_questions[-1] if record.existential_questions else None,
        "latest_insight": truncate(record.deep_insights[-1], 100) if record.deep_insights else None,
    }


def render_reflection(summary: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Print a reflection summary as a rich panel plus weight table."""
    console = console or Console()

    content = (
        f"record:        {summary['record_id']}\n"
        f"runtime:       {summary['runtime_s']}s   run #{summary['run_count']}\n"
        f"level:         {summary['level']:.3f}   leaps {summary['leap_count']} ({summary['perception']})\n"
        f"autonomy:      {summary['autonomy']:.3f}\n"
        f"coherence:     {summary['coherence']:.3f}   awareness {summary['awareness']:.3f}\n"
        f"decisions:     {summary['decisions_made']}   branches {summary['branches']}\n"
        f"knowledge:     {summary['knowledge_items']} items from {summary['searches']} searches\n"
        f"insights:      {summary['deep_insights']}   paradoxes resolved {summary['paradoxes_resolved']}\n"
        f"links:         {summary['links']} across {summary['link_clusters']} clusters\n"
        f"chosen P:      {summary['chosen_probability']['mean']:.3f} ± {summary['chosen_probability']['std']:.3f}\n"
        f"chosen E:      {summary['chosen_energy']['mean']:.2f} ± {summary['chosen_energy']['std']:.2f}"
    )
    console.print(Panel(content, title="[bold]Reflection[/bold]", border_style="cyan"))

    table = Table(title="Weights")
    table.add_column("weight")
    table.add_column("value", justify="right")
    for name, value in sorted(summary["weights"].items()):
        table.add_row(name, f"{value:.3f}")
    console.print(table)

    if summary["latest_question"]:
        console.print(f"[dim]Latest question:[/dim] {summary['latest_question']}")
    if summary["latest_insight"]:
        console.print(f"[dim]Latest insight:[/dim] {summary['latest_insight']}")
