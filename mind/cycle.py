"""
mind/cycle.py - Core Decision Loop

run_cycle sequences one generate -> select -> record -> branch/link -> evolve
pass over an explicit SessionRecord. CycleLoop schedules cycles on a single
worker, saves and reflects periodically, and stops between cycles when its
stop event is set.
"""

import copy
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from rich.console import Console

from receipts import write_receipt_jsonl

from .branching import create_branch, emit_branch_receipt, emit_link_receipt, form_links
from .candidates import check_candidates, emit_candidate_set_receipt, generate_candidates
from .constants import CONTEXT_BANK
from .evolution import EvolutionReport, emit_evolution_receipt, emit_leap_receipt, evolve
from .outcome import Lookup, emit_outcome_receipt, record_outcome
from .persistence import PersistenceWriteError, archive_overflow, emit_save_receipt, save_record
from .randomness import CryptoRandomSource, RandomSource
from .reflection import reflect, render_reflection
from .selector import EmptyCandidateSet, Selection, emit_selection_receipt, select_candidate
from .types_config import AgentConfig
from .types_state import Branch, Candidate, SessionRecord, utc_now

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Everything one cycle produced."""
    context: str
    candidates: List[Candidate]
    selection: Selection
    entry: Candidate
    branch: Optional[Branch]
    links: Dict[str, float]
    evolution: EvolutionReport
    receipts: List[dict] = field(default_factory=list)


def run_cycle(
    record: SessionRecord,
    context: str,
    rng: RandomSource,
    lookup: Lookup,
    tenant_id: str = "agent",
    clock: Callable[[], str] = utc_now,
) -> CycleResult:
    """
    One pass of the decision cycle.

    Args:
        record: SessionRecord (mutated in place)
        context: Topic for this cycle
        rng: Entropy source
        lookup: Knowledge lookup collaborator
        tenant_id: Tenant stamped on emitted receipts
        clock: Timestamp source for branch records

    Returns:
        CycleResult

    Raises:
        EmptyCandidateSet: If no candidate could be generated
    """
    receipts = []

    candidates = generate_candidates(context, record.params, rng)
    check_candidates(candidates)
    receipts.append(emit_candidate_set_receipt(tenant_id, context, candidates))

    selection = select_candidate(record, candidates, rng)
    receipts.append(emit_selection_receipt(tenant_id, selection, record.params.autonomy, record.decisions_made))

    entry = record_outcome(record, selection.candidate, rng, lookup)
    receipts.append(emit_outcome_receipt(tenant_id, entry, len(record.history)))

    branch = create_branch(record, context, candidates, entry, rng, clock)
    if branch is not None:
        receipts.append(emit_branch_receipt(tenant_id, branch))

    links = form_links(record, context, entry)
    receipts.append(emit_link_receipt(tenant_id, context, links, len(record.links)))

    report = evolve(record, rng)
    receipts.append(emit_evolution_receipt(tenant_id, record, report))
    if report.leap is not None:
        receipts.append(emit_leap_receipt(tenant_id, record, report.leap))

    return CycleResult(
        context=context,
        candidates=candidates,
        selection=selection,
        entry=entry,
        branch=branch,
        links=links,
        evolution=report,
        receipts=receipts,
    )


class CycleLoop:
    """
    Single-worker scheduler for decision cycles.

    The record is mutated only inside step() and save(), both under the
    loop lock. Readers call snapshot().
    """

    def __init__(
        self,
        record: SessionRecord,
        config: AgentConfig,
        lookup: Lookup,
        rng: Optional[RandomSource] = None,
        stop_event: Optional[threading.Event] = None,
        console: Optional[Console] = None,
        sleep: bool = True,
        reflect_hook: Optional[Callable[[dict], None]] = None,
    ):
        self.record = record
        self.config = config
        self.lookup = lookup
        self.rng = rng or CryptoRandomSource()
        self.stop_event = stop_event or threading.Event()
        self.console = console or Console()
        self.sleep = sleep
        self.reflect_hook = reflect_hook
        self.iteration = 0
        self.consecutive_save_failures = 0
        self._lock = threading.RLock()

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def snapshot(self) -> SessionRecord:
        with self._lock:
            return copy.deepcopy(self.record)

    def reflect(self) -> dict:
        summary = reflect(self.snapshot())
        if self.reflect_hook is not None:
            self.reflect_hook(summary)
        else:
            render_reflection(summary, self.console)
        return summary

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def step(self) -> Optional[CycleResult]:
        """Run one cycle on a context from the bank. None if it was skipped."""
        self.iteration += 1
        context = self.rng.pick(CONTEXT_BANK)

        with self._lock:
            try:
                result = run_cycle(self.record, context, self.rng, self.lookup, self.config.tenant_id)
            except EmptyCandidateSet as e:
                logger.warning("Cycle %d skipped for %r: %s", self.iteration, context, e)
                return None

        self._write_receipts(result.receipts)
        marker = "[yellow]override[/yellow]" if result.selection.overridden else "greedy"
        self.console.print(
            f"[bold]cycle {self.iteration}[/bold] [cyan]{context}[/cyan] -> "
            f"{result.entry.label} ({marker}, P={result.entry.probability:.3f}, E={result.entry.energy:.2f})"
        )
        if result.evolution.leap:
            self.console.print(f"[magenta]leap #{self.record.params.leap_count}:[/magenta] {result.evolution.leap}")
        return result

    def save(self) -> bool:
        """
        Archive overflow and save, applying the configured save-error policy.

        Returns:
            True if saved, False if the failure was tolerated ("continue")

        Raises:
            PersistenceWriteError: Under "abort", or under "retry" once retries are exhausted
        """
        policy = self.config.on_save_error
        attempts = 1 + (self.config.max_save_retries if policy == "retry" else 0)

        for attempt in range(1, attempts + 1):
            try:
                with self._lock:
                    archived = archive_overflow(
                        self.record, self.config.retention_limit, self.config.resolved_archive_path()
                    )
                    save_record(self.record, self.config.state_path)
                    receipt = emit_save_receipt(self.config.tenant_id, self.record, self.config.state_path, archived)
            except PersistenceWriteError as e:
                self.consecutive_save_failures += 1
                logger.error("Save attempt %d/%d failed: %s", attempt, attempts, e)
                if self.consecutive_save_failures >= self.config.save_failure_alert:
                    logger.critical(
                        "%d consecutive save failures for %s; operator attention required",
                        self.consecutive_save_failures, self.config.state_path,
                    )
                if policy == "continue":
                    return False
                if policy == "abort" or attempt == attempts:
                    raise
                continue

            self.consecutive_save_failures = 0
            self._write_receipts([receipt])
            return True
        return False

    def pause_seconds(self) -> float:
        return self.rng.uniform() * self.config.sleep_jitter_s + self.config.sleep_floor_s

    # -------------------------------------------------------------------------
    # Loop
    # -------------------------------------------------------------------------

    def run(self, max_cycles: Optional[int] = None) -> None:
        """
        Cycle until the stop event is set (or max_cycles ran), then shut down.

        Cancellation is observed between cycles only; a running phase always
        completes before the final reflection and save.
        """
        logger.info("Cycle loop started for %s", self.record.record_id)
        while not self.stop_event.is_set():
            self.step()

            if self.iteration % self.config.reflect_every == 0:
                self.reflect()
            if self.iteration % self.config.save_every == 0:
                self.save()

            if max_cycles is not None and self.iteration >= max_cycles:
                break
            if self.sleep:
                self.stop_event.wait(self.pause_seconds())

        self.shutdown()

    def shutdown(self) -> None:
        logger.info("Cycle loop stopping after %d iterations", self.iteration)
        self.reflect()
        self.save()

    def _write_receipts(self, receipts: List[dict]) -> None:
        path = self.config.receipts_path
        if not path or not receipts:
            return
        path_obj = Path(path)
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        with path_obj.open("a", encoding="utf-8") as fh:
            for receipt in receipts:
                write_receipt_jsonl(receipt, fh)
