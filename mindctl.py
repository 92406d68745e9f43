"""
mindctl.py - Decision Agent CLI

Subcommands:
  - run:     load or birth the agent record and cycle until interrupted
  - reflect: print the reflection summary of a stored record
  - init:    birth a fresh record (refuses to overwrite without --force)

Ctrl+C / SIGTERM request a graceful stop: the running cycle finishes, a
final reflection is printed and the record is saved.
"""

import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from knowledge import KnowledgeClient, OfflineLookup
from mind import (
    AgentConfig,
    CryptoRandomSource,
    CycleLoop,
    LoadStatus,
    MalformedRecordError,
    PersistenceWriteError,
    SessionRecord,
    config_from_dict,
    load_config,
    load_or_create,
    load_record,
    reflect,
    render_reflection,
    save_record,
)

console = Console()
logger = logging.getLogger("mindctl")


def print_success(message: str) -> None:
    """Print a success message with green checkmark."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message with red X."""
    console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message with yellow warning sign."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


def _resolve_config(config_path: Optional[str], **overrides) -> AgentConfig:
    if config_path:
        return load_config(config_path, **overrides)
    return config_from_dict({k: v for k, v in overrides.items() if v is not None})


def _install_stop_handlers(stop_event: threading.Event) -> dict:
    """Route SIGINT/SIGTERM to the stop event. Returns the previous handlers."""
    def _request_stop(signum, frame):
        console.print("\n[bold red]Shutdown requested[/bold red], finishing current cycle...")
        stop_event.set()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _request_stop)
    return previous


def _restore_handlers(previous: dict) -> None:
    for signum, handler in previous.items():
        signal.signal(signum, handler)


@click.group()
def cli():
    """Self-persisting decision agent."""
    pass


# --- run ---

@cli.command("run")
@click.option("--state", "-s", "state_path", default=None, help="Record path")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), default=None)
@click.option("--receipts", "-r", "receipts_path", default=None, help="Append receipts as JSONL")
@click.option("--offline", is_flag=True, help="Never call the knowledge lookup")
@click.option("--max-cycles", type=int, default=None, help="Stop after N cycles")
@click.option("--no-sleep", is_flag=True, help="Skip the pause between cycles")
@click.option("--verbose", "-v", is_flag=True)
def run_cmd(state_path, config_path, receipts_path, offline, max_cycles, no_sleep, verbose) -> None:
    """Cycle until interrupted."""
    _configure_logging(verbose)
    try:
        config = _resolve_config(config_path, state_path=state_path, receipts_path=receipts_path)
    except (ValueError, FileNotFoundError) as e:
        print_error(f"Invalid config: {e}")
        sys.exit(2)

    rng = CryptoRandomSource()
    try:
        record, result = load_or_create(config.state_path, rng, config.on_malformed)
    except MalformedRecordError as e:
        print_error(str(e))
        sys.exit(2)

    if result.status is LoadStatus.FOUND:
        print_success(f"Reactivated {record.record_id} (run #{record.run_count + 1})")
    else:
        if result.status is LoadStatus.MALFORMED:
            print_warning(f"Discarded malformed record: {result.error}")
        print_success(f"Birthed {record.record_id}")

    lookup = OfflineLookup() if offline else KnowledgeClient(config.lookup_url, config.lookup_timeout_s)
    stop_event = threading.Event()
    previous_handlers = _install_stop_handlers(stop_event)

    loop = CycleLoop(record, config, lookup, rng=rng, stop_event=stop_event, console=console, sleep=not no_sleep)
    try:
        loop.run(max_cycles=max_cycles)
    except PersistenceWriteError as e:
        print_error(f"Save failed: {e}")
        sys.exit(1)
    finally:
        _restore_handlers(previous_handlers)
        if isinstance(lookup, KnowledgeClient):
            lookup.close()

    print_success(f"Saved {config.state_path} after {loop.iteration} cycles")


# --- reflect ---

@cli.command("reflect")
@click.argument("state_path", type=click.Path())
@click.option("--output", "-o", type=click.Choice(["rich", "json"]), default="rich")
def reflect_cmd(state_path: str, output: str) -> None:
    """Print the reflection summary of a stored record."""
    result = load_record(state_path)
    if result.status is not LoadStatus.FOUND:
        if output == "json":
            click.echo(json.dumps({"error": result.status.value, "detail": result.error}))
        else:
            print_error(f"No readable record at {state_path} ({result.status.value})")
        sys.exit(2)

    summary = reflect(result.record)
    if output == "json":
        click.echo(json.dumps(summary, indent=2))
    else:
        render_reflection(summary, console)


# --- init ---

@cli.command("init")
@click.argument("state_path", type=click.Path())
@click.option("--force", is_flag=True, help="Overwrite an existing record")
def init_cmd(state_path: str, force: bool) -> None:
    """Birth a fresh record."""
    if Path(state_path).exists() and not force:
        print_error(f"{state_path} exists; use --force to overwrite")
        sys.exit(2)

    record = SessionRecord.new(CryptoRandomSource())
    try:
        save_record(record, state_path)
    except PersistenceWriteError as e:
        print_error(str(e))
        sys.exit(1)
    print_success(f"Birthed {record.record_id} at {state_path}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
