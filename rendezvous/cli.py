# -*- coding: utf-8 -*-
"""Rendezvous Command Line Interface - simulate and inspect barrier rounds."""

import logging
import random
import sys
import threading
import time
from pathlib import Path
from typing import Optional, List, Dict, Any

import orjson
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .barrier import BarrierCoordinator, BarrierRole
from .config import RendezvousConfig, save_config
from .metrics import BarrierMetrics, start_metrics_server
from .rendezvous_types import CoordinationFailure
from .stores import MemoryCoordinationStore

# Console for rich output
console = Console()

# Main CLI app
app = typer.Typer(
    name="rendezvous",
    help="Distributed rendezvous barrier over a coordination store",
    add_completion=False,
)

config_app = typer.Typer(help="Configuration management")
app.add_typer(config_app, name="config")


def _configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@app.callback()
def main_callback():
    """Rendezvous CLI - distributed barrier tooling."""
    pass


@app.command()
def version():
    """Show rendezvous version."""
    from . import __version__
    console.print(f"[bold blue]Rendezvous[/bold blue] version [bold green]{__version__}[/bold green]")


def run_simulation(barrier_name: str, members: int, late: int = 0, absent: int = 0,
                   config: Optional[RendezvousConfig] = None,
                   metrics: Optional[BarrierMetrics] = None,
                   jitter: float = 0.0,
                   timeout: float = 60.0) -> List[Dict[str, Any]]:
    """
    Run one barrier round expecting ``members`` members.

    ``absent`` of the expected members never show up, so the round can only
    end by timing out, at which point every waiting member is cancelled.

    Every member gets its own session on a shared in-memory store. Late
    members start only after the on-time members have passed the barrier.
    Sessions stay open until everyone is done, since the all-clear marker is
    ephemeral and belongs to the initiator's session.

    Returns:
        One result dict per member: member, late, role, seconds, error
    """
    store = MemoryCoordinationStore()
    results: List[Dict[str, Any]] = []
    results_lock = threading.Lock()
    sessions = []
    barriers = []
    threads_started: List[threading.Thread] = []

    def run_member(barrier: BarrierCoordinator, is_late: bool, delay: float) -> None:
        time.sleep(delay)
        started = time.monotonic()
        result = {'member': barrier.member_id, 'late': is_late, 'role': None, 'seconds': 0.0, 'error': None}
        try:
            role = barrier.enter()
            result['role'] = role.value
        except CoordinationFailure as e:
            result['error'] = str(e)
        result['seconds'] = time.monotonic() - started
        with results_lock:
            results.append(result)

    def start_wave(count: int, offset: int, is_late: bool) -> List[threading.Thread]:
        threads = []
        for i in range(count):
            session = store.connect()
            sessions.append(session)
            barrier = BarrierCoordinator(
                barrier_name, members, f"member-{offset + i}", session,
                config=config, metrics=metrics
            )
            barriers.append(barrier)
            delay = random.uniform(0.0, jitter) if jitter > 0 else 0.0
            thread = threading.Thread(
                target=run_member, args=(barrier, is_late, delay),
                name=f"rendezvous-{barrier.member_id}", daemon=True
            )
            thread.start()
            threads.append(thread)
            threads_started.append(thread)
        return threads

    def join_all(threads: List[threading.Thread], deadline: float) -> bool:
        for thread in threads:
            thread.join(max(0.0, deadline - time.monotonic()))
        return not any(t.is_alive() for t in threads)

    deadline = time.monotonic() + timeout
    try:
        finished = join_all(start_wave(members - absent, 0, False), deadline)
        if finished and late:
            finished = join_all(start_wave(late, members, True), deadline)

        if not finished:
            for barrier in barriers:
                barrier.cancel()
            join_all(threads_started, time.monotonic() + 5.0)
    finally:
        for session in sessions:
            session.close()

    return sorted(results, key=lambda r: int(r['member'].rsplit('-', 1)[1]))


@app.command()
def simulate(
    barrier_name: str = typer.Argument("round1", help="Barrier name"),
    members: int = typer.Option(3, "-n", "--members", help="Expected number of members"),
    late: int = typer.Option(0, "--late", help="Members that arrive after the round completed"),
    absent: int = typer.Option(0, "--absent", help="Expected members that never arrive"),
    poll_interval: Optional[float] = typer.Option(None, "--poll-interval", help="Override poll interval (seconds)"),
    jitter: float = typer.Option(0.2, "--jitter", help="Max random start delay per member (seconds)"),
    timeout: float = typer.Option(60.0, "--timeout", help="Give up and cancel after this many seconds"),
    show_metrics: bool = typer.Option(False, "--metrics", help="Print Prometheus metrics after the round"),
    metrics_port: Optional[int] = typer.Option(None, "--metrics-port", help="Serve metrics over HTTP on this port"),
    log_level: Optional[str] = typer.Option(None, "-l", "--loglevel", help="Logging level (default: from config)"),
):
    """Run a barrier round between threads on an in-memory store."""
    try:
        config = RendezvousConfig()
        if log_level is not None:
            config.operational.log_level = log_level
        if poll_interval is not None:
            config.barrier.poll_interval = poll_interval
        config.validate()
    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1)
    _configure_logging(config.operational.log_level)

    if members < 1 or late < 0 or not 0 <= absent < members:
        console.print("[bold red]Error:[/bold red] --members must be at least 1, --late non-negative "
                      "and --absent below --members")
        raise typer.Exit(code=1)
    if not barrier_name or "/" in barrier_name:
        console.print(f"[bold red]Error:[/bold red] invalid barrier name {barrier_name!r}")
        raise typer.Exit(code=1)

    console.print(Panel(
        f"[bold green]Simulating barrier '{barrier_name}'[/bold green]\n"
        f"Members: {members}\n"
        f"Late members: {late}\n"
        f"Absent members: {absent}\n"
        f"Poll interval: {config.barrier.poll_interval}s",
        title="Rendezvous Simulation"
    ))

    metrics = BarrierMetrics()
    if metrics_port is not None:
        start_metrics_server(metrics_port, metrics=metrics)
    with console.status("[bold green]Waiting for members..."):
        results = run_simulation(barrier_name, members, late, absent, config=config,
                                 metrics=metrics, jitter=jitter, timeout=timeout)

    table = Table(title=f"Barrier '{barrier_name}'")
    table.add_column("Member", style="cyan")
    table.add_column("Arrival", style="magenta")
    table.add_column("Role", style="green")
    table.add_column("Seconds", style="yellow", justify="right")
    table.add_column("Error", style="red")
    for r in results:
        table.add_row(
            r['member'],
            "late" if r['late'] else "on time",
            r['role'] or "-",
            f"{r['seconds']:.3f}",
            r['error'] or "",
        )
    console.print(table)

    if show_metrics:
        console.print(metrics.get_metrics_text(), markup=False, highlight=False, soft_wrap=True)

    initiators = [r for r in results if r['role'] == BarrierRole.INITIATOR.value]
    failed = [r for r in results if r['error'] or r['role'] is None]
    started = members - absent + late
    if failed or len(results) != started or len(initiators) != 1:
        console.print(f"[bold red]✗[/bold red] Round failed: {len(initiators)} initiator(s), "
                      f"{len(failed)} failed member(s), {len(results)}/{started} reported")
        raise typer.Exit(code=1)

    console.print(f"[bold green]✓[/bold green] All {started} members passed; "
                  f"initiator was {initiators[0]['member']}")


@config_app.command("show")
def config_show():
    """Show the effective configuration."""
    config = RendezvousConfig()
    console.print_json(orjson.dumps(config.to_dict()).decode())


@config_app.command("save")
def config_save(path: Path = typer.Argument(..., help="Where to write the JSON config file")):
    """Write the effective configuration to a file."""
    try:
        save_config(path)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] could not write {path}: {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]Configuration saved to {path}[/green]")


def main():
    """Main CLI entry point - equivalent to 'rendezvous' command."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[dim]Interrupted by user[/dim]")
        sys.exit(1)


if __name__ == "__main__":
    main()
