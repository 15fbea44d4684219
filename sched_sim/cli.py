from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import List

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import run_algorithm
from .errors import SchedulerError
from .gantt import build_rich_gantt
from .models import AlgorithmResult, Process, TickEvent
from .policies import Policy
from .stepwise import LiveTrace, StepwiseSimulation
from .workload_io import load_workload

logger = logging.getLogger(__name__)

POLICY_KEYS = [policy.value for policy in Policy]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sched-sim",
        description="CPU scheduling simulator (FCFS, SJF, SRTF, Priority, Priority-P, RR).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling policy to completion on a workload file.")
    _add_policy_arguments(run_parser)

    step_parser = subparsers.add_parser("step", help="Play a policy back one tick at a time.")
    _add_policy_arguments(step_parser)
    step_parser.add_argument(
        "--delay",
        type=float,
        default=0.0,
        help="Seconds to wait before pulling the next tick (default: 0).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple policies on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        choices=POLICY_KEYS,
        default=POLICY_KEYS,
        help="Policies to compare (default: all).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=2,
        help="Time quantum used for RR when included (default: 2).",
    )

    return parser


def _add_policy_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        choices=POLICY_KEYS,
        help="Policy to use.",
    )
    parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round-robin (ignored by the other policies).",
    )


def _process_table(processes: List[Process], title: str = "Per-process metrics") -> Table:
    headers = ["ID", "Name", "Arrive", "Burst", "Priority", "Complete", "Turnaround", "Wait"]

    table = Table(title=title, box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"ID", "Name", "Priority"} else "right"
        table.add_column(h, justify=justify)

    for p in processes:
        table.add_row(
            str(p.id),
            escape(p.name),
            str(p.arrival_time),
            str(p.burst_time),
            "" if p.priority is None else str(p.priority),
            _blank_if_none(p.completion_time),
            _blank_if_none(p.turnaround_time),
            _blank_if_none(p.waiting_time),
        )
    return table


def _blank_if_none(value) -> str:
    return "" if value is None else str(value)


def _print_result(result: AlgorithmResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.policy_name}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()
    console.print(_process_table(result.processes))
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{result.avg_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{result.avg_turnaround_time:.2f}")
    sys_table.add_row("Total time", str(result.total_time))
    if result.system:
        sys = result.system
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")

    console.print(sys_table)


def _format_tick(event: TickEvent) -> str:
    running = "idle"
    if event.running_process_id is not None:
        running = event.process(event.running_process_id).name
    ready = ", ".join(event.process(pid).name for pid in event.ready_queue_ids)

    line = f"t={event.time:3d}  [bold]{escape(running):<6}[/bold] ready=\\[{escape(ready)}]"
    if event.message:
        line += f"  [dim]{escape(event.message)}[/dim]"
    return line


def _play(simulation: StepwiseSimulation, delay: float, console: Console) -> LiveTrace:
    """
    Pull tick events one by one, printing each. The pause between pulls is
    the only pacing there is.
    """
    trace = LiveTrace()
    console.print(f"[bold]Simulating {simulation.rule.display_name}[/bold]")
    console.print("[dim]Press Ctrl+C to stop playback.[/dim]")

    for event in simulation:
        trace.feed(event)
        console.print(_format_tick(event))
        if delay > 0 and not simulation.done:
            time.sleep(delay)

    return trace


def _run_compare(workload_path: Path, policies: List[str], quantum: int, console: Console) -> None:
    """
    Run the selected policies on a workload and print the summary table.
    """
    processes = load_workload(workload_path)

    summary_table = Table(title=f"Algorithm comparison: {escape(str(workload_path))}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Total time", justify="right")
    summary_table.add_column("CPU util.", justify="right")

    for key in policies:
        q = quantum if key == Policy.RR.value else None
        result = run_algorithm(key, processes, quantum=q)
        summary_table.add_row(
            result.policy_name,
            "" if result.quantum is None else str(result.quantum),
            f"{result.avg_waiting_time:.2f}",
            f"{result.avg_turnaround_time:.2f}",
            str(result.total_time),
            f"{result.system.cpu_utilization*100:.1f}%",
        )

    console.print(summary_table)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    console = Console()

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = run_algorithm(args.algorithm, processes, quantum=args.quantum)
            _print_result(result, console)
            return 0

        if args.command == "step":
            processes = load_workload(Path(args.workload))
            simulation = StepwiseSimulation(processes, args.algorithm, quantum=args.quantum)
            try:
                trace = _play(simulation, args.delay, console)
            except KeyboardInterrupt:
                console.print("[yellow]Playback stopped.[/yellow]")
                return 0
            console.print()
            panel, time_marks = build_rich_gantt(trace.timeline)
            console.print(panel)
            if time_marks:
                console.print(time_marks)
            console.print(_process_table(trace.processes, title="Final state"))
            return 0

        if args.command == "compare":
            _run_compare(Path(args.workload), args.algorithms, args.quantum, console)
            return 0
    except (SchedulerError, OSError) as exc:
        logger.debug("command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
