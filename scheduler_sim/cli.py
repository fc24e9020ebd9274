from __future__ import annotations

import argparse
import logging
import time
from dataclasses import asdict
from typing import List

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import ALGORITHMS, run_algorithm
from .errors import ConfigurationError
from .gantt import build_rich_gantt, render_execution_order
from .models import Process, ScheduleResult
from .workload_io import load_workload_with_quantum

logger = logging.getLogger(__name__)

DEFAULT_COMPARE_QUANTUM = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scheduler-sim",
        description="Preemptive CPU scheduling simulator (SRTF, Round Robin).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log scheduling decisions (-v for completions, -vv for every dispatch).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        choices=sorted(ALGORITHMS),
        help="Algorithm to use (srtf, rr).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to a JSON, CSV or TXT workload file, or '-' to read 'n', an optional quantum, then 'PID ARRIVAL BURST' lines from stdin.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round-robin (ignored by SRTF). Overrides a quantum given in a text workload.",
    )
    run_parser.add_argument(
        "--precision",
        type=int,
        default=2,
        help="Decimal places used for the averages (default: 2).",
    )
    run_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the schedule as JSON instead of tables.",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Show a simple time-stepped simulation in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run both algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to a JSON, CSV or TXT workload file.",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum used for Round Robin (default: the text workload's quantum, else 2).",
    )
    compare_parser.add_argument(
        "--precision",
        type=int,
        default=2,
        help="Decimal places used for the averages (default: 2).",
    )

    return parser


def _configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _print_result(result: ScheduleResult, precision: int = 2) -> None:
    console = Console()

    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    panel, time_marks = build_rich_gantt(result.timeline)
    console.print(panel)
    if time_marks:
        console.print(time_marks)

    console.print()
    console.print("[bold]Execution order[/bold]")
    console.print(render_execution_order(result.timeline), markup=False, highlight=False)
    console.print()

    headers = ["PID", "Arrive", "Burst", "Complete", "Wait", "Turnaround"]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h == "PID" else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            f"P{p.pid}",
            str(p.arrival),
            str(p.burst),
            str(p.completion),
            str(p.waiting),
            str(p.turnaround),
        )

    console.print(proc_table)
    console.print()

    if result.system:
        sys = result.system
        sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
        sys_table.add_column("Metric")
        sys_table.add_column("Value", justify="right")

        sys_table.add_row("Average waiting time", f"{sys.avg_waiting:.{precision}f}")
        sys_table.add_row("Average turnaround time", f"{sys.avg_turnaround:.{precision}f}")
        sys_table.add_row("Makespan", str(sys.makespan))
        sys_table.add_row("Idle time", str(sys.idle_time))
        sys_table.add_row("Context switches", str(sys.context_switches))
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")

        console.print(sys_table)


def _run_compare(processes: List[Process], quantum: int, precision: int, console: Console) -> None:
    """
    Run every algorithm on a workload and print the summary table.
    """
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Switches", justify="right")

    for alg in ALGORITHMS:
        q = quantum if alg == "rr" else None
        result = run_algorithm(alg, processes, quantum=q)
        sys = result.system
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{sys.avg_waiting:.{precision}f}",
            f"{sys.avg_turnaround:.{precision}f}",
            str(sys.context_switches),
        )

    console.print(summary_table)


def _animate_result(result: ScheduleResult, delay: float) -> None:
    """
    Simple time-stepped textual simulation using the computed schedule.
    """
    console = Console()
    if not result.timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = result.timeline[-1].end
    console.print(f"[bold]Simulating {result.algorithm}[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(makespan):
        seg = next(s for s in result.timeline if s.start <= t < s.end)
        if seg.is_idle:
            console.print(f"t={t:2d}: [dim]IDLE[/dim]")
        else:
            bar = "█" * (t - seg.start + 1)
            console.print(f"t={t:2d}: {seg.label} [green]{bar}[/green]")
        time.sleep(delay)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    console = Console()

    try:
        if args.precision < 0:
            raise ConfigurationError("--precision must be >= 0")
        if getattr(args, "step_delay", 0) < 0:
            raise ConfigurationError("--step-delay must be >= 0")
        processes, file_quantum = load_workload_with_quantum(args.workload)
        quantum = args.quantum if args.quantum is not None else file_quantum

        if args.command == "run":
            result = run_algorithm(args.algorithm, processes, quantum=quantum)
            if args.json:
                console.print_json(data=asdict(result))
                return 0
            if args.step:
                try:
                    _animate_result(result, delay=args.step_delay)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            _print_result(result, precision=args.precision)
            return 0

        if args.command == "compare":
            if quantum is None:
                quantum = DEFAULT_COMPARE_QUANTUM
            _run_compare(processes, quantum, args.precision, console)
            return 0
    except ConfigurationError as exc:
        logger.debug("Configuration rejected", exc_info=True)
        Console(stderr=True).print(f"[red]Configuration error: {escape(str(exc))}[/red]")
        return 2

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
