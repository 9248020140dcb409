from __future__ import annotations

import argparse
import logging
import time
from dataclasses import replace
from pathlib import Path
from random import Random
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import ALGORITHMS
from .gantt import build_rich_gantt, execution_summary
from .metrics import Metrics
from .models import Process, SchedulerConfig
from .simulator import Simulator, SimulationOutcome
from .workload import sample_processes
from .workload_io import export_metrics_csv, load_workload, save_workload

logger = logging.getLogger(__name__)

ALGORITHM_HELP = "rr (Round Robin), pp (Priority preemptive), pnp (Priority non-preemptive), mlq, mlfq"
DEFAULT_BENCHMARK_COUNTS = [5, 10, 20, 50, 100]


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--quantum", "-q", type=int, default=4, help="Base time quantum (default: 4).")
    parser.add_argument(
        "--context",
        "-c",
        type=int,
        default=1,
        help="Context switch overhead in time units (default: 1).",
    )
    parser.add_argument("--queues", type=int, default=3, help="Queue levels for mlq/mlfq (default: 3).")
    parser.add_argument(
        "--quantums",
        type=int,
        nargs="+",
        default=[],
        help="Explicit per-level quanta for mlq/mlfq, e.g. --quantums 2 4 8.",
    )
    parser.add_argument("--no-aging", action="store_true", help="Disable aging and MLFQ priority boost.")
    parser.add_argument(
        "--aging-threshold",
        type=int,
        default=10,
        help="Wait before a priority is aged; MLFQ boosts every 5x this (default: 10).",
    )
    parser.add_argument(
        "--slice",
        type=int,
        default=1,
        help="Execution granularity of preemptive priority scheduling (default: 1).",
    )


def _add_workload_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--workload", "-w", help="Path to JSON, CSV or TXT workload file.")
    source.add_argument("--num", "-n", type=int, help="Generate N random processes.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for random workloads.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="CPU scheduling simulator (Round Robin, Priority, MLQ, MLFQ).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log scheduler decisions.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one scheduling algorithm.")
    run_parser.add_argument("--algorithm", "-a", required=True, help=f"Algorithm: {ALGORITHM_HELP}.")
    _add_workload_arguments(run_parser)
    _add_config_arguments(run_parser)
    run_parser.add_argument("--no-gantt", action="store_true", help="Do not draw the Gantt chart.")
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
    run_parser.add_argument("--output", "-o", help="Export the run's metrics to a CSV file.")

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare metrics.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help="Algorithms to compare (default: all).",
    )
    _add_workload_arguments(compare_parser)
    _add_config_arguments(compare_parser)
    compare_parser.add_argument("--output", "-o", help="Export the comparison to a CSV file.")

    bench_parser = subparsers.add_parser("benchmark", help="Time rr, pp and mlfq on growing random workloads.")
    bench_parser.add_argument(
        "--counts",
        type=int,
        nargs="+",
        default=DEFAULT_BENCHMARK_COUNTS,
        help="Process counts to benchmark (default: 5 10 20 50 100).",
    )
    bench_parser.add_argument("--seed", type=int, default=None, help="Seed for random workloads.")
    _add_config_arguments(bench_parser)

    menu_parser = subparsers.add_parser(
        "menu",
        help="Interactive menu to pick an algorithm and workload at runtime.",
    )
    menu_parser.add_argument(
        "--workload",
        "-w",
        default=None,
        help="Workload to start with (default: built-in sample set).",
    )
    _add_config_arguments(menu_parser)

    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def config_from_args(args: argparse.Namespace) -> SchedulerConfig:
    return SchedulerConfig(
        time_quantum=args.quantum,
        context_switch_time=args.context,
        num_queues=args.queues,
        quantums=tuple(args.quantums),
        aging_enabled=not args.no_aging,
        aging_threshold=args.aging_threshold,
        preemption_slice=args.slice,
    )


def _workload_from_args(args: argparse.Namespace) -> List[Process]:
    if getattr(args, "workload", None):
        return load_workload(Path(args.workload))
    if getattr(args, "num", None) is not None:
        sim = Simulator(rng=Random(args.seed))
        sim.generate_processes(args.num)
        return sim.base_processes
    return sample_processes()


def _print_processes(processes: Sequence[Process], console: Console, title: str = "Processes") -> None:
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    for h in ("PID", "Name", "Priority", "Burst", "Arrival"):
        table.add_column(h, justify="center" if h in {"PID", "Name"} else "right")
    for p in processes:
        table.add_row(str(p.pid), p.name, str(p.base_priority), str(p.burst_time), str(p.arrival_time))
    console.print(table)


def _print_metrics(metrics: Metrics, console: Console) -> None:
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Processes", str(metrics.process_count))
    sys_table.add_row("Total time", str(metrics.total_execution_time))
    sys_table.add_row("Avg waiting", f"{metrics.avg_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{metrics.avg_turnaround_time:.2f}")
    sys_table.add_row("Avg response", f"{metrics.avg_response_time:.2f}")
    sys_table.add_row("Waiting min / max", f"{metrics.min_waiting_time()} / {metrics.max_waiting_time()}")
    sys_table.add_row("Waiting variance", f"{metrics.waiting_time_variance():.2f}")
    sys_table.add_row("Turnaround variance", f"{metrics.turnaround_time_variance():.2f}")
    sys_table.add_row("CPU utilization", f"{metrics.cpu_utilization:.1f}%")
    sys_table.add_row("Throughput (proc/time)", f"{metrics.throughput:.4f}")
    sys_table.add_row("Idle time", str(metrics.total_idle_time))
    sys_table.add_row("Context switches", str(metrics.total_context_switches))
    sys_table.add_row("Switch overhead", str(metrics.context_switch_overhead))

    console.print(sys_table)


def _print_result(outcome: SimulationOutcome, console: Console, show_gantt: bool = True) -> None:
    console.print(f"[bold]Algorithm:[/bold] {outcome.name}")
    console.print()

    if show_gantt:
        panel, time_marks = build_rich_gantt(outcome.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks)
        console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Priority",
        "Queue",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority", "Queue"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in outcome.processes:
        proc_table.add_row(
            p.name,
            str(p.arrival_time),
            str(p.burst_time),
            str(p.priority),
            str(p.queue_level),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()
    _print_metrics(outcome.metrics, console)


def _print_comparison(outcomes: Sequence[SimulationOutcome], console: Console, title: str) -> None:
    summary_table = Table(title=title, box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("CPU util", justify="right")
    summary_table.add_column("Throughput", justify="right")
    summary_table.add_column("Switches", justify="right")

    for outcome in outcomes:
        m = outcome.metrics
        summary_table.add_row(
            outcome.name,
            f"{m.avg_waiting_time:.2f}",
            f"{m.avg_turnaround_time:.2f}",
            f"{m.avg_response_time:.2f}",
            f"{m.cpu_utilization:.1f}%",
            f"{m.throughput:.4f}",
            str(m.total_context_switches),
        )

    console.print(summary_table)
    if len(outcomes) > 1:
        best = min(outcomes, key=lambda o: o.metrics.avg_waiting_time)
        console.print(f"[green]Lowest average waiting time:[/green] {best.name}")


def _animate_result(outcome: SimulationOutcome, delay: float, console: Console) -> None:
    """
    Simple time-stepped textual simulation using the computed timeline.
    """
    steps = execution_summary(outcome.timeline)
    if not steps:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = max(end for _, _, end in steps)
    console.print(f"[bold]Simulating {outcome.name}[/bold] (duration {makespan} time units)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(makespan):
        label, start = "idle", t
        for step_label, step_start, step_end in steps:
            if step_start <= t < step_end:
                label, start = step_label, step_start
                break
        bar = "" if label == "idle" else f"[green]{'█' * (t - start + 1)}[/green]"
        console.print(f"t={t:3d}: {label}" + (" " + bar if bar else ""))
        time.sleep(delay)


def _run_compare(
    sim: Simulator,
    algorithms: Optional[Sequence[str]],
    console: Console,
    output: Optional[str] = None,
    title: str = "Algorithm comparison",
) -> List[SimulationOutcome]:
    outcomes = sim.run_comparison(algorithms)
    _print_comparison(outcomes, console, title)
    if output:
        sim.export_results(output)
        console.print(f"Results exported to {output}")
    return outcomes


def _run_benchmark(counts: Sequence[int], config: SchedulerConfig, seed: Optional[int], console: Console) -> None:
    sim = Simulator(config, rng=Random(seed))
    table = Table(title="Performance benchmark", box=box.SIMPLE_HEAVY)
    table.add_column("Processes", justify="right")
    table.add_column("Elapsed (ms)", justify="right")
    table.add_column("Avg waiting per algorithm")
    for result in sim.run_benchmark(counts):
        waits = ", ".join(f"{o.kind.value}={o.metrics.avg_waiting_time:.1f}" for o in result.outcomes)
        table.add_row(str(result.process_count), f"{result.elapsed_ms:.2f}", waits)
    console.print(table)


MENU_ENTRIES = [
    ("compare", "Compare all algorithms"),
    ("load", "Load workload file"),
    ("save", "Save workload file"),
    ("generate", "Generate random processes"),
    ("add", "Add a process manually"),
    ("show", "Show current processes"),
    ("configure", "Configure quantum and context switch time"),
    ("export", "Export results to CSV"),
    ("benchmark", "Run performance benchmark"),
]


def _read_process() -> Process:
    fields = input("PID Priority Burst Arrival: ").split()
    if len(fields) != 4:
        raise ValueError("expected four integers: PID Priority Burst Arrival")
    pid, priority, burst, arrival = (int(x) for x in fields)
    return Process(pid, priority=priority, burst_time=burst, arrival_time=arrival)


def _interactive_menu(sim: Simulator) -> None:
    console = Console()
    alg_choices = list(ALGORITHMS.keys())
    first_entry = len(alg_choices) + 1
    last_entry = len(alg_choices) + len(MENU_ENTRIES)

    while True:
        console.print("\n[bold cyan]CPU Scheduler Simulator[/bold cyan] [dim](q to quit)[/dim]")
        console.print(
            f"[bold]Processes loaded:[/bold] [green]{len(sim.base_processes)}[/green]  "
            f"[dim]quantum {sim.config.time_quantum}, context switch {sim.config.context_switch_time}[/dim]"
        )
        for idx, alg in enumerate(alg_choices, start=1):
            console.print(f"  [yellow]{idx}[/yellow]. Run [white]{alg}[/white]")
        for idx, (_, label) in enumerate(MENU_ENTRIES, start=first_entry):
            console.print(f"  [yellow]{idx}[/yellow]. {label}")

        choice = input(f"Choice [1-{last_entry} or q]: ").strip().lower()
        if choice in {"q", "quit", "exit"}:
            return

        try:
            selected = int(choice)
        except ValueError:
            console.print("[red]Invalid selection.[/red]")
            continue
        if not 1 <= selected <= last_entry:
            console.print("[red]Invalid selection.[/red]")
            continue

        try:
            if selected < first_entry:
                _print_result(sim.run(alg_choices[selected - 1]), console)
                continue

            action = MENU_ENTRIES[selected - first_entry][0]
            if action == "compare":
                _run_compare(sim, None, console)
            elif action == "load":
                sim.load_processes(Path(input("Workload path: ").strip()))
                console.print(f"Loaded {len(sim.base_processes)} processes.")
            elif action == "save":
                path_out = input("Save to (.json, .csv or .txt): ").strip()
                save_workload(Path(path_out), sim.base_processes)
                console.print(f"Saved {len(sim.base_processes)} processes to {path_out}")
            elif action == "generate":
                count = int(input("Number of processes: ").strip())
                sim.generate_processes(count)
                console.print(f"Generated {count} random processes.")
            elif action == "add":
                sim.add_process(_read_process())
                console.print("Process added.")
            elif action == "show":
                _print_processes(sim.base_processes, console)
            elif action == "configure":
                quantum = int(input("Time quantum: ").strip())
                switch_time = int(input("Context switch time: ").strip())
                sim.config = replace(sim.config, time_quantum=quantum, context_switch_time=switch_time)
                console.print("Configuration updated.")
            elif action == "export":
                if not sim.results:
                    console.print("[yellow]Nothing to export yet; run an algorithm first.[/yellow]")
                    continue
                path_out = input("Output CSV path: ").strip()
                sim.export_results(path_out)
                console.print(f"Results exported to {path_out}")
            elif action == "benchmark":
                raw = input("Process counts [5 10 20 50 100]: ").split()
                counts = [int(x) for x in raw] or DEFAULT_BENCHMARK_COUNTS
                _run_benchmark(counts, sim.config, None, console)
        except (ValueError, OSError) as exc:
            console.print(f"[red]Error: {exc}[/red]")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    console = Console()

    try:
        config = config_from_args(args)

        if args.command == "run":
            processes = _workload_from_args(args)
            sim = Simulator(config)
            sim.set_processes(processes)
            outcome = sim.run(args.algorithm)
            if args.step:
                try:
                    _animate_result(outcome, args.step_delay, console)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            _print_result(outcome, console, show_gantt=not args.no_gantt)
            if args.output:
                export_metrics_csv(args.output, outcome.metrics, outcome.processes)
                console.print(f"Metrics exported to {args.output}")
            return 0

        if args.command == "compare":
            sim = Simulator(config)
            sim.set_processes(_workload_from_args(args))
            _run_compare(sim, args.algorithms, console, args.output)
            return 0

        if args.command == "benchmark":
            _run_benchmark(args.counts, config, args.seed, console)
            return 0

        if args.command == "menu":
            sim = Simulator(config)
            sim.set_processes(load_workload(Path(args.workload)) if args.workload else sample_processes())
            _interactive_menu(sim)
            return 0
    except (ValueError, OSError) as exc:
        logger.debug("command failed", exc_info=True)
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
