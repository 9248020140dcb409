from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, List, Sequence

from .metrics import Metrics
from .models import Process

if TYPE_CHECKING:
    from .simulator import SimulationOutcome

CSV_FIELDS = ["pid", "priority", "burst_time", "arrival_time", "name"]


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON, CSV or whitespace text file into a list of
    Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)
    if suffix == ".txt":
        return _load_text(path)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json, .csv or .txt)")


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, list):
        raise ValueError("JSON workload must be a list of process objects")

    return [_process_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _load_text(path: Path) -> List[Process]:
    """
    Columns: PID Priority BurstTime ArrivalTime. A first line mentioning
    "PID" is treated as a header; lines that do not parse are skipped.
    """
    processes: List[Process] = []
    with path.open("r", encoding="utf-8") as f:
        for lineno, line in enumerate(f):
            if lineno == 0 and "PID" in line:
                continue
            fields = line.split()
            if len(fields) < 4:
                continue
            try:
                pid, priority, burst, arrival = (int(x) for x in fields[:4])
            except ValueError:
                continue
            processes.append(Process(pid, priority=priority, burst_time=burst, arrival_time=arrival))
    return processes


def _process_from_mapping(mapping) -> Process:
    try:
        pid = int(mapping["pid"])
        burst_time = int(mapping["burst_time"])
        arrival_time = int(mapping.get("arrival_time") or 0)
        priority = int(mapping.get("priority") or 0)
        return Process(
            pid,
            priority=priority,
            burst_time=burst_time,
            arrival_time=arrival_time,
            name=str(mapping.get("name") or ""),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc


def save_workload(path: str | Path, processes: Iterable[Process]) -> None:
    path = Path(path)
    suffix = path.suffix.lower()
    processes = list(processes)

    if suffix == ".json":
        data = [
            {
                "pid": p.pid,
                "priority": p.base_priority,
                "burst_time": p.burst_time,
                "arrival_time": p.arrival_time,
                "name": p.name,
            }
            for p in processes
        ]
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    elif suffix == ".csv":
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_FIELDS)
            for p in processes:
                writer.writerow([p.pid, p.base_priority, p.burst_time, p.arrival_time, p.name])
    elif suffix == ".txt":
        lines = ["PID Priority BurstTime ArrivalTime"]
        lines.extend(f"{p.pid} {p.base_priority} {p.burst_time} {p.arrival_time}" for p in processes)
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    else:
        raise ValueError(f"Unsupported workload format: {suffix} (use .json, .csv or .txt)")


def export_metrics_csv(path: str | Path, metrics: Metrics, processes: Sequence[Process] = ()) -> None:
    """
    Write ``Metric,Value`` rows followed by one row per process.
    """
    with Path(path).open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["Metric", "Value"])
        writer.writerows(metrics.as_rows())
        if metrics.waiting_times:
            writer.writerow([])
            writer.writerow(["Process", "Waiting Time", "Turnaround Time", "Response Time"])
            names = [p.name for p in processes] or [f"P{i}" for i in range(len(metrics.waiting_times))]
            for name, wait, tat, resp in zip(
                names, metrics.waiting_times, metrics.turnaround_times, metrics.response_times
            ):
                writer.writerow([name, wait, tat, resp])


def export_results_csv(path: str | Path, outcomes: Sequence["SimulationOutcome"]) -> None:
    with Path(path).open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(
            [
                "Algorithm",
                "AvgWaitTime",
                "AvgTurnaroundTime",
                "AvgResponseTime",
                "CPUUtilization",
                "Throughput",
                "ContextSwitches",
            ]
        )
        for outcome in outcomes:
            m = outcome.metrics
            writer.writerow(
                [
                    outcome.name,
                    f"{m.avg_waiting_time:.2f}",
                    f"{m.avg_turnaround_time:.2f}",
                    f"{m.avg_response_time:.2f}",
                    f"{m.cpu_utilization:.2f}",
                    f"{m.throughput:.4f}",
                    m.total_context_switches,
                ]
            )
