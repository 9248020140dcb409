from __future__ import annotations

from dataclasses import dataclass, field
from statistics import mean, variance
from typing import Iterable, List, Sequence, Tuple

from .models import ExecutionEvent, Process


@dataclass
class Metrics:
    """
    Performance snapshot of one finished run.

    The per-process arrays are kept so that spread statistics (variance,
    min/max) can be derived after the fact.
    """

    avg_waiting_time: float = 0.0
    avg_turnaround_time: float = 0.0
    avg_response_time: float = 0.0
    cpu_utilization: float = 0.0
    throughput: float = 0.0
    total_execution_time: int = 0
    total_idle_time: int = 0
    total_context_switches: int = 0
    context_switch_overhead: int = 0
    process_count: int = 0
    waiting_times: List[int] = field(default_factory=list)
    turnaround_times: List[int] = field(default_factory=list)
    response_times: List[int] = field(default_factory=list)

    def reset(self) -> None:
        self.avg_waiting_time = 0.0
        self.avg_turnaround_time = 0.0
        self.avg_response_time = 0.0
        self.cpu_utilization = 0.0
        self.throughput = 0.0
        self.total_execution_time = 0
        self.total_idle_time = 0
        self.total_context_switches = 0
        self.context_switch_overhead = 0
        self.process_count = 0
        self.waiting_times.clear()
        self.turnaround_times.clear()
        self.response_times.clear()

    def add_waiting_time(self, time: int) -> None:
        self.waiting_times.append(time)

    def add_turnaround_time(self, time: int) -> None:
        self.turnaround_times.append(time)

    def add_response_time(self, time: int) -> None:
        self.response_times.append(time)

    def calculate_averages(self) -> None:
        self.process_count = len(self.waiting_times)
        if self.process_count == 0:
            return
        self.avg_waiting_time = float(mean(self.waiting_times))
        self.avg_turnaround_time = float(mean(self.turnaround_times))
        self.avg_response_time = float(mean(self.response_times))

    def calculate_utilization(self, total_time: int, idle_time: int, switch_overhead: int) -> None:
        self.total_execution_time = total_time
        self.total_idle_time = idle_time
        self.context_switch_overhead = switch_overhead
        if total_time <= 0:
            self.cpu_utilization = 0.0
            return
        useful_time = total_time - idle_time - switch_overhead
        self.cpu_utilization = useful_time / total_time * 100.0

    def calculate_throughput(self, total_time: int) -> None:
        self.throughput = self.process_count / total_time if total_time > 0 else 0.0

    def waiting_time_variance(self) -> float:
        if len(self.waiting_times) < 2:
            return 0.0
        return float(variance(self.waiting_times))

    def turnaround_time_variance(self) -> float:
        if len(self.turnaround_times) < 2:
            return 0.0
        return float(variance(self.turnaround_times))

    def min_waiting_time(self) -> int:
        return min(self.waiting_times) if self.waiting_times else 0

    def max_waiting_time(self) -> int:
        return max(self.waiting_times) if self.waiting_times else 0

    def compare_to(self, other: "Metrics") -> str:
        """
        One-line summary of how this run differs from ``other``.

        Negative deltas on time metrics mean this run did better.
        """
        return (
            f"waiting {self.avg_waiting_time - other.avg_waiting_time:+.2f}, "
            f"turnaround {self.avg_turnaround_time - other.avg_turnaround_time:+.2f}, "
            f"response {self.avg_response_time - other.avg_response_time:+.2f}, "
            f"utilization {self.cpu_utilization - other.cpu_utilization:+.2f}%, "
            f"switches {self.total_context_switches - other.total_context_switches:+d}"
        )

    def as_rows(self) -> List[Tuple[str, object]]:
        return [
            ("Process Count", self.process_count),
            ("Total Execution Time", self.total_execution_time),
            ("Average Waiting Time", self.avg_waiting_time),
            ("Average Turnaround Time", self.avg_turnaround_time),
            ("Average Response Time", self.avg_response_time),
            ("CPU Utilization (%)", self.cpu_utilization),
            ("Throughput (proc/time)", self.throughput),
            ("Context Switches", self.total_context_switches),
            ("Context Switch Overhead", self.context_switch_overhead),
        ]


def compute_idle_time(timeline: Sequence[ExecutionEvent], end_time: int) -> int:
    """
    Idle time over ``[0, end_time)``: explicit idle events plus any interval
    no event covers. Context-switch intervals count as overhead, not idle.
    """
    idle = 0
    cursor = 0
    for event in timeline:
        if event.start_time > cursor:
            idle += event.start_time - cursor
        if event.is_idle:
            idle += event.duration
        cursor = max(cursor, event.end_time)
    if end_time > cursor:
        idle += end_time - cursor
    return idle


def build_metrics(
    processes: Iterable[Process],
    timeline: Sequence[ExecutionEvent],
    total_time: int,
    context_switches: int,
    context_switch_time: int,
) -> Metrics:
    """
    Derive a Metrics snapshot from finished processes and the run's timeline.
    """
    metrics = Metrics()
    for p in processes:
        metrics.add_waiting_time(p.waiting_time)
        metrics.add_turnaround_time(p.turnaround_time)
        metrics.add_response_time(p.response_time)

    metrics.calculate_averages()
    metrics.total_context_switches = context_switches
    metrics.calculate_utilization(
        total_time,
        compute_idle_time(timeline, total_time),
        context_switches * context_switch_time,
    )
    metrics.calculate_throughput(total_time)
    return metrics
