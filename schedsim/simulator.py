from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from random import Random
from typing import List, Optional, Sequence, Union

from .algorithms import create_scheduler
from .metrics import Metrics
from .models import ExecutionEvent, Process, SchedulerConfig, SchedulerType
from .scheduler import Scheduler
from .workload import PidIssuer, generate_random_processes
from .workload_io import export_results_csv, load_workload

logger = logging.getLogger(__name__)

COMPARISON_ORDER = (
    SchedulerType.ROUND_ROBIN,
    SchedulerType.PRIORITY_PREEMPTIVE,
    SchedulerType.PRIORITY_NON_PREEMPTIVE,
    SchedulerType.MULTILEVEL_QUEUE,
    SchedulerType.MULTILEVEL_FEEDBACK_QUEUE,
)

BENCHMARK_ORDER = (
    SchedulerType.ROUND_ROBIN,
    SchedulerType.PRIORITY_PREEMPTIVE,
    SchedulerType.MULTILEVEL_FEEDBACK_QUEUE,
)


@dataclass
class SimulationOutcome:
    name: str
    kind: SchedulerType
    timeline: List[ExecutionEvent]
    processes: List[Process]
    metrics: Metrics


@dataclass
class BenchmarkResult:
    process_count: int
    elapsed_ms: float
    outcomes: List[SimulationOutcome] = field(default_factory=list)


class Simulator:
    """
    Runs one or more policies over the same base workload.

    Each policy gets fresh copies of the base processes, so runs are strictly
    sequential and share no mutable state.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None, rng: Optional[Random] = None) -> None:
        self.config = config or SchedulerConfig()
        self.rng = rng or Random()
        self.pid_issuer = PidIssuer()
        self.base_processes: List[Process] = []
        self.schedulers: List[Scheduler] = []
        self.results: List[SimulationOutcome] = []

    def set_processes(self, processes: Sequence[Process]) -> None:
        self.base_processes = [p.fresh_copy() for p in processes]

    def generate_processes(self, count: int, max_burst: int = 20, max_arrival: int = 10, max_priority: int = 10) -> None:
        self.pid_issuer = PidIssuer()
        self.base_processes = generate_random_processes(
            count,
            self.rng,
            max_burst=max_burst,
            max_arrival=max_arrival,
            max_priority=max_priority,
            issuer=self.pid_issuer,
        )

    def load_processes(self, path: Union[str, Path]) -> None:
        self.base_processes = load_workload(path)

    def add_scheduler(self, scheduler: Union[SchedulerType, str, Scheduler]) -> Scheduler:
        if not isinstance(scheduler, Scheduler):
            scheduler = create_scheduler(scheduler, self.config)
        self.schedulers.append(scheduler)
        return scheduler

    def _execute(self, scheduler: Scheduler) -> SimulationOutcome:
        scheduler.clear_processes()
        scheduler.add_processes(self.base_processes)
        metrics = scheduler.run()
        return SimulationOutcome(
            name=scheduler.name,
            kind=scheduler.kind,
            timeline=list(scheduler.timeline),
            processes=list(scheduler.processes),
            metrics=metrics,
        )

    def add_process(self, process: Process) -> None:
        self.base_processes.append(process.fresh_copy())

    def run(self, kind: Union[SchedulerType, str, Scheduler]) -> SimulationOutcome:
        """
        Run one policy on its own. It is not kept in ``schedulers``.
        """
        scheduler = kind if isinstance(kind, Scheduler) else create_scheduler(kind, self.config)
        outcome = self._execute(scheduler)
        self.results.append(outcome)
        return outcome

    def run_all(self) -> List[SimulationOutcome]:
        if not self.base_processes:
            logger.warning("No processes to simulate")
        self.results = [self._execute(s) for s in self.schedulers]
        return self.results

    def run_comparison(
        self, kinds: Optional[Sequence[Union[SchedulerType, str]]] = None
    ) -> List[SimulationOutcome]:
        """
        Run ``kinds`` (every policy by default) over the same workload.
        """
        self.schedulers = [create_scheduler(kind, self.config) for kind in (kinds or COMPARISON_ORDER)]
        return self.run_all()

    def run_benchmark(
        self,
        process_counts: Sequence[int] = (5, 10, 20, 50, 100),
        kinds: Sequence[SchedulerType] = BENCHMARK_ORDER,
    ) -> List[BenchmarkResult]:
        """
        Time a fixed set of policies over random workloads of growing size.
        """
        benchmarks: List[BenchmarkResult] = []
        for count in process_counts:
            self.generate_processes(count)
            self.schedulers = []
            for kind in kinds:
                self.add_scheduler(kind)
            start = time.perf_counter()
            outcomes = self.run_all()
            elapsed_ms = (time.perf_counter() - start) * 1000.0
            logger.info("benchmark: %d processes in %.2f ms", count, elapsed_ms)
            benchmarks.append(BenchmarkResult(count, elapsed_ms, outcomes))
        return benchmarks

    def export_results(self, path: Union[str, Path]) -> None:
        export_results_csv(path, self.results)

    def scheduler_names(self) -> List[str]:
        return [s.name for s in self.schedulers]

    def summary(self) -> dict:
        return {
            "total_processes": len(self.base_processes),
            "schedulers_run": len(self.schedulers),
            "time_quantum": self.config.time_quantum,
            "context_switch_time": self.config.context_switch_time,
        }

    def reset(self) -> None:
        self.schedulers.clear()
        self.results.clear()
        self.base_processes.clear()
