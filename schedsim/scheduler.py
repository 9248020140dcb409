from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .metrics import Metrics, build_metrics
from .models import (
    ExecutionEvent,
    Process,
    ProcessState,
    SchedulerConfig,
    SchedulerType,
    SimulationError,
)

logger = logging.getLogger(__name__)

IDLE_PID = -1


class Scheduler(ABC):
    """
    Abstract discrete-event scheduler.

    Owns a single list of processes for the duration of a run; policy queues
    hold indices into that list. The clock only moves forward, by one
    execution slice, one context-switch charge, or a jump to the next arrival.
    """

    name: str = "Scheduler"
    kind: SchedulerType

    def __init__(self, config: Optional[SchedulerConfig] = None) -> None:
        self.config = config or SchedulerConfig()
        self.processes: List[Process] = []
        self.timeline: List[ExecutionEvent] = []
        self.metrics = Metrics()
        self.current_time = 0
        self.context_switches = 0
        self.current: Optional[int] = None
        self._arrived: List[int] = []

    # Process set

    def add_process(self, process: Process) -> None:
        self.processes.append(process.fresh_copy())

    def add_processes(self, processes: Iterable[Process]) -> None:
        for p in processes:
            self.add_process(p)

    def clear_processes(self) -> None:
        self.processes.clear()
        self.reset()

    # Run protocol

    def run(self) -> Metrics:
        """
        Simulate until every process terminates, then derive metrics.
        """
        self.reset()
        if self.processes:
            self._simulate()
        self.calculate_metrics()
        logger.info(
            "%s finished %d processes at t=%d (%d context switches)",
            self.name,
            len(self.processes),
            self.current_time,
            self.context_switches,
        )
        return self.metrics

    @abstractmethod
    def _simulate(self) -> None:
        """Drive the policy's event loop until is_complete()."""

    @abstractmethod
    def select_next(self) -> Optional[Process]:
        """Return the process the policy would dispatch next, without dispatching it."""

    def reset(self) -> None:
        self.timeline.clear()
        self.metrics.reset()
        self.current_time = 0
        self.context_switches = 0
        self.current = None
        self._arrived.clear()
        for p in self.processes:
            p.reset()

    def is_complete(self) -> bool:
        return all(p.state is ProcessState.TERMINATED for p in self.processes)

    def ready_queue(self) -> List[Process]:
        """
        Snapshot of READY processes in the policy's queue order.
        """
        return [self.processes[i] for i in self._ready_order() if self.processes[i].state is ProcessState.READY]

    def _ready_order(self) -> List[int]:
        return list(self._arrived)

    # Shared services

    def check_arrivals(self, time: int) -> List[int]:
        """
        Admit every NEW process that has arrived by ``time``.

        Returns the admitted indices in (arrival time, insertion) order.
        """
        admitted = [
            i
            for i, p in enumerate(self.processes)
            if p.state is ProcessState.NEW and p.arrival_time <= time
        ]
        admitted.sort(key=lambda i: (self.processes[i].arrival_time, i))
        for i in admitted:
            self.processes[i].state = ProcessState.READY
            self._arrived.append(i)
            logger.debug("t=%d: %s arrived", time, self.processes[i].name)
        return admitted

    def perform_context_switch(self, from_idx: Optional[int], to_idx: Optional[int]) -> None:
        if from_idx is None or to_idx is None or from_idx == to_idx:
            return
        self._charge_context_switch(
            f"Context Switch {self.processes[from_idx].name} -> {self.processes[to_idx].name}"
        )

    def _charge_context_switch(self, description: str) -> None:
        self.context_switches += 1
        overhead = self.config.context_switch_time
        if overhead > 0:
            self.record_event(IDLE_PID, self.current_time, self.current_time + overhead, True, description)
            self.current_time += overhead
        logger.debug("t=%d: %s", self.current_time, description)

    def record_event(
        self,
        pid: int,
        start: int,
        end: int,
        is_switch: bool = False,
        description: str = "",
    ) -> None:
        if self.timeline:
            last = self.timeline[-1]
            # Extend the previous slice when the same process keeps the CPU.
            if (
                pid >= 0
                and not is_switch
                and last.pid == pid
                and not last.is_context_switch
                and last.end_time == start
            ):
                last.end_time = end
                return
        self.timeline.append(ExecutionEvent(pid, start, end, is_switch, description))

    def calculate_metrics(self) -> None:
        self.metrics = build_metrics(
            self.processes,
            self.timeline,
            self.current_time,
            self.context_switches,
            self.config.context_switch_time,
        )

    # Helpers shared by the policy loops

    def _dispatch(self, idx: int) -> Process:
        p = self.processes[idx]
        p.mark_dispatched(self.current_time)
        self.current = idx
        logger.debug("t=%d: dispatch %s (remaining %d)", self.current_time, p.name, p.remaining_time)
        return p

    def _run_slice(self, idx: int, time_slice: int) -> int:
        """
        Execute ``idx`` for up to ``time_slice`` units and advance the clock.

        Other READY processes are credited the elapsed time, and arrivals that
        fell inside the slice are admitted before returning.
        """
        p = self.processes[idx]
        start = self.current_time
        executed = p.execute(time_slice)
        self.current_time += executed
        self.record_event(p.pid, start, self.current_time, False, f"Execute {p.name}")
        for other in self.processes:
            if other is not p and other.state is ProcessState.READY:
                other.credit_wait(executed)
        self.check_arrivals(self.current_time)
        return executed

    def _finish(self, idx: int) -> None:
        p = self.processes[idx]
        p.mark_completed(self.current_time)
        if self.current == idx:
            self.current = None
        logger.debug("t=%d: %s terminated", self.current_time, p.name)

    def _next_arrival_time(self) -> Optional[int]:
        future = [p.arrival_time for p in self.processes if p.state is ProcessState.NEW]
        return min(future) if future else None

    def _idle_until_next_arrival(self) -> None:
        """
        Jump the clock to the next arrival, recording the gap as idle time.
        """
        next_arrival = self._next_arrival_time()
        if next_arrival is None:
            msg = f"{self.name}: no runnable process at t={self.current_time} and no pending arrivals"
            raise SimulationError(msg)
        if next_arrival > self.current_time:
            self.record_event(IDLE_PID, self.current_time, next_arrival, False, "CPU Idle")
            self.current_time = next_arrival
        self.check_arrivals(self.current_time)
