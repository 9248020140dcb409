from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Deque, Dict, Iterable, List, Optional, Union

from .models import ConfigurationError, Process, ProcessState, SchedulerConfig, SchedulerType
from .scheduler import Scheduler

logger = logging.getLogger(__name__)


class RoundRobinScheduler(Scheduler):
    """
    Round Robin scheduling with a fixed time quantum.

    A single FIFO queue of process indices; a process that exhausts its
    quantum goes to the back, behind anything that arrived meanwhile.
    """

    name = "Round Robin"
    kind = SchedulerType.ROUND_ROBIN

    def __init__(self, config: Optional[SchedulerConfig] = None, quantum: Optional[int] = None) -> None:
        super().__init__(config)
        if quantum is not None and quantum <= 0:
            raise ConfigurationError("Round Robin requires a positive quantum")
        self.time_quantum = quantum if quantum is not None else self.config.time_quantum
        self._queue: Deque[int] = deque()

    def reset(self) -> None:
        super().reset()
        self._queue.clear()

    def check_arrivals(self, time: int) -> List[int]:
        admitted = super().check_arrivals(time)
        for i in admitted:
            if i not in self._queue:
                self._queue.append(i)
        return admitted

    def _ready_order(self) -> List[int]:
        return list(self._queue)

    def select_next(self) -> Optional[Process]:
        if not self._queue:
            return None
        return self.processes[self._queue[0]]

    def _simulate(self) -> None:
        last: Optional[int] = None
        self.check_arrivals(self.current_time)

        while not self.is_complete():
            if not self._queue:
                self._idle_until_next_arrival()
                continue

            idx = self._queue.popleft()
            p = self.processes[idx]

            self.perform_context_switch(last, idx)
            self._dispatch(idx)
            self._run_slice(idx, min(self.time_quantum, p.remaining_time))
            last = idx

            if p.is_completed():
                self._finish(idx)
            else:
                # Arrivals during the slice are already queued ahead of it.
                p.state = ProcessState.READY
                self._queue.append(idx)


class PriorityScheduler(Scheduler):
    """
    Priority scheduling, preemptive or not, with optional aging.

    Lower numeric priority value means higher priority; ties go to the
    earlier arrival, then the lower PID. Non-preemptive mode runs the selected
    process to completion. Preemptive mode runs ``preemption_slice`` units at
    a time and yields to any READY process with a strictly lower value.
    """

    def __init__(self, config: Optional[SchedulerConfig] = None, preemptive: bool = False) -> None:
        super().__init__(config)
        self.preemptive = preemptive
        self.aging_enabled = self.config.aging_enabled
        self.aging_threshold = self.config.aging_threshold
        # Index -> time the process started its current unboosted wait.
        self._waiting_since: Dict[int, int] = {}

    @property
    def name(self) -> str:
        return "Priority (Preemptive)" if self.preemptive else "Priority (Non-Preemptive)"

    @property
    def kind(self) -> SchedulerType:
        if self.preemptive:
            return SchedulerType.PRIORITY_PREEMPTIVE
        return SchedulerType.PRIORITY_NON_PREEMPTIVE

    def reset(self) -> None:
        super().reset()
        self._waiting_since.clear()

    def _ready_order(self) -> List[int]:
        return sorted(self._arrived, key=lambda i: self.processes[i].sort_key())

    def apply_aging(self) -> None:
        if not self.aging_enabled:
            return
        now = self.current_time
        for i, p in enumerate(self.processes):
            if p.state is not ProcessState.READY:
                continue
            since = self._waiting_since.setdefault(i, now)
            if now - since >= self.aging_threshold and p.priority > 0:
                p.priority -= 1
                self._waiting_since[i] = now
                logger.debug("t=%d: aged %s to priority %d", now, p.name, p.priority)

    def find_highest_priority(self) -> Optional[int]:
        candidates = [
            i
            for i, p in enumerate(self.processes)
            if p.state is ProcessState.READY and p.arrival_time <= self.current_time
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda i: self.processes[i].sort_key())

    def select_next(self) -> Optional[Process]:
        idx = self.find_highest_priority()
        return self.processes[idx] if idx is not None else None

    def _simulate(self) -> None:
        last: Optional[int] = None
        self.check_arrivals(self.current_time)

        while not self.is_complete():
            self.apply_aging()

            if self.current is None:
                selected = self.find_highest_priority()
                if selected is None:
                    self._idle_until_next_arrival()
                    continue
                self.perform_context_switch(last, selected)
                self._dispatch(selected)
                self._waiting_since.pop(selected, None)

            idx = self.current
            p = self.processes[idx]
            time_slice = self.config.preemption_slice if self.preemptive else p.remaining_time
            self._run_slice(idx, time_slice)
            last = idx

            if p.is_completed():
                self._finish(idx)
            elif self.preemptive:
                challenger = self.find_highest_priority()
                if challenger is not None and self.processes[challenger].priority < p.priority:
                    logger.debug(
                        "t=%d: %s preempted by %s",
                        self.current_time,
                        p.name,
                        self.processes[challenger].name,
                    )
                    p.state = ProcessState.READY
                    self._waiting_since[idx] = self.current_time
                    self.current = None


class QueueKind(Enum):
    SYSTEM = "system"
    INTERACTIVE = "interactive"
    BATCH = "batch"


@dataclass(frozen=True)
class QueueSpec:
    level: int
    kind: QueueKind
    time_quantum: int
    preemptive: bool
    name: str


class MultilevelQueueScheduler(Scheduler):
    """
    Multilevel Queue with permanent, priority-band based queue assignment.

    Queue 0 (System) takes priorities 0-2, queue 1 (Interactive) 3-5 and
    queue 2 (Batch) everything above; with fewer queues the last one absorbs
    the rest. A lower-numbered queue is always drained before a
    higher-numbered one runs; each queue is round-robin at its own quantum.
    """

    name = "Multilevel Queue"
    kind = SchedulerType.MULTILEVEL_QUEUE

    def __init__(self, config: Optional[SchedulerConfig] = None, num_queues: Optional[int] = None) -> None:
        super().__init__(config)
        self.num_queues = num_queues if num_queues is not None else self.config.num_queues
        if self.num_queues < 1:
            raise ConfigurationError("Multilevel Queue needs at least one queue")
        self.queue_specs = [self._build_queue_spec(level) for level in range(self.num_queues)]
        self._queues: List[Deque[int]] = [deque() for _ in range(self.num_queues)]

    def _build_queue_spec(self, level: int) -> QueueSpec:
        base = self.config.time_quantum
        if level == 0:
            spec = QueueSpec(0, QueueKind.SYSTEM, max(1, base // 2), True, "System")
        elif level == 1:
            spec = QueueSpec(1, QueueKind.INTERACTIVE, base, True, "Interactive")
        else:
            spec = QueueSpec(level, QueueKind.BATCH, base * 2, False, f"Batch-{level - 1}")
        if level < len(self.config.quantums):
            spec = replace(spec, time_quantum=self.config.quantums[level])
        return spec

    def assign_to_queue(self, process: Process) -> int:
        if process.priority <= 2:
            return 0
        if process.priority <= 5 and self.num_queues > 1:
            return 1
        return min(self.num_queues - 1, 2)

    def quantum_for(self, level: int) -> int:
        if 0 <= level < self.num_queues:
            return self.queue_specs[level].time_quantum
        return self.config.time_quantum

    def add_process(self, process: Process) -> None:
        super().add_process(process)
        stored = self.processes[-1]
        stored.queue_level = self.assign_to_queue(stored)

    def reset(self) -> None:
        super().reset()
        for queue in self._queues:
            queue.clear()

    def check_arrivals(self, time: int) -> List[int]:
        admitted = super().check_arrivals(time)
        for i in admitted:
            p = self.processes[i]
            p.queue_level = self.assign_to_queue(p)
            self._queues[p.queue_level].append(i)
        return admitted

    def active_queue(self) -> Optional[int]:
        for level, queue in enumerate(self._queues):
            if queue:
                return level
        return None

    def _ready_order(self) -> List[int]:
        return [i for queue in self._queues for i in queue]

    def select_next(self) -> Optional[Process]:
        level = self.active_queue()
        if level is None:
            return None
        return self.processes[self._queues[level][0]]

    def _simulate(self) -> None:
        last: Optional[int] = None
        self.check_arrivals(self.current_time)

        while not self.is_complete():
            level = self.active_queue()
            if level is None:
                self._idle_until_next_arrival()
                continue

            idx = self._queues[level].popleft()
            p = self.processes[idx]

            self.perform_context_switch(last, idx)
            self._dispatch(idx)
            self._run_slice(idx, self.quantum_for(level))
            last = idx

            if p.is_completed():
                self._finish(idx)
            else:
                p.state = ProcessState.READY
                self._queues[level].append(idx)


class MultilevelFeedbackQueueScheduler(Scheduler):
    """
    Multi-Level Feedback Queue with demotion and periodic priority boost.

    - New arrivals enter the highest-priority queue (Q0).
    - Each queue is round-robin at its quantum (doubling per level unless
      overridden by ``config.quantums``).
    - A process that uses its entire quantum without finishing is demoted
      one level, down to the last queue.
    - Every ``boost_interval`` time units every unfinished process is moved
      back to Q0. This is the only way a process moves up.
    """

    name = "Multilevel Feedback Queue"
    kind = SchedulerType.MULTILEVEL_FEEDBACK_QUEUE

    def __init__(self, config: Optional[SchedulerConfig] = None, num_queues: Optional[int] = None) -> None:
        super().__init__(config)
        self.num_queues = num_queues if num_queues is not None else self.config.num_queues
        if self.num_queues < 1:
            raise ConfigurationError("Multilevel Feedback Queue needs at least one queue")

        quantums = [self.config.time_quantum]
        for _ in range(1, self.num_queues):
            quantums.append(quantums[-1] * 2)
        for level, quantum in enumerate(self.config.quantums[: self.num_queues]):
            quantums[level] = quantum
        self.quantums = quantums

        self.aging_enabled = self.config.aging_enabled
        self.boost_interval = self.config.effective_boost_interval
        self.last_boost_time = 0
        self._queues: List[Deque[int]] = [deque() for _ in range(self.num_queues)]

    def quantum_for(self, level: int) -> int:
        if 0 <= level < len(self.quantums):
            return self.quantums[level]
        return self.config.time_quantum

    def reset(self) -> None:
        super().reset()
        for queue in self._queues:
            queue.clear()
        self.last_boost_time = 0

    def check_arrivals(self, time: int) -> List[int]:
        admitted = super().check_arrivals(time)
        for i in admitted:
            self.processes[i].queue_level = 0
            self._queues[0].append(i)
        return admitted

    def demote(self, idx: int) -> None:
        p = self.processes[idx]
        if p.queue_level < self.num_queues - 1:
            p.queue_level += 1
            logger.debug("t=%d: %s demoted to Q%d", self.current_time, p.name, p.queue_level)

    def priority_boost(self) -> None:
        waiting = [i for queue in self._queues for i in queue]
        for p in self.processes:
            if p.state is not ProcessState.TERMINATED:
                p.queue_level = 0
        for queue in self._queues:
            queue.clear()
        self._queues[0].extend(i for i in waiting if self.processes[i].state is ProcessState.READY)
        self.last_boost_time = self.current_time
        logger.debug("t=%d: priority boost, %d processes back in Q0", self.current_time, len(self._queues[0]))

    def highest_priority_queue(self) -> Optional[int]:
        for level, queue in enumerate(self._queues):
            if queue:
                return level
        return None

    def _ready_order(self) -> List[int]:
        return [i for queue in self._queues for i in queue]

    def process_queue_level(self, pid: int) -> int:
        for p in self.processes:
            if p.pid == pid:
                return p.queue_level
        return 0

    def select_next(self) -> Optional[Process]:
        level = self.highest_priority_queue()
        if level is None:
            return None
        return self.processes[self._queues[level][0]]

    def _simulate(self) -> None:
        last: Optional[int] = None
        last_level: Optional[int] = None
        self.check_arrivals(self.current_time)

        while not self.is_complete():
            if self.aging_enabled and self.current_time - self.last_boost_time >= self.boost_interval:
                self.priority_boost()

            level = self.highest_priority_queue()
            if level is None:
                self._idle_until_next_arrival()
                continue

            idx = self._queues[level].popleft()
            p = self.processes[idx]

            if idx == last and level != last_level:
                # Same process, reloaded at a different level's quantum.
                self._charge_context_switch(f"Queue change {p.name} Q{last_level} -> Q{level}")
            else:
                self.perform_context_switch(last, idx)
            self._dispatch(idx)

            quantum = self.quantum_for(level)
            executed = self._run_slice(idx, quantum)
            last, last_level = idx, level

            if p.is_completed():
                self._finish(idx)
            else:
                if executed >= quantum:
                    self.demote(idx)
                p.state = ProcessState.READY
                self._queues[p.queue_level].append(idx)


SchedulerFactory = Callable[[SchedulerConfig], Scheduler]

ALGORITHMS: Dict[str, SchedulerFactory] = {
    SchedulerType.ROUND_ROBIN.value: lambda cfg: RoundRobinScheduler(cfg),
    SchedulerType.PRIORITY_PREEMPTIVE.value: lambda cfg: PriorityScheduler(cfg, preemptive=True),
    SchedulerType.PRIORITY_NON_PREEMPTIVE.value: lambda cfg: PriorityScheduler(cfg, preemptive=False),
    SchedulerType.MULTILEVEL_QUEUE.value: lambda cfg: MultilevelQueueScheduler(cfg),
    SchedulerType.MULTILEVEL_FEEDBACK_QUEUE.value: lambda cfg: MultilevelFeedbackQueueScheduler(cfg),
}


def create_scheduler(
    kind: Union[SchedulerType, str],
    config: Optional[SchedulerConfig] = None,
) -> Scheduler:
    """
    Build a scheduler by type or short code (rr, pp, pnp, mlq, mlfq).
    """
    code = kind.value if isinstance(kind, SchedulerType) else kind.lower()
    if code not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm '{kind}' (choose from {', '.join(ALGORITHMS)})")
    return ALGORITHMS[code](config or SchedulerConfig())


def run_algorithm(
    name: Union[SchedulerType, str],
    processes: Iterable[Process],
    config: Optional[SchedulerConfig] = None,
    quantum: Optional[int] = None,
) -> Scheduler:
    """
    Run one algorithm on fresh copies of ``processes`` and return the finished
    scheduler, whose ``timeline``, ``processes`` and ``metrics`` hold the results.

    ``quantum`` overrides ``config.time_quantum`` when given.
    """
    config = config or SchedulerConfig()
    if quantum is not None:
        config = replace(config, time_quantum=quantum)
    scheduler = create_scheduler(name, config)
    scheduler.add_processes(processes)
    scheduler.run()
    return scheduler
