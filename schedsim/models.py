from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


class ConfigurationError(ValueError):
    """Raised when a SchedulerConfig cannot drive a terminating simulation."""


class SimulationError(RuntimeError):
    """Raised when a run loop can make no further progress."""


class ProcessState(Enum):
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    WAITING = "WAITING"  # modeled only; CPU-burst-only workloads never enter it
    TERMINATED = "TERMINATED"


class SchedulerType(Enum):
    """
    Scheduling policy variants. Values double as the short CLI codes.
    """

    ROUND_ROBIN = "rr"
    PRIORITY_PREEMPTIVE = "pp"
    PRIORITY_NON_PREEMPTIVE = "pnp"
    MULTILEVEL_QUEUE = "mlq"
    MULTILEVEL_FEEDBACK_QUEUE = "mlfq"


@dataclass(eq=False)
class Process:
    """
    One simulated task: identity, fixed timing parameters and runtime state.

    Lower numeric priority value means higher priority. Equality is identity;
    schedulers keep processes in a single list and refer to them by index.
    """

    pid: int
    priority: int
    burst_time: int
    arrival_time: int = 0
    name: str = ""

    remaining_time: int = field(init=False)
    waiting_time: int = field(default=0, init=False)
    turnaround_time: int = field(default=0, init=False)
    response_time: int = field(default=-1, init=False)
    completion_time: int = field(default=0, init=False)
    queue_level: int = field(default=0, init=False)
    has_started: bool = field(default=False, init=False)
    state: ProcessState = field(default=ProcessState.NEW, init=False)
    base_priority: int = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.burst_time <= 0:
            msg = f"burst_time must be strictly positive (pid {self.pid})"
            raise ValueError(msg)
        if self.arrival_time < 0:
            msg = f"arrival_time cannot be negative (pid {self.pid})"
            raise ValueError(msg)
        if not self.name:
            self.name = f"P{self.pid}"
        self.remaining_time = self.burst_time
        self.base_priority = self.priority

    def execute(self, time_slice: int) -> int:
        """
        Consume up to ``time_slice`` units and return the units actually used.

        A completed process (or a non-positive slice) consumes nothing.
        """
        if self.remaining_time == 0 or time_slice <= 0:
            return 0
        self.has_started = True
        executed = min(time_slice, self.remaining_time)
        self.remaining_time -= executed
        return executed

    def is_completed(self) -> bool:
        return self.remaining_time == 0

    def reset(self) -> None:
        self.remaining_time = self.burst_time
        self.priority = self.base_priority
        self.waiting_time = 0
        self.turnaround_time = 0
        self.response_time = -1
        self.completion_time = 0
        self.queue_level = 0
        self.has_started = False
        self.state = ProcessState.NEW

    def fresh_copy(self) -> "Process":
        return Process(
            pid=self.pid,
            priority=self.base_priority,
            burst_time=self.burst_time,
            arrival_time=self.arrival_time,
            name=self.name,
        )

    def mark_dispatched(self, now: int) -> None:
        self.state = ProcessState.RUNNING
        if not self.has_started:
            self.has_started = True
            self.response_time = now - self.arrival_time

    def credit_wait(self, elapsed: int) -> None:
        self.waiting_time += elapsed

    def mark_completed(self, now: int) -> None:
        self.state = ProcessState.TERMINATED
        self.completion_time = now
        self.turnaround_time = now - self.arrival_time
        # Covers switch overhead and gaps that slice-by-slice crediting misses.
        self.waiting_time = self.turnaround_time - self.burst_time

    def sort_key(self) -> Tuple[int, int, int]:
        return (self.priority, self.arrival_time, self.pid)

    def __lt__(self, other: "Process") -> bool:
        return self.sort_key() < other.sort_key()


@dataclass
class ExecutionEvent:
    """
    One contiguous CPU allocation on the timeline (half-open interval).

    ``pid`` is -1 for idle periods and context-switch markers.
    """

    pid: int
    start_time: int
    end_time: int
    is_context_switch: bool = False
    description: str = ""

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time

    @property
    def is_idle(self) -> bool:
        return self.pid < 0 and not self.is_context_switch

    @property
    def is_execution(self) -> bool:
        return self.pid >= 0 and not self.is_context_switch


@dataclass(frozen=True)
class SchedulerConfig:
    time_quantum: int = 4
    context_switch_time: int = 1
    num_queues: int = 3
    quantums: Tuple[int, ...] = ()
    aging_enabled: bool = True
    aging_threshold: int = 10
    preemption_slice: int = 1
    boost_interval: Optional[int] = None

    def __post_init__(self) -> None:
        if self.time_quantum <= 0:
            msg = "time_quantum must be strictly positive"
            raise ConfigurationError(msg)
        if self.context_switch_time < 0:
            msg = "context_switch_time cannot be negative"
            raise ConfigurationError(msg)
        if self.num_queues < 1:
            msg = "num_queues must be at least 1"
            raise ConfigurationError(msg)
        if any(q <= 0 for q in self.quantums):
            msg = "per-queue quantums must be strictly positive"
            raise ConfigurationError(msg)
        if self.aging_threshold <= 0:
            msg = "aging_threshold must be strictly positive"
            raise ConfigurationError(msg)
        if self.preemption_slice <= 0:
            msg = "preemption_slice must be strictly positive"
            raise ConfigurationError(msg)
        if self.boost_interval is not None and self.boost_interval <= 0:
            msg = "boost_interval must be strictly positive"
            raise ConfigurationError(msg)
        # Accept lists from callers; the frozen config stores a tuple.
        object.__setattr__(self, "quantums", tuple(self.quantums))

    @property
    def effective_boost_interval(self) -> int:
        if self.boost_interval is not None:
            return self.boost_interval
        return self.aging_threshold * 5
