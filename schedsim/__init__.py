"""
CPU scheduling simulator.

Simulates Round Robin, Priority (preemptive and non-preemptive), Multilevel
Queue and Multilevel Feedback Queue scheduling over a shared workload and
reports per-process and system-wide performance metrics.
"""

from .algorithms import (
    MultilevelFeedbackQueueScheduler,
    MultilevelQueueScheduler,
    PriorityScheduler,
    RoundRobinScheduler,
    create_scheduler,
    run_algorithm,
)
from .metrics import Metrics
from .models import (
    ConfigurationError,
    ExecutionEvent,
    Process,
    ProcessState,
    SchedulerConfig,
    SchedulerType,
    SimulationError,
)
from .scheduler import Scheduler
from .simulator import Simulator, SimulationOutcome

__all__ = [
    "ConfigurationError",
    "ExecutionEvent",
    "Metrics",
    "MultilevelFeedbackQueueScheduler",
    "MultilevelQueueScheduler",
    "PriorityScheduler",
    "Process",
    "ProcessState",
    "RoundRobinScheduler",
    "Scheduler",
    "SchedulerConfig",
    "SchedulerType",
    "SimulationError",
    "SimulationOutcome",
    "Simulator",
    "cli",
    "create_scheduler",
    "run_algorithm",
]
