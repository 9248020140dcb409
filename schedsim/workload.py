from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import List, Optional

from .models import Process


class PidIssuer:
    """
    Hands out increasing PIDs. Owned by whoever creates processes.
    """

    def __init__(self, start: int = 0) -> None:
        self._next = start

    def issue(self) -> int:
        pid = self._next
        self._next += 1
        return pid

    def peek(self) -> int:
        return self._next


def sample_processes() -> List[Process]:
    """Fixed five-process demo workload."""
    return [
        Process(1, priority=2, burst_time=10, arrival_time=0, name="P1"),
        Process(2, priority=1, burst_time=5, arrival_time=1, name="P2"),
        Process(3, priority=3, burst_time=8, arrival_time=2, name="P3"),
        Process(4, priority=2, burst_time=4, arrival_time=3, name="P4"),
        Process(5, priority=4, burst_time=6, arrival_time=4, name="P5"),
    ]


def generate_random_processes(
    count: int,
    rng: Random,
    *,
    max_burst: int = 20,
    max_arrival: int = 10,
    max_priority: int = 10,
    issuer: Optional[PidIssuer] = None,
) -> List[Process]:
    if count < 0:
        msg = "count cannot be negative"
        raise ValueError(msg)
    if max_burst < 1:
        msg = "max_burst must be at least 1"
        raise ValueError(msg)
    issuer = issuer or PidIssuer()
    processes: List[Process] = []
    for _ in range(count):
        pid = issuer.issue()
        processes.append(
            Process(
                pid,
                priority=rng.randint(0, max_priority),
                burst_time=rng.randint(1, max_burst),
                arrival_time=rng.randint(0, max_arrival),
                name=f"P{pid}",
            )
        )
    return processes


@dataclass
class DynamicArrivalGenerator:
    """
    Probabilistic arrival source for streaming workloads.

    Each ``poll`` has ``probability`` chance of producing one new process
    arriving at that instant. PIDs come from ``issuer`` (default start 100).
    """

    rng: Random
    issuer: Optional[PidIssuer] = None
    probability: float = 0.1
    min_burst: int = 5
    max_burst: int = 20
    max_priority: int = 10

    def __post_init__(self) -> None:
        if not 0.0 <= self.probability <= 1.0:
            msg = "probability must be within [0, 1]"
            raise ValueError(msg)
        if self.min_burst < 1 or self.max_burst < self.min_burst:
            msg = "burst range must satisfy 1 <= min_burst <= max_burst"
            raise ValueError(msg)
        if self.issuer is None:
            self.issuer = PidIssuer(start=100)

    def poll(self, current_time: int) -> Optional[Process]:
        if self.rng.random() >= self.probability:
            return None
        pid = self.issuer.issue()
        return Process(
            pid,
            priority=self.rng.randint(0, self.max_priority),
            burst_time=self.rng.randint(self.min_burst, self.max_burst),
            arrival_time=current_time,
        )

    def stream(self, horizon: int) -> List[Process]:
        """
        Poll once per time unit over ``[0, horizon)`` and collect the arrivals.
        """
        arrivals: List[Process] = []
        for t in range(horizon):
            p = self.poll(t)
            if p is not None:
                arrivals.append(p)
        return arrivals
