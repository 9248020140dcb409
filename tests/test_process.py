import pytest

from schedsim.models import ConfigurationError, ExecutionEvent, Process, ProcessState, SchedulerConfig


def test_process_defaults():
    p = Process(3, priority=2, burst_time=5, arrival_time=1)
    assert p.name == "P3"
    assert p.remaining_time == 5
    assert p.response_time == -1
    assert p.state is ProcessState.NEW
    assert p.base_priority == 2


@pytest.mark.parametrize("burst", [0, -3])
def test_process_rejects_non_positive_burst(burst):
    with pytest.raises(ValueError):
        Process(1, priority=0, burst_time=burst)


def test_process_rejects_negative_arrival():
    with pytest.raises(ValueError):
        Process(1, priority=0, burst_time=2, arrival_time=-1)


def test_execute_never_overruns():
    p = Process(1, priority=0, burst_time=3)
    assert p.execute(2) == 2
    assert p.execute(5) == 1
    assert p.is_completed()
    assert p.execute(4) == 0
    assert p.execute(0) == 0


def test_reset_restores_priority_and_state():
    p = Process(1, priority=4, burst_time=3)
    p.execute(2)
    p.priority = 1
    p.mark_dispatched(0)
    p.reset()
    assert p.remaining_time == 3
    assert p.priority == 4
    assert p.response_time == -1
    assert not p.has_started
    assert p.state is ProcessState.NEW


def test_fresh_copy_is_independent():
    p = Process(1, priority=4, burst_time=3, name="init")
    p.execute(3)
    copy = p.fresh_copy()
    assert copy is not p
    assert copy.name == "init"
    assert copy.remaining_time == 3


def test_completion_reconciles_waiting():
    p = Process(1, priority=0, burst_time=4, arrival_time=2)
    p.mark_dispatched(5)
    assert p.response_time == 3
    p.mark_dispatched(9)
    assert p.response_time == 3
    p.mark_completed(12)
    assert p.turnaround_time == 10
    assert p.waiting_time == 6
    assert p.state is ProcessState.TERMINATED


def test_sort_key_orders_by_priority_arrival_pid():
    a = Process(2, priority=1, burst_time=1, arrival_time=0)
    b = Process(1, priority=1, burst_time=1, arrival_time=0)
    c = Process(0, priority=1, burst_time=1, arrival_time=3)
    d = Process(9, priority=0, burst_time=1, arrival_time=5)
    assert sorted([a, b, c, d]) == [d, b, a, c]


def test_event_kinds():
    run = ExecutionEvent(1, 0, 3)
    idle = ExecutionEvent(-1, 3, 5, description="CPU Idle")
    switch = ExecutionEvent(-1, 5, 6, True)
    assert run.duration == 3 and run.is_execution
    assert idle.is_idle and not idle.is_execution
    assert not switch.is_idle and not switch.is_execution


@pytest.mark.parametrize(
    "kwargs",
    [
        {"time_quantum": 0},
        {"context_switch_time": -1},
        {"num_queues": 0},
        {"quantums": (2, 0)},
        {"aging_threshold": 0},
        {"preemption_slice": 0},
        {"boost_interval": 0},
    ],
)
def test_config_rejects_invalid_values(kwargs):
    with pytest.raises(ConfigurationError):
        SchedulerConfig(**kwargs)


def test_config_boost_interval_defaults_to_five_aging_thresholds():
    assert SchedulerConfig(aging_threshold=4).effective_boost_interval == 20
    assert SchedulerConfig(boost_interval=7).effective_boost_interval == 7
    assert SchedulerConfig(quantums=[1, 2]).quantums == (1, 2)
