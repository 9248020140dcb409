import pytest

from schedsim.metrics import Metrics, build_metrics, compute_idle_time
from schedsim.models import ExecutionEvent, Process


def test_idle_time_counts_gaps_and_idle_events_not_switches():
    timeline = [
        ExecutionEvent(1, 2, 4),
        ExecutionEvent(-1, 4, 6, description="CPU Idle"),
        ExecutionEvent(-1, 6, 7, True),
    ]
    assert compute_idle_time(timeline, 9) == 6
    assert compute_idle_time([], 5) == 5


def test_build_metrics_averages_and_utilization():
    procs = []
    for pid, (wait, tat, resp) in enumerate([(2, 5, 0), (4, 8, 1), (6, 9, 3)]):
        p = Process(pid, priority=0, burst_time=3)
        p.waiting_time, p.turnaround_time, p.response_time = wait, tat, resp
        procs.append(p)
    timeline = [ExecutionEvent(0, 0, 3), ExecutionEvent(-1, 3, 4, True), ExecutionEvent(1, 4, 10)]

    m = build_metrics(procs, timeline, 10, context_switches=1, context_switch_time=1)

    assert m.process_count == 3
    assert m.avg_waiting_time == pytest.approx(4.0)
    assert m.avg_turnaround_time == pytest.approx(22 / 3)
    assert m.avg_response_time == pytest.approx(4 / 3)
    assert m.total_idle_time == 0
    assert m.context_switch_overhead == 1
    assert m.cpu_utilization == pytest.approx(90.0)
    assert m.throughput == pytest.approx(0.3)
    assert m.waiting_time_variance() == pytest.approx(4.0)
    assert m.min_waiting_time() == 2
    assert m.max_waiting_time() == 6


def test_empty_metrics_are_zero():
    m = Metrics()
    m.calculate_averages()
    m.calculate_utilization(0, 0, 0)
    m.calculate_throughput(0)
    assert m.process_count == 0
    assert m.cpu_utilization == 0.0
    assert m.throughput == 0.0
    assert m.waiting_time_variance() == 0.0
    assert m.turnaround_time_variance() == 0.0
    assert m.min_waiting_time() == 0


def test_reset_clears_lists():
    m = Metrics()
    m.add_waiting_time(3)
    m.add_turnaround_time(5)
    m.add_response_time(1)
    m.calculate_averages()
    m.reset()
    assert m.waiting_times == []
    assert m.avg_waiting_time == 0.0


def test_compare_to_reports_signed_deltas():
    better = Metrics(avg_waiting_time=2.0, total_context_switches=3)
    worse = Metrics(avg_waiting_time=5.0, total_context_switches=1)
    summary = better.compare_to(worse)
    assert "waiting -3.00" in summary
    assert "switches +2" in summary


def test_as_rows_labels():
    labels = [label for label, _ in Metrics().as_rows()]
    assert "Average Waiting Time" in labels
    assert "Context Switches" in labels
