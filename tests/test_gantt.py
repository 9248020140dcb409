from rich.panel import Panel

from schedsim.algorithms import run_algorithm
from schedsim.gantt import build_rich_gantt, execution_summary, render_gantt
from schedsim.models import ExecutionEvent, Process


def _events():
    return [ExecutionEvent(1, 0, 2), ExecutionEvent(-1, 2, 3, True), ExecutionEvent(2, 3, 5)]


def test_render_gantt_text():
    assert render_gantt(_events()).splitlines() == [
        "Gantt Chart:",
        "|==x==|",
        "P1CP2",
        "0  2  3  5",
    ]


def test_render_gantt_empty():
    assert render_gantt([]) == "(no execution)"


def test_render_gantt_marks_idle():
    sched = run_algorithm("rr", [Process(1, priority=0, burst_time=2, arrival_time=3)])
    assert render_gantt(sched.timeline).splitlines()[1] == "|...==|"


def test_rich_gantt_returns_panel_and_marks():
    panel, marks = build_rich_gantt(_events())
    assert isinstance(panel, Panel)
    assert marks == "0  2  3  5"

    empty_panel, empty_marks = build_rich_gantt([])
    assert isinstance(empty_panel, Panel)
    assert empty_marks == ""


def test_execution_summary_labels():
    events = _events() + [ExecutionEvent(-1, 5, 7, description="CPU Idle")]
    assert execution_summary(events) == [("P1", 0, 2), ("CS", 2, 3), ("P2", 3, 5), ("idle", 5, 7)]
