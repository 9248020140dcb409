from __future__ import annotations

from typing import Dict, Iterator, List, Sequence, Tuple

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ExecutionEvent

PID_COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]

# (kind, width, label, pid, end_time); kind is "run", "switch" or "idle".
Segment = Tuple[str, int, str, int, int]


def _label(event: ExecutionEvent) -> str:
    if event.is_context_switch:
        return "CS"
    if event.is_idle:
        return "idle"
    return f"P{event.pid}"


def _segments(events: Sequence[ExecutionEvent]) -> Iterator[Segment]:
    """
    Walk events in time order, yielding uncovered gaps as idle segments.
    """
    cursor = 0
    for ev in sorted(events, key=lambda e: (e.start_time, e.end_time)):
        if ev.start_time > cursor:
            yield "idle", ev.start_time - cursor, "", -1, ev.start_time
        if ev.is_context_switch:
            kind = "switch"
        elif ev.is_idle:
            kind = "idle"
        else:
            kind = "run"
        width = max(1, ev.duration)
        yield kind, width, _label(ev)[:width].ljust(width), ev.pid, ev.end_time
        cursor = ev.end_time


def _time_marks(segments: Sequence[Segment]) -> str:
    return "0" + "".join(f"{end:>3}" for *_, end in segments)


def render_gantt(events: Sequence[ExecutionEvent]) -> str:
    """
    Plain-text Gantt chart: ``=`` for execution, ``x`` for context switches,
    ``.`` for idle time.
    """
    if not events:
        return "(no execution)"

    fills = {"run": "=", "switch": "x", "idle": "."}
    segments = list(_segments(events))
    bar = "".join(fills[kind] * width for kind, width, *_ in segments)
    labels = "".join(label or " " * width for _, width, label, *_ in segments)
    return "\n".join(["Gantt Chart:", f"|{bar}|", labels, _time_marks(segments)])


def build_rich_gantt(events: Sequence[ExecutionEvent]) -> Tuple[Panel, str]:
    """
    Colored Gantt chart panel, plus the matching time-mark line.
    """
    if not events:
        return Panel("No execution", title="Gantt Chart"), ""

    colors: Dict[int, str] = {}
    bar = Text()
    labels = Text()
    segments = list(_segments(events))

    for kind, width, label, pid, _ in segments:
        if kind == "run":
            color = colors.setdefault(pid, PID_COLORS[len(colors) % len(PID_COLORS)])
            bar.append(" " * width, style=f"on {color}")
            labels.append(label, style="bold")
        elif kind == "switch":
            bar.append(" " * width, style="on grey35")
            labels.append(label, style="dim")
        else:
            bar.append("." * width, style="dim")
            labels.append(label or " " * width, style="dim")

    grid = Table.grid(padding=(0, 0))
    grid.add_row(bar)
    grid.add_row(labels)
    return Panel.fit(grid, title="Gantt Chart"), _time_marks(segments)


def execution_summary(events: Sequence[ExecutionEvent]) -> List[Tuple[str, int, int]]:
    """(label, start, end) triples for step-by-step display."""
    return [(_label(ev), ev.start_time, ev.end_time) for ev in events]
