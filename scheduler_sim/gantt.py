from __future__ import annotations

from typing import Dict, List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Segment


def render_execution_order(segments: List[Segment]) -> str:
    """
    Plain-text execution order, one ``[start - end] owner`` line per segment.
    """
    if not segments:
        return "(no execution)"
    return "\n".join(f"[{s.start} - {s.end}] {s.label}" for s in segments)


def build_rich_gantt(segments: List[Segment]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not segments:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[int, str] = {}

    def pid_color(pid: int) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(colors)
            pid_to_color[pid] = colors[idx]
        return pid_to_color[pid]

    timeline = Text()
    labels = Text()
    time_marks = "0"

    for seg in segments:
        width = max(1, seg.duration)
        label = seg.label[:width].ljust(width)

        if seg.is_idle:
            timeline.append("." * width, style="dim")
            labels.append(label, style="dim")
        else:
            timeline.append(" " * width, style=f"on {pid_color(seg.owner)}")
            labels.append(label, style="bold")

        time_marks += f"{seg.end:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, time_marks
