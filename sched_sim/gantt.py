from __future__ import annotations

from typing import List

from rich.color import Color, ColorParseError
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import GanttEntry, default_color


def _paint(entry: GanttEntry) -> str:
    # Color tokens are opaque to the engine; only ones rich understands are used.
    if entry.color:
        try:
            Color.parse(entry.color)
        except ColorParseError:
            return default_color(entry.process_id)
        return entry.color
    return default_color(entry.process_id)


def build_rich_gantt(entries: List[GanttEntry], title: str = "Gantt Chart") -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.

    Each segment is painted with its process's color token; idle gaps are
    dotted.
    """
    if not entries:
        panel = Panel("No execution", title=title)
        return panel, ""

    entries = sorted(entries, key=lambda e: (e.start, e.end))

    timeline = Text()
    labels = Text()
    time_marks = "0"
    last_time = 0

    for entry in entries:
        idle_gap = entry.start - last_time
        if idle_gap > 0:
            timeline.append("." * idle_gap, style="dim")
            labels.append(" " * idle_gap)
            last_time = entry.start
            time_marks += f"{last_time:>3}"

        width = entry.duration
        color = _paint(entry)

        timeline.append(" " * width, style=f"on {color}")
        labels.append(entry.name[:width].ljust(width), style="bold")

        last_time = entry.end
        time_marks += f"{last_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title=title)
    return panel, time_marks
