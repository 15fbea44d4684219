from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from .models import GanttEntry, Process


class TimelineBuilder:
    """
    Merge a tick-by-tick record of who held the CPU into Gantt segments.

    Consecutive ticks of the same process extend one segment; an idle tick,
    a gap, or a different process closes it.
    """

    def __init__(self) -> None:
        self._closed: List[GanttEntry] = []
        self._owner: Optional[Process] = None
        self._start = 0
        self._end = 0

    def push(self, t: int, process: Optional[Process]) -> None:
        if process is None:
            self._close()
            return

        owner = self._owner
        if owner is not None and owner.id == process.id and self._end == t:
            self._end = t + 1
            return

        self._close()
        self._owner = process
        self._start = t
        self._end = t + 1

    def _close(self) -> None:
        owner = self._owner
        if owner is not None:
            self._closed.append(
                GanttEntry(
                    process_id=owner.id,
                    start=self._start,
                    end=self._end,
                    name=owner.name,
                    color=owner.color,
                )
            )
        self._owner = None

    @property
    def segments(self) -> List[GanttEntry]:
        """Closed segments plus the still-open one, without closing it."""
        entries = list(self._closed)
        owner = self._owner
        if owner is not None:
            entries.append(GanttEntry(owner.id, self._start, self._end, owner.name, owner.color))
        return entries

    def build(self) -> List[GanttEntry]:
        self._close()
        return list(self._closed)


def build_timeline(markers: Iterable[Optional[Process]]) -> List[GanttEntry]:
    """
    Compress per-tick markers (marker ``i`` is the process that ran during
    tick ``i``, or None for idle) into the minimal list of segments.
    """
    builder = TimelineBuilder()
    for t, process in enumerate(markers):
        builder.push(t, process)
    return builder.build()


def segment_totals(timeline: Iterable[GanttEntry]) -> Dict[int, int]:
    totals: Dict[int, int] = {}
    for entry in timeline:
        totals[entry.process_id] = totals.get(entry.process_id, 0) + entry.duration
    return totals
