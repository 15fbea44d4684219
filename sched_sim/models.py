from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .errors import InvalidInputError, SchedulerError


class ProcessState(str, Enum):
    NOT_ARRIVED = "not-arrived"
    WAITING = "waiting"
    RUNNING = "running"
    COMPLETED = "completed"


@dataclass
class Process:
    """
    One schedulable process.

    ``arrival_time``, ``burst_time`` and ``priority`` are inputs; the
    remaining fields are derived during a run. ``priority`` of ``None``
    means "unset" and ranks below every explicit priority. ``color`` is an
    opaque display token that is only ever copied through.
    """

    id: int
    arrival_time: int
    burst_time: int
    priority: Optional[int] = None
    name: str = ""
    color: Optional[str] = None
    remaining_time: Optional[int] = None
    completion_time: Optional[int] = None
    turnaround_time: Optional[int] = None
    waiting_time: Optional[int] = None
    state: ProcessState = ProcessState.NOT_ARRIVED

    def __post_init__(self) -> None:
        if not self.name:
            self.name = f"P{self.id}"
        if self.remaining_time is None:
            self.remaining_time = self.burst_time

    @property
    def is_completed(self) -> bool:
        return self.remaining_time == 0 and self.completion_time is not None

    def complete(self, at: int) -> None:
        """
        Commit completion, turnaround and waiting time at tick ``at``.
        """
        if self.completion_time is not None:
            raise SchedulerError(f"{self.name} already completed at t={self.completion_time}")
        if self.remaining_time != 0:
            raise SchedulerError(f"{self.name} cannot complete with {self.remaining_time} ticks left")

        self.completion_time = at
        self.turnaround_time = at - self.arrival_time
        self.waiting_time = self.turnaround_time - self.burst_time
        self.state = ProcessState.COMPLETED


@dataclass(frozen=True)
class GanttEntry:
    """
    One contiguous, uninterrupted run of a process: ``[start, end)``.
    """

    process_id: int
    start: int
    end: int
    name: str = ""
    color: Optional[str] = None

    @property
    def duration(self) -> int:
        return self.end - self.start


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    idle_time: int
    makespan: int
    throughput: float
    cpu_utilization: float


@dataclass
class AlgorithmResult:
    policy_name: str
    timeline: List[GanttEntry] = field(default_factory=list)
    processes: List[Process] = field(default_factory=list)
    avg_waiting_time: float = 0.0
    avg_turnaround_time: float = 0.0
    total_time: int = 0
    quantum: Optional[int] = None
    system: Optional[SystemMetrics] = None

    def process(self, pid: int) -> Process:
        for p in self.processes:
            if p.id == pid:
                return p
        raise KeyError(pid)


@dataclass
class TickEvent:
    """
    Snapshot emitted by the stepwise engine after one simulated tick.
    """

    time: int
    running_process_id: Optional[int]
    ready_queue_ids: List[int]
    processes: List[Process]
    message: Optional[str] = None

    def process(self, pid: int) -> Process:
        for p in self.processes:
            if p.id == pid:
                return p
        raise KeyError(pid)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_processes(processes: Iterable[Process]) -> None:
    """
    Check the input contract. Violations raise InvalidInputError; nothing
    is coerced.
    """
    seen: set[int] = set()
    for p in processes:
        if not isinstance(p, Process):
            raise InvalidInputError(f"Expected a Process, got {p!r}")
        if not _is_int(p.id):
            raise InvalidInputError(f"Process id must be an integer: {p.id!r}")
        if p.id in seen:
            raise InvalidInputError(f"Duplicate process id {p.id}")
        seen.add(p.id)

        if not _is_int(p.arrival_time) or p.arrival_time < 0:
            raise InvalidInputError(f"{p.name}: arrival time must be a non-negative integer, got {p.arrival_time!r}")
        if not _is_int(p.burst_time) or p.burst_time <= 0:
            raise InvalidInputError(f"{p.name}: burst time must be a positive integer, got {p.burst_time!r}")
        if p.priority is not None and (not _is_int(p.priority) or p.priority < 0):
            raise InvalidInputError(f"{p.name}: priority must be a non-negative integer or unset, got {p.priority!r}")


def validate_quantum(quantum: Optional[int]) -> int:
    if quantum is None or not _is_int(quantum) or quantum < 1:
        raise InvalidInputError(f"Round Robin requires an integer quantum >= 1, got {quantum!r}")
    return quantum


def clone_processes(processes: Iterable[Process]) -> List[Process]:
    """
    Deep-copy the caller's processes into a fresh working set with every
    derived field reset, so the caller's list is never touched.
    """
    working: List[Process] = []
    for p in processes:
        clone = copy.deepcopy(p)
        clone.remaining_time = clone.burst_time
        clone.completion_time = None
        clone.turnaround_time = None
        clone.waiting_time = None
        clone.state = ProcessState.NOT_ARRIVED
        working.append(clone)
    return working


# Display tokens handed out to processes that do not bring their own.
DEFAULT_COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def default_color(pid: int) -> str:
    return DEFAULT_COLORS[(pid - 1) % len(DEFAULT_COLORS)]
