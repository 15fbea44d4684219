from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Sequence, Union

from .errors import InvalidInputError, UnreachableProcessError
from .models import Process

logger = logging.getLogger(__name__)

# No legitimate schedule outlasts max(arrival) + sum(burst); the ceiling
# leaves generous headroom above that.
TICK_CEILING_FACTOR = 4


class Policy(str, Enum):
    FCFS = "fcfs"
    SJF = "sjf"
    SRTF = "srtf"
    PRIORITY_NP = "priority"
    PRIORITY_P = "priority-p"
    RR = "rr"


class Mode(Enum):
    NON_PREEMPTIVE = "non-preemptive"
    PREEMPTIVE = "preemptive"
    QUANTUM = "quantum"


def priority_rank(p: Process) -> float:
    # Treat missing priority as lowest priority.
    return p.priority if p.priority is not None else float("inf")


@dataclass(frozen=True)
class SelectionRule:
    """
    How one policy picks the next process from a ready set.

    ``key`` is minimised; every key ends in the unique process id so a
    non-empty ready set always has exactly one winner. ``reason`` is the
    phrase used when narrating a selection or preemption.
    """

    policy: Policy
    display_name: str
    mode: Mode
    key: Callable[[Process], tuple]
    reason: str = ""


RULES: Dict[Policy, SelectionRule] = {
    Policy.FCFS: SelectionRule(
        Policy.FCFS,
        "First-Come, First-Served (FCFS)",
        Mode.NON_PREEMPTIVE,
        key=lambda p: (p.arrival_time, p.id),
    ),
    Policy.SJF: SelectionRule(
        Policy.SJF,
        "Non-Preemptive SJF",
        Mode.NON_PREEMPTIVE,
        key=lambda p: (p.burst_time, p.arrival_time, p.id),
        reason="shortest job",
    ),
    Policy.SRTF: SelectionRule(
        Policy.SRTF,
        "Preemptive SJF (SRTF)",
        Mode.PREEMPTIVE,
        key=lambda p: (p.remaining_time, p.arrival_time, p.id),
        reason="shorter remaining time",
    ),
    Policy.PRIORITY_NP: SelectionRule(
        Policy.PRIORITY_NP,
        "Non-Preemptive Priority",
        Mode.NON_PREEMPTIVE,
        key=lambda p: (priority_rank(p), p.arrival_time, p.id),
        reason="highest priority",
    ),
    Policy.PRIORITY_P: SelectionRule(
        Policy.PRIORITY_P,
        "Preemptive Priority",
        Mode.PREEMPTIVE,
        key=lambda p: (priority_rank(p), p.arrival_time, p.id),
        reason="higher priority",
    ),
    # Round Robin dispatches from its FIFO queue; the key only orders
    # processes by when they joined it.
    Policy.RR: SelectionRule(
        Policy.RR,
        "Round Robin",
        Mode.QUANTUM,
        key=lambda p: (p.arrival_time, p.id),
    ),
}


def resolve_policy(name: Union[str, Policy]) -> Policy:
    if isinstance(name, Policy):
        return name
    try:
        return Policy(str(name).lower())
    except ValueError as exc:
        raise InvalidInputError(f"Unknown or unimplemented algorithm '{name}'") from exc


def get_rule(name: Union[str, Policy]) -> SelectionRule:
    return RULES[resolve_policy(name)]


def ready_set(processes: Sequence[Process], t: int) -> List[Process]:
    """Processes that have arrived by tick ``t`` and still need the CPU."""
    return [p for p in processes if p.arrival_time <= t and p.remaining_time > 0]


def select_next(rule: SelectionRule, ready: Sequence[Process]) -> Optional[Process]:
    """
    Pick the process to run next, or None when the CPU has to idle.
    """
    if rule.mode is Mode.QUANTUM:
        raise ValueError("Round Robin dispatches from RoundRobinQueue, not by comparison")
    if not ready:
        return None
    return min(ready, key=rule.key)


def in_selection_order(rule: SelectionRule, processes: Sequence[Process]) -> List[Process]:
    return sorted(processes, key=rule.key)


def run_tick(process: Process, t: int) -> bool:
    """
    Give ``process`` the CPU for tick ``t``. Returns True when this was its
    last tick, in which case its metrics are committed at ``t + 1``.
    """
    process.remaining_time -= 1
    if process.remaining_time == 0:
        process.complete(t + 1)
        logger.debug("t=%d: %s completes", t + 1, process.name)
        return True
    return False


def tick_ceiling(processes: Sequence[Process]) -> int:
    if not processes:
        return 0
    total_burst = sum(p.burst_time for p in processes)
    return TICK_CEILING_FACTOR * total_burst + max(p.arrival_time for p in processes)


def check_ceiling(rule: SelectionRule, t: int, ceiling: int, processes: Sequence[Process]) -> None:
    if t <= ceiling:
        return
    unfinished = [p.id for p in processes if p.remaining_time > 0]
    logger.error(
        "%s: passed tick ceiling %d with %d unfinished processes",
        rule.display_name,
        ceiling,
        len(unfinished),
    )
    raise UnreachableProcessError(rule.display_name, t, unfinished)


class RoundRobinQueue:
    """
    FIFO ready queue, running slot and per-dispatch quantum counter.

    Each tick is driven as ``retire`` -> ``admit`` -> ``dispatch`` ->
    ``execute``. A process rotated out by quantum expiry therefore lands in
    the queue ahead of anything arriving on that same tick.
    """

    def __init__(self, processes: Sequence[Process], quantum: int) -> None:
        self.quantum = quantum
        self.queue: Deque[Process] = deque()
        self.running: Optional[Process] = None
        self.used = 0

        self._arrivals: Dict[int, List[Process]] = {}
        for p in sorted(processes, key=lambda p: p.id):
            self._arrivals.setdefault(p.arrival_time, []).append(p)

    def retire(self) -> Optional[Process]:
        """
        Free the CPU if its process finished last tick or used its whole
        quantum. Returns the process only when it was rotated to the back.
        """
        p = self.running
        if p is None:
            return None

        if p.remaining_time == 0:
            self.running = None
            self.used = 0
            return None

        if self.used >= self.quantum:
            self.queue.append(p)
            self.running = None
            self.used = 0
            logger.debug("%s quantum expired, re-enqueued", p.name)
            return p

        return None

    def admit(self, t: int) -> List[Process]:
        arrived = self._arrivals.pop(t, [])
        self.queue.extend(arrived)
        return arrived

    def dispatch(self) -> Optional[Process]:
        if self.running is not None or not self.queue:
            return None
        self.running = self.queue.popleft()
        self.used = 0
        return self.running

    def execute(self, t: int) -> Optional[Process]:
        p = self.running
        if p is None:
            return None
        self.used += 1
        run_tick(p, t)
        return p

    @property
    def waiting_ids(self) -> List[int]:
        return [p.id for p in self.queue]
