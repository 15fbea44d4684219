from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import SchedulerError
from .models import GanttEntry, Process, TickEvent, clone_processes, validate_processes, validate_quantum
from .policies import (
    Mode,
    Policy,
    RoundRobinQueue,
    check_ceiling,
    get_rule,
    in_selection_order,
    ready_set,
    run_tick,
    select_next,
    tick_ceiling,
)
from .states import snapshot
from .timeline import TimelineBuilder

logger = logging.getLogger(__name__)

ALL_COMPLETE = "All processes complete."


def _arrival_note(arrived: Sequence[Process]) -> Optional[str]:
    if not arrived:
        return None
    names = ", ".join(p.name for p in arrived)
    return f"{names} arrive." if len(arrived) > 1 else f"{names} arrives."


class StepwiseSimulation:
    """
    Run one policy a tick at a time.

    Each call to ``advance`` simulates exactly one tick and returns
    ``(event, done)``; after the last tick one more call returns the
    terminal "all complete" event with ``done`` set. Iterating the object
    pulls the same events. Nothing happens between calls, so pacing,
    pausing and abandoning are up to the caller.
    """

    def __init__(
        self,
        processes: Iterable[Process],
        policy: Union[str, Policy],
        quantum: Optional[int] = None,
    ) -> None:
        self.rule = get_rule(policy)

        processes = list(processes)
        validate_processes(processes)
        if self.rule.mode is Mode.QUANTUM:
            quantum = validate_quantum(quantum)
        self.quantum = quantum

        self.processes: List[Process] = clone_processes(processes)
        self.time = 0
        self.done = False

        self._left = len(self.processes)
        self._ceiling = tick_ceiling(self.processes)
        self._current: Optional[Process] = None
        self._rr: Optional[RoundRobinQueue] = None
        if self.rule.mode is Mode.QUANTUM:
            self._rr = RoundRobinQueue(self.processes, quantum)

        logger.info("%s: stepping %d processes", self.rule.display_name, len(self.processes))

    def advance(self) -> Tuple[TickEvent, bool]:
        if self.done:
            raise SchedulerError(f"{self.rule.display_name}: simulation already finished")

        if self._left == 0:
            self.done = True
            logger.info("%s: all processes complete at t=%d", self.rule.display_name, self.time)
            event = TickEvent(
                time=self.time,
                running_process_id=None,
                ready_queue_ids=[],
                processes=snapshot(self.processes, self.time, None),
                message=ALL_COMPLETE,
            )
            return event, True

        check_ceiling(self.rule, self.time, self._ceiling, self.processes)

        if self.rule.mode is Mode.NON_PREEMPTIVE:
            event = self._tick_non_preemptive()
        elif self.rule.mode is Mode.PREEMPTIVE:
            event = self._tick_preemptive()
        else:
            event = self._tick_round_robin()

        self.time += 1
        return event, False

    def __iter__(self) -> Iterator[TickEvent]:
        while not self.done:
            event, _ = self.advance()
            yield event

    def _arrived_now(self) -> List[Process]:
        return sorted((p for p in self.processes if p.arrival_time == self.time), key=lambda p: p.id)

    def _emit(self, runner: Optional[Process], ready_ids: List[int], notes: List[Optional[str]]) -> TickEvent:
        running_id = runner.id if runner is not None else None
        message = " ".join(n for n in notes if n)
        return TickEvent(
            time=self.time,
            running_process_id=running_id,
            ready_queue_ids=ready_ids,
            processes=snapshot(self.processes, self.time, running_id, ready_ids),
            message=message or None,
        )

    def _finish_tick(self, p: Process, notes: List[Optional[str]]) -> bool:
        if run_tick(p, self.time):
            notes.append(f"{p.name} completes execution.")
            self._left -= 1
            return True
        return False

    def _tick_non_preemptive(self) -> TickEvent:
        rule = self.rule
        notes = [_arrival_note(self._arrived_now())]
        ready = ready_set(self.processes, self.time)

        p = self._current
        if p is None:
            p = select_next(rule, ready)
            if p is None:
                notes.append("CPU is idle.")
                return self._emit(None, [], notes)
            self._current = p
            logger.debug("t=%d: dispatch %s", self.time, p.name)
            if rule.reason:
                notes.append(f"CPU selects {p.name} ({rule.reason}).")
            else:
                notes.append(f"CPU starts running {p.name}.")

        waiting = in_selection_order(rule, [q for q in ready if q is not p])
        if self._finish_tick(p, notes):
            self._current = None
        return self._emit(p, [q.id for q in waiting], notes)

    def _tick_preemptive(self) -> TickEvent:
        rule = self.rule
        notes = [_arrival_note(self._arrived_now())]
        ready = ready_set(self.processes, self.time)
        previous = self._current

        p = select_next(rule, ready)
        self._current = p
        if p is None:
            notes.append("CPU is idle.")
            return self._emit(None, [], notes)

        if p is not previous:
            if previous is not None and previous.remaining_time > 0:
                logger.debug("t=%d: %s preempts %s", self.time, p.name, previous.name)
                notes.append(f"{p.name} preempts {previous.name} ({rule.reason}).")
            else:
                logger.debug("t=%d: dispatch %s", self.time, p.name)
                notes.append(f"CPU starts running {p.name}.")

        waiting = in_selection_order(rule, [q for q in ready if q is not p])
        self._finish_tick(p, notes)
        return self._emit(p, [q.id for q in waiting], notes)

    def _tick_round_robin(self) -> TickEvent:
        rr = self._rr
        notes: List[Optional[str]] = []

        expired = rr.retire()
        if expired is not None:
            notes.append(f"Time quantum for {expired.name} expires. {expired.name} moved to back of queue.")

        notes.append(_arrival_note(rr.admit(self.time)))

        dispatched = rr.dispatch()
        if dispatched is not None:
            logger.debug("t=%d: dispatch %s", self.time, dispatched.name)
            notes.append(f"CPU takes {dispatched.name} from queue.")

        p = rr.execute(self.time)
        if p is None:
            notes.append("CPU is idle.")
            return self._emit(None, rr.waiting_ids, notes)

        if p.is_completed:
            notes.append(f"{p.name} completes execution.")
            self._left -= 1
        return self._emit(p, rr.waiting_ids, notes)


def simulate(
    processes: Iterable[Process],
    policy: Union[str, Policy],
    quantum: Optional[int] = None,
) -> Iterator[TickEvent]:
    """
    Pull-based stream of tick events. Input is validated immediately, not
    on the first pull.
    """
    return iter(StepwiseSimulation(processes, policy, quantum))


class LiveTrace:
    """
    Fold a stream of tick events into what a live view shows: the Gantt
    chart so far, the runner, the ready queue and an event log.
    """

    def __init__(self) -> None:
        self._builder = TimelineBuilder()
        self.log: List[str] = []
        self.time = 0
        self.running_name: Optional[str] = None
        self.ready_queue_ids: List[int] = []
        self.processes: List[Process] = []

    def feed(self, event: TickEvent) -> None:
        runner = None
        if event.running_process_id is not None:
            runner = event.process(event.running_process_id)
        self._builder.push(event.time, runner)

        if event.message:
            self.log.append(f"[Time {event.time}]: {event.message}")

        self.time = event.time
        self.running_name = runner.name if runner is not None else None
        self.ready_queue_ids = list(event.ready_queue_ids)
        self.processes = event.processes

    @property
    def timeline(self) -> List[GanttEntry]:
        return self._builder.segments
