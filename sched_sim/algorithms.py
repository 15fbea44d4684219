from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from .metrics import build_result
from .models import AlgorithmResult, Process, clone_processes, validate_processes, validate_quantum
from .policies import (
    RULES,
    Policy,
    RoundRobinQueue,
    SelectionRule,
    check_ceiling,
    ready_set,
    resolve_policy,
    run_tick,
    select_next,
    tick_ceiling,
)

logger = logging.getLogger(__name__)


def _working_set(processes: Iterable[Process]) -> List[Process]:
    processes = list(processes)
    validate_processes(processes)
    return clone_processes(processes)


def _run_to_completion(rule: SelectionRule, processes: Iterable[Process]) -> AlgorithmResult:
    """
    Non-preemptive policies: pick from the ready set, then run the winner
    for its whole burst in one step.
    """
    working = _working_set(processes)
    logger.info("%s: scheduling %d processes", rule.display_name, len(working))

    ceiling = tick_ceiling(working)
    markers: List[Optional[Process]] = []
    time = 0
    left = len(working)

    while left:
        check_ceiling(rule, time, ceiling, working)

        p = select_next(rule, ready_set(working, time))
        if p is None:
            markers.append(None)
            time += 1
            continue

        logger.debug("t=%d: dispatch %s for %d ticks", time, p.name, p.burst_time)
        markers.extend([p] * p.burst_time)
        time += p.burst_time
        p.remaining_time = 0
        p.complete(time)
        left -= 1

    result = build_result(rule.display_name, working, markers)
    logger.info("%s: finished at t=%d", rule.display_name, result.total_time)
    return result


def _run_per_tick(rule: SelectionRule, processes: Iterable[Process]) -> AlgorithmResult:
    """
    Preemptive policies: re-run selection over the ready set on every tick.
    """
    working = _working_set(processes)
    logger.info("%s: scheduling %d processes", rule.display_name, len(working))

    ceiling = tick_ceiling(working)
    markers: List[Optional[Process]] = []
    previous: Optional[Process] = None
    time = 0
    left = len(working)

    while left:
        check_ceiling(rule, time, ceiling, working)

        p = select_next(rule, ready_set(working, time))
        if p is not None:
            if previous is not None and previous is not p and previous.remaining_time > 0:
                logger.debug("t=%d: %s preempts %s", time, p.name, previous.name)
            elif previous is not p:
                logger.debug("t=%d: dispatch %s", time, p.name)
            if run_tick(p, time):
                left -= 1

        markers.append(p)
        previous = p
        time += 1

    result = build_result(rule.display_name, working, markers)
    logger.info("%s: finished at t=%d", rule.display_name, result.total_time)
    return result


def schedule_fcfs(processes: Iterable[Process], quantum: Optional[int] = None) -> AlgorithmResult:
    """
    First-Come First-Serve (non-preemptive). Ties on arrival go to the lower id.
    """
    return _run_to_completion(RULES[Policy.FCFS], processes)


def schedule_sjf(processes: Iterable[Process], quantum: Optional[int] = None) -> AlgorithmResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    completed, choose the one with the smallest burst time (tie-breaker:
    earlier arrival, then id).
    """
    return _run_to_completion(RULES[Policy.SJF], processes)


def schedule_srtf(processes: Iterable[Process], quantum: Optional[int] = None) -> AlgorithmResult:
    """
    Shortest Remaining Time First (preemptive SJF).
    """
    return _run_per_tick(RULES[Policy.SRTF], processes)


def schedule_priority(processes: Iterable[Process], quantum: Optional[int] = None) -> AlgorithmResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority and an unset priority
    ranks below all others. Ties go to earlier arrival, then lower id.
    """
    return _run_to_completion(RULES[Policy.PRIORITY_NP], processes)


def schedule_priority_preemptive(processes: Iterable[Process], quantum: Optional[int] = None) -> AlgorithmResult:
    """
    Priority scheduling re-evaluated on every tick, so a newly arrived
    process with a better priority takes the CPU at the next tick boundary.
    """
    return _run_per_tick(RULES[Policy.PRIORITY_P], processes)


def schedule_rr(processes: Iterable[Process], quantum: Optional[int] = None) -> AlgorithmResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Per tick: retire the running process (finished, or quantum used up and
    sent to the back of the queue), enqueue processes arriving now in id
    order, dispatch from the front if the CPU is free, run one tick.
    """
    rule = RULES[Policy.RR]
    quantum = validate_quantum(quantum)
    working = _working_set(processes)
    logger.info("%s: scheduling %d processes, quantum=%d", rule.display_name, len(working), quantum)

    rr = RoundRobinQueue(working, quantum)
    ceiling = tick_ceiling(working)
    markers: List[Optional[Process]] = []
    time = 0
    left = len(working)

    while left:
        check_ceiling(rule, time, ceiling, working)

        rr.retire()
        rr.admit(time)
        dispatched = rr.dispatch()
        if dispatched is not None:
            logger.debug("t=%d: dispatch %s", time, dispatched.name)

        p = rr.execute(time)
        if p is not None and p.is_completed:
            left -= 1

        markers.append(p)
        time += 1

    result = build_result(rule.display_name, working, markers, quantum=quantum)
    logger.info("%s: finished at t=%d", rule.display_name, result.total_time)
    return result


ALGORITHMS: Dict[Policy, Callable[..., AlgorithmResult]] = {
    Policy.FCFS: schedule_fcfs,
    Policy.SJF: schedule_sjf,
    Policy.SRTF: schedule_srtf,
    Policy.PRIORITY_NP: schedule_priority,
    Policy.PRIORITY_P: schedule_priority_preemptive,
    Policy.RR: schedule_rr,
}


def run_algorithm(
    name: Union[str, Policy],
    processes: Iterable[Process],
    quantum: Optional[int] = None,
) -> AlgorithmResult:
    """
    Dispatch to the requested algorithm. Quantum is only used by round-robin.
    """
    func = ALGORITHMS[resolve_policy(name)]
    return func(processes, quantum=quantum)


def run_all(processes: Iterable[Process], quantum: int = 2) -> List[AlgorithmResult]:
    """
    Run every policy on the same input ("compare all"). Each run gets its own
    copy, so the order of the runs never affects their results.
    """
    processes = list(processes)
    return [
        run_algorithm(policy, processes, quantum=quantum if policy is Policy.RR else None)
        for policy in ALGORITHMS
    ]
