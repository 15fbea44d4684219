from __future__ import annotations

from typing import Iterable, List, Optional

from .errors import InvariantViolation
from .models import AlgorithmResult, Process, SystemMetrics
from .timeline import build_timeline, segment_totals


def summarize_process_metrics(processes: List[Process]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
    }


def build_result(
    policy_name: str,
    processes: List[Process],
    markers: Iterable[Optional[Process]],
    quantum: Optional[int] = None,
) -> AlgorithmResult:
    """
    Assemble the summary for a finished working set and its per-tick record.
    """
    summary = summarize_process_metrics(processes)
    total_time = max((p.completion_time for p in processes), default=0)

    result = AlgorithmResult(
        policy_name=policy_name,
        timeline=build_timeline(markers),
        processes=processes,
        avg_waiting_time=summary["avg_waiting"],
        avg_turnaround_time=summary["avg_turnaround"],
        total_time=total_time,
        quantum=quantum,
    )
    compute_system_metrics(result)
    return result


def compute_system_metrics(result: AlgorithmResult) -> SystemMetrics:
    """
    Compute throughput and CPU utilization from a finished result.
    """
    makespan = result.total_time
    cpu_busy_time = sum(entry.duration for entry in result.timeline)

    if makespan > 0:
        throughput = len(result.processes) / makespan
        cpu_utilization = cpu_busy_time / makespan
    else:
        throughput = 0.0
        cpu_utilization = 0.0

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        idle_time=makespan - cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
    )
    result.system = system
    return system


def verify_result(result: AlgorithmResult) -> None:
    """
    Raise InvariantViolation if ``result`` breaks a metric or Gantt invariant.
    """
    label = result.policy_name

    for p in result.processes:
        if not p.is_completed:
            raise InvariantViolation(f"{label}: {p.name} never completed")
        if p.turnaround_time != p.completion_time - p.arrival_time:
            raise InvariantViolation(f"{label}: {p.name} turnaround {p.turnaround_time} is inconsistent")
        if p.waiting_time != p.turnaround_time - p.burst_time:
            raise InvariantViolation(f"{label}: {p.name} waiting {p.waiting_time} is inconsistent")
        if p.waiting_time < 0:
            raise InvariantViolation(f"{label}: {p.name} has negative waiting time")

    totals = segment_totals(result.timeline)
    for p in result.processes:
        if totals.get(p.id, 0) != p.burst_time:
            raise InvariantViolation(
                f"{label}: {p.name} ran {totals.get(p.id, 0)} ticks, burst is {p.burst_time}"
            )

    last_end = None
    for entry in sorted(result.timeline, key=lambda e: e.start):
        if entry.start >= entry.end:
            raise InvariantViolation(f"{label}: empty segment {entry}")
        if last_end is not None and entry.start < last_end:
            raise InvariantViolation(f"{label}: segment {entry} overlaps the previous one")
        last_end = entry.end
