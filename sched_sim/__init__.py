"""
CPU scheduling simulator package.

Runs FCFS, SJF, SRTF, Priority (both flavours) and Round Robin over a fixed
set of processes, either to completion in one call or one tick at a time
for live playback.
"""

from .algorithms import ALGORITHMS, run_algorithm, run_all
from .errors import InvalidInputError, SchedulerError, UnreachableProcessError
from .models import AlgorithmResult, GanttEntry, Process, ProcessState, TickEvent
from .policies import Policy
from .stepwise import StepwiseSimulation, simulate

__all__ = [
    "ALGORITHMS",
    "AlgorithmResult",
    "GanttEntry",
    "InvalidInputError",
    "Policy",
    "Process",
    "ProcessState",
    "SchedulerError",
    "StepwiseSimulation",
    "TickEvent",
    "UnreachableProcessError",
    "run_algorithm",
    "run_all",
    "simulate",
]
