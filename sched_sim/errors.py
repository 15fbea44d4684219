from __future__ import annotations

from typing import Iterable, List


class SchedulerError(Exception):
    """Base class for everything the simulation engine raises."""


class InvalidInputError(SchedulerError, ValueError):
    """A process list, quantum or policy name violates the input contract."""


class UnreachableProcessError(SchedulerError, RuntimeError):
    """
    The safety tick ceiling was crossed while processes were still unfinished.

    This means the selection rules left some process permanently unchosen;
    it is a logic defect, never legitimate idle time.
    """

    def __init__(self, policy: str, tick: int, unfinished_ids: Iterable[int]) -> None:
        self.policy = policy
        self.tick = tick
        self.unfinished_ids: List[int] = sorted(unfinished_ids)
        super().__init__(
            f"{policy}: tick ceiling {tick} reached with unfinished processes "
            f"{self.unfinished_ids}"
        )


class InvariantViolation(SchedulerError, AssertionError):
    """A finished result breaks a metric or Gantt invariant."""
