from __future__ import annotations

import copy
from typing import Collection, List, Optional, Sequence

from .models import Process, ProcessState


def project_state(
    process: Process,
    t: int,
    running_id: Optional[int],
    ready_ids: Collection[int] = (),
) -> ProcessState:
    """
    Display state of ``process`` at tick ``t``.

    Precedence is completed > running > waiting > not-arrived. Pure: the
    process is only read.
    """
    if process.is_completed:
        return ProcessState.COMPLETED
    if process.id == running_id:
        return ProcessState.RUNNING
    if process.id in ready_ids:
        return ProcessState.WAITING
    if process.arrival_time <= t and process.remaining_time > 0:
        return ProcessState.WAITING
    return ProcessState.NOT_ARRIVED


def snapshot(
    processes: Sequence[Process],
    t: int,
    running_id: Optional[int],
    ready_ids: Collection[int] = (),
) -> List[Process]:
    """Independent copies of ``processes`` labelled with their projected state."""
    ready = set(ready_ids)
    copies: List[Process] = []
    for p in processes:
        clone = copy.copy(p)
        clone.state = project_state(p, t, running_id, ready)
        copies.append(clone)
    return copies
