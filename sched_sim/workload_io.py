from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import List, Mapping

from .errors import InvalidInputError
from .models import Process, default_color, validate_processes


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise InvalidInputError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    validate_processes(processes)
    return processes


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidInputError(f"{path}: invalid JSON ({exc})") from exc

    if not isinstance(raw, list):
        raise InvalidInputError("JSON workload must be a list of process objects")

    return [_process_from_mapping(entry, position) for position, entry in enumerate(raw, start=1)]


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for position, row in enumerate(reader, start=1):
            processes.append(_process_from_mapping(row, position))
    return processes


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _integer(mapping: Mapping, key: str):
    value = mapping[key]
    if isinstance(value, bool):
        raise TypeError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        # "3.5" and "3.0" both fail here; nothing is rounded.
        return int(value.strip())
    raise TypeError(f"{key} must be an integer, got {value!r}")


def _process_from_mapping(mapping, position: int) -> Process:
    if not isinstance(mapping, Mapping):
        raise InvalidInputError(f"Invalid process entry: {mapping!r}")

    try:
        pid = position if _blank(mapping.get("id")) else _integer(mapping, "id")
        arrival_time = _integer(mapping, "arrival_time")
        burst_time = _integer(mapping, "burst_time")
        priority = None if _blank(mapping.get("priority")) else _integer(mapping, "priority")
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid process entry: {dict(mapping)!r}") from exc

    name = mapping.get("name")
    color = mapping.get("color")

    return Process(
        id=pid,
        arrival_time=arrival_time,
        burst_time=burst_time,
        priority=priority,
        name="" if _blank(name) else str(name),
        color=default_color(pid) if _blank(color) else str(color),
    )
