from pathlib import Path

import pytest

from sched_sim.errors import InvalidInputError
from sched_sim.models import DEFAULT_COLORS, Process
from sched_sim.workload_io import load_workload


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"id":1,"arrival_time":0,"burst_time":3,"priority":1},'
                 '{"id":2,"arrival_time":1,"burst_time":2,"name":"editor","color":"#ff8800"}]')
    procs = load_workload(p)
    assert isinstance(procs[0], Process)
    assert procs[0].name == "P1"
    assert procs[1].priority is None
    assert procs[1].arrival_time == 1
    assert procs[1].name == "editor"
    assert procs[1].color == "#ff8800"


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("arrival_time,burst_time,priority\n0,3,1\n1,2,\n")
    procs = load_workload(p)
    assert [q.id for q in procs] == [1, 2]
    assert procs[1].priority is None
    assert procs[1].remaining_time == 2
    assert [q.color for q in procs] == DEFAULT_COLORS[:2]


@pytest.mark.parametrize(
    "body",
    [
        '[{"arrival_time": 0, "burst_time": 2.5}]',
        '[{"arrival_time": 0}]',
        '[{"arrival_time": -1, "burst_time": 2}]',
        '[{"id": 1, "arrival_time": 0, "burst_time": 2}, {"id": 1, "arrival_time": 0, "burst_time": 1}]',
        '{"arrival_time": 0, "burst_time": 2}',
        "not json",
    ],
)
def test_bad_json_is_rejected(tmp_path: Path, body):
    p = tmp_path / "w.json"
    p.write_text(body)
    with pytest.raises(InvalidInputError):
        load_workload(p)


def test_bad_csv_value_is_rejected(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("arrival_time,burst_time\n0,3.0\n")
    with pytest.raises(InvalidInputError):
        load_workload(p)


def test_unsupported_suffix(tmp_path: Path):
    p = tmp_path / "w.yaml"
    p.write_text("- {}")
    with pytest.raises(ValueError):
        load_workload(p)
