from sched_sim.models import GanttEntry, Process, ProcessState
from sched_sim.states import project_state, snapshot
from sched_sim.timeline import TimelineBuilder, build_timeline, segment_totals

A = Process(1, 0, 3, color="red")
B = Process(2, 0, 2)


def test_consecutive_ticks_merge():
    assert build_timeline([A, A, A]) == [GanttEntry(1, 0, 3, "P1", "red")]


def test_change_of_process_closes_segment():
    entries = build_timeline([A, B, B, A])
    assert [(e.process_id, e.start, e.end) for e in entries] == [(1, 0, 1), (2, 1, 3), (1, 3, 4)]


def test_idle_tick_closes_segment():
    entries = build_timeline([A, None, None, A])
    assert [(e.process_id, e.start, e.end) for e in entries] == [(1, 0, 1), (1, 3, 4)]


def test_empty_and_all_idle():
    assert build_timeline([]) == []
    assert build_timeline([None, None]) == []


def test_segment_totals():
    assert segment_totals(build_timeline([A, B, A, A, None, B])) == {1: 3, 2: 2}


def test_builder_segments_include_open_run_without_closing_it():
    builder = TimelineBuilder()
    builder.push(0, A)
    builder.push(1, A)
    assert builder.segments == [GanttEntry(1, 0, 2, "P1", "red")]
    builder.push(2, A)
    assert builder.build() == [GanttEntry(1, 0, 3, "P1", "red")]


def test_builder_gap_starts_new_segment():
    builder = TimelineBuilder()
    builder.push(0, A)
    builder.push(5, A)
    assert [(e.start, e.end) for e in builder.build()] == [(0, 1), (5, 6)]


def test_state_precedence():
    done = Process(1, 0, 1, remaining_time=0, completion_time=1)
    assert project_state(done, 5, running_id=1) is ProcessState.COMPLETED

    p = Process(2, 0, 3)
    assert project_state(p, 0, running_id=2, ready_ids={2}) is ProcessState.RUNNING
    assert project_state(p, 0, running_id=None, ready_ids={2}) is ProcessState.WAITING
    assert project_state(p, 0, running_id=None) is ProcessState.WAITING

    late = Process(3, 4, 3)
    assert project_state(late, 3, running_id=None) is ProcessState.NOT_ARRIVED
    assert project_state(late, 4, running_id=None) is ProcessState.WAITING


def test_snapshot_does_not_touch_originals():
    procs = [Process(1, 0, 2), Process(2, 3, 1)]
    copies = snapshot(procs, 0, running_id=1)
    assert [c.state for c in copies] == [ProcessState.RUNNING, ProcessState.NOT_ARRIVED]
    assert all(p.state is ProcessState.NOT_ARRIVED for p in procs)
    copies[0].remaining_time = 0
    assert procs[0].remaining_time == 2
