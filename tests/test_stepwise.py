from itertools import islice

import pytest

from sched_sim import stepwise
from sched_sim.algorithms import run_algorithm
from sched_sim.errors import InvalidInputError, SchedulerError, UnreachableProcessError
from sched_sim.models import Process, ProcessState
from sched_sim.policies import Policy
from sched_sim.stepwise import ALL_COMPLETE, LiveTrace, StepwiseSimulation, simulate


def _procs():
    return [
        Process(1, arrival_time=0, burst_time=5, priority=2),
        Process(2, arrival_time=1, burst_time=3, priority=1),
        Process(3, arrival_time=2, burst_time=8, priority=3),
    ]


def _short_tail():
    return [
        Process(1, arrival_time=0, burst_time=5),
        Process(2, arrival_time=1, burst_time=3),
        Process(3, arrival_time=2, burst_time=1),
    ]


WORKLOADS = [
    _procs(),
    _short_tail(),
    [Process(1, 2, 2), Process(2, 10, 1, priority=0)],
    [Process(4, 0, 3), Process(2, 0, 3, priority=1), Process(3, 4, 2), Process(1, 4, 6, priority=1)],
]


def _events(procs, policy, quantum=None):
    return list(simulate(procs, policy, quantum))


def _states(event):
    return {p.id: p.state for p in event.processes}


@pytest.mark.parametrize("policy", list(Policy))
@pytest.mark.parametrize("quantum", [1, 2, 3])
def test_stepwise_agrees_with_batch(policy, quantum):
    for procs in WORKLOADS:
        batch = run_algorithm(policy, procs, quantum=quantum)
        events = _events(procs, policy, quantum)

        final = {p.id: (p.completion_time, p.turnaround_time, p.waiting_time) for p in events[-1].processes}
        expected = {p.id: (p.completion_time, p.turnaround_time, p.waiting_time) for p in batch.processes}
        assert final == expected

        trace = LiveTrace()
        for event in events:
            trace.feed(event)
        assert trace.timeline == batch.timeline


@pytest.mark.parametrize("policy", list(Policy))
def test_one_event_per_tick_plus_terminal(policy):
    procs = _procs()
    batch = run_algorithm(policy, procs, quantum=2)
    events = _events(procs, policy, 2)

    assert [e.time for e in events] == list(range(batch.total_time + 1))
    last = events[-1]
    assert last.message == ALL_COMPLETE
    assert last.running_process_id is None
    assert last.ready_queue_ids == []
    assert all(p.state is ProcessState.COMPLETED for p in last.processes)


def test_advance_reports_done_and_then_refuses():
    sim = StepwiseSimulation([Process(1, 0, 1)], "fcfs")
    event, done = sim.advance()
    assert (event.time, done) == (0, False)
    event, done = sim.advance()
    assert done and event.message == ALL_COMPLETE
    with pytest.raises(SchedulerError):
        sim.advance()


def test_empty_input_yields_only_terminal_event():
    events = _events([], "srtf")
    assert len(events) == 1
    assert events[0].time == 0
    assert events[0].message == ALL_COMPLETE


def test_sjf_narration_and_ready_order():
    events = _events(_short_tail(), "sjf")
    messages = [e.message for e in events]
    assert messages[0] == "P1 arrives. CPU selects P1 (shortest job)."
    assert messages[1] == "P2 arrives."
    assert messages[3] is None
    assert messages[4] == "P1 completes execution."
    assert messages[5] == "CPU selects P3 (shortest job). P3 completes execution."
    # waiting processes are listed in the order SJF would pick them
    assert events[2].ready_queue_ids == [3, 2]
    assert events[5].ready_queue_ids == [2]


def test_non_preemptive_policies_emit_every_tick_of_a_burst():
    events = _events(_short_tail(), "fcfs")
    assert [e.running_process_id for e in events[:5]] == [1, 1, 1, 1, 1]
    assert events[0].message == "P1 arrives. CPU starts running P1."
    assert [p.remaining_time for p in events[0].processes] == [4, 3, 1]


def test_projected_states():
    events = _events(_short_tail(), "sjf")
    assert _states(events[1]) == {
        1: ProcessState.RUNNING,
        2: ProcessState.WAITING,
        3: ProcessState.NOT_ARRIVED,
    }
    # P3 finishes during tick 5, so its snapshot already shows it completed
    assert _states(events[5]) == {
        1: ProcessState.COMPLETED,
        2: ProcessState.WAITING,
        3: ProcessState.COMPLETED,
    }


def test_priority_preemption_is_narrated():
    events = _events(_procs(), "priority-p")
    assert events[0].running_process_id == 1
    assert events[1].running_process_id == 2
    assert events[1].message == "P2 arrives. P2 preempts P1 (higher priority)."
    assert events[1].ready_queue_ids == [1]


def test_srtf_narration():
    events = _events(_short_tail(), "srtf")
    assert events[0].message == "P1 arrives. CPU starts running P1."
    assert events[1].message == "P2 arrives. P2 preempts P1 (shorter remaining time)."
    assert events[2].message == "P3 arrives. P3 preempts P2 (shorter remaining time). P3 completes execution."
    assert events[3].message == "CPU starts running P2."


def test_rr_quantum_expiry_before_same_tick_arrival():
    events = _events([Process(1, 0, 4), Process(2, 2, 2)], "rr", 2)
    assert events[2].message == (
        "Time quantum for P1 expires. P1 moved to back of queue. P2 arrives. CPU takes P1 from queue."
    )
    assert events[2].running_process_id == 1
    assert events[2].ready_queue_ids == [2]
    assert events[4].message == "CPU takes P2 from queue."


def test_idle_tick():
    events = _events([Process(1, 2, 2)], "fcfs")
    assert events[0].message == "CPU is idle."
    assert events[0].running_process_id is None
    assert _states(events[0]) == {1: ProcessState.NOT_ARRIVED}
    assert events[2].message == "P1 arrives. CPU starts running P1."


def test_deterministic():
    assert _events(_procs(), "rr", 2) == _events(_procs(), "rr", 2)


def test_caller_list_is_not_mutated():
    procs = _procs()
    _events(procs, "srtf")
    assert [p.remaining_time for p in procs] == [5, 3, 8]
    assert all(p.completion_time is None for p in procs)


def test_abandoning_early_needs_no_cleanup():
    first_two = list(islice(simulate(_procs(), "fcfs"), 2))
    assert [e.time for e in first_two] == [0, 1]


def test_input_is_validated_before_first_pull():
    with pytest.raises(InvalidInputError):
        simulate([Process(1, 0, 0)], "fcfs")
    with pytest.raises(InvalidInputError):
        simulate(_procs(), "rr")


def test_tick_ceiling(monkeypatch):
    monkeypatch.setattr(stepwise, "select_next", lambda rule, ready: None)
    with pytest.raises(UnreachableProcessError):
        _events([Process(1, 0, 2)], "sjf")


def test_live_trace_log():
    trace = LiveTrace()
    for event in simulate([Process(1, 0, 2)], "fcfs"):
        trace.feed(event)
    assert trace.log == [
        "[Time 0]: P1 arrives. CPU starts running P1.",
        "[Time 1]: P1 completes execution.",
        "[Time 2]: All processes complete.",
    ]
    assert trace.running_name is None
