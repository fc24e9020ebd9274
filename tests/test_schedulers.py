import random

import pytest

from scheduler_sim.algorithms import ReadyQueue, run_algorithm, schedule_rr, schedule_srtf
from scheduler_sim.errors import ConfigurationError, SchedulerInvariantError
from scheduler_sim.models import IDLE, Process
from scheduler_sim.workload_io import build_process_table


def _procs():
    return build_process_table([(1, 0, 5), (2, 1, 3)])


def _spans(result):
    return [(s.owner, s.start, s.end) for s in result.timeline]


def _by_pid(result):
    return {p.pid: p for p in result.processes}


def _check_invariants(result, procs):
    makespan = max(p.completion for p in result.processes)

    # contiguous cover of [0, makespan), no adjacent duplicates
    assert result.timeline[0].start == 0
    assert result.timeline[-1].end == makespan
    for prev, cur in zip(result.timeline, result.timeline[1:]):
        assert prev.end == cur.start
        assert prev.owner != cur.owner
    assert all(s.start < s.end for s in result.timeline)

    busy = sum(s.duration for s in result.timeline if not s.is_idle)
    assert busy == sum(p.burst for p in procs)

    for m in result.processes:
        assert m.turnaround == m.completion - m.arrival
        assert m.waiting == m.turnaround - m.burst
        assert m.waiting >= 0


def test_srtf_preempts_for_shorter_arrival():
    res = schedule_srtf(_procs())
    assert _spans(res) == [(1, 0, 1), (2, 1, 4), (1, 4, 8)]

    metrics = _by_pid(res)
    assert (metrics[1].waiting, metrics[1].turnaround) == (3, 8)
    assert (metrics[2].waiting, metrics[2].turnaround) == (0, 3)
    assert res.system.avg_waiting == pytest.approx(1.5)
    assert res.system.avg_turnaround == pytest.approx(5.5)


def test_rr_quantum_2():
    res = schedule_rr(_procs(), quantum=2)
    assert _spans(res) == [(1, 0, 2), (2, 2, 4), (1, 4, 6), (2, 6, 7), (1, 7, 8)]

    metrics = _by_pid(res)
    assert (metrics[1].waiting, metrics[1].turnaround) == (3, 8)
    assert (metrics[2].waiting, metrics[2].turnaround) == (3, 6)
    assert res.system.avg_waiting == pytest.approx(3.0)
    assert res.system.avg_turnaround == pytest.approx(7.0)
    assert res.quantum == 2


def test_srtf_tie_equal_arrival_prefers_smaller_pid():
    procs = build_process_table([(2, 0, 3), (1, 0, 3)])
    for _ in range(3):
        res = schedule_srtf(procs)
        assert _spans(res) == [(1, 0, 3), (2, 3, 6)]


def test_srtf_tie_prefers_earlier_arrival_over_pid():
    procs = build_process_table([(5, 0, 4), (3, 1, 3)])
    res = schedule_srtf(procs)
    # at t=1 both have 3 units left; P5 arrived first
    assert _spans(res) == [(5, 0, 4), (3, 4, 7)]


def test_srtf_leading_and_inner_idle():
    procs = build_process_table([(1, 2, 2), (2, 6, 1)])
    res = schedule_srtf(procs)
    assert _spans(res) == [(IDLE, 0, 2), (1, 2, 4), (IDLE, 4, 6), (2, 6, 7)]
    assert res.system.idle_time == 4
    assert res.system.cpu_utilization == pytest.approx(3 / 7)


def test_rr_leading_and_inner_idle():
    procs = build_process_table([(1, 2, 2), (2, 6, 1)])
    res = schedule_rr(procs, quantum=2)
    assert _spans(res) == [(IDLE, 0, 2), (1, 2, 4), (IDLE, 4, 6), (2, 6, 7)]


def test_rr_arrival_during_slice_queued_before_preempted():
    procs = build_process_table([(1, 0, 3), (2, 1, 2)])
    res = schedule_rr(procs, quantum=2)
    assert _spans(res) == [(1, 0, 2), (2, 2, 4), (1, 4, 5)]


def test_rr_arrival_at_slice_end_queued_before_preempted():
    procs = build_process_table([(1, 0, 3), (2, 2, 1)])
    res = schedule_rr(procs, quantum=2)
    assert _spans(res) == [(1, 0, 2), (2, 2, 3), (1, 3, 4)]


def test_rr_admits_simultaneous_arrivals_in_table_order():
    procs = build_process_table([(3, 0, 2), (1, 0, 2)])
    res = schedule_rr(procs, quantum=1)
    assert _spans(res) == [(3, 0, 1), (1, 1, 2), (3, 2, 3), (1, 3, 4)]


def test_rr_dispatches_never_exceed_quantum():
    procs = build_process_table([(1, 0, 5)])
    res = schedule_rr(procs, quantum=2)
    # merged view hides the three separate slices
    assert _spans(res) == [(1, 0, 5)]
    assert [(d.start, d.end) for d in res.dispatches] == [(0, 2), (2, 4), (4, 5)]


def test_srtf_dispatches_one_unit_each():
    res = schedule_srtf(_procs())
    assert all(d.duration == 1 for d in res.dispatches)
    assert len(res.dispatches) == 8


def test_engines_do_not_mutate_caller_processes():
    procs = _procs()
    schedule_srtf(procs)
    schedule_rr(procs, quantum=2)
    assert all(p.remaining == p.burst and p.completion is None for p in procs)


def test_random_workloads_hold_invariants():
    rng = random.Random(1234)
    for _ in range(50):
        n = rng.randint(1, 8)
        entries = [(pid, rng.randint(0, 15), rng.randint(1, 6)) for pid in range(1, n + 1)]
        procs = build_process_table(entries)
        quantum = rng.randint(1, 4)

        srtf = schedule_srtf(procs)
        rr = schedule_rr(procs, quantum=quantum)

        _check_invariants(srtf, procs)
        _check_invariants(rr, procs)
        assert all(d.duration <= quantum for d in rr.dispatches)
        assert _spans(schedule_srtf(procs)) == _spans(srtf)


def test_rr_requires_positive_quantum():
    with pytest.raises(ConfigurationError):
        schedule_rr(_procs(), quantum=0)
    with pytest.raises(ConfigurationError):
        schedule_rr(_procs())


def test_engines_reject_invalid_workloads():
    with pytest.raises(ConfigurationError):
        schedule_srtf([])
    with pytest.raises(ConfigurationError):
        schedule_srtf([Process(1, arrival=-1, burst=2)])
    with pytest.raises(ConfigurationError):
        schedule_rr([Process(1, arrival=0, burst=0)], quantum=2)


def test_run_algorithm_dispatch():
    assert run_algorithm("SRTF", _procs()).algorithm == "SRTF"
    assert run_algorithm("rr", _procs(), quantum=3).algorithm == "Round Robin"
    with pytest.raises(ConfigurationError):
        run_algorithm("fcfs", _procs())


def test_ready_queue_rejects_duplicates():
    table = build_process_table([(1, 0, 2), (2, 0, 2)])
    queue = ReadyQueue(table)
    queue.admit_arrivals(0)
    assert queue.snapshot() == [0, 1]

    with pytest.raises(SchedulerInvariantError):
        queue.push(0)

    assert queue.pop() == 0
    assert 0 not in queue
    queue.push(0)
    assert queue.snapshot() == [1, 0]

    # already admitted processes are not admitted twice
    queue.admit_arrivals(5)
    assert len(queue) == 2


def test_process_run_tick_records_completion_once():
    p = Process(7, arrival=0, burst=2)
    p.run_tick(1)
    assert p.completion is None
    p.run_tick(2)
    assert p.finished and p.completion == 2
    with pytest.raises(SchedulerInvariantError):
        p.run_tick(3)
    assert p.completion == 2
