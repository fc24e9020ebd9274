from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional, Sequence, Set

from .errors import ConfigurationError, SchedulerInvariantError
from .metrics import compute_process_metrics, compute_system_metrics
from .models import IDLE, Process, ScheduleResult, Segment
from .timeline import Timeline
from .workload_io import validate_processes, validate_quantum

logger = logging.getLogger(__name__)


def _fresh_table(processes: Sequence[Process]) -> List[Process]:
    # Engines mutate their own copies so callers can reuse a workload.
    return [Process(pid=p.pid, arrival=p.arrival, burst=p.burst) for p in processes]


def _all_done(table: List[Process]) -> bool:
    return all(p.finished for p in table)


def _finish(
    algorithm: str,
    quantum: Optional[int],
    table: List[Process],
    timeline: Timeline,
    dispatches: List[Segment],
) -> ScheduleResult:
    result = ScheduleResult(
        algorithm=algorithm,
        quantum=quantum,
        processes=compute_process_metrics(table),
        timeline=timeline.segments,
        dispatches=dispatches,
    )
    compute_system_metrics(result)
    return result


def schedule_srtf(processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Shortest Remaining Time First (preemptive SJF).

    The choice is re-evaluated every time unit, so a shorter job arriving
    while a longer one runs takes over on the very next tick. Among arrived,
    unfinished processes the smallest remaining time wins; ties go to the
    earlier arrival, then to the smaller PID.
    """
    validate_processes(processes)
    table = _fresh_table(processes)

    time = 0
    timeline = Timeline()
    dispatches: List[Segment] = []

    while not _all_done(table):
        ready = [p for p in table if p.arrival <= time and p.remaining > 0]

        if not ready:
            future = [p.arrival for p in table if p.remaining > 0 and p.arrival > time]
            if not future:
                raise SchedulerInvariantError(f"SRTF: unfinished work but nothing ready or arriving at t={time}")
            next_arrival = min(future)
            logger.debug("SRTF: idle [%d, %d)", time, next_arrival)
            timeline.add_segment(IDLE, time, next_arrival)
            time = next_arrival
            continue

        current = min(ready, key=lambda p: (p.remaining, p.arrival, p.pid))

        timeline.add_segment(current.pid, time, time + 1)
        dispatches.append(Segment(owner=current.pid, start=time, end=time + 1))
        time += 1
        current.run_tick(time)

        if current.finished:
            logger.info("SRTF: P%d completed at t=%d", current.pid, time)

    return _finish("SRTF", None, table, timeline, dispatches)


class ReadyQueue:
    """
    FIFO queue of indices into a process table.

    Holding indices rather than copies keeps a dequeued process's progress
    visible to the engine. An index may wait in the queue at most once.
    """

    def __init__(self, table: List[Process]) -> None:
        self._table = table
        self._queue: Deque[int] = deque()
        self._waiting: Set[int] = set()

    def push(self, index: int) -> None:
        if index in self._waiting:
            raise SchedulerInvariantError(f"P{self._table[index].pid} is already in the ready queue")
        self._queue.append(index)
        self._waiting.add(index)

    def pop(self) -> int:
        index = self._queue.popleft()
        self._waiting.discard(index)
        return index

    def admit_arrivals(self, now: int) -> None:
        """
        Enqueue, in table order, every process that has arrived by ``now``
        and was never admitted before.
        """
        for index, p in enumerate(self._table):
            if not p.enqueued and p.arrival <= now:
                p.enqueued = True
                self.push(index)
                logger.debug("RR: P%d admitted at t=%d", p.pid, now)

    def __len__(self) -> int:
        return len(self._queue)

    def __contains__(self, index: object) -> bool:
        return index in self._waiting

    def snapshot(self) -> List[int]:
        return list(self._queue)


def schedule_rr(processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Round Robin scheduling with a fixed time quantum.

    A slice is executed one unit at a time. Processes arriving during the
    slice join the queue before the preempted process is put back at the
    tail.
    """
    quantum = validate_quantum(quantum)
    validate_processes(processes)
    table = _fresh_table(processes)

    time = 0
    timeline = Timeline()
    dispatches: List[Segment] = []
    ready = ReadyQueue(table)

    earliest = min(p.arrival for p in table)
    if earliest > 0:
        timeline.add_segment(IDLE, 0, earliest)
        time = earliest

    ready.admit_arrivals(time)

    while not _all_done(table):
        if not ready:
            pending = [p.arrival for p in table if p.remaining > 0 and not p.enqueued]
            if not pending:
                raise SchedulerInvariantError(f"RR: ready queue empty with no pending arrivals at t={time}")
            next_arrival = min(pending)
            logger.debug("RR: idle [%d, %d)", time, next_arrival)
            timeline.add_segment(IDLE, time, next_arrival)
            time = next_arrival
            ready.admit_arrivals(time)
            continue

        index = ready.pop()
        current = table[index]
        run_time = min(current.remaining, quantum)

        slice_start = time
        for _ in range(run_time):
            time += 1
            current.run_tick(time)
            ready.admit_arrivals(time)

        timeline.add_segment(current.pid, slice_start, time)
        dispatches.append(Segment(owner=current.pid, start=slice_start, end=time))

        if current.finished:
            logger.info("RR: P%d completed at t=%d", current.pid, time)
        else:
            ready.push(index)
            logger.debug("RR: P%d preempted at t=%d, %d remaining", current.pid, time, current.remaining)

    return _finish("Round Robin", quantum, table, timeline, dispatches)


ALGORITHMS = {
    "srtf": schedule_srtf,
    "rr": schedule_rr,
}


def run_algorithm(name: str, processes: Sequence[Process], quantum: Optional[int] = None) -> ScheduleResult:
    """
    Dispatch to the requested algorithm. The quantum only matters for Round
    Robin.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise ConfigurationError(f"Unknown algorithm '{name}' (choose from {', '.join(ALGORITHMS)})")

    func = ALGORITHMS[name]
    return func(processes, quantum=quantum)
