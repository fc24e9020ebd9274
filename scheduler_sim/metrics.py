from __future__ import annotations

from typing import List, Sequence

from .errors import SchedulerInvariantError
from .models import Process, ProcessMetrics, ScheduleResult, SystemMetrics


def compute_process_metrics(processes: Sequence[Process]) -> List[ProcessMetrics]:
    """
    Derive turnaround and waiting time for every completed process, in table
    order.

    turnaround = completion - arrival
    waiting    = turnaround - burst
    """
    metrics: List[ProcessMetrics] = []
    for p in processes:
        if p.completion is None:
            raise SchedulerInvariantError(f"P{p.pid} has no completion time")

        p.turnaround = p.completion - p.arrival
        p.waiting = p.turnaround - p.burst

        metrics.append(
            ProcessMetrics(
                pid=p.pid,
                arrival=p.arrival,
                burst=p.burst,
                completion=p.completion,
                waiting=p.waiting,
                turnaround=p.turnaround,
            )
        )
    return metrics


def _count_context_switches(result: ScheduleResult) -> int:
    owners = [s.owner for s in result.timeline if not s.is_idle]
    return sum(1 for prev, cur in zip(owners, owners[1:]) if prev != cur)


def compute_system_metrics(result: ScheduleResult) -> SystemMetrics:
    """
    Compute averages, throughput and CPU utilization given populated
    per-process metrics and timeline segments.
    """
    if not result.processes:
        system = SystemMetrics(
            makespan=0,
            cpu_busy_time=0,
            idle_time=0,
            avg_waiting=0.0,
            avg_turnaround=0.0,
            throughput=0.0,
            cpu_utilization=0.0,
        )
        result.system = system
        return system

    makespan = max(p.completion for p in result.processes)
    cpu_busy_time = sum(s.duration for s in result.timeline if not s.is_idle)
    idle_time = sum(s.duration for s in result.timeline if s.is_idle)
    summary = summarize_process_metrics(result.processes)

    system = SystemMetrics(
        makespan=makespan,
        cpu_busy_time=cpu_busy_time,
        idle_time=idle_time,
        avg_waiting=summary["avg_waiting"],
        avg_turnaround=summary["avg_turnaround"],
        throughput=len(result.processes) / makespan if makespan > 0 else 0.0,
        cpu_utilization=cpu_busy_time / makespan if makespan > 0 else 0.0,
        context_switches=_count_context_switches(result),
    )
    result.system = system
    return system


def summarize_process_metrics(processes: List[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting for p in processes) / n,
        "avg_turnaround": sum(p.turnaround for p in processes) / n,
    }
