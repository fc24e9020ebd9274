from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .errors import SchedulerInvariantError

# Owner value of a segment during which no process runs.
IDLE = None


@dataclass
class Process:
    """
    One workload item together with its mutable scheduling state.
    """

    pid: int
    arrival: int
    burst: int
    remaining: Optional[int] = None
    completion: Optional[int] = None
    waiting: Optional[int] = None
    turnaround: Optional[int] = None
    enqueued: bool = False  # RR only

    def __post_init__(self) -> None:
        if self.remaining is None:
            self.remaining = self.burst

    @property
    def finished(self) -> bool:
        return self.remaining == 0

    def run_tick(self, now: int) -> None:
        """
        Consume one unit of work ending at ``now``; records completion on the
        final unit.
        """
        if self.remaining <= 0:
            raise SchedulerInvariantError(f"P{self.pid} scheduled after completion")
        self.remaining -= 1
        if self.remaining == 0:
            self.completion = now


@dataclass
class Segment:
    """
    One contiguous stretch of simulated time in the Gantt chart.
    """

    owner: Optional[int]
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def is_idle(self) -> bool:
        return self.owner is IDLE

    @property
    def label(self) -> str:
        return "IDLE" if self.is_idle else f"P{self.owner}"


@dataclass
class ProcessMetrics:
    pid: int
    arrival: int
    burst: int
    completion: int
    waiting: int
    turnaround: int


@dataclass
class SystemMetrics:
    makespan: int
    cpu_busy_time: int
    idle_time: int
    avg_waiting: float
    avg_turnaround: float
    throughput: float
    cpu_utilization: float
    context_switches: int = 0


@dataclass
class ScheduleResult:
    algorithm: str
    quantum: Optional[int]
    processes: List[ProcessMetrics] = field(default_factory=list)
    timeline: List[Segment] = field(default_factory=list)
    dispatches: List[Segment] = field(default_factory=list)
    system: Optional[SystemMetrics] = None
