"""
Scheduler simulator package.

Simulates preemptive CPU scheduling (SRTF and Round Robin) over a static
workload and reports the execution timeline with waiting and turnaround
metrics.
"""

__all__ = ["algorithms", "cli"]
