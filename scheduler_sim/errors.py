from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid workload or scheduler settings, rejected before simulating."""


class SchedulerInvariantError(AssertionError):
    """A scheduling engine reached a state that only a bug can produce."""
