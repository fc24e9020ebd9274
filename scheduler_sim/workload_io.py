from __future__ import annotations

import csv
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import ConfigurationError
from .models import Process

logger = logging.getLogger(__name__)

STDIN_PATH = "-"


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON, CSV or plain-text file into a validated list
    of Process objects. ``-`` reads the plain-text format from stdin.
    """
    processes, _ = load_workload_with_quantum(path)
    return processes


def load_workload_with_quantum(path: str | Path) -> Tuple[List[Process], Optional[int]]:
    """
    Like ``load_workload``, also returning the quantum a plain-text Round
    Robin workload carries (``None`` for every other file).
    """
    if str(path) == STDIN_PATH:
        try:
            text = sys.stdin.read()
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"Cannot read workload from stdin: {exc}") from exc
        processes, quantum = read_text_workload(text)
        logger.info("Loaded %d processes from stdin", len(processes))
        return processes, quantum

    path = Path(path)
    suffix = path.suffix.lower()
    quantum = None

    try:
        if suffix == ".json":
            processes = _load_json(path)
        elif suffix == ".csv":
            processes = _load_csv(path)
        elif suffix == ".txt":
            processes, quantum = read_text_workload(path.read_text(encoding="utf-8"))
        else:
            raise ConfigurationError(f"Unsupported workload format: {suffix} (use .json, .csv or .txt)")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read workload {path}: {exc}") from exc

    logger.info("Loaded %d processes from %s", len(processes), path)
    return processes, quantum


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Malformed JSON workload: {exc}") from exc

    if not isinstance(raw, list):
        raise ConfigurationError("JSON workload must be a list of process objects")

    return build_process_table(_entry_from_mapping(entry) for entry in raw)


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return build_process_table(_entry_from_mapping(row) for row in reader)


def parse_text_workload(text: str) -> List[Process]:
    processes, _ = read_text_workload(text)
    return processes


def read_text_workload(text: str) -> Tuple[List[Process], Optional[int]]:
    """
    Parse the whitespace-separated format: a process count ``n``, an optional
    Round Robin quantum, then ``n`` triples ``PID ARRIVAL BURST``.
    """
    tokens = text.split()
    if not tokens:
        raise ConfigurationError("Empty workload")

    try:
        values = [int(tok) for tok in tokens]
    except ValueError as exc:
        raise ConfigurationError(f"Workload must contain only integers: {exc}") from exc

    n, fields = values[0], values[1:]
    if n <= 0:
        raise ConfigurationError(f"Invalid process count: {n}")

    quantum = None
    if len(fields) == 3 * n + 1:
        quantum = validate_quantum(fields[0])
        fields = fields[1:]
    elif len(fields) != 3 * n:
        raise ConfigurationError(
            f"Expected {n} lines of PID ARRIVAL BURST, optionally preceded by a quantum, got {len(fields)} values"
        )

    entries = [tuple(fields[i : i + 3]) for i in range(0, len(fields), 3)]
    return build_process_table(entries), quantum


def _first_present(mapping, *keys):
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    raise KeyError(keys[0])


def _as_int(value) -> int:
    # JSON numbers must already be integers; CSV cells arrive as strings.
    if isinstance(value, bool):
        raise TypeError(f"boolean is not an integer: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip())
    raise TypeError(f"not an integer: {value!r}")


def _parse_pid(raw) -> int:
    if isinstance(raw, str):
        text = raw.strip()
        if text[:1] in {"P", "p"}:
            text = text[1:]
        return int(text)
    return _as_int(raw)


def _entry_from_mapping(mapping) -> Tuple[int, int, int]:
    try:
        pid = _parse_pid(mapping["pid"])
        arrival = _as_int(_first_present(mapping, "arrival", "arrival_time"))
        burst = _as_int(_first_present(mapping, "burst", "burst_time"))
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid process entry: {mapping!r}") from exc
    return pid, arrival, burst


def build_process_table(entries: Iterable[Sequence[int]]) -> List[Process]:
    """
    Materialize ``(pid, arrival, burst)`` tuples as fresh Process records.
    """
    processes: List[Process] = []
    for entry in entries:
        try:
            pid, arrival, burst = entry
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Expected (pid, arrival, burst), got {entry!r}") from exc
        processes.append(Process(pid=pid, arrival=arrival, burst=burst))

    validate_processes(processes)
    return processes


def validate_processes(processes: Sequence[Process]) -> None:
    if not processes:
        raise ConfigurationError("Workload contains no processes")

    for p in processes:
        for name in ("pid", "arrival", "burst"):
            value = getattr(p, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"P{p.pid}: {name} must be an integer, got {value!r}")
        if p.arrival < 0:
            raise ConfigurationError(f"P{p.pid}: arrival must be >= 0 (got {p.arrival})")
        if p.burst <= 0:
            raise ConfigurationError(f"P{p.pid}: burst must be > 0 (got {p.burst})")


def validate_quantum(quantum: Optional[int]) -> int:
    if quantum is None or isinstance(quantum, bool) or not isinstance(quantum, int) or quantum <= 0:
        raise ConfigurationError(f"Round Robin requires a positive integer quantum (use --quantum), got {quantum!r}")
    return quantum
