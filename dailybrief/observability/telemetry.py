"""
In-process telemetry: structured events, counters and latency samples.

Nothing is exported to a metrics backend. Counters name the degradation
paths (``extraction.structure.fallback``, ``sports.football.timeout``,
``covers.image.fallback`` ...) so tests can assert which path ran and
/health can report them.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("dailybrief.telemetry")

_LOCK = threading.Lock()
_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, list[float]] = {}


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Sports fetches run on worker threads, so updates take a lock.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    with _LOCK:
        value = _COUNTERS.get(name, 0) + increment
        _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    return _COUNTERS.get(name, 0)


def snapshot_counters(prefix: str = "") -> dict[str, int]:
    with _LOCK:
        return {name: value for name, value in sorted(_COUNTERS.items()) if name.startswith(prefix)}


def reset_counters() -> None:
    """Clear counters and latency samples (tests)."""
    with _LOCK:
        _COUNTERS.clear()
        _LATENCIES.clear()


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Context manager for timing code blocks.

    Side Effects:
        - Appends to _LATENCIES dict (in-memory state)
        - Writes to logger (debug level) with timing
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("timing=%s seconds=%.6f", metric_name, elapsed)
        with _LOCK:
            _LATENCIES.setdefault(metric_name, []).append(elapsed)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """Count, min, max and average seconds recorded under ``metric_name``."""
    with _LOCK:
        samples = list(_LATENCIES.get(metric_name, []))
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0}

    return {
        "count": len(samples),
        "min": min(samples),
        "max": max(samples),
        "avg": sum(samples) / len(samples),
    }
