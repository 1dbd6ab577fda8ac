"""Monotonic high-resolution clock."""

from __future__ import annotations

import time


def now() -> int:
    """Return a monotonic timestamp in nanoseconds.

    Only differences between two timestamps taken in the same process
    are meaningful.
    """
    return time.perf_counter_ns()


def elapsed_ms(t0: int, t1: int) -> float:
    """Convert the span between two :func:`now` timestamps to milliseconds."""
    return (t1 - t0) * 1e-6
