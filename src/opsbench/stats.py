"""Throughput statistics and cross-case ranking.

Samples are trimmed by dropping exactly one lowest and one highest value
before reduction.  The trimmed average divides by the *original* sample
count, so it reads slightly lower than the true mean of the trimmed set;
reports produced by earlier versions of the harness use the same formula.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from opsbench.cases import BenchCase

MIN_SAMPLES = 3


@dataclass
class OpsStat:
    """Trimmed summary of one test case's ops/s samples."""

    min: float
    max: float
    avg: float

    def to_dict(self) -> dict[str, float]:
        """Serialize to a dict with rounded values."""
        return {
            "min": self.min,
            "max": self.max,
            "avg": round(self.avg, 6),
        }


def ops_per_second(iterations: int, total_ms: float) -> int:
    """Convert a measured window to whole operations per second.

    Halves round up.  A zero-length window is clamped to one clock tick
    (one nanosecond) so that very fast functions still report a finite
    rate.
    """
    total_ms = max(total_ms, 1e-6)
    return int(math.floor(iterations * 1000 / total_ms + 0.5))


def get_ops_stat(ops: Sequence[float]) -> OpsStat:
    """Compute min/max/avg over *ops* with one low and one high sample removed.

    Args:
        ops: ops/s samples for one test case, in any order.

    Returns:
        OpsStat over the trimmed samples.

    Raises:
        ValueError: If fewer than three samples are given.
    """
    sample = len(ops)
    if sample < MIN_SAMPLES:
        raise ValueError(
            f"Need at least {MIN_SAMPLES} samples to trim outliers (got {sample})."
        )

    trimmed = sorted(ops)[1:-1]

    stat = OpsStat(min=math.inf, max=0, avg=0.0)
    for op in trimmed:
        stat.avg += op / sample
        stat.min = min(stat.min, op)
        stat.max = max(stat.max, op)
    return stat


def rank_cases(cases: list[BenchCase]) -> list[BenchCase]:
    """Sort *cases* by average throughput (fastest first) and set their lag.

    Lag is ``1 - avg / fastest_avg``, i.e. 0 for the fastest case and 0.5
    for a case running at half its speed.  Every case must already carry
    a computed ``stat``.  The list is sorted in place and returned.
    """
    cases.sort(key=lambda c: c.stat.avg if c.stat else 0.0, reverse=True)
    if not cases:
        return cases

    fastest = cases[0].stat.avg if cases[0].stat else 0.0
    for case in cases:
        avg = case.stat.avg if case.stat else 0.0
        case.lag = 1 - avg / fastest if fastest > 0 else 0.0
    return cases
