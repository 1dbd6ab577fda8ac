"""The benchmark primitive: a warmup window followed by a measured window."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from opsbench.timed import bench_result, resolve

log = logging.getLogger("opsbench")


@dataclass
class BenchmarkResult:
    """Timing of one measured window."""

    title: str
    iter: int  # measured invocations
    warmup: int  # discarded invocations
    total: float  # milliseconds spent in the measured window

    @property
    def mean(self) -> float:
        """Milliseconds per measured invocation."""
        if self.iter <= 0:
            return 0.0
        return self.total / self.iter


async def benchmark(
    fn: Callable[[], Any],
    *,
    title: str = "",
    warmup: int = 3,
    iter: int = 1000,
    print_result: bool = False,
) -> BenchmarkResult:
    """Run *fn* ``warmup`` times untimed, then ``iter`` times timed.

    Both windows are strictly sequential; awaitable results are awaited
    before the next invocation.

    Args:
        fn: Zero-argument function under test.
        title: Label used when logging the result.
        warmup: Invocations run before the measured window.
        iter: Invocations in the measured window.
        print_result: Log the measurement at INFO level.

    Returns:
        BenchmarkResult with the measured window's total time.
    """
    if warmup > 0:
        await resolve(bench_result(fn, warmup))
    _, total = await resolve(bench_result(fn, iter))

    result = BenchmarkResult(title=title, iter=iter, warmup=warmup, total=total)
    if print_result:
        log.info("%s %.2fms, %.4fms/iter", title, result.total, result.mean)
    return result
