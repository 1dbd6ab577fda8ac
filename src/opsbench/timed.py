"""Timing wrappers for single and batched function invocations.

Every wrapper accepts a zero-argument callable.  When the callable returns
an awaitable, the wrapper returns a coroutine instead of a plain value and
the elapsed time is only taken once the awaitable resolves.  Callers that
may receive either should pass the result through :func:`resolve`.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Tuple, TypeVar, Union

import click

from opsbench.clock import elapsed_ms, now

T = TypeVar("T")

# (value, elapsed milliseconds)
TimingResult = Tuple[Any, float]


# ---------------------------------------------------------------------------
# Single invocation
# ---------------------------------------------------------------------------


def timed_result(
    fn: Callable[[], Any],
) -> Union[TimingResult, Awaitable[TimingResult]]:
    """Call *fn* once and return ``(result, elapsed_ms)`` without output.

    If *fn* returns an awaitable, a coroutine resolving to the pair is
    returned instead, and the clock stops when the awaitable completes.
    """
    t0 = now()
    res = fn()
    if inspect.isawaitable(res):
        return _timed_awaitable(res, t0)
    return res, elapsed_ms(t0, now())


async def _timed_awaitable(pending: Awaitable[Any], t0: int) -> TimingResult:
    res = await pending
    return res, elapsed_ms(t0, now())


def timed(fn: Callable[[], Any], prefix: str = "") -> Any:
    """Call *fn* once, print the elapsed time and return its result.

    The line printed is ``"<prefix> <elapsed>ms"`` with exactly two
    decimals.  Awaitable results are handled as in :func:`timed_result`.

    Args:
        fn: Function to time.
        prefix: Label shown in front of the measurement.
    """
    result = timed_result(fn)
    if inspect.isawaitable(result):
        return _print_awaitable(result, prefix)
    return _print_timing(result, prefix)


async def _print_awaitable(pending: Awaitable[TimingResult], prefix: str) -> Any:
    return _print_timing(await pending, prefix)


def _print_timing(result: TimingResult, prefix: str) -> Any:
    res, t = result
    click.echo(f"{prefix} {t:.2f}ms")
    return res


# ---------------------------------------------------------------------------
# Batched invocation
# ---------------------------------------------------------------------------


def bench_result(
    fn: Callable[[], Any],
    n: int = 1_000_000,
) -> Union[TimingResult, Awaitable[TimingResult]]:
    """Call *fn* *n* times in sequence and return ``(last_result, total_ms)``.

    Invocations never overlap: once *fn* returns an awaitable, the loop
    continues as a coroutine that awaits each result before the next call.
    The whole loop is measured, so the per-call overhead is amortized over
    *n* invocations.

    Args:
        fn: Function to time.
        n: Number of invocations.
    """

    def loop() -> Any:
        res = None
        for i in range(n):
            res = fn()
            if inspect.isawaitable(res):
                return _finish_loop(fn, res, n - i - 1)
        return res

    return timed_result(loop)


async def _finish_loop(
    fn: Callable[[], Any],
    pending: Awaitable[Any],
    remaining: int,
) -> Any:
    res = await pending
    for _ in range(remaining):
        res = fn()
        if inspect.isawaitable(res):
            res = await res
    return res


def bench(fn: Callable[[], Any], n: int = 1_000_000, prefix: str = "") -> Any:
    """Like :func:`bench_result`, but print the total time and return the last result."""
    result = bench_result(fn, n)
    if inspect.isawaitable(result):
        return _print_awaitable(result, prefix)
    return _print_timing(result, prefix)


async def resolve(value: Union[T, Awaitable[T]]) -> T:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
