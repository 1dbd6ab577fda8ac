"""Benchmark execution engine.

Orchestrates, for each test case in turn:
1. ``sample`` passes of the benchmark primitive (warmup + measured window)
2. Conversion of each pass to ops/s, with memory pressure relief between passes
3. A trimmed min/max/avg summary and a cooldown pause

and finally ranks all cases by average throughput.

Cases and passes are never run concurrently.  The runner is a coroutine
so that test cases returning awaitables are awaited in place.
"""

from __future__ import annotations

import asyncio
import gc
import logging
from typing import Any, Awaitable, Callable

import click

from opsbench.benchmark import BenchmarkResult, benchmark
from opsbench.cases import BenchCase
from opsbench.config import BenchConfig, validate_config
from opsbench.display import (
    Echo,
    ProgressHeader,
    format_report,
    format_sample_result,
    format_sample_start,
    format_summary,
)
from opsbench.stats import get_ops_stat, ops_per_second, rank_cases

log = logging.getLogger("opsbench")

BenchmarkFn = Callable[..., Awaitable[BenchmarkResult]]
SleepFn = Callable[[float], Awaitable[Any]]


class BenchRunner:
    """Runs test cases according to a BenchConfig and reports the ranking.

    Usage::

        runner = BenchRunner(BenchConfig(sample=20))
        ranked = asyncio.run(runner.run(cases))

    Args:
        config: Run configuration, validated on construction.
        relieve_pressure: Called after every sample pass; defaults to
            :func:`gc.collect`.  Pass a no-op where collection is unwanted.
        benchmark_fn: The benchmark primitive.
        sleep: Async sleep used for the cooldown between cases.
        echo: Output function with click.echo's signature.

    Raises:
        ValueError: If the configuration is invalid.
    """

    def __init__(
        self,
        config: BenchConfig,
        *,
        relieve_pressure: Callable[[], Any] = gc.collect,
        benchmark_fn: BenchmarkFn = benchmark,
        sleep: SleepFn = asyncio.sleep,
        echo: Echo = click.echo,
    ) -> None:
        errors = validate_config(config)
        fatal = [e for e in errors if e.severity == "error"]
        for w in errors:
            if w.severity == "warning":
                log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ValueError("Invalid benchmark configuration:\n" + "\n".join(messages))

        self.config = config
        self.relieve_pressure = relieve_pressure
        self.benchmark_fn = benchmark_fn
        self.sleep = sleep
        self.echo = echo

    async def run(self, cases: list[BenchCase]) -> list[BenchCase]:
        """Benchmark every case in order, then print and return the ranking."""
        log.debug(
            "Benchmarking %d test cases (iter=%d, warmup=%d, sample=%d)",
            len(cases),
            self.config.iter,
            self.config.warmup,
            self.config.sample,
        )

        for case in cases:
            await self.run_case(case)
            await self.sleep(self.config.cooldown_s)

        ranked = rank_cases(cases)
        self.echo(format_report(ranked))
        return ranked

    async def run_case(self, case: BenchCase) -> None:
        """Collect all samples for one case and print its summary."""
        if len(case.ops) != self.config.sample:
            case.ops = [0] * self.config.sample

        header = ProgressHeader(case.title, self.config.verbose, self.echo)
        for index in range(self.config.sample):
            header.tick()
            await self.run_sample(case, index)
            self.relieve_pressure()
        header.end()

        case.stat = get_ops_stat(case.ops)
        self.echo(format_summary(case.stat))

    async def run_sample(self, case: BenchCase, index: int) -> None:
        """Run one sample pass and store its ops/s in ``case.ops[index]``."""
        if self.config.verbose:
            self.echo(format_sample_start(index, case.title), nl=False)

        result = await self.benchmark_fn(
            case.run,
            title=case.title,
            warmup=self.config.warmup,
            iter=self.config.iter,
            print_result=False,
        )
        case.ops[index] = ops_per_second(result.iter, result.total)

        if self.config.verbose:
            self.echo(format_sample_result(result, case.ops[index]))
        log.debug("%s sample %d: %.4fms", case.title, index + 1, result.total)
