"""Terminal display formatting for benchmark progress and results.

Progress is written as it happens (a spinner, or one line per sample in
verbose mode).  Summaries and the final report are built as strings and
echoed by the caller.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Iterator

from opsbench.benchmark import BenchmarkResult
from opsbench.cases import BenchCase
from opsbench.config import BenchConfig
from opsbench.stats import OpsStat

# Called as echo(message, nl=...) like click.echo.
Echo = Callable[..., Any]

_SPINNER = "|/-\\"
_BACKSPACE = "\b"


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------


def spinner() -> Iterator[str]:
    """Yield spinner frames forever."""
    i = 0
    while True:
        yield _SPINNER[i % len(_SPINNER)]
        i += 1


class ProgressHeader:
    """Announces a test case and animates its progress.

    In verbose mode the header line is printed once and per-sample lines
    carry the progress.  Otherwise the header is followed by a spinner
    that advances once per sample and is cleared by :meth:`end`.
    """

    def __init__(self, title: str, verbose: bool, echo: Echo) -> None:
        self.title = title
        self.verbose = verbose
        self.echo = echo
        self._frames = spinner()
        self._started = False

    def tick(self) -> None:
        if self.verbose:
            if not self._started:
                self.echo(f'benchmarking "{self.title}"...')
                self._started = True
            return

        if self._started:
            self.echo(_BACKSPACE + next(self._frames), nl=False)
        else:
            self.echo(f'benchmarking "{self.title}"...{next(self._frames)}', nl=False)
            self._started = True

    def end(self) -> None:
        if not self.verbose:
            self.echo(_BACKSPACE + " ")


def format_sample_start(index: int, title: str) -> str:
    """Verbose prefix printed before a sample pass (index is 0-based)."""
    return f"[{index + 1}] {title}..."


def format_sample_result(result: BenchmarkResult, ops: int) -> str:
    """Verbose line printed after a sample pass."""
    return f"{result.iter} iterations, took {result.total:.2f}ms, {ops} ops/s"


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


def format_summary(stat: OpsStat) -> str:
    """Per-case summary line, followed by a blank line."""
    return (
        f"[summary] min: {_format_ops(stat.min)} ops/s, "
        f"max: {_format_ops(stat.max)} ops/s, "
        f"avg: {stat.avg:.2f} ops/s\n"
    )


def _format_ops(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def format_remark(lag: float) -> str:
    """Describe a case's lag relative to the fastest case."""
    if lag:
        return f"{lag * 100:.2f}% slower"
    return "fastest"


def format_report(cases: list[BenchCase]) -> str:
    """Format ranked cases, fastest first.

    Expects cases already ranked by :func:`opsbench.stats.rank_cases`.
    """
    lines = ["[report] ============="]
    for case in cases:
        avg = case.stat.avg if case.stat else 0.0
        lines.append(f"{case.title} {avg:.2f} ops/s {format_remark(case.lag)}")
    return "\n".join(lines)


def format_report_json(cases: list[BenchCase], config: BenchConfig) -> str:
    """Serialize ranked cases and the run configuration as JSON."""
    data = {
        "config": config.to_dict(),
        "cases": [case.to_dict() for case in cases],
    }
    return json.dumps(data, indent=2)
