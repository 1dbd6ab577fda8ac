"""Command-line interface for opsbench.

Subcommands:
    opsbench run FILES...   Benchmark test case sources and rank them
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from opsbench import __version__
from opsbench.logging import setup_logging


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """opsbench: measure and compare operations per second of Python functions."""


@main.command()
@click.argument("files", nargs=-1, required=True)
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML profile with iter/warmup/sample/verbose/cooldown_s.",
)
@click.option(
    "--iter",
    "iter_",
    type=int,
    default=None,
    help="Measured iterations per sample (default: 1).",
)
@click.option("--warmup", type=int, default=None, help="Warm-up iterations per sample (default: 50).")
@click.option("--sample", type=int, default=None, help="Sample passes per case (default: 50, min: 3).")
@click.option(
    "--cooldown",
    "cooldown_s",
    type=float,
    default=None,
    help="Seconds to pause between cases (default: 0.1).",
)
@click.option("--json", "as_json", is_flag=True, help="Also print the report as JSON.")
@click.option(
    "--verbose/--no-verbose",
    "-v",
    default=None,
    help="Print every sample pass (overrides the profile).",
)
@click.option("--debug", is_flag=True, help="Show DEBUG logs on the console.")
@click.option("-q", "--quiet", is_flag=True, help="Only log warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write DEBUG logs to this file.",
)
def run(
    files: tuple[str, ...],
    profile_path: Path | None,
    iter_: int | None,
    warmup: int | None,
    sample: int | None,
    cooldown_s: float | None,
    as_json: bool,
    verbose: bool | None,
    debug: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Benchmark the test cases defined in FILES and rank them by ops/s.

    Each file is a Python module defining a ``run()`` function (and
    optionally ``title``), or a ``cases`` list of such definitions.

    \b
    Examples:
        opsbench run bench/append.py bench/extend.py
        opsbench run --sample 20 --iter 1000 --warmup 100 bench/*.py
        opsbench run --profile quick.yaml -v bench/dicts.py
    """
    from opsbench.cases import LoadError, load_test_cases
    from opsbench.config import config_from_profile, load_profile
    from opsbench.display import format_report_json
    from opsbench.runner import BenchRunner

    setup_logging(verbose=debug, quiet=quiet, log_file=log_file)

    try:
        profile_data = load_profile(profile_path) if profile_path else None
        config = config_from_profile(
            profile_data,
            cli_overrides={
                "iter": iter_,
                "warmup": warmup,
                "sample": sample,
                "cooldown_s": cooldown_s,
                "verbose": verbose,
            },
        )
        runner = BenchRunner(config)
        cases = load_test_cases(files, config.sample)
    except (LoadError, ValueError, TypeError) as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    try:
        ranked = asyncio.run(runner.run(cases))
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    if as_json:
        click.echo(format_report_json(ranked, config))


if __name__ == "__main__":
    sys.exit(main())
