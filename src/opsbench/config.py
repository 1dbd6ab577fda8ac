"""Benchmark configuration and profile loading.

Handles:
- The immutable BenchConfig shared by all test cases of a run.
- Loading benchmark profiles from YAML files.
- Merging CLI options with profile values.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from opsbench.stats import MIN_SAMPLES

log = logging.getLogger("opsbench")

_PROFILE_KEYS = ("iter", "warmup", "sample", "verbose", "cooldown_s")


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BenchConfig:
    """Resolved configuration for a benchmark run."""

    iter: int = 1  # measured invocations per sample pass
    warmup: int = 50  # discarded invocations per sample pass
    sample: int = 50  # sample passes per test case
    verbose: bool = False
    cooldown_s: float = 0.1  # pause between test cases

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return dataclasses.asdict(self)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BenchConfig) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if config.iter < 1:
        errors.append(
            ValidationError(
                field="iter",
                message=f"Need at least 1 measured iteration per sample (got {config.iter}).",
            )
        )

    if config.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warmup iterations cannot be negative (got {config.warmup}).",
            )
        )

    # One low and one high sample are always trimmed.
    if config.sample < MIN_SAMPLES:
        errors.append(
            ValidationError(
                field="sample",
                message=(
                    f"Need at least {MIN_SAMPLES} samples for "
                    f"meaningful statistics (got {config.sample})."
                ),
            )
        )

    if config.cooldown_s < 0:
        errors.append(
            ValidationError(
                field="cooldown_s",
                message=f"Cooldown cannot be negative (got {config.cooldown_s}).",
            )
        )
    elif config.cooldown_s > 60:
        errors.append(
            ValidationError(
                field="cooldown_s",
                message=f"Cooldown of {config.cooldown_s}s between cases is unusually long.",
                severity="warning",
            )
        )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        iter: 1000
        warmup: 100
        sample: 20
        verbose: false
        cooldown_s: 0.5

    Returns:
        The parsed YAML as a dict.
    """
    import yaml

    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text())
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in profile {profile_path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    unknown = sorted(set(data) - set(_PROFILE_KEYS))
    if unknown:
        raise ValueError(
            f"Unknown profile key(s): {', '.join(unknown)}. "
            f"Valid keys: {', '.join(_PROFILE_KEYS)}"
        )
    return data


def config_from_profile(
    profile_data: dict[str, Any] | None = None,
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchConfig:
    """Build a BenchConfig from profile values and CLI overrides.

    CLI values that are not None take precedence over profile values,
    which take precedence over the BenchConfig defaults.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: Dict of CLI option values.  Keys match BenchConfig
            field names.
    """
    values: dict[str, Any] = {}
    for source in (profile_data or {}, cli_overrides or {}):
        for key in _PROFILE_KEYS:
            if source.get(key) is not None:
                values[key] = source[key]

    config = BenchConfig(**values)
    log.debug("Resolved config: %s", config)
    return config
