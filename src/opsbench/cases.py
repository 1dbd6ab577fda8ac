"""Test case model and loading.

A test case source is a Python file.  It either defines a module-level
``run`` function (and optionally a ``title`` string), which makes the
file a single case, or a ``cases`` sequence whose items are mappings or
objects exposing ``run`` and optionally ``title``::

    # single case
    title = "list append"

    def run():
        [].append(1)

    # several cases
    cases = [
        {"title": "dict literal", "run": lambda: {}},
        {"run": lambda: dict()},
    ]

Loading is pluggable through :class:`CaseProvider`; the harness only
depends on that protocol.
"""

from __future__ import annotations

import hashlib
import importlib.util
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Iterable, Protocol, Sequence

from opsbench.stats import OpsStat

log = logging.getLogger("opsbench")


class LoadError(Exception):
    """A test case source could not be loaded or is malformed."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class CaseDef:
    """A test case as exported by a source, before title resolution."""

    run: Any
    title: Any = None


@dataclass
class BenchCase:
    """A loaded test case and its measurements."""

    title: str
    run: Callable[[], Any]
    filepath: str
    ops: list[int] = field(default_factory=list)
    stat: OpsStat | None = None
    lag: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "title": self.title,
            "filepath": self.filepath,
            "ops": list(self.ops),
            "stat": self.stat.to_dict() if self.stat else None,
            "lag": round(self.lag, 6),
        }


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class CaseProvider(Protocol):
    """Resolves a source path to the case definitions it exports."""

    def load(self, path: str) -> tuple[list[CaseDef], bool]:
        """Return ``(definitions, is_multi)``.

        ``is_multi`` is True when the source exported a sequence of
        cases, even a sequence of one.

        Raises:
            LoadError: If the source cannot be read or imported.
        """
        ...


class ModuleCaseProvider:
    """Loads test cases by importing a Python source file."""

    def load(self, path: str) -> tuple[list[CaseDef], bool]:
        module = self._import(path)

        exported = getattr(module, "cases", None)
        if exported is None:
            single = CaseDef(
                run=getattr(module, "run", None),
                title=getattr(module, "title", None),
            )
            return [single], False

        if isinstance(exported, (str, bytes)) or not isinstance(exported, Iterable):
            raise LoadError(f"Bad test case '{path}', `cases` must be a sequence.")
        return [_case_def(item) for item in exported], True

    @staticmethod
    def _import(path: str) -> ModuleType:
        if not os.path.isfile(path):
            raise LoadError(f"Test case source not found: {path}")

        digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:12]
        module_name = f"opsbench_case_{Path(path).stem}_{digest}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise LoadError(f"Cannot import test case source: {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        # Sibling modules of the source must be importable while it executes.
        source_dir = os.path.dirname(path)
        sys.path.insert(0, source_dir)
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(module_name, None)
            raise LoadError(f"Failed to import '{path}': {exc}") from exc
        finally:
            try:
                sys.path.remove(source_dir)
            except ValueError:
                log.debug("%s was removed from sys.path during import", source_dir)
        log.debug("Imported %s as %s", path, module_name)
        return module


def _case_def(item: Any) -> CaseDef:
    if isinstance(item, dict):
        return CaseDef(run=item.get("run"), title=item.get("title"))
    return CaseDef(run=getattr(item, "run", None), title=getattr(item, "title", None))


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def load_test_cases(
    paths: Sequence[str],
    sample: int,
    provider: CaseProvider | None = None,
) -> list[BenchCase]:
    """Load every source in *paths* into BenchCases, in order.

    Untitled cases are named after the source's file name; sources
    exporting several cases get a `` (Case N)`` suffix on those names.

    Args:
        paths: Source paths; resolved to absolute paths.
        sample: Number of sample passes, used to size each ``ops`` list.
        provider: Case provider; defaults to :class:`ModuleCaseProvider`.

    Raises:
        LoadError: If any source fails to load or a case lacks ``run``.
    """
    provider = provider or ModuleCaseProvider()
    cases: list[BenchCase] = []

    for filename in paths:
        filepath = os.path.abspath(filename)
        defs, is_multi = provider.load(filepath)

        for index, case_def in enumerate(defs):
            if not callable(case_def.run):
                raise LoadError(f"Bad test case '{filepath}', must export `run` function.")

            title = case_def.title
            if not isinstance(title, str):
                title = os.path.basename(filepath)
                if is_multi:
                    title += f" (Case {index + 1})"

            cases.append(
                BenchCase(
                    title=title,
                    run=case_def.run,
                    filepath=filepath,
                    ops=[0] * sample,
                )
            )

    log.debug("Loaded %d test cases from %d sources", len(cases), len(paths))
    return cases
