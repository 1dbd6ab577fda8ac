"""Tests for opsbench.cli: the click command-line interface."""

from __future__ import annotations

import json
import logging
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from bench_test_helpers import write_source

from opsbench import __version__
from opsbench.cli import main

_FAST_ARGS = ["--sample", "3", "--warmup", "1", "--iter", "2", "--cooldown", "0"]


class TestMainHelp(unittest.TestCase):
    """Tests for the main group and subcommand help."""

    def test_main_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("run", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)

    def test_run_help(self) -> None:
        result = CliRunner().invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        for option in ("--iter", "--warmup", "--sample", "--profile", "--json"):
            self.assertIn(option, result.output)

    def test_run_requires_files(self) -> None:
        result = CliRunner().invoke(main, ["run"])
        self.assertNotEqual(result.exit_code, 0)


class TestRunCommand(unittest.TestCase):
    """Tests for opsbench run."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()
        logging.getLogger("opsbench").handlers.clear()

    def test_two_sources(self) -> None:
        a = write_source(self.tmpdir, "append.py", "def run():\n    [].append(1)\n")
        b = write_source(
            self.tmpdir,
            "pair.py",
            "cases = [{'run': lambda: None}, {'title': 'dict', 'run': lambda: {}}]\n",
        )
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, str(a), str(b)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('benchmarking "append.py"...', result.output)
        self.assertIn('benchmarking "pair.py (Case 1)"...', result.output)
        self.assertEqual(result.output.count("[summary]"), 3)
        self.assertIn("[report] =============", result.output)
        self.assertIn("fastest", result.output)

    def test_verbose(self) -> None:
        a = write_source(self.tmpdir, "v.py", "def run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, "-v", str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("[1] v.py...2 iterations, took", result.output)
        self.assertIn("[3] v.py...", result.output)

    def test_verbose_does_not_enable_debug_logs(self) -> None:
        a = write_source(self.tmpdir, "v.py", "def run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, "-v", str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("[1] v.py...", result.output)
        self.assertNotIn("DEBUG", result.output)

    def test_debug_flag_enables_debug_logs(self) -> None:
        a = write_source(self.tmpdir, "d.py", "def run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, "--debug", str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("DEBUG", result.output)
        self.assertNotIn("[1] d.py...", result.output)

    def test_no_verbose_overrides_profile(self) -> None:
        profile = self.tmpdir / "loud.yaml"
        profile.write_text("sample: 3\nwarmup: 0\niter: 1\ncooldown_s: 0\nverbose: true\n")
        a = write_source(self.tmpdir, "q.py", "def run():\n    pass\n")
        args = ["run", "--profile", str(profile), "--no-verbose", "--json", str(a)]
        result = CliRunner().invoke(main, args)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("[1] q.py...", result.output)
        data = json.loads(result.output[result.output.index("{") :])
        self.assertFalse(data["config"]["verbose"])

    def test_profile_verbose_kept_without_flag(self) -> None:
        profile = self.tmpdir / "loud.yaml"
        profile.write_text("sample: 3\nwarmup: 0\niter: 1\ncooldown_s: 0\nverbose: true\n")
        a = write_source(self.tmpdir, "l.py", "def run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", "--profile", str(profile), str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("[1] l.py...", result.output)

    def test_json_output(self) -> None:
        a = write_source(self.tmpdir, "j.py", "title = 'json case'\ndef run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, "--json", str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        payload = result.output[result.output.index("{") :]
        data = json.loads(payload)
        self.assertEqual(data["config"]["sample"], 3)
        self.assertEqual(data["cases"][0]["title"], "json case")
        self.assertEqual(len(data["cases"][0]["ops"]), 3)

    def test_async_source(self) -> None:
        body = "import asyncio\n\nasync def run():\n    await asyncio.sleep(0)\n"
        a = write_source(self.tmpdir, "coro.py", body)
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("coro.py", result.output)

    def test_profile(self) -> None:
        profile = self.tmpdir / "quick.yaml"
        profile.write_text("sample: 4\nwarmup: 0\niter: 1\ncooldown_s: 0\n")
        a = write_source(self.tmpdir, "p.py", "def run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", "--profile", str(profile), "--json", str(a)])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output[result.output.index("{") :])
        self.assertEqual(data["config"]["sample"], 4)

    def test_missing_run_aborts(self) -> None:
        good = write_source(self.tmpdir, "good.py", "def run():\n    pass\n")
        bad = write_source(self.tmpdir, "bad.py", "title = 'broken'\n")
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, str(good), str(bad)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("must export `run` function", result.output)
        self.assertNotIn("[report]", result.output)
        self.assertNotIn("benchmarking", result.output)

    def test_missing_file_aborts(self) -> None:
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, str(self.tmpdir / "absent.py")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)

    def test_invalid_sample(self) -> None:
        a = write_source(self.tmpdir, "s.py", "def run():\n    pass\n")
        result = CliRunner().invoke(main, ["run", "--sample", "2", str(a)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("sample", result.output)

    def test_execution_error_propagates(self) -> None:
        a = write_source(self.tmpdir, "boom.py", "def run():\n    raise RuntimeError('boom')\n")
        result = CliRunner().invoke(main, ["run", *_FAST_ARGS, str(a)])
        self.assertNotEqual(result.exit_code, 0)
        self.assertIsInstance(result.exception, RuntimeError)
        self.assertNotIn("[report]", result.output)
