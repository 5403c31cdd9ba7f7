"""Tests for frelon.cli — Click CLI for running suites and showing history."""

from __future__ import annotations

import json
import logging
import tempfile
import textwrap
import unittest
from pathlib import Path

from click.testing import CliRunner

from frelon import __version__
from frelon.bench.results import load_rows
from frelon.cli import main

_SCRIPT = textwrap.dedent(
    """
    from frelon import Suite

    suite = Suite({"pass_count": 3, "record_results": False})

    @suite.benchmark("loop")
    def _(n, timer):
        for _ in range(n):
            pass

    @suite.benchmark("deferred")
    def _(n, timer):
        data = list(range(100))
        timer.start()
        for _ in range(n):
            sum(data)

    if __name__ == "__main__":
        suite.run()
    """
)

_FAST = ["--passes", "1", "--target-duration-ms", "2", "--prime-duration-ms", "1"]


class _CliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmpdir = Path(self._tmp.name)
        self.script = self.tmpdir / "bench_demo.py"
        self.script.write_text(_SCRIPT)

    def tearDown(self) -> None:
        # setup_logging() installs handlers on the shared frelon logger.
        logging.getLogger("frelon").handlers.clear()
        self._tmp.cleanup()


class TestMainHelp(_CliTestCase):
    """Tests for the top-level group."""

    def test_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("run", result.output)
        self.assertIn("history", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)

    def test_run_help(self) -> None:
        result = CliRunner().invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--passes", result.output)
        self.assertIn("--profile", result.output)
        self.assertIn("--no-record", result.output)


class TestRunCommand(_CliTestCase):
    """Tests for frelon run."""

    def test_runs_script_suites(self) -> None:
        result = CliRunner().invoke(main, ["run", str(self.script), *_FAST])
        self.assertEqual(result.exit_code, 0, result.output)
        # The __main__ guard in the script does not fire.
        self.assertEqual(result.output.count("Priming benchmarks..."), 1)
        self.assertIn("Pass 1...", result.output)
        self.assertNotIn("Pass 2...", result.output)
        self.assertIn("loop", result.output)
        self.assertIn("deferred", result.output)

    def test_quiet(self) -> None:
        result = CliRunner().invoke(main, ["run", str(self.script), *_FAST, "--quiet"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("Priming", result.output)

    def test_output_rows(self) -> None:
        out = self.tmpdir / "rows" / "demo.jsonl"
        result = CliRunner().invoke(
            main, ["run", str(self.script), *_FAST, "--quiet", "-o", str(out)]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        rows = load_rows(out)
        self.assertEqual([r.name for r in rows], ["loop", "deferred"])
        self.assertTrue(all(r.pass_index == 1 for r in rows))

    def test_profile_layers_under_flags(self) -> None:
        profile = self.tmpdir / "quick.yaml"
        profile.write_text("pass_count: 2\ntarget_duration_ms: 2\nprime_duration_ms: 1\n")
        out = self.tmpdir / "rows.jsonl"
        result = CliRunner().invoke(
            main,
            ["run", str(self.script), "--profile", str(profile), "-q", "-o", str(out)],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(load_rows(out)), 4)

    def test_bad_profile_key(self) -> None:
        profile = self.tmpdir / "bad.yaml"
        profile.write_text("passes: 2\n")
        result = CliRunner().invoke(main, ["run", str(self.script), "--profile", str(profile)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("passes", result.output)

    def test_bad_flag_value(self) -> None:
        result = CliRunner().invoke(main, ["run", str(self.script), "--passes", "0"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("pass_count", result.output)

    def test_script_without_suite(self) -> None:
        empty = self.tmpdir / "empty.py"
        empty.write_text("x = 1\n")
        result = CliRunner().invoke(main, ["run", str(empty)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("defines no Suite", result.output)

    def test_missing_script(self) -> None:
        result = CliRunner().invoke(main, ["run", str(self.tmpdir / "nope.py")])
        self.assertNotEqual(result.exit_code, 0)

    def test_records_results(self) -> None:
        results = self.tmpdir / "benchmark-results.json"
        results.write_text("{}")
        version = self.tmpdir / "pyproject.toml"
        version.write_text('[project]\nname = "demo"\nversion = "2.0.0"\n')
        script = self.tmpdir / "recording.py"
        script.write_text(
            _SCRIPT.replace(
                '"record_results": False',
                f'"results_file": {str(results)!r}, "version_file": {str(version)!r}',
            )
        )
        result = CliRunner().invoke(main, ["run", str(script), *_FAST, "-q"])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(results.read_text())
        self.assertEqual(data["loop"], {"2.0.0": [0.0]})
        self.assertEqual(len(data["deferred"]["2.0.0"]), 1)


class TestHistoryCommand(_CliTestCase):
    """Tests for frelon history."""

    def test_shows_history(self) -> None:
        results = self.tmpdir / "benchmark-results.json"
        results.write_text(json.dumps({"loop": {"0.1.0": [0.0]}, "md5": {"0.1.0": [1.0, 1.0]}}))
        result = CliRunner().invoke(main, ["history", str(results)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("md5", result.output)
        self.assertIn("10.00x", result.output)

    def test_missing_file(self) -> None:
        result = CliRunner().invoke(main, ["history", str(self.tmpdir / "missing.json")])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("No results file", result.output)


if __name__ == "__main__":
    unittest.main()
