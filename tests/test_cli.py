"""Tests for twinbench.cli — Click CLI."""

from __future__ import annotations

import json
import sys
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from click.testing import CliRunner

from twinbench.bench.aggregate import aggregate
from twinbench.cli import EXIT_INCOMPLETE, main, render_report
from twinbench.logging import reset_logging

from harness_test_helpers import make_metric_result


class CliTestCase(unittest.TestCase):
    """Provides a temp dir and resets logging after each CLI run."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self) -> None:
        reset_logging()
        self._tmp.cleanup()

    def write_suite(self, text: str) -> Path:
        path = self.tmp / "suite.yaml"
        path.write_text(textwrap.dedent(text))
        return path


class TestHelp(unittest.TestCase):
    """Tests for the group and command help."""

    def test_group_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for command in ("run", "workloads", "system"):
            self.assertIn(command, result.output)

    def test_run_help(self) -> None:
        """run --help lists the sampling options."""
        result = CliRunner().invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--iterations", result.output)
        self.assertIn("--fail-on-incomplete", result.output)
        self.assertIn("BINARY_A", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)


class TestWorkloadsCommand(CliTestCase):
    """Tests for twinbench workloads."""

    def test_default_suite(self) -> None:
        """Without --suite the node battery is listed."""
        result = CliRunner().invoke(main, ["workloads"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Suite 'node': 13 workloads", result.output)
        self.assertIn("Binary Size", result.output)

    def test_python_suite(self) -> None:
        result = CliRunner().invoke(main, ["workloads", "--suite", "python"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Suite 'python': 11 workloads", result.output)

    def test_unknown_suite(self) -> None:
        """An unknown suite is rejected by click."""
        result = CliRunner().invoke(main, ["workloads", "--suite", "ruby"])
        self.assertNotEqual(result.exit_code, 0)

    def test_suite_file(self) -> None:
        path = self.write_suite(
            """\
            name: mine
            workloads:
              - {name: Startup, args: ["-c", "pass"]}
            """
        )
        result = CliRunner().invoke(main, ["workloads", "--suite-file", str(path)])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Suite 'mine': 1 workloads", result.output)
        self.assertIn("wall", result.output)

    def test_bad_suite_file(self) -> None:
        """A malformed suite file names the bad entry and exits 1."""
        path = self.write_suite("workloads:\n  - {name: Bad, source: cpu}\n")
        result = CliRunner().invoke(main, ["workloads", "--suite-file", str(path)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)
        self.assertIn("'Bad'", result.output)


class TestSystemCommand(unittest.TestCase):
    """Tests for twinbench system."""

    def test_text(self) -> None:
        result = CliRunner().invoke(main, ["system"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("System Profile", result.output)

    def test_json(self) -> None:
        """--json prints a parseable profile."""
        result = CliRunner().invoke(main, ["system", "--json"])
        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertIn("cpu_cores", data)


class TestRunCommand(CliTestCase):
    """Tests for twinbench run against the host interpreter."""

    def _run(self, *args: str):  # type: ignore[no-untyped-def]
        return CliRunner().invoke(
            main,
            [
                "run",
                sys.executable,
                sys.executable,
                "--iterations",
                "2",
                "--warmup",
                "0",
                "--seed",
                "1",
                "-q",
                *args,
            ],
        )

    def test_missing_binary_is_an_error(self) -> None:
        """Missing candidates fail validation with exit 1."""
        result = CliRunner().invoke(
            main, ["run", "/nonexistent/a", "/nonexistent/b", "--iterations", "2", "-q"]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Error:", result.output)
        self.assertIn("candidate_a", result.output)

    def test_iterations_validated(self) -> None:
        result = self._run("--iterations", "1", "--suite", "python")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("iterations", result.output)

    def test_unknown_workload(self) -> None:
        """An unknown --workload fails before any trial."""
        result = self._run("--suite", "python", "--workload", "nope")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("nope", result.output)

    def test_json_report_to_file(self) -> None:
        """-o writes the JSON report and prints where."""
        suite = self.write_suite(
            """\
            workloads:
              - {name: Startup, args: ["-c", "pass"]}
              - name: Printed
                source: output
                args: ["-c", "print(5)"]
            """
        )
        out = self.tmp / "report.json"
        result = self._run(
            "--suite-file", str(suite), "--format", "json", "-o", str(out),
            "--label-a", "old", "--label-b", "new",
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Report written to", result.output)
        data = json.loads(out.read_text())
        self.assertEqual(data["labels"], {"a": "old", "b": "new"})
        self.assertEqual([r["metric"] for r in data["results"]], ["Startup", "Printed"])
        self.assertEqual(data["results"][1]["summary_a"]["median"], 5.0)
        self.assertEqual(data["results"][1]["verdict"], "Tie")

    def test_table_report_on_stdout(self) -> None:
        suite = self.write_suite(
            """\
            workloads:
              - {name: Size, source: file-size}
            """
        )
        result = self._run("--suite-file", str(suite))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Benchmark", result.output)
        self.assertIn("Overall: Tie", result.output)

    def _garbage_suite(self) -> Path:
        return self.write_suite(
            """\
            workloads:
              - name: Broken
                source: output
                args: ["-c", "print('garbage')"]
              - {name: Startup, args: ["-c", "pass"]}
            """
        )

    def test_incomplete_metric_exits_zero_by_default(self) -> None:
        """Incomplete metrics are reported, not fatal."""
        result = self._run("--suite-file", str(self._garbage_suite()))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Incomplete", result.output)

    def test_fail_on_incomplete(self) -> None:
        """--fail-on-incomplete exits 3 when a metric had no samples."""
        result = self._run("--suite-file", str(self._garbage_suite()), "--fail-on-incomplete")
        self.assertEqual(result.exit_code, EXIT_INCOMPLETE)
        self.assertIn("ended with no samples", result.output)

    def test_log_file_gets_debug_detail(self) -> None:
        """The log file receives DEBUG lines even with -q."""
        suite = self.write_suite("workloads:\n  - {name: Startup, args: ['-c', 'pass']}\n")
        log_file = self.tmp / "run.log"
        result = self._run("--suite-file", str(suite), "--log-file", str(log_file))
        self.assertEqual(result.exit_code, 0, result.output)
        reset_logging()
        text = log_file.read_text()
        self.assertIn("Execution order seed: 1", text)
        self.assertIn("DEBUG", text)

    @patch("twinbench.bench.harness.Harness.run", side_effect=KeyboardInterrupt)
    def test_interrupt(self, _mock_run: MagicMock) -> None:
        """Ctrl-C exits 130."""
        result = self._run("--suite", "python")
        self.assertEqual(result.exit_code, 130)
        self.assertIn("interrupted", result.output)


class TestRenderReport(unittest.TestCase):
    """Tests for render_report()."""

    def setUp(self) -> None:
        self.report = aggregate([make_metric_result("w", [1.0, 1.0], [2.0, 2.0])])

    def test_all_formats(self) -> None:
        self.assertIn("Overall: A", render_report(self.report, "table"))
        self.assertEqual(json.loads(render_report(self.report, "json"))["overall"], "A")
        self.assertTrue(render_report(self.report, "csv").startswith("workload,metric"))
        self.assertTrue(render_report(self.report, "markdown").startswith("# A vs B"))


if __name__ == "__main__":
    unittest.main()
