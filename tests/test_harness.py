"""Tests for twinbench.bench.harness — end-to-end orchestration."""

from __future__ import annotations

import random
import sys
import tempfile
import unittest
from pathlib import Path

from twinbench.bench.adjudicate import Verdict
from twinbench.bench.config import HarnessConfig
from twinbench.bench.harness import Harness, resolve_suite
from twinbench.bench.sampling import FixedOrder
from twinbench.bench.timing import TrialResult
from twinbench.bench.workloads import PYTHON_SUITE, MetricSpec, binary_size, reported, timed

from harness_test_helpers import FakeRunner, constant, make_trial, write_executable


class HarnessTestCase(unittest.TestCase):
    """Provides two real (executable) candidate files in a temp dir."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        tmp = Path(self._tmp.name)
        self.a = write_executable(tmp, "cand-a")
        self.b = write_executable(tmp, "cand-b", body="exit 0\n# padding " + "x" * 200)
        self.tmp = tmp

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def config(self, **overrides: object) -> HarnessConfig:
        settings: dict[str, object] = {
            "candidate_a": self.a,
            "candidate_b": self.b,
            "iterations": 5,
            "warmup": 1,
            "seed": 42,
        }
        settings.update(overrides)
        return HarnessConfig(**settings)  # type: ignore[arg-type]


class TestHarnessValidation(HarnessTestCase):
    """Tests for Harness.run() validation."""

    def test_invalid_config_raises_before_trials(self) -> None:
        """All fatal errors are reported together and nothing runs."""
        runner = FakeRunner({})
        config = self.config(candidate_b=self.tmp / "missing", iterations=1)
        harness = Harness(config, [timed("w", ["x"])], runner=runner, profile=False)
        with self.assertRaises(ValueError) as ctx:
            harness.run()
        message = str(ctx.exception)
        self.assertIn("Invalid harness configuration", message)
        self.assertIn("candidate_b", message)
        self.assertIn("iterations", message)
        self.assertEqual(runner.calls, [])

    def test_unknown_workload_filter_raises(self) -> None:
        config = self.config(workloads_filter=["nope"])
        harness = Harness(config, [timed("w", ["x"])], runner=FakeRunner({}), profile=False)
        with self.assertRaises(ValueError):
            harness.run()


class TestHarnessRun(HarnessTestCase):
    """Tests for Harness.run() with a fake runner."""

    def _runner(self) -> FakeRunner:
        return FakeRunner(
            {
                str(self.a): constant(10.0, stdout="50\n"),
                str(self.b): constant(12.0, stdout="40\n"),
            }
        )

    def test_results_in_registration_order(self) -> None:
        """Results follow workload order, with verdicts per metric."""
        workloads = [
            binary_size(),
            timed("Startup", ["-e", "0"]),
            reported("Ops", ["-e", "..."]),
        ]
        report = Harness(
            self.config(), workloads, runner=self._runner(), profile=False
        ).run()
        self.assertEqual([r.metric for r in report.results], ["Binary Size", "Startup", "Ops"])
        self.assertEqual(report.incomplete, [])

        size, startup, ops = report.results
        self.assertIs(size.verdict, Verdict.A)  # smaller file
        self.assertIs(startup.verdict, Verdict.A)
        self.assertAlmostEqual(startup.percent_diff, 20.0)
        self.assertIs(ops.verdict, Verdict.B)
        self.assertAlmostEqual(ops.percent_diff, -20.0)
        self.assertEqual(startup.summary_a.n, 5)

    def test_labels_flow_into_report(self) -> None:
        config = self.config(label_a="main", label_b="patch")
        report = Harness(config, [timed("w", ["x"])], runner=self._runner(), profile=False).run()
        self.assertEqual((report.label_a, report.label_b), ("main", "patch"))
        self.assertEqual(report.overall_label, "main")

    def test_workload_filter(self) -> None:
        config = self.config(workloads_filter=["Startup"])
        workloads = [timed("Startup", ["-e", "0"]), timed("Other", ["x"])]
        report = Harness(config, workloads, runner=self._runner(), profile=False).run()
        self.assertEqual([r.workload for r in report.results], ["Startup"])

    def test_missing_samples_become_incomplete(self) -> None:
        """A metric with no samples is listed, logged and not adjudicated."""
        runner = FakeRunner(
            {
                str(self.a): constant(10.0, stdout="not a number"),
                str(self.b): constant(12.0, stdout="40\n"),
            }
        )
        workloads = [reported("Ops", ["x"]), timed("Startup", ["x"])]
        with self.assertLogs("twinbench", level="WARNING") as logs:
            report = Harness(self.config(), workloads, runner=runner, profile=False).run()
        self.assertEqual(len(report.incomplete), 1)
        missing = report.incomplete[0]
        self.assertEqual((missing.metric, missing.n_a, missing.n_b), ("Ops", 0, 5))
        self.assertEqual(missing.dropped_a, 5)
        self.assertEqual([r.metric for r in report.results], ["Startup"])
        self.assertTrue(any("Ops" in line for line in logs.output))

    def test_diverging_sample_sizes_warn(self) -> None:
        """Different sample counts are logged as a warning."""
        def flaky(i: int) -> TrialResult:
            return make_trial(10.0, timed_out=True) if i % 2 else make_trial(10.0)

        runner = FakeRunner({str(self.a): flaky, str(self.b): constant(10.0)})
        with self.assertLogs("twinbench", level="WARNING") as logs:
            report = Harness(
                self.config(warmup=0, iterations=6),
                [timed("Startup", ["x"])],
                runner=runner,
                profile=False,
            ).run()
        (result,) = report.results
        self.assertEqual((result.summary_a.n, result.summary_b.n), (3, 6))
        self.assertEqual(result.dropped_a, 3)
        self.assertTrue(any("sample sizes differ" in line for line in logs.output))

    def test_identical_candidates_tie(self) -> None:
        """Two noisy copies of one candidate tie on every metric."""
        rng = random.Random(3)

        def noisy(_i: int) -> TrialResult:
            return make_trial(100.0 + rng.uniform(-5, 5), stdout=f"{50 + rng.uniform(-2, 2)}")

        runner = FakeRunner({str(self.a): noisy, str(self.b): noisy})
        workloads = [timed("Startup", ["x"]), reported("Ops", ["x"])]
        report = Harness(
            self.config(iterations=30, warmup=0),
            workloads,
            runner=runner,
            order=FixedOrder([True, False]),
            profile=False,
        ).run()
        self.assertEqual(report.ties, 2)
        self.assertIs(report.overall, Verdict.TIE)
        self.assertEqual((report.share_a, report.share_b), (50.0, 50.0))

    def test_progress_callback_receives_every_pair(self) -> None:
        events = []
        Harness(
            self.config(iterations=3, warmup=2),
            [timed("w", ["x"])],
            runner=self._runner(),
            progress_callback=events.append,
            profile=False,
        ).run()
        self.assertEqual(len(events), 5)

    def test_banner_logged(self) -> None:
        """The system and candidate banner is logged at INFO."""
        with self.assertLogs("twinbench", level="INFO") as logs:
            Harness(self.config(), [timed("w", ["x"])], runner=self._runner()).run()
        text = "\n".join(logs.output)
        self.assertIn("System Profile", text)
        self.assertIn("Candidate A", text)
        self.assertIn("Running: w... done", text)


class TestResolveSuite(HarnessTestCase):
    """Tests for resolve_suite() and suite-driven runs."""

    def test_builtin(self) -> None:
        self.assertIs(resolve_suite(self.config(suite="python")), PYTHON_SUITE)

    def test_suite_file(self) -> None:
        """A suite file takes precedence over the built-in suite."""
        path = self.tmp / "suite.yaml"
        path.write_text("name: mine\nworkloads:\n  - {name: Startup, args: ['-c', 'pass']}\n")
        suite = resolve_suite(self.config(suite_file=path))
        self.assertEqual(suite.name, "mine")

    def test_harness_uses_suite_when_no_workloads_given(self) -> None:
        path = self.tmp / "suite.yaml"
        path.write_text("workloads:\n  - {name: Startup, args: ['-c', 'pass']}\n")
        report = Harness(
            self.config(suite_file=path), runner=self._fake(), profile=False
        ).run()
        self.assertEqual([r.metric for r in report.results], ["Startup"])

    def _fake(self) -> FakeRunner:
        return FakeRunner({str(self.a): constant(1.0), str(self.b): constant(2.0)})


class TestHarnessRealProcesses(unittest.TestCase):
    """Runs the host interpreter as both candidates."""

    def test_same_interpreter_twice(self) -> None:
        config = HarnessConfig(
            candidate_a=Path(sys.executable),
            candidate_b=Path(sys.executable),
            iterations=3,
            warmup=1,
            seed=0,
        )
        workloads = [
            binary_size(),
            timed("Startup", ["-c", "pass"]),
            reported(
                "Printed",
                ["-c", "import json; print(json.dumps({'v': 7}))"],
                metrics=[MetricSpec("Printed value", "v", "ms")],
            ),
        ]
        report = Harness(config, workloads, profile=False).run()
        self.assertEqual(report.incomplete, [])
        self.assertEqual(len(report.results), 3)
        size, _startup, printed = report.results
        self.assertIs(size.verdict, Verdict.TIE)
        self.assertIs(printed.verdict, Verdict.TIE)
        self.assertEqual(printed.summary_a.median, 7.0)
        self.assertAlmostEqual(report.share_a + report.share_b, 100.0)


if __name__ == "__main__":
    unittest.main()
