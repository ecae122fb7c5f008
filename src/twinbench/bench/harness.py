"""Comparison orchestration.

Orchestrates:
1. Configuration validation
2. System and candidate profiling (the banner)
3. Paired-trial sampling of every workload, in registration order
4. Per-metric summaries and verdicts
5. Aggregation into one overall verdict
"""

from __future__ import annotations

import logging
import random
from typing import Any, Sequence

from twinbench.bench.aggregate import (
    AggregateReport,
    IncompleteMetric,
    MetricResult,
    aggregate,
    results_from_samples,
)
from twinbench.bench.config import HarnessConfig, validate_config
from twinbench.bench.sampling import (
    OrderSource,
    RandomOrder,
    SampleProgress,
    SamplingController,
)
from twinbench.bench.system import (
    capture_candidate_profile,
    capture_system_profile,
    format_candidate_profile,
    format_system_profile,
)
from twinbench.bench.timing import TrialRunner, run_trial
from twinbench.bench.workloads import (
    WorkloadDefinition,
    WorkloadSuite,
    get_suite,
    load_suite_file,
    select_workloads,
)

log = logging.getLogger("twinbench")

# Type alias for the progress callback.
ProgressCallback = Any  # Callable[[SampleProgress], None] | None


def resolve_suite(config: HarnessConfig) -> WorkloadSuite:
    """Return the suite named by *config*, or the one in its suite file."""
    if config.suite_file is not None:
        return load_suite_file(config.suite_file)
    return get_suite(config.suite)


class Harness:
    """Compares two candidates over a list of workloads.

    Usage::

        config = HarnessConfig(candidate_a=..., candidate_b=...)
        report = Harness(config).run()
    """

    def __init__(
        self,
        config: HarnessConfig,
        workloads: Sequence[WorkloadDefinition] | None = None,
        *,
        runner: TrialRunner = run_trial,
        order: OrderSource | None = None,
        progress_callback: ProgressCallback = None,
        profile: bool = True,
    ) -> None:
        self.config = config
        self.workloads = list(workloads) if workloads is not None else None
        self.runner = runner
        self.order = order
        self.progress: Any = progress_callback or self._default_progress
        self.profile = profile

    def run(self) -> AggregateReport:
        """Execute the full comparison.

        Raises:
            ValueError: If the configuration is invalid or the workload
                selection cannot be resolved.  Raised before any trial.
        """
        # Phase 1: Validate configuration.
        errors = validate_config(self.config)
        fatal = [e for e in errors if e.severity == "error"]
        for w in (e for e in errors if e.severity == "warning"):
            log.warning("Config warning: %s: %s", w.field, w.message)
        if fatal:
            messages = [f"  {e.field}: {e.message}" for e in fatal]
            raise ValueError("Invalid harness configuration:\n" + "\n".join(messages))

        probes: dict[str, tuple[str, ...]] = {}
        if self.workloads is None:
            suite = resolve_suite(self.config)
            probes = suite.version_probes
            workloads = list(suite.workloads)
        else:
            workloads = list(self.workloads)
        if self.config.workloads_filter:
            workloads = select_workloads(workloads, self.config.workloads_filter)

        # Phase 2: Banner.
        if self.profile:
            self._log_banner(probes)

        order = self.order
        if order is None:
            seed = self.config.seed
            if seed is None:
                seed = random.randrange(2**32)
            log.info("Execution order seed: %d", seed)
            order = RandomOrder(seed)

        controller = SamplingController(
            self.config,
            runner=self.runner,
            order=order,
            progress_callback=self.progress,
        )
        log.info(
            "Comparing %s vs %s over %d workloads (%d warmup + %d measured pairs each)",
            self.config.label_a,
            self.config.label_b,
            len(workloads),
            self.config.warmup,
            self.config.iterations,
        )

        # Phase 3: Sample each workload.
        results: list[MetricResult] = []
        incomplete: list[IncompleteMetric] = []
        for workload in workloads:
            log.info("Running: %s...", workload.name)
            samples = controller.measure(workload)
            for item in results_from_samples(samples):
                if isinstance(item, IncompleteMetric):
                    incomplete.append(item)
                else:
                    results.append(item)
            log.info(
                "Running: %s... done (order %d A-first / %d B-first)",
                workload.name,
                samples.a_first_count,
                samples.b_first_count,
            )

        # Phase 4: Aggregate.
        self._warn_about_samples(results, incomplete)
        return aggregate(results, incomplete, labels=self.config.labels)

    def _log_banner(self, probes: dict[str, tuple[str, ...]]) -> None:
        log.info("Capturing system profile...")
        log.info("\n%s", format_system_profile(capture_system_profile()))
        for label, path in (
            (self.config.label_a, self.config.candidate_a),
            (self.config.label_b, self.config.candidate_b),
        ):
            candidate = capture_candidate_profile(path, probes, label=label)
            log.info("%s", format_candidate_profile(candidate))

    def _warn_about_samples(
        self,
        results: list[MetricResult],
        incomplete: list[IncompleteMetric],
    ) -> None:
        for m in incomplete:
            log.warning(
                "%s / %s: no verdict, samples %s=%d %s=%d (dropped %d/%d)",
                m.workload,
                m.metric,
                self.config.label_a,
                m.n_a,
                self.config.label_b,
                m.n_b,
                m.dropped_a,
                m.dropped_b,
            )
        for r in results:
            if r.summary_a.n != r.summary_b.n:
                log.warning(
                    "%s / %s: sample sizes differ, %s=%d %s=%d",
                    r.workload,
                    r.metric,
                    self.config.label_a,
                    r.summary_a.n,
                    self.config.label_b,
                    r.summary_b.n,
                )

    @staticmethod
    def _default_progress(progress: SampleProgress) -> None:
        """Default progress callback: one DEBUG line per paired trial."""
        marker = "W" if progress.phase == "warmup" else "M"
        order = "A,B" if progress.a_first else "B,A"
        log.debug(
            "  %-40s %s%d/%d [%s]",
            progress.workload,
            marker,
            progress.trial,
            progress.total,
            order,
        )
