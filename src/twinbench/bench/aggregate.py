"""Per-metric results and the magnitude-weighted overall verdict.

Counting wins alone treats a 0.1% win like a 50% win.  The aggregator
therefore credits each winner with the absolute percentage gap of the
metric it won, and ranks the candidates by those totals.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from twinbench.bench.adjudicate import Verdict, adjudicate_summaries
from twinbench.bench.sampling import WorkloadSamples
from twinbench.bench.stats import InsufficientSamplesError, Summary, percent_diff, summarize
from twinbench.bench.workloads import MetricSpec

log = logging.getLogger("twinbench")


# ---------------------------------------------------------------------------
# Per-metric results
# ---------------------------------------------------------------------------


@dataclass
class MetricResult:
    """Adjudicated comparison of one metric of one workload."""

    workload: str
    metric: str
    summary_a: Summary
    summary_b: Summary
    unit: str
    lower_is_better: bool
    percent_diff: float | None  # (B - A) / A * 100 on medians
    verdict: Verdict
    dropped_a: int = 0
    dropped_b: int = 0

    @property
    def gap_pct(self) -> float:
        """Absolute percentage gap, 0 when A's median is not positive."""
        if self.summary_a.median <= 0 or self.percent_diff is None:
            return 0.0
        return abs(self.percent_diff)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "workload": self.workload,
            "metric": self.metric,
            "unit": self.unit,
            "lower_is_better": self.lower_is_better,
            "summary_a": self.summary_a.to_dict(),
            "summary_b": self.summary_b.to_dict(),
            "percent_diff": (
                round(self.percent_diff, 4) if self.percent_diff is not None else None
            ),
            "verdict": self.verdict.value,
            "dropped_a": self.dropped_a,
            "dropped_b": self.dropped_b,
        }


@dataclass
class IncompleteMetric:
    """A metric that could not be adjudicated for lack of samples."""

    workload: str
    metric: str
    unit: str
    n_a: int
    n_b: int
    dropped_a: int = 0
    dropped_b: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "workload": self.workload,
            "metric": self.metric,
            "unit": self.unit,
            "n_a": self.n_a,
            "n_b": self.n_b,
            "dropped_a": self.dropped_a,
            "dropped_b": self.dropped_b,
        }


def build_metric_result(
    workload: str,
    metric: MetricSpec,
    samples_a: Sequence[float],
    samples_b: Sequence[float],
    *,
    dropped_a: int = 0,
    dropped_b: int = 0,
) -> MetricResult | IncompleteMetric:
    """Summarize both SampleSets and adjudicate the metric.

    Returns an :class:`IncompleteMetric` when either side has no
    samples, since no Summary exists for it.
    """
    try:
        summary_a = summarize(samples_a)
        summary_b = summarize(samples_b)
    except InsufficientSamplesError:
        return IncompleteMetric(
            workload=workload,
            metric=metric.name,
            unit=metric.unit,
            n_a=len(samples_a),
            n_b=len(samples_b),
            dropped_a=dropped_a,
            dropped_b=dropped_b,
        )

    return MetricResult(
        workload=workload,
        metric=metric.name,
        summary_a=summary_a,
        summary_b=summary_b,
        unit=metric.unit,
        lower_is_better=metric.lower_is_better,
        percent_diff=percent_diff(summary_a.median, summary_b.median),
        verdict=adjudicate_summaries(summary_a, summary_b, metric.lower_is_better),
        dropped_a=dropped_a,
        dropped_b=dropped_b,
    )


def results_from_samples(
    samples: WorkloadSamples,
) -> list[MetricResult | IncompleteMetric]:
    """Build one result per metric of a sampled workload, in metric order."""
    workload = samples.workload
    return [
        build_metric_result(
            workload.name,
            metric,
            samples.samples_a[metric.name],
            samples.samples_b[metric.name],
            dropped_a=samples.dropped_a[metric.name],
            dropped_b=samples.dropped_b[metric.name],
        )
        for metric in workload.metrics
    ]


# ---------------------------------------------------------------------------
# Aggregate report
# ---------------------------------------------------------------------------


@dataclass
class AggregateReport:
    """All per-metric verdicts folded into one overall verdict."""

    results: list[MetricResult] = field(default_factory=list)
    incomplete: list[IncompleteMetric] = field(default_factory=list)
    label_a: str = "A"
    label_b: str = "B"
    wins_a: int = 0
    wins_b: int = 0
    ties: int = 0
    advantage_a: float = 0.0
    advantage_b: float = 0.0
    share_a: float = 50.0
    share_b: float = 50.0
    overall: Verdict = Verdict.TIE

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def overall_label(self) -> str:
        return self.overall.label(self.label_a, self.label_b)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "labels": {"a": self.label_a, "b": self.label_b},
            "results": [r.to_dict() for r in self.results],
            "incomplete": [m.to_dict() for m in self.incomplete],
            "wins_a": self.wins_a,
            "wins_b": self.wins_b,
            "ties": self.ties,
            "advantage_a": round(self.advantage_a, 4),
            "advantage_b": round(self.advantage_b, 4),
            "share_a": round(self.share_a, 2),
            "share_b": round(self.share_b, 2),
            "overall": self.overall.value,
        }


def aggregate(
    results: Sequence[MetricResult],
    incomplete: Sequence[IncompleteMetric] = (),
    *,
    labels: tuple[str, str] = ("A", "B"),
) -> AggregateReport:
    """Fold per-metric verdicts into win counts and weighted advantage.

    Each winner is credited with the metric's absolute percentage gap
    (A as denominator, zero when A's value is not positive).  Ties
    credit neither side.  Shares are each side's fraction of the total
    advantage, 50/50 when the total is zero.
    """
    report = AggregateReport(
        results=list(results),
        incomplete=list(incomplete),
        label_a=labels[0],
        label_b=labels[1],
    )

    for r in report.results:
        if r.verdict is Verdict.A:
            report.wins_a += 1
            report.advantage_a += r.gap_pct
        elif r.verdict is Verdict.B:
            report.wins_b += 1
            report.advantage_b += r.gap_pct
        else:
            report.ties += 1

    total_advantage = report.advantage_a + report.advantage_b
    if total_advantage > 0:
        report.share_a = report.advantage_a / total_advantage * 100
        report.share_b = report.advantage_b / total_advantage * 100

    if report.advantage_a > report.advantage_b:
        report.overall = Verdict.A
    elif report.advantage_b > report.advantage_a:
        report.overall = Verdict.B
    else:
        report.overall = Verdict.TIE

    log.debug(
        "Aggregated %d metrics: %s=%d, %s=%d, ties=%d, advantage %.2f/%.2f",
        report.total,
        report.label_a,
        report.wins_a,
        report.label_b,
        report.wins_b,
        report.ties,
        report.advantage_a,
        report.advantage_b,
    )
    return report
