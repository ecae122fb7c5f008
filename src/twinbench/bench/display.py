"""Terminal display formatting for comparison reports.

Produces the results table (one row per metric), the weighted summary
block and the list of metrics that could not be adjudicated.
"""

from __future__ import annotations

from twinbench.bench.adjudicate import Verdict
from twinbench.bench.aggregate import AggregateReport, MetricResult
from twinbench.bench.stats import Summary
from twinbench.formatting import format_pct, format_table, format_value


# ---------------------------------------------------------------------------
# Cell formatting
# ---------------------------------------------------------------------------


def format_summary_cell(summary: Summary, unit: str) -> str:
    """Median with its stddev, e.g. ``'12.34 ms ± 0.56 ms'``."""
    median = format_value(summary.median, unit)
    if summary.stddev is None:
        return median
    return f"{median} ± {format_value(summary.stddev, unit)}"


def _result_row(result: MetricResult, report: AggregateReport) -> list[str]:
    return [
        result.metric,
        format_summary_cell(result.summary_a, result.unit),
        format_summary_cell(result.summary_b, result.unit),
        format_pct(result.percent_diff),
        result.verdict.label(report.label_a, report.label_b),
    ]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def format_results_table(report: AggregateReport) -> str:
    """The per-metric table, in registration order."""
    headers = ["Benchmark", report.label_a, report.label_b, "Diff", "Winner"]
    rows = [_result_row(r, report) for r in report.results]
    return format_table(
        headers,
        rows,
        alignments=["l", "r", "r", "r", "l"],
        max_col_width={0: 45},
    )


def format_summary(report: AggregateReport) -> str:
    """Win counts, weighted advantage and the overall verdict."""
    a, b = report.label_a, report.label_b
    lines = [
        "Summary",
        "─" * 7,
        f"Metrics compared: {report.total}",
        f"  {a} wins: {report.wins_a}",
        f"  {b} wins: {report.wins_b}",
        f"  Ties:    {report.ties}",
        "",
        "Weighted advantage (sum of winning gaps):",
        f"  {a}: {report.advantage_a:.2f} ({report.share_a:.1f}%)",
        f"  {b}: {report.advantage_b:.2f} ({report.share_b:.1f}%)",
        "",
    ]
    if report.overall is Verdict.TIE:
        lines.append("Overall: Tie")
    else:
        if report.overall is Verdict.A:
            winner_share, loser_share = report.share_a, report.share_b
        else:
            winner_share, loser_share = report.share_b, report.share_a
        lines.append(
            f"Overall: {report.overall_label} "
            f"({winner_share:.1f}% vs {loser_share:.1f}% of the weighted advantage)"
        )
    return "\n".join(lines)


def format_incomplete(report: AggregateReport) -> str:
    """List metrics without a verdict, with their sample counts."""
    if not report.incomplete:
        return ""
    lines = [f"Incomplete ({len(report.incomplete)} metrics had no samples on one side):"]
    for m in report.incomplete:
        lines.append(
            f"  {m.workload} / {m.metric}: "
            f"{report.label_a} n={m.n_a} (dropped {m.dropped_a}), "
            f"{report.label_b} n={m.n_b} (dropped {m.dropped_b})"
        )
    return "\n".join(lines)


def format_drops(report: AggregateReport) -> str:
    """List adjudicated metrics that lost trials to timeouts or bad output."""
    dropped = [r for r in report.results if r.dropped_a or r.dropped_b]
    if not dropped:
        return ""
    lines = ["Dropped trials:"]
    for r in dropped:
        lines.append(
            f"  {r.metric}: {report.label_a} {r.dropped_a}, {report.label_b} {r.dropped_b}"
        )
    return "\n".join(lines)


def format_report(report: AggregateReport) -> str:
    """Format a complete comparison report for terminal output."""
    sections = [format_results_table(report)]
    for extra in (format_drops(report), format_incomplete(report)):
        if extra:
            sections.append(extra)
    sections.append(format_summary(report))
    return "\n\n".join(sections)
