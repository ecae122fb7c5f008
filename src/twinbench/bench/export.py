"""Export comparison reports to JSON, CSV and Markdown.

JSON format: the whole report, including summaries, drop counts and
incomplete metrics.

CSV format: one row per metric (wide format), with both candidates'
summaries side by side.

Markdown format: the results table plus the weighted summary, suitable
for reports and GitHub issues.
"""

from __future__ import annotations

import csv
import io
import json

from twinbench.bench.aggregate import AggregateReport
from twinbench.bench.display import format_summary_cell
from twinbench.formatting import format_pct


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def export_json(report: AggregateReport, indent: int = 2) -> str:
    """Export the report as a JSON document."""
    return json.dumps(report.to_dict(), indent=indent) + "\n"


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def _num(value: float | None, fmt: str = ".6f") -> str:
    return "" if value is None else format(value, fmt)


def export_csv(report: AggregateReport) -> str:
    """Export per-metric results as CSV.

    Columns:
        workload, metric, unit, lower_is_better, n_a, median_a, mean_a,
        stddev_a, min_a, max_a, dropped_a, the same for b,
        percent_diff, winner

    Incomplete metrics are included with empty statistic columns and
    an ``incomplete`` winner.
    """
    output = io.StringIO()
    writer = csv.writer(output)

    stat_cols = ["n", "median", "mean", "stddev", "min", "max", "dropped"]
    writer.writerow(
        ["workload", "metric", "unit", "lower_is_better"]
        + [f"{c}_a" for c in stat_cols]
        + [f"{c}_b" for c in stat_cols]
        + ["percent_diff", "winner"]
    )

    for r in report.results:
        row: list[object] = [r.workload, r.metric, r.unit, r.lower_is_better]
        for s, dropped in ((r.summary_a, r.dropped_a), (r.summary_b, r.dropped_b)):
            row += [
                s.n,
                _num(s.median),
                _num(s.mean),
                _num(s.stddev),
                _num(s.min),
                _num(s.max),
                dropped,
            ]
        row += [_num(r.percent_diff, ".4f"), r.verdict.label(report.label_a, report.label_b)]
        writer.writerow(row)

    for m in report.incomplete:
        writer.writerow(
            [m.workload, m.metric, m.unit, ""]
            + [m.n_a, "", "", "", "", "", m.dropped_a]
            + [m.n_b, "", "", "", "", "", m.dropped_b]
            + ["", "incomplete"]
        )

    return output.getvalue()


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def export_markdown(report: AggregateReport) -> str:
    """Export the report as Markdown."""
    a, b = report.label_a, report.label_b
    lines: list[str] = [f"# {a} vs {b}", "", "## Results", ""]

    lines.append(f"| Benchmark | {a} | {b} | Diff | Winner |")
    lines.append("|---|---:|---:|---:|---|")
    for r in report.results:
        lines.append(
            f"| {r.metric} | {format_summary_cell(r.summary_a, r.unit)} | "
            f"{format_summary_cell(r.summary_b, r.unit)} | "
            f"{format_pct(r.percent_diff)} | {r.verdict.label(a, b)} |"
        )
    lines.append("")

    if report.incomplete:
        lines.append("## Incomplete")
        lines.append("")
        for m in report.incomplete:
            lines.append(
                f"- {m.workload} / {m.metric}: {a} n={m.n_a}, {b} n={m.n_b} "
                f"(dropped {m.dropped_a}/{m.dropped_b})"
            )
        lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append(f"- Metrics compared: {report.total}")
    lines.append(f"- Wins: {a} {report.wins_a}, {b} {report.wins_b}, ties {report.ties}")
    lines.append(
        f"- Weighted advantage: {a} {report.advantage_a:.2f} ({report.share_a:.1f}%), "
        f"{b} {report.advantage_b:.2f} ({report.share_b:.1f}%)"
    )
    lines.append(f"- **Overall: {report.overall_label}**")

    return "\n".join(lines) + "\n"
