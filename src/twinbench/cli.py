"""Command-line interface for twinbench.

Subcommands:
    twinbench run        Compare two candidate executables
    twinbench workloads  List the workloads of a suite
    twinbench system     Print system characterization
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import click

from twinbench import __version__
from twinbench.logging import setup_logging

if TYPE_CHECKING:
    from twinbench.bench.aggregate import AggregateReport

EXIT_INCOMPLETE = 3

_FORMATS = ("table", "json", "csv", "markdown")


def _suite_names() -> list[str]:
    from twinbench.bench.workloads import available_suites

    return available_suites()


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """twinbench: head-to-head benchmarks of two builds of one runtime."""


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------


@main.command()
@click.argument("binary_a", type=click.Path(path_type=Path))
@click.argument("binary_b", type=click.Path(path_type=Path))
@click.option(
    "--suite",
    type=click.Choice(_suite_names()),
    default="node",
    show_default=True,
    help="Built-in workload suite.",
)
@click.option(
    "--suite-file",
    type=click.Path(path_type=Path),
    default=None,
    help="YAML file listing workloads (replaces --suite).",
)
@click.option(
    "--workload",
    "workloads",
    type=str,
    multiple=True,
    help="Only run this workload (repeatable).",
)
@click.option("--iterations", type=int, default=30, show_default=True, help="Measured pairs.")
@click.option("--warmup", type=int, default=10, show_default=True, help="Discarded pairs.")
@click.option(
    "--timeout-ms",
    type=int,
    default=60_000,
    show_default=True,
    help="Per-invocation timeout in milliseconds.",
)
@click.option("--seed", type=int, default=None, help="Seed for the execution-order coin flips.")
@click.option("--label-a", default="A", show_default=True, help="Display label for BINARY_A.")
@click.option("--label-b", default="B", show_default=True, help="Display label for BINARY_B.")
@click.option(
    "--format",
    "fmt",
    type=click.Choice(list(_FORMATS)),
    default="table",
    show_default=True,
    help="Report format.",
)
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the report to a file instead of stdout.",
)
@click.option(
    "--fail-on-incomplete",
    is_flag=True,
    default=False,
    help=f"Exit with status {EXIT_INCOMPLETE} if any metric ended with no samples.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show per-trial detail.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def run(  # noqa: PLR0913
    binary_a: Path,
    binary_b: Path,
    suite: str,
    suite_file: Path | None,
    workloads: tuple[str, ...],
    iterations: int,
    warmup: int,
    timeout_ms: int,
    seed: int | None,
    label_a: str,
    label_b: str,
    fmt: str,
    output: Path | None,
    fail_on_incomplete: bool,
    verbose: bool,
    quiet: bool,
    log_file: Path | None,
) -> None:
    """Compare BINARY_A against BINARY_B over a workload suite.

    \b
    Examples:
        # Two Node.js builds
        twinbench run ./node-main ./node-patched --label-a main --label-b patch

        # Two CPython builds, a few workloads, JSON report
        twinbench run --suite python /usr/bin/python3 ./python \\
            --workload "Regex findall (20k iters)" --format json -o report.json
    """
    from twinbench.bench.config import HarnessConfig
    from twinbench.bench.harness import Harness

    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)

    config = HarnessConfig(
        candidate_a=binary_a,
        candidate_b=binary_b,
        label_a=label_a,
        label_b=label_b,
        iterations=iterations,
        warmup=warmup,
        timeout_ms=timeout_ms,
        seed=seed,
        suite=suite,
        suite_file=suite_file,
        workloads_filter=list(workloads) or None,
        fail_on_incomplete=fail_on_incomplete,
    )

    try:
        report = Harness(config).run()
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nComparison interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    text = render_report(report, fmt)
    if output is not None:
        output.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
        click.echo(f"Report written to {output}")
    else:
        click.echo()
        click.echo(text)

    if config.fail_on_incomplete and report.incomplete:
        click.echo(
            f"{len(report.incomplete)} metric(s) ended with no samples.",
            err=True,
        )
        raise SystemExit(EXIT_INCOMPLETE)


def render_report(report: AggregateReport, fmt: str) -> str:
    """Render *report* in one of the supported output formats."""
    from twinbench.bench.display import format_report
    from twinbench.bench.export import export_csv, export_json, export_markdown

    renderers = {
        "table": format_report,
        "json": export_json,
        "csv": export_csv,
        "markdown": export_markdown,
    }
    return renderers[fmt](report)


# ---------------------------------------------------------------------------
# workloads
# ---------------------------------------------------------------------------


@main.command("workloads")
@click.option(
    "--suite",
    type=click.Choice(_suite_names()),
    default="node",
    show_default=True,
    help="Built-in workload suite.",
)
@click.option(
    "--suite-file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="YAML file listing workloads (replaces --suite).",
)
def workloads_cmd(suite: str, suite_file: Path | None) -> None:
    """List the workloads of a suite, in run order."""
    from twinbench.bench.workloads import get_suite, load_suite_file
    from twinbench.formatting import format_table

    try:
        selected = load_suite_file(suite_file) if suite_file else get_suite(suite)
    except ValueError as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc

    rows = [
        [
            w.name,
            w.source,
            ", ".join(m.name for m in w.metrics),
            w.description,
        ]
        for w in selected.workloads
    ]
    click.echo(f"Suite '{selected.name}': {len(rows)} workloads")
    if selected.description:
        click.echo(selected.description)
    click.echo()
    click.echo(
        format_table(
            ["Workload", "Source", "Metrics", "Description"],
            rows,
            max_col_width={0: 40, 2: 50, 3: 50},
        )
    )


# ---------------------------------------------------------------------------
# system
# ---------------------------------------------------------------------------


@main.command("system")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def system_cmd(as_json: bool) -> None:
    """Print system characterization for benchmark documentation."""
    from twinbench.bench.system import capture_system_profile, format_system_profile

    profile = capture_system_profile()
    if as_json:
        click.echo(json.dumps(profile.to_dict(), indent=2))
    else:
        click.echo(format_system_profile(profile))
