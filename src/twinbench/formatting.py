"""Shared text formatting helpers for twinbench.

Provides unit-aware value formatting (milliseconds, bytes, signed
percentages) and an aligned plain-text table used by the report
renderers and the ``workloads`` listing.
"""

from __future__ import annotations

import math


def format_bytes(value: float) -> str:
    """Format a byte count with binary units.

    Examples: ``'512 B'``, ``'1.50 KB'``, ``'42.00 MB'``.
    """
    if math.isnan(value):
        return "N/A"
    if abs(value) >= 1024 * 1024:
        return f"{value / (1024 * 1024):.2f} MB"
    if abs(value) >= 1024:
        return f"{value / 1024:.2f} KB"
    return f"{value:.0f} B"


def format_ms(value: float) -> str:
    """Format a duration already expressed in milliseconds."""
    if math.isnan(value):
        return "N/A"
    return f"{value:.2f} ms"


def format_value(value: float, unit: str) -> str:
    """Format *value* according to its measurement *unit*.

    Known units are ``ms`` and ``bytes``; anything else is printed with
    two decimals followed by the unit name.
    """
    if unit == "ms":
        return format_ms(value)
    if unit == "bytes":
        return format_bytes(value)
    if math.isnan(value):
        return "N/A"
    return f"{value:.2f} {unit}".rstrip()


def format_pct(value: float | None, precision: int = 2) -> str:
    """Format a percentage with an explicit sign for positive values."""
    if value is None or math.isnan(value):
        return "N/A"
    sign = "+" if value > 0 else ""
    return f"{sign}{value:.{precision}f}%"


def format_table(
    headers: list[str],
    rows: list[list[str]],
    *,
    alignments: list[str] | None = None,
    max_col_width: dict[int, int] | None = None,
    indent: int = 0,
    separator: str = " | ",
) -> str:
    """Format a list of rows as an aligned text table.

    Auto-calculates column widths from content. Truncates columns that
    exceed *max_col_width* (with ``'...'`` suffix). Right-aligns columns
    marked ``'r'`` in *alignments*. A dashed rule is drawn under the
    header and after the last row.

    Args:
        headers: Column header strings.
        rows: List of rows, each a list of cell strings.
        alignments: Per-column alignment: ``'l'``, ``'r'``, or ``'c'``.
        max_col_width: Column index to max width mapping.
        indent: Number of leading spaces per line.
        separator: Text placed between columns.

    Returns:
        The formatted table as a string.
    """
    if not headers:
        return ""

    ncols = len(headers)
    if alignments is None:
        alignments = ["l"] * ncols
    alignments = list(alignments) + ["l"] * (ncols - len(alignments))

    max_widths = max_col_width or {}

    def _trunc(text: str, max_w: int) -> str:
        if len(text) <= max_w:
            return text
        return text[: max_w - 3] + "..."

    proc_headers = list(headers)
    proc_rows: list[list[str]] = []
    for row in rows:
        padded = list(row) + [""] * (ncols - len(row))
        proc_rows.append(padded[:ncols])

    for ci, max_w in max_widths.items():
        if ci < ncols:
            proc_headers[ci] = _trunc(proc_headers[ci], max_w)
            for row in proc_rows:
                row[ci] = _trunc(row[ci], max_w)

    widths = [len(h) for h in proc_headers]
    for row in proc_rows:
        for ci, cell in enumerate(row):
            widths[ci] = max(widths[ci], len(cell))

    prefix = " " * indent

    def _format_cell(text: str, width: int, align: str) -> str:
        if align == "r":
            return text.rjust(width)
        if align == "c":
            return text.center(width)
        return text.ljust(width)

    def _format_row(cells: list[str]) -> str:
        return prefix + separator.join(
            _format_cell(cells[i], widths[i], alignments[i]) for i in range(ncols)
        )

    rule = prefix + "-" * (sum(widths) + len(separator) * (ncols - 1))

    lines = [_format_row(proc_headers), rule]
    lines.extend(_format_row(row) for row in proc_rows)
    lines.append(rule)
    return "\n".join(lines)
