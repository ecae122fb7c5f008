"""Parsing of workload output into numeric observations.

A workload prints either a bare numeric literal (one metric) or a JSON
object whose named numeric fields each feed their own metric.  Any
other shape is a parse failure for that trial.
"""

from __future__ import annotations

import json
import math
import re
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from twinbench.bench.workloads import MetricSpec

_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


class OutputParseError(ValueError):
    """Captured output does not have the expected numeric shape."""


def parse_number(text: str) -> float:
    """Parse a single numeric literal, ignoring surrounding whitespace.

    Raises:
        OutputParseError: If *text* is not exactly one finite number.
    """
    stripped = text.strip()
    if not _NUMBER_RE.fullmatch(stripped):
        raise OutputParseError(f"expected a number, got {_preview(stripped)}")
    value = float(stripped)
    if not math.isfinite(value):
        raise OutputParseError(f"number out of range: {_preview(stripped)}")
    return value


def parse_fields(text: str, fields: Sequence[str]) -> dict[str, float]:
    """Parse a JSON object and extract the named numeric *fields*.

    Raises:
        OutputParseError: If the output is not a JSON object, or a field
            is missing or not a finite number.
    """
    stripped = text.strip()
    try:
        data: Any = json.loads(stripped)
    except json.JSONDecodeError as exc:
        raise OutputParseError(f"invalid JSON ({exc.msg}): {_preview(stripped)}") from exc
    except ValueError as exc:
        # Integer literals beyond the int conversion digit limit.
        raise OutputParseError(f"invalid JSON ({exc}): {_preview(stripped)}") from exc
    if not isinstance(data, dict):
        raise OutputParseError(f"expected a JSON object, got {type(data).__name__}")

    values: dict[str, float] = {}
    for name in fields:
        if name not in data:
            raise OutputParseError(f"missing field '{name}'")
        raw = data[name]
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise OutputParseError(f"field '{name}' is not a number: {raw!r}")
        try:
            value = float(raw)
        except OverflowError as exc:
            raise OutputParseError(f"field '{name}' is out of range") from exc
        if not math.isfinite(value):
            raise OutputParseError(f"field '{name}' is not finite: {raw!r}")
        values[name] = value
    return values


def parse_output(text: str, metrics: Sequence[MetricSpec]) -> dict[str, float]:
    """Turn captured stdout into one observation per metric.

    A single metric without a ``field`` expects a bare number; otherwise
    every metric must name a field of a JSON object.

    Returns:
        Mapping of metric name to observed value.

    Raises:
        OutputParseError: If the output does not match the expected shape.
    """
    if len(metrics) == 1 and metrics[0].field is None:
        return {metrics[0].name: parse_number(text)}

    missing = [m.name for m in metrics if m.field is None]
    if missing:
        raise OutputParseError(f"metrics without a field in structured output: {missing}")

    fields = parse_fields(text, [m.field for m in metrics if m.field is not None])
    return {m.name: fields[m.field] for m in metrics if m.field is not None}


def _preview(text: str, limit: int = 60) -> str:
    """Shorten output for log and error messages."""
    if not text:
        return "<empty>"
    if len(text) <= limit:
        return repr(text)
    return repr(text[: limit - 3] + "...")
