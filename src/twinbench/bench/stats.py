"""Statistical reductions for benchmark samples.

Provides median, mean, and sample standard deviation over a sequence
of observations, plus the :class:`Summary` built from one SampleSet
and the percentage difference used throughout the report.

All functions are pure: no shared state, deterministic for a given
input.  Reductions over too few samples raise
:class:`InsufficientSamplesError` instead of returning NaN, so a
missing measurement can never masquerade as a number.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


class InsufficientSamplesError(ValueError):
    """A reduction was requested over too few observations."""

    def __init__(self, operation: str, n: int, required: int) -> None:
        self.operation = operation
        self.n = n
        self.required = required
        super().__init__(f"{operation} needs at least {required} sample(s), got {n}")


# ---------------------------------------------------------------------------
# Reductions
# ---------------------------------------------------------------------------


def median(samples: Sequence[float]) -> float:
    """Return the median of *samples*.

    Sorts ascending; odd counts return the middle element, even counts
    the mean of the two middle elements.

    Raises:
        InsufficientSamplesError: If *samples* is empty.
    """
    n = len(samples)
    if n == 0:
        raise InsufficientSamplesError("median", n, 1)
    ordered = sorted(samples)
    mid = n // 2
    if n % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def mean(samples: Sequence[float]) -> float:
    """Return the arithmetic mean of *samples*.

    Raises:
        InsufficientSamplesError: If *samples* is empty.
    """
    n = len(samples)
    if n == 0:
        raise InsufficientSamplesError("mean", n, 1)
    # Clamp: rounding must not push the mean outside [min, max].
    value = math.fsum(samples) / n
    return min(max(value, min(samples)), max(samples))


def stddev(samples: Sequence[float]) -> float:
    """Return the sample standard deviation of *samples* (divisor n - 1).

    Raises:
        InsufficientSamplesError: If fewer than two samples are given.
    """
    n = len(samples)
    if n < 2:
        raise InsufficientSamplesError("stddev", n, 2)
    if min(samples) == max(samples):
        return 0.0
    m = math.fsum(samples) / n
    return math.sqrt(math.fsum((v - m) ** 2 for v in samples) / (n - 1))


def percent_diff(value_a: float, value_b: float) -> float | None:
    """Percentage change from *value_a* (the baseline) to *value_b*.

    ``(B - A) / A * 100``.  Returns None when the baseline is zero,
    because the ratio is undefined there.
    """
    if value_a == 0:
        return None
    return (value_b - value_a) / value_a * 100


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Summary:
    """Median/mean/stddev reduction of one SampleSet.

    ``stddev`` is None when the SampleSet holds a single observation:
    there is no dispersion estimate, which the adjudicator treats as
    zero noise.
    """

    n: int
    median: float
    mean: float
    stddev: float | None
    min: float
    max: float

    @property
    def noise(self) -> float:
        """Dispersion used by the noise gate (0.0 without an estimate)."""
        return self.stddev if self.stddev is not None else 0.0

    def to_dict(self) -> dict[str, float | int | None]:
        """Serialize to a dict with rounded values."""
        return {
            "n": self.n,
            "median": round(self.median, 6),
            "mean": round(self.mean, 6),
            "stddev": round(self.stddev, 6) if self.stddev is not None else None,
            "min": round(self.min, 6),
            "max": round(self.max, 6),
        }


def summarize(samples: Sequence[float]) -> Summary:
    """Reduce a SampleSet to a :class:`Summary`.

    Raises:
        InsufficientSamplesError: If *samples* is empty.
    """
    if not samples:
        raise InsufficientSamplesError("summarize", 0, 1)
    values = [float(v) for v in samples]
    return Summary(
        n=len(values),
        median=median(values),
        mean=mean(values),
        stddev=stddev(values) if len(values) >= 2 else None,
        min=min(values),
        max=max(values),
    )
