"""Per-metric winner adjudication.

A heuristic noise gate, not a significance test: when the gap between
the candidates is smaller than the larger side's standard deviation,
no winner is asserted.
"""

from __future__ import annotations

import enum

from twinbench.bench.stats import Summary


class Verdict(enum.Enum):
    """Outcome of comparing candidate A against candidate B."""

    A = "A"
    B = "B"
    TIE = "Tie"

    def label(self, label_a: str = "A", label_b: str = "B") -> str:
        """Display text, substituting the candidates' labels."""
        if self is Verdict.A:
            return label_a
        if self is Verdict.B:
            return label_b
        return "Tie"


def adjudicate(
    value_a: float,
    value_b: float,
    lower_is_better: bool = True,
    std_a: float = 0.0,
    std_b: float = 0.0,
) -> Verdict:
    """Decide which candidate wins one metric.

    1. If ``max(std_a, std_b) > 0`` and ``|value_a - value_b|`` is below
       it, return TIE: the difference is within measurement noise.
    2. Otherwise the smaller value wins when *lower_is_better*, the
       larger one when not; exact equality is a TIE.
    """
    noise = max(std_a, std_b)
    if noise > 0 and abs(value_a - value_b) < noise:
        return Verdict.TIE

    if value_a == value_b:
        return Verdict.TIE
    a_smaller = value_a < value_b
    if lower_is_better:
        return Verdict.A if a_smaller else Verdict.B
    return Verdict.B if a_smaller else Verdict.A


def adjudicate_summaries(
    summary_a: Summary,
    summary_b: Summary,
    lower_is_better: bool = True,
) -> Verdict:
    """Adjudicate on medians, gated by each side's standard deviation."""
    return adjudicate(
        summary_a.median,
        summary_b.median,
        lower_is_better,
        summary_a.noise,
        summary_b.noise,
    )
