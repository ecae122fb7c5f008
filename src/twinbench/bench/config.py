"""Harness configuration and upfront validation.

The configuration is an explicit value threaded through the harness,
the sampling controller and the trial runner; nothing is read from
module-level state, so independent runs (in tests, for example) can
never interfere.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from twinbench.bench.timing import DEFAULT_TIMEOUT_MS


# ---------------------------------------------------------------------------
# HarnessConfig
# ---------------------------------------------------------------------------


@dataclass
class HarnessConfig:
    """Resolved configuration for one harness run."""

    # Candidates
    candidate_a: Path
    candidate_b: Path
    label_a: str = "A"
    label_b: str = "B"

    # Iteration control
    iterations: int = 30  # Measured paired trials per workload
    warmup: int = 10  # Discarded paired trials per workload
    timeout_ms: int = DEFAULT_TIMEOUT_MS  # Per-invocation timeout

    # Execution-order randomization; None draws a fresh seed.
    seed: int | None = None

    # Workload selection
    suite: str = "node"
    suite_file: Path | None = None
    workloads_filter: list[str] | None = None

    # Treat metrics without samples as a failed run.
    fail_on_incomplete: bool = False

    def __post_init__(self) -> None:
        self.candidate_a = Path(self.candidate_a)
        self.candidate_b = Path(self.candidate_b)

    @property
    def labels(self) -> tuple[str, str]:
        return (self.label_a, self.label_b)

    @property
    def total_trials(self) -> int:
        """Paired trials per workload (warmup + measured)."""
        return self.warmup + self.iterations


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_candidate(path: Path, field_name: str) -> list[ValidationError]:
    """Check that *path* names an existing executable file."""
    if not path.exists():
        return [ValidationError(field_name, f"Candidate binary not found: {path}")]
    if not path.is_file():
        return [ValidationError(field_name, f"Candidate is not a file: {path}")]
    if not os.access(path, os.X_OK):
        return [ValidationError(field_name, f"Candidate is not executable: {path}")]
    return []


def validate_config(config: HarnessConfig) -> list[ValidationError]:
    """Validate a harness configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    errors.extend(validate_candidate(config.candidate_a, "candidate_a"))
    errors.extend(validate_candidate(config.candidate_b, "candidate_b"))

    # stddev needs two samples per side.
    if config.iterations < 2:
        errors.append(
            ValidationError(
                field="iterations",
                message=(
                    f"Need at least 2 measured iterations for a noise "
                    f"estimate (got {config.iterations})."
                ),
            )
        )

    if config.warmup < 0:
        errors.append(
            ValidationError(
                field="warmup",
                message=f"Warmup iterations cannot be negative (got {config.warmup}).",
            )
        )

    if config.timeout_ms <= 0:
        errors.append(
            ValidationError(
                field="timeout_ms",
                message=f"Timeout must be positive (got {config.timeout_ms}).",
            )
        )

    if config.suite_file is not None and not config.suite_file.exists():
        errors.append(
            ValidationError(
                field="suite_file",
                message=f"Suite file does not exist: {config.suite_file}",
            )
        )

    if not config.label_a.strip() or not config.label_b.strip():
        errors.append(ValidationError(field="labels", message="Labels must be non-empty."))
    elif config.label_a == config.label_b:
        errors.append(
            ValidationError(
                field="labels",
                message=f"Both candidates are labelled '{config.label_a}'.",
                severity="warning",
            )
        )

    try:
        same = config.candidate_a.resolve() == config.candidate_b.resolve()
    except OSError:
        same = False
    if same:
        errors.append(
            ValidationError(
                field="candidate_b",
                message="Both candidates are the same file; expect mostly ties.",
                severity="warning",
            )
        )

    return errors
