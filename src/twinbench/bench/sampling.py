"""Paired-trial sampling for one workload.

For every workload the controller runs ``warmup`` paired trials whose
results are thrown away, then ``iterations`` measured paired trials.
A paired trial runs candidate A and candidate B strictly one after the
other, in an order chosen by a coin flip per trial, so drift such as
thermal throttling or cache state is split between the candidates
instead of always landing on whichever runs second.

Order affects only which candidate is exposed to that drift.  Every
observation is attributed to the candidate that produced it.
"""

from __future__ import annotations

import logging
import random
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Protocol

from twinbench.bench.config import HarnessConfig
from twinbench.bench.parsing import OutputParseError
from twinbench.bench.timing import TrialResult, TrialRunner, run_trial
from twinbench.bench.workloads import WorkloadDefinition

log = logging.getLogger("twinbench")

CANDIDATE_A = "a"
CANDIDATE_B = "b"


# ---------------------------------------------------------------------------
# Execution order sources
# ---------------------------------------------------------------------------


class OrderSource(Protocol):
    """Decides, per paired trial, whether candidate A runs first."""

    def a_first(self) -> bool: ...


class RandomOrder:
    """Unbiased coin flip per trial, reproducible when seeded."""

    def __init__(self, seed: int | None = None) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def a_first(self) -> bool:
        return self._rng.random() < 0.5


class FixedOrder:
    """Replays a fixed sequence of A-first decisions, cycling at the end."""

    def __init__(self, sequence: Iterable[bool]) -> None:
        self._sequence = list(sequence)
        if not self._sequence:
            raise ValueError("FixedOrder needs at least one decision.")
        self._index = 0

    def a_first(self) -> bool:
        value = self._sequence[self._index % len(self._sequence)]
        self._index += 1
        return value


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class PairedTrial:
    """Both candidates' results for one trial, attributed by candidate."""

    a: TrialResult
    b: TrialResult
    a_first: bool


@dataclass
class WorkloadSamples:
    """SampleSets collected for one workload, per candidate and metric."""

    workload: WorkloadDefinition
    samples_a: dict[str, list[float]] = field(default_factory=dict)
    samples_b: dict[str, list[float]] = field(default_factory=dict)
    dropped_a: dict[str, int] = field(default_factory=dict)
    dropped_b: dict[str, int] = field(default_factory=dict)
    a_first_count: int = 0
    b_first_count: int = 0

    def __post_init__(self) -> None:
        for name in self.workload.metric_names:
            self.samples_a.setdefault(name, [])
            self.samples_b.setdefault(name, [])
            self.dropped_a.setdefault(name, 0)
            self.dropped_b.setdefault(name, 0)

    def record(self, candidate: str, observations: dict[str, float]) -> None:
        samples = self.samples_a if candidate == CANDIDATE_A else self.samples_b
        for name, value in observations.items():
            samples[name].append(value)

    def record_drop(self, candidate: str) -> None:
        dropped = self.dropped_a if candidate == CANDIDATE_A else self.dropped_b
        for name in self.workload.metric_names:
            dropped[name] += 1


@dataclass
class SampleProgress:
    """Progress info passed to the callback after each paired trial."""

    phase: str  # "warmup" or "measure"
    workload: str
    trial: int  # 1-based within the phase
    total: int
    a_first: bool


# ---------------------------------------------------------------------------
# SamplingController
# ---------------------------------------------------------------------------


class SamplingController:
    """Collects SampleSets for workloads against two candidates.

    Usage::

        controller = SamplingController(config, order=RandomOrder(seed=1))
        samples = controller.measure(workload)
    """

    def __init__(
        self,
        config: HarnessConfig,
        *,
        runner: TrialRunner = run_trial,
        order: OrderSource | None = None,
        progress_callback: Any = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.order: OrderSource = order or RandomOrder(config.seed)
        self.progress = progress_callback

    def measure(self, workload: WorkloadDefinition) -> WorkloadSamples:
        """Warm up, then collect one SampleSet per candidate and metric."""
        samples = WorkloadSamples(workload=workload)

        if not workload.runs_trials:
            for candidate, binary in self._candidates():
                try:
                    samples.record(candidate, workload.observe_file(binary))
                except OSError as exc:
                    log.warning("%s: cannot stat %s: %s", workload.name, binary, exc)
                    samples.record_drop(candidate)
            return samples

        with _fixture_dir(workload) as workdir:
            args = workload.resolve_args(workdir)

            for i in range(self.config.warmup):
                pair = self.run_pair(args, cwd=workdir)
                self._report("warmup", workload, i + 1, self.config.warmup, pair)

            for i in range(self.config.iterations):
                pair = self.run_pair(args, cwd=workdir)
                if pair.a_first:
                    samples.a_first_count += 1
                else:
                    samples.b_first_count += 1
                self._collect(samples, CANDIDATE_A, pair.a, i + 1)
                self._collect(samples, CANDIDATE_B, pair.b, i + 1)
                self._report("measure", workload, i + 1, self.config.iterations, pair)

        return samples

    def run_pair(self, args: list[str], *, cwd: Path | None = None) -> PairedTrial:
        """Run both candidates sequentially in coin-flipped order."""
        a_first = self.order.a_first()
        if a_first:
            result_a = self._invoke(self.config.candidate_a, args, cwd)
            result_b = self._invoke(self.config.candidate_b, args, cwd)
        else:
            result_b = self._invoke(self.config.candidate_b, args, cwd)
            result_a = self._invoke(self.config.candidate_a, args, cwd)
        return PairedTrial(a=result_a, b=result_b, a_first=a_first)

    def _invoke(self, binary: Path, args: list[str], cwd: Path | None) -> TrialResult:
        return self.runner(binary, args, timeout_ms=self.config.timeout_ms, cwd=cwd)

    def _collect(
        self,
        samples: WorkloadSamples,
        candidate: str,
        trial: TrialResult,
        index: int,
    ) -> None:
        """Append a trial's observations, or count it as dropped."""
        label = self.config.label_a if candidate == CANDIDATE_A else self.config.label_b
        name = samples.workload.name

        if trial.timed_out:
            log.debug("%s [%s] trial %d timed out; no sample", name, label, index)
            samples.record_drop(candidate)
            return

        try:
            observations = samples.workload.observe(trial)
        except OutputParseError as exc:
            log.debug(
                "%s [%s] trial %d dropped (exit %d): %s",
                name,
                label,
                index,
                trial.exit_status,
                exc,
            )
            samples.record_drop(candidate)
            return

        if trial.exit_status != 0:
            log.debug(
                "%s [%s] trial %d exited %d but printed a usable result",
                name,
                label,
                index,
                trial.exit_status,
            )
        samples.record(candidate, observations)

    def _candidates(self) -> list[tuple[str, Path]]:
        return [
            (CANDIDATE_A, self.config.candidate_a),
            (CANDIDATE_B, self.config.candidate_b),
        ]

    def _report(
        self,
        phase: str,
        workload: WorkloadDefinition,
        trial: int,
        total: int,
        pair: PairedTrial,
    ) -> None:
        if self.progress is None:
            return
        self.progress(
            SampleProgress(
                phase=phase,
                workload=workload.name,
                trial=trial,
                total=total,
                a_first=pair.a_first,
            )
        )


@contextmanager
def _fixture_dir(workload: WorkloadDefinition) -> Iterator[Path | None]:
    """Yield a scratch directory holding the workload's fixtures, if any."""
    if not workload.fixtures:
        yield None
        return
    with tempfile.TemporaryDirectory(prefix="twinbench-") as tmp:
        path = Path(tmp)
        for fixture in workload.fixtures:
            fixture.write(path)
        yield path
