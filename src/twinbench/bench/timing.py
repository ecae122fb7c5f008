"""Trial execution for the benchmark harness.

Runs one candidate binary with an argument list, capturing wall-clock
duration, stdout, stderr and exit status.  The duration spans process
start through exit (or kill), so interpreter startup and teardown are
part of every measurement.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

log = logging.getLogger("twinbench")

DEFAULT_TIMEOUT_MS = 60_000


# ---------------------------------------------------------------------------
# TrialResult
# ---------------------------------------------------------------------------


@dataclass
class TrialResult:
    """Result of one invocation of one candidate."""

    duration_ms: float
    stdout: str
    stderr: str
    exit_status: int
    timed_out: bool = False

    @property
    def status(self) -> str:
        """``"ok"``, ``"fail"`` (non-zero exit) or ``"timeout"``."""
        if self.timed_out:
            return "timeout"
        if self.exit_status == 0:
            return "ok"
        return "fail"


# Signature shared by run_trial and the fakes injected in tests.
TrialRunner = Callable[..., TrialResult]


# ---------------------------------------------------------------------------
# Core trial implementation
# ---------------------------------------------------------------------------


def run_trial(
    binary: str | Path,
    args: Sequence[str],
    *,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    cwd: str | Path | None = None,
    env: dict[str, str] | None = None,
) -> TrialResult:
    """Execute *binary* with *args* and time it.

    Blocks until the process exits or *timeout_ms* elapses.  On timeout
    the whole process group is killed and the result is flagged
    ``timed_out`` with exit status -1.  A binary that cannot be spawned
    produces a failed trial rather than an exception.

    Args:
        binary: Path to the candidate executable.
        args: Arguments passed after the binary.
        timeout_ms: Maximum execution time in milliseconds.
        cwd: Working directory for the subprocess.
        env: Extra environment variables layered over ``os.environ``.

    Returns:
        TrialResult with the duration and captured process output.
    """
    run_env = dict(os.environ)
    if env:
        run_env.update(env)

    command = [str(binary), *args]
    timed_out = False

    start = time.perf_counter()
    try:
        proc = subprocess.Popen(
            command,
            cwd=str(cwd) if cwd else None,
            env=run_env,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
            start_new_session=True,
        )
    except OSError as exc:
        duration_ms = (time.perf_counter() - start) * 1000
        log.debug("Could not start %s: %s", binary, exc)
        return TrialResult(
            duration_ms=duration_ms,
            stdout="",
            stderr=str(exc),
            exit_status=-1,
        )

    try:
        stdout, stderr = proc.communicate(timeout=timeout_ms / 1000)
        exit_status = proc.returncode
    except subprocess.TimeoutExpired:
        timed_out = True
        _kill_process_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            stdout, stderr = proc.communicate()
        exit_status = -1

    duration_ms = (time.perf_counter() - start) * 1000

    if timed_out:
        log.debug("%s %s timed out after %.0f ms", binary, list(args), duration_ms)

    return TrialResult(
        duration_ms=duration_ms,
        stdout=stdout or "",
        stderr=stderr or "",
        exit_status=exit_status,
        timed_out=timed_out,
    )


def _kill_process_group(proc: subprocess.Popen[str]) -> None:
    """Attempt to kill the entire process group on timeout.

    Platforms without process groups (Windows) only kill the direct child.
    """
    killpg = getattr(os, "killpg", None)
    try:
        if killpg is None:
            proc.kill()
        else:
            killpg(os.getpgid(proc.pid), signal.SIGKILL)
    except OSError as exc:
        log.debug("Could not kill process group of %d: %s", proc.pid, exc)
