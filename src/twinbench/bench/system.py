"""Environment and candidate characterization for the run banner.

Captures the host (CPU, memory, OS, host Python) and each candidate
binary (path, size, version strings) so a comparison can be put in
context.  Every probe is best-effort: a failure leaves the default
value in place and logs at DEBUG.
"""

from __future__ import annotations

import json
import logging
import os
import platform
import subprocess
import sys
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from twinbench.formatting import format_bytes

log = logging.getLogger("twinbench")

PROBE_TIMEOUT_S = 10


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@dataclass
class SystemProfile:
    """The machine the comparison runs on."""

    os_name: str = ""
    os_release: str = ""
    os_distro: str = ""
    cpu_architecture: str = ""
    cpu_model: str = "unknown"
    cpu_cores: int = 0
    ram_total_gb: float = 0.0
    ram_available_gb: float = 0.0
    host_python_version: str = ""
    host_python_implementation: str = ""
    hostname: str = ""
    timestamp: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        """Serialize to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class CandidateProfile:
    """One candidate executable."""

    label: str
    path: str
    size_bytes: int | None = None
    versions: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return asdict(self)


# ---------------------------------------------------------------------------
# System capture
# ---------------------------------------------------------------------------


def capture_system_profile() -> SystemProfile:
    """Capture a system profile.

    Linux reads /proc; macOS asks sysctl.  Other platforms only get
    what the :mod:`platform` module reports.
    """
    profile = SystemProfile(
        os_name=platform.system(),
        os_release=platform.release(),
        cpu_architecture=platform.machine(),
        cpu_cores=os.cpu_count() or 0,
        host_python_version=platform.python_version(),
        host_python_implementation=platform.python_implementation(),
        hostname=platform.node(),
        timestamp=time.strftime("%Y-%m-%dT%H:%M:%S%z"),
    )

    if sys.platform == "linux":
        _capture_linux(profile)
    elif sys.platform == "darwin":
        _capture_darwin(profile)
    else:
        log.debug("Hardware capture not supported on %s", sys.platform)

    if not profile.os_distro:
        profile.os_distro = f"{profile.os_name} {profile.os_release}".strip()
    return profile


def _capture_linux(profile: SystemProfile) -> None:
    try:
        for line in Path("/proc/cpuinfo").read_text().splitlines():
            if line.startswith("model name"):
                profile.cpu_model = line.split(":", 1)[1].strip()
                break
    except OSError as exc:
        log.debug("Cannot read /proc/cpuinfo: %s", exc)

    try:
        mem: dict[str, int] = {}
        for line in Path("/proc/meminfo").read_text().splitlines():
            parts = line.split()
            if len(parts) >= 2 and parts[1].isdigit():
                mem[parts[0].rstrip(":")] = int(parts[1])  # kB
        profile.ram_total_gb = mem.get("MemTotal", 0) / (1024 * 1024)
        profile.ram_available_gb = mem.get("MemAvailable", 0) / (1024 * 1024)
    except OSError as exc:
        log.debug("Cannot read /proc/meminfo: %s", exc)

    try:
        for line in Path("/etc/os-release").read_text().splitlines():
            if line.startswith("PRETTY_NAME="):
                profile.os_distro = line.split("=", 1)[1].strip().strip('"')
                break
    except OSError as exc:
        log.debug("Cannot read /etc/os-release: %s", exc)


def _capture_darwin(profile: SystemProfile) -> None:
    model = _sysctl("machdep.cpu.brand_string")
    if model:
        profile.cpu_model = model

    memsize = _sysctl("hw.memsize")
    if memsize and memsize.isdigit():
        profile.ram_total_gb = int(memsize) / (1024**3)

    mac_version = platform.mac_ver()[0]
    if mac_version:
        profile.os_distro = f"macOS {mac_version}"


def _sysctl(key: str) -> str | None:
    """Read a sysctl string value. Returns None on failure."""
    try:
        proc = subprocess.run(
            ["sysctl", "-n", key],
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT_S,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.debug("sysctl %s failed: %s", key, exc)
        return None
    if proc.returncode == 0 and proc.stdout.strip():
        return proc.stdout.strip()
    return None


# ---------------------------------------------------------------------------
# Candidate capture
# ---------------------------------------------------------------------------


def capture_candidate_profile(
    path: Path,
    version_probes: Mapping[str, Sequence[str]] | None = None,
    *,
    label: str = "",
) -> CandidateProfile:
    """Characterize a candidate binary.

    Args:
        path: The candidate executable.
        version_probes: Display name to argument list.  Each probe runs
            the candidate once; the first line of its stdout is kept.
        label: Display label of the candidate.
    """
    profile = CandidateProfile(label=label, path=str(path))

    try:
        profile.size_bytes = path.stat().st_size
    except OSError as exc:
        log.debug("Cannot stat %s: %s", path, exc)

    for name, args in (version_probes or {}).items():
        output = _probe(path, list(args))
        if output is not None:
            profile.versions[name] = output
    return profile


def _probe(path: Path, args: list[str]) -> str | None:
    try:
        proc = subprocess.run(
            [str(path), *args],
            capture_output=True,
            text=True,
            errors="replace",
            stdin=subprocess.DEVNULL,
            timeout=PROBE_TIMEOUT_S,
        )
    except (subprocess.TimeoutExpired, OSError) as exc:
        log.debug("Version probe %s %s failed: %s", path, args, exc)
        return None
    lines = (proc.stdout or proc.stderr).strip().splitlines()
    if proc.returncode != 0 or not lines:
        log.debug("Version probe %s %s exited %d", path, args, proc.returncode)
        return None
    return lines[0].strip()


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def format_system_profile(profile: SystemProfile) -> str:
    """Format a system profile for terminal display."""
    lines = [
        "System Profile",
        "─" * 14,
        f"CPU:      {profile.cpu_model} ({profile.cpu_cores} cores, "
        f"{profile.cpu_architecture})",
    ]
    if profile.ram_total_gb:
        lines.append(
            f"RAM:      {profile.ram_total_gb:.1f} GB total, "
            f"{profile.ram_available_gb:.1f} GB available"
        )
    lines.append(f"OS:       {profile.os_distro}")
    lines.append(
        f"Host:     Python {profile.host_python_version} "
        f"({profile.host_python_implementation})"
    )
    lines.append(f"Hostname: {profile.hostname}")
    lines.append(f"Time:     {profile.timestamp}")
    return "\n".join(lines)


def format_candidate_profile(profile: CandidateProfile) -> str:
    """Format a candidate profile for terminal display."""
    header = f"Candidate {profile.label}" if profile.label else "Candidate"
    size = format_bytes(profile.size_bytes) if profile.size_bytes is not None else "N/A"
    lines = [f"{header}: {profile.path} ({size})"]
    for name, value in profile.versions.items():
        lines.append(f"  {name + ':':<9} {value}")
    return "\n".join(lines)
