"""Utility functions for qvm."""

from __future__ import annotations

import os
import random
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from qvm.constants import _LOG_VERBOSE, DISK_SIZE_RE
from qvm.exceptions import ManagerError

_verbose = _LOG_VERBOSE


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def log(level: str, message: str) -> None:
    """Lightweight structured logging compatible with existing colour expectation."""
    if level == "DEBUG" and not _verbose:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    print(f"{colour}[{level}]{reset} {message}", flush=True)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def validate_disk_size(raw: str) -> str:
    if not DISK_SIZE_RE.fullmatch(raw):
        raise ManagerError(
            f"Invalid disk size '{raw}'. Use a number with optional suffix: K, M, G, T (e.g. '20G')"
        )
    return raw


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def random_mac() -> str:
    """Generate a random, locally-administered MAC address."""
    octets = [0x52, 0x54, 0x00]  # qemu prefix
    octets += [random.randint(0x00, 0xFF) for _ in range(3)]
    return ":".join(f"{octet:02x}" for octet in octets)


def now_utc() -> str:
    """Current UTC time as an RFC3339 timestamp."""
    return datetime.now(timezone.utc).isoformat()


def confirm(question: str) -> bool:
    """Ask a yes/no question on the terminal; only 'y' or 'yes' count as yes."""
    try:
        answer = input(f"{question} [y/N]: ")
    except EOFError:
        answer = ""
    return answer.strip().lower() in {"y", "yes"}


def run(cmd: List[str], check: bool = True, **kwargs) -> subprocess.CompletedProcess:
    """Run command with logging."""
    log("DEBUG", f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, check=check, text=True, **kwargs)
    return result
