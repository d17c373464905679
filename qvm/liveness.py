"""Detect whether a VM's recorded hypervisor process is still alive."""

from __future__ import annotations

import subprocess
import sys
from typing import Callable, Optional

from qvm.exceptions import ManagerError
from qvm.paths import find_vm_dir, pid_path
from qvm.utils import log

ProcessExists = Callable[[int], bool]


def _posix_process_exists(pid: int) -> bool:
    try:
        result = subprocess.run(["ps", "-p", str(pid)], capture_output=True, text=True)
    except OSError as exc:
        raise ManagerError(f"Cannot query process table: {exc}") from exc
    return result.returncode == 0


def _windows_process_exists(pid: int) -> bool:
    try:
        result = subprocess.run(
            ["tasklist", "/FI", f"PID eq {pid}"],
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise ManagerError(f"Cannot query process table: {exc}") from exc
    # tasklist prints a table row per match; the pid is a column of its own
    return result.returncode == 0 and str(pid) in result.stdout.split()


def default_process_exists() -> ProcessExists:
    if sys.platform.startswith("win"):
        return _windows_process_exists
    return _posix_process_exists


class LivenessChecker:
    """Reads ``vm.pid`` and asks the process table whether that pid is alive."""

    def __init__(self, process_exists: Optional[ProcessExists] = None) -> None:
        self.process_exists = process_exists or default_process_exists()

    def is_running(self, name: str) -> bool:
        vm_dir = find_vm_dir(name)
        marker = pid_path(vm_dir)
        if not marker.exists():
            return False

        try:
            content = marker.read_text().strip()
        except OSError:
            content = ""
        if not (content.isascii() and content.isdigit()) or int(content) <= 0:
            log("DEBUG", f"Removing stale pid marker {marker}")
            marker.unlink(missing_ok=True)
            return False
        pid = int(content)

        return self.process_exists(pid)
