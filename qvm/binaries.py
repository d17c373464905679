"""Locate the qemu-system-* emulator for a guest architecture."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from qvm.constants import NIX_SYSTEM_BIN, SUPPORTED_ARCHES
from qvm.exceptions import BinaryNotFoundError, UnsupportedArchError
from qvm.utils import log


def qemu_binary_candidates(arch: str) -> List[str]:
    profile = SUPPORTED_ARCHES.get(arch)
    if profile is None:
        raise UnsupportedArchError(f"Unsupported arch '{arch}'")
    emulator = profile["emulator"]
    return [str(NIX_SYSTEM_BIN / emulator), emulator]


def pick_qemu_binary(arch: str) -> Path:
    """Return the first candidate that is a regular file.

    Absolute candidates are checked as-is, bare names are looked up on PATH.
    """
    for candidate in qemu_binary_candidates(arch):
        if candidate.startswith("/"):
            path = Path(candidate)
        else:
            found = shutil.which(candidate)
            path = Path(found) if found else Path(candidate)
        if path.is_file():
            log("DEBUG", f"Using emulator {path}")
            return path
    raise BinaryNotFoundError(f"qemu-system-{arch} not found")
