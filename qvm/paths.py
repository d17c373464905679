"""Well-known locations of VM directories and the files inside them."""

from __future__ import annotations

from pathlib import Path
from typing import List

from qvm.constants import (
    DESCRIPTOR_FILE_NAME,
    PID_FILE_NAME,
    STORAGE_DIR_NAME,
    VM_DIR_SUFFIX,
    VM_NAME_RE,
)
from qvm.exceptions import HomeDirectoryError, ManagerError, VmNotFoundError
from qvm.utils import get_env


def storage_root() -> Path:
    """Return the directory holding every ``<name>.qvm`` VM root.

    ``QVM_HOME`` overrides the default of ``~/qvm``.
    """
    override = (get_env("QVM_HOME") or "").strip()
    if override:
        return Path(override).expanduser().absolute()
    try:
        home = Path.home()
    except (KeyError, RuntimeError) as exc:
        raise HomeDirectoryError(f"No home directory found: {exc}") from exc
    return home / STORAGE_DIR_NAME


def validate_vm_name(name: str) -> str:
    """VM names become directory stems, so they may not contain separators or start with a dot."""
    if not VM_NAME_RE.fullmatch(name):
        raise ManagerError(
            f"Invalid VM name '{name}'. Use letters, digits, '.', '_' or '-', starting with a letter or digit"
        )
    return name


def vm_root(name: str) -> Path:
    return storage_root() / f"{validate_vm_name(name)}{VM_DIR_SUFFIX}"


def resolve_under_root(root: Path, path: Path) -> Path:
    path = Path(path)
    if path.is_absolute():
        return path
    return root / path


def descriptor_path(root: Path) -> Path:
    return root / DESCRIPTOR_FILE_NAME


def pid_path(root: Path) -> Path:
    return root / PID_FILE_NAME


def find_vm_dir(name: str) -> Path:
    """Return the VM root for ``name``, failing if it is not on disk."""
    vm_dir = vm_root(name)
    root = vm_dir.parent
    if not vm_dir.is_dir():
        raise VmNotFoundError(f"VM '{name}' not found in {root}")
    return vm_dir


def list_vm_names() -> List[str]:
    root = storage_root()
    if not root.is_dir():
        return []
    stems = (
        entry.name[: -len(VM_DIR_SUFFIX)]
        for entry in root.iterdir()
        if entry.is_dir() and entry.name.endswith(VM_DIR_SUFFIX)
    )
    return sorted(stem for stem in stems if VM_NAME_RE.fullmatch(stem))
