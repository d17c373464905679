"""UEFI firmware discovery for qvm.

Firmware lives next to the QEMU installation that will boot the guest, so the
search starts from the share directory derived from the resolved
``qemu-system-*`` binary. Each source of candidate directories is a provider;
providers are consulted in order and a host without a Nix store simply gets
nothing from the store provider.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from qvm.constants import (
    NIX_PROFILE_SHARE,
    NIX_STORE_ROOT,
    NIX_SYSTEM_SHARE,
    SUPPORTED_ARCHES,
)
from qvm.exceptions import FirmwareNotFoundError, UnsupportedArchError
from qvm.utils import log

FirmwarePair = Tuple[Path, Path]
SearchProvider = Callable[[Path, str], Iterable[Path]]


def _arch_profile(arch: str) -> dict:
    profile = SUPPORTED_ARCHES.get(arch)
    if profile is None:
        supported = ", ".join(sorted(SUPPORTED_ARCHES))
        raise UnsupportedArchError(f"Unsupported arch '{arch}'. Supported: {supported}")
    return profile


def derive_share_dir(qemu_bin: Path, arch: str) -> Path:
    """Map ``.../bin/qemu-system-<arch>`` to ``.../share/qemu``."""
    try:
        real = qemu_bin.resolve()
    except (OSError, RuntimeError):
        real = qemu_bin
    real_str = str(real)
    if "/bin/qemu-system-" in real_str:
        emulator = _arch_profile(arch)["emulator"]
        return Path(real_str.replace(f"/bin/{emulator}", "/share/qemu"))
    parents = qemu_bin.parents
    if len(parents) >= 2:
        return parents[1] / "share" / "qemu"
    return NIX_SYSTEM_SHARE


def derived_share_provider(qemu_bin: Path, arch: str) -> Iterable[Path]:
    yield derive_share_dir(qemu_bin, arch)


def system_share_provider(qemu_bin: Path, arch: str) -> Iterable[Path]:
    yield NIX_SYSTEM_SHARE
    yield NIX_PROFILE_SHARE


def nix_store_dirs(store_root: Path = NIX_STORE_ROOT) -> List[Path]:
    """Every ``<store>/*-qemu-*/share/qemu`` directory, in name order."""
    try:
        entries = sorted(store_root.iterdir(), key=lambda p: p.name)
    except OSError:
        return []
    found = []
    for entry in entries:
        if "-qemu-" not in entry.name:
            continue
        share = entry / "share" / "qemu"
        try:
            if share.is_dir():
                found.append(share)
        except OSError:
            continue
    return found


def nix_store_provider(qemu_bin: Path, arch: str) -> Iterable[Path]:
    return nix_store_dirs()


DEFAULT_PROVIDERS: Tuple[SearchProvider, ...] = (
    derived_share_provider,
    system_share_provider,
    nix_store_provider,
)


def firmware_search_dirs(
    qemu_bin: Path,
    arch: str,
    providers: Optional[Sequence[SearchProvider]] = None,
) -> List[Path]:
    dirs: List[Path] = []
    for provider in providers if providers is not None else DEFAULT_PROVIDERS:
        dirs.extend(provider(qemu_bin, arch))
    return dirs


def locate_firmware(
    qemu_bin: Path,
    arch: str,
    providers: Optional[Sequence[SearchProvider]] = None,
) -> FirmwarePair:
    """Find the (code, vars template) pair matching ``arch``.

    Directories are walked in provider order and, within each directory, the
    known file name pairs are tried in declaration order. The first pair where
    both files exist wins.
    """
    pairs = _arch_profile(arch)["firmware_pairs"]
    for directory in firmware_search_dirs(qemu_bin, arch, providers):
        if not directory.is_dir():
            continue
        for code_name, vars_name in pairs:
            code = directory / code_name
            vars_template = directory / vars_name
            if code.is_file() and vars_template.is_file():
                log("DEBUG", f"Firmware for {arch}: {code}, {vars_template}")
                return code, vars_template
    raise FirmwareNotFoundError(f"UEFI firmware not found for {arch}")


def default_firmware_paths(arch: str) -> FirmwarePair:
    """Fixed fallback locations; not checked for existence."""
    profile = SUPPORTED_ARCHES.get(arch, SUPPORTED_ARCHES["x86_64"])
    code, vars_template = profile["default_firmware"]
    return code, vars_template
