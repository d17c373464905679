"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from qvm.models import (
    Display,
    Firmware,
    Forwards,
    Hardware,
    Meta,
    Network,
    SpiceSettings,
    VmDescriptor,
    VmPaths,
    VncSettings,
)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch) -> Path:
    """Point HOME at a scratch directory so nothing touches the real ~/qvm."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("QVM_HOME", raising=False)
    monkeypatch.setenv("QVM_CONFIG", str(home / "no-such-defaults.yaml"))
    return home


@pytest.fixture
def storage(isolated_home) -> Path:
    """The storage root used by the code under test (~/qvm)."""
    return isolated_home / "qvm"


@pytest.fixture
def make_descriptor(storage):
    def _make(name: str = "demo", arch: str = "aarch64") -> VmDescriptor:
        return VmDescriptor(
            meta=Meta(
                version=1,
                generated="2026-01-02T03:04:05.000000+00:00",
                name=name,
                arch=arch,
                uuid="6f1c2b84-1d2e-4a8f-9b3c-1234567890ab",
            ),
            paths=VmPaths(
                root=storage / f"{name}.qvm",
                disk=Path("disk.qcow2"),
                efi_vars=Path("efi_vars.fd"),
            ),
            hardware=Hardware(
                cpu_model="host",
                sockets=1,
                cores=4,
                threads=1,
                mem_mb=4096,
                machine="virt,gic-version=3",
                accel="hvf",
                mac="52:54:00:12:34:56",
            ),
            firmware=Firmware(
                code=Path("/opt/qemu/share/qemu/edk2-aarch64-code.fd"),
                vars_template=Path("/opt/qemu/share/qemu/edk2-arm-vars.fd"),
            ),
            network=Network(mode="vmnet-shared", bridge_if="en0", forwards=Forwards(ssh=2222, meye=0)),
            display=Display(mode="cocoa", vnc=VncSettings(), spice=SpiceSettings()),
        )

    return _make


@pytest.fixture
def saved_vm(make_descriptor):
    """Write a descriptor to disk and return it."""
    from qvm.descriptor import save_descriptor

    def _save(name: str = "demo", arch: str = "aarch64") -> VmDescriptor:
        desc = make_descriptor(name, arch)
        desc.paths.root.mkdir(parents=True, exist_ok=True)
        save_descriptor(desc)
        return desc

    return _save
