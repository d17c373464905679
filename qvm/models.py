"""Data models for qvm."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple, Optional

from qvm.constants import (
    CREATE_DEFAULTS,
    DEFAULT_SPICE_SOCK_NAME,
    DEFAULT_VNC_SOCK_NAME,
)


class Topology(NamedTuple):
    sockets: int
    cores: int
    threads: int

    @property
    def vcpus(self) -> int:
        return self.sockets * self.cores * self.threads


@dataclass
class Meta:
    version: int
    generated: str  # RFC3339, UTC
    name: str
    arch: str
    uuid: str


@dataclass
class VmPaths:
    root: Path
    disk: Path  # may be relative to root
    efi_vars: Path  # may be relative to root


@dataclass
class Hardware:
    cpu_model: str
    sockets: int
    cores: int
    threads: int
    mem_mb: int
    machine: str
    accel: str
    mac: str

    @property
    def topology(self) -> Topology:
        return Topology(self.sockets, self.cores, self.threads)


@dataclass
class Firmware:
    code: Path
    vars_template: Path


@dataclass
class Forwards:
    ssh: int = 0
    meye: int = 0


@dataclass
class Network:
    mode: str  # vmnet-shared | vmnet-bridged | user
    bridge_if: str  # only meaningful for vmnet-bridged
    forwards: Forwards = field(default_factory=Forwards)


@dataclass
class VncSettings:
    use_unix: bool = False
    host: str = CREATE_DEFAULTS["vnc_host"]
    display: int = CREATE_DEFAULTS["vnc_display"]
    sock: Path = Path(DEFAULT_VNC_SOCK_NAME)  # may be relative to root


@dataclass
class SpiceSettings:
    use_unix: bool = False
    addr: str = CREATE_DEFAULTS["spice_addr"]
    port: int = CREATE_DEFAULTS["spice_port"]
    disable_ticketing: bool = CREATE_DEFAULTS["spice_disable_ticketing"]
    sock: Path = Path(DEFAULT_SPICE_SOCK_NAME)  # may be relative to root


@dataclass
class Display:
    """Display settings; both protocol records are always kept, ``mode`` picks one."""

    mode: str  # cocoa | vnc | spice | headless
    vnc: VncSettings = field(default_factory=VncSettings)
    spice: SpiceSettings = field(default_factory=SpiceSettings)


@dataclass
class VmDescriptor:
    meta: Meta
    paths: VmPaths
    hardware: Hardware
    firmware: Firmware
    network: Network
    display: Display


@dataclass
class CreateParams:
    name: str
    arch: str = CREATE_DEFAULTS["arch"]
    cpu_model: str = CREATE_DEFAULTS["cpu_model"]
    # --smp is ignored as soon as any topology field is set
    smp: Optional[int] = None
    sockets: Optional[int] = None
    cores: Optional[int] = None
    threads: Optional[int] = None
    mem: int = CREATE_DEFAULTS["mem"]
    net_mode: str = CREATE_DEFAULTS["net_mode"]
    bridge_if: str = CREATE_DEFAULTS["bridge_if"]
    display_mode: str = CREATE_DEFAULTS["display_mode"]
    disk: Optional[Path] = None
    disk_size: Optional[str] = None
    vnc_host: str = CREATE_DEFAULTS["vnc_host"]
    vnc_display: int = CREATE_DEFAULTS["vnc_display"]
    vnc_sock: Optional[Path] = None
    vnc_unix: bool = False
    spice_addr: str = CREATE_DEFAULTS["spice_addr"]
    spice_port: int = CREATE_DEFAULTS["spice_port"]
    spice_sock: Optional[Path] = None
    spice_unix: bool = False
    spice_disable_ticketing: bool = CREATE_DEFAULTS["spice_disable_ticketing"]
