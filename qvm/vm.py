"""VM lifecycle management for qvm."""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path
from typing import Optional

from qvm.binaries import pick_qemu_binary
from qvm.constants import (
    DEFAULT_DISK_NAME,
    DEFAULT_EFI_VARS_NAME,
    DEFAULT_SPICE_SOCK_NAME,
    DEFAULT_TOPOLOGY,
    DEFAULT_VNC_SOCK_NAME,
    DESCRIPTOR_VERSION,
    DISPLAY_MODES,
    NETWORK_MODES,
    SUPPORTED_ARCHES,
)
from qvm.descriptor import load_descriptor, load_descriptor_from_dir, save_descriptor
from qvm.exceptions import (
    DescriptorIOError,
    DescriptorParseError,
    DiskProvisioningError,
    FirmwareNotFoundError,
    ManagerError,
    UnsupportedArchError,
    VmNotFoundError,
    VmRunningError,
)
from qvm.firmware import default_firmware_paths, locate_firmware
from qvm.liveness import LivenessChecker
from qvm.models import (
    CreateParams,
    Display,
    Firmware,
    Forwards,
    Hardware,
    Meta,
    Network,
    SpiceSettings,
    Topology,
    VmDescriptor,
    VmPaths,
    VncSettings,
)
from qvm.paths import descriptor_path, find_vm_dir, resolve_under_root, vm_root
from qvm.utils import confirm, ensure_directory, log, now_utc, random_mac, run, validate_disk_size


def resolve_topology(
    smp: Optional[int] = None,
    sockets: Optional[int] = None,
    cores: Optional[int] = None,
    threads: Optional[int] = None,
) -> Topology:
    """Explicit topology beats --smp, which beats the built-in default."""
    if sockets is not None or cores is not None or threads is not None:
        return Topology(
            1 if sockets is None else sockets,
            1 if cores is None else cores,
            1 if threads is None else threads,
        )
    if smp is not None:
        return Topology(1, smp, 1)
    return Topology(*DEFAULT_TOPOLOGY)


def normalize_cpu_model(arch: str, cpu_model: str) -> str:
    portable = SUPPORTED_ARCHES.get(arch, {}).get("portable_cpu_model")
    if portable and cpu_model == "host":
        return portable
    return cpu_model


def _check_mode(kind: str, value: str, allowed) -> None:
    if value not in allowed:
        raise ManagerError(f"Unsupported {kind} '{value}'. Supported: {', '.join(allowed)}")


class VMManager:
    def __init__(self, liveness: Optional[LivenessChecker] = None) -> None:
        self.liveness = liveness or LivenessChecker()

    def create(self, params: CreateParams) -> Path:
        if params.arch not in SUPPORTED_ARCHES:
            supported = ", ".join(sorted(SUPPORTED_ARCHES))
            raise UnsupportedArchError(f"Unsupported arch '{params.arch}'. Supported: {supported}")
        _check_mode("network mode", params.net_mode, NETWORK_MODES)
        _check_mode("display mode", params.display_mode, DISPLAY_MODES)
        if params.mem < 1:
            raise ManagerError(f"Memory must be >= 1 MB (got {params.mem})")
        for field in ("smp", "sockets", "cores", "threads"):
            value = getattr(params, field)
            if value is not None and value < 1:
                raise ManagerError(f"{field} must be >= 1 (got {value})")
        if params.disk_size is not None:
            validate_disk_size(params.disk_size)

        root = vm_root(params.name)
        ensure_directory(root)
        if descriptor_path(root).exists():
            log("WARN", f"VM '{params.name}' already exists; its descriptor will be overwritten")

        # Keep the user's (possibly relative) disk path in the descriptor.
        disk = Path(params.disk) if params.disk is not None else Path(DEFAULT_DISK_NAME)
        disk_abs = resolve_under_root(root, disk)
        if params.disk_size is not None:
            if not disk_abs.exists():
                self._create_disk(disk_abs, params.disk_size)
        elif not disk_abs.exists():
            log("WARN", f"No disk at {disk_abs} (use --disk-size to create one)")

        cpu_model = normalize_cpu_model(params.arch, params.cpu_model)
        if cpu_model != params.cpu_model:
            log("INFO", f"CPU model '{params.cpu_model}' replaced by '{cpu_model}' for {params.arch}")
        topology = resolve_topology(params.smp, params.sockets, params.cores, params.threads)

        qemu_bin = pick_qemu_binary(params.arch)
        try:
            fw_code, fw_vars_template = locate_firmware(qemu_bin, params.arch)
        except FirmwareNotFoundError as exc:
            fw_code, fw_vars_template = default_firmware_paths(params.arch)
            log("WARN", f"{exc}; falling back to {fw_code} and {fw_vars_template}")

        profile = SUPPORTED_ARCHES[params.arch]
        desc = VmDescriptor(
            meta=Meta(
                version=DESCRIPTOR_VERSION,
                generated=now_utc(),
                name=params.name,
                arch=params.arch,
                uuid=str(uuid.uuid4()),
            ),
            paths=VmPaths(root=root, disk=disk, efi_vars=Path(DEFAULT_EFI_VARS_NAME)),
            hardware=Hardware(
                cpu_model=cpu_model,
                sockets=topology.sockets,
                cores=topology.cores,
                threads=topology.threads,
                mem_mb=params.mem,
                machine=profile["machine"],
                accel=profile["accel"],
                mac=random_mac(),
            ),
            firmware=Firmware(code=fw_code, vars_template=fw_vars_template),
            network=Network(mode=params.net_mode, bridge_if=params.bridge_if, forwards=Forwards()),
            display=Display(
                mode=params.display_mode,
                vnc=VncSettings(
                    use_unix=params.vnc_unix,
                    host=params.vnc_host,
                    display=params.vnc_display,
                    sock=Path(params.vnc_sock) if params.vnc_sock else Path(DEFAULT_VNC_SOCK_NAME),
                ),
                spice=SpiceSettings(
                    use_unix=params.spice_unix,
                    addr=params.spice_addr,
                    port=params.spice_port,
                    disable_ticketing=params.spice_disable_ticketing,
                    sock=Path(params.spice_sock) if params.spice_sock else Path(DEFAULT_SPICE_SOCK_NAME),
                ),
            ),
        )
        save_descriptor(desc)
        log("SUCCESS", f"Created VM '{params.name}' at {root}")
        return root

    @staticmethod
    def _create_disk(path: Path, size: str) -> None:
        ensure_directory(path.parent)
        log("INFO", f"Creating disk {path} ({size})")
        try:
            result = run(
                ["qemu-img", "create", "-f", "qcow2", str(path), size],
                check=False,
                capture_output=True,
            )
        except OSError as exc:
            raise DiskProvisioningError(f"qemu-img failed to create disk (size: {size}): {exc}") from exc
        if result.returncode != 0:
            detail = (result.stderr or "").strip()
            message = f"qemu-img failed to create disk (size: {size})"
            raise DiskProvisioningError(f"{message}: {detail}" if detail else message)

    def delete(self, name: str, force: bool = False) -> bool:
        """Remove the VM directory tree. Returns False when the operator cancels."""
        vm_dir = find_vm_dir(name)

        if self.liveness.is_running(name):
            raise VmRunningError(
                f"Cannot delete VM '{name}': VM is currently running. Stop it first with 'qvm stop {name}'"
            )

        try:
            desc = load_descriptor(name)
        except VmNotFoundError as exc:
            raise DescriptorParseError(f"Cannot delete VM '{name}': {exc}") from exc

        if not force:
            print(f"About to delete VM '{name}':")
            print(f"  VM Directory: {vm_dir}")
            print(f"  Disk: {resolve_under_root(vm_dir, desc.paths.disk)}")
            print(f"  EFI Vars: {resolve_under_root(vm_dir, desc.paths.efi_vars)}")
            print()
            if not confirm("Are you sure you want to delete this VM?"):
                print("Deletion cancelled.")
                return False

        try:
            shutil.rmtree(vm_dir)
        except OSError as exc:
            raise DescriptorIOError(f"Failed to remove {vm_dir}: {exc}") from exc
        log("SUCCESS", f"Successfully deleted VM '{name}'")
        return True

    def show(self, name: str) -> VmDescriptor:
        return load_descriptor_from_dir(find_vm_dir(name))

    def set_display(
        self,
        name: str,
        mode: str,
        vnc_unix: Optional[bool] = None,
        vnc_host: Optional[str] = None,
        vnc_display: Optional[int] = None,
        vnc_sock: Optional[Path] = None,
        spice_unix: Optional[bool] = None,
        spice_addr: Optional[str] = None,
        spice_port: Optional[int] = None,
        spice_sock: Optional[Path] = None,
        spice_disable_ticketing: Optional[bool] = None,
    ) -> VmDescriptor:
        """Persist new display settings in vm.json; unset arguments keep their value."""
        _check_mode("display mode", mode, DISPLAY_MODES)
        desc = load_descriptor_from_dir(find_vm_dir(name))

        display = desc.display
        display.mode = mode
        if vnc_unix is not None:
            display.vnc.use_unix = vnc_unix
        if vnc_host is not None:
            display.vnc.host = vnc_host
        if vnc_display is not None:
            display.vnc.display = vnc_display
        if vnc_sock is not None:
            display.vnc.sock = Path(vnc_sock)
        if spice_unix is not None:
            display.spice.use_unix = spice_unix
        if spice_addr is not None:
            display.spice.addr = spice_addr
        if spice_port is not None:
            display.spice.port = spice_port
        if spice_sock is not None:
            display.spice.sock = Path(spice_sock)
        if spice_disable_ticketing is not None:
            display.spice.disable_ticketing = spice_disable_ticketing

        save_descriptor(desc)
        log("SUCCESS", f"Display for VM '{name}' set to {mode}")
        return desc
