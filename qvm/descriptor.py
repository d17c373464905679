"""Reading and writing vm.json descriptors."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from qvm.constants import DISPLAY_MODES, MAC_ADDRESS_RE, NETWORK_MODES, SUPPORTED_ARCHES
from qvm.exceptions import DescriptorIOError, DescriptorParseError, VmNotFoundError
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
from qvm.paths import descriptor_path, vm_root
from qvm.utils import log


def descriptor_to_dict(desc: VmDescriptor) -> Dict[str, Any]:
    vnc = desc.display.vnc
    spice = desc.display.spice
    return {
        "meta": {
            "version": desc.meta.version,
            "generated": desc.meta.generated,
            "name": desc.meta.name,
            "arch": desc.meta.arch,
            "uuid": desc.meta.uuid,
        },
        "paths": {
            "root": str(desc.paths.root),
            "disk": str(desc.paths.disk),
            "efi_vars": str(desc.paths.efi_vars),
        },
        "hardware": {
            "cpu_model": desc.hardware.cpu_model,
            "sockets": desc.hardware.sockets,
            "cores": desc.hardware.cores,
            "threads": desc.hardware.threads,
            "mem_mb": desc.hardware.mem_mb,
            "machine": desc.hardware.machine,
            "accel": desc.hardware.accel,
            "mac": desc.hardware.mac,
        },
        "firmware": {
            "code": str(desc.firmware.code),
            "vars_template": str(desc.firmware.vars_template),
        },
        "network": {
            "mode": desc.network.mode,
            "bridge_if": desc.network.bridge_if,
            "forwards": {
                "ssh": desc.network.forwards.ssh,
                "meye": desc.network.forwards.meye,
            },
        },
        "display": {
            "mode": desc.display.mode,
            "vnc": {
                "use_unix": vnc.use_unix,
                "host": vnc.host,
                "display": vnc.display,
                "sock": str(vnc.sock),
            },
            "spice": {
                "use_unix": spice.use_unix,
                "addr": spice.addr,
                "port": spice.port,
                "disable_ticketing": spice.disable_ticketing,
                "sock": str(spice.sock),
            },
        },
    }


def _section(data: Dict[str, Any], key: str, where: str) -> Dict[str, Any]:
    value = data.get(key)
    if not isinstance(value, dict):
        raise DescriptorParseError(f"{where}: missing or invalid section '{key}'")
    return value


def _field(section: Dict[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in section:
        raise DescriptorParseError(f"{where}: missing field '{key}'")
    value = section[key]
    # bool is an int subclass; keep the two apart
    if kind is int and isinstance(value, bool):
        raise DescriptorParseError(f"{where}: field '{key}' must be an integer")
    if not isinstance(value, kind):
        raise DescriptorParseError(f"{where}: field '{key}' must be of type {kind.__name__}")
    return value


def _choice(section: Dict[str, Any], key: str, allowed, where: str) -> str:
    value = _field(section, key, str, where)
    if value not in allowed:
        raise DescriptorParseError(f"{where}: unknown {key} '{value}' (expected one of {', '.join(allowed)})")
    return value


def descriptor_from_dict(data: Any, source: str = "vm.json") -> VmDescriptor:
    if not isinstance(data, dict):
        raise DescriptorParseError(f"{source}: top-level value must be an object")

    meta = _section(data, "meta", source)
    paths = _section(data, "paths", source)
    hardware = _section(data, "hardware", source)
    firmware = _section(data, "firmware", source)
    network = _section(data, "network", source)
    forwards = _section(network, "forwards", f"{source} network")
    display = _section(data, "display", source)
    vnc = _section(display, "vnc", f"{source} display")
    spice = _section(display, "spice", f"{source} display")

    where = f"{source} meta"
    parsed_meta = Meta(
        version=_field(meta, "version", int, where),
        generated=_field(meta, "generated", str, where),
        name=_field(meta, "name", str, where),
        arch=_choice(meta, "arch", tuple(SUPPORTED_ARCHES), where),
        uuid=_field(meta, "uuid", str, where),
    )
    where = f"{source} paths"
    parsed_paths = VmPaths(
        root=Path(_field(paths, "root", str, where)),
        disk=Path(_field(paths, "disk", str, where)),
        efi_vars=Path(_field(paths, "efi_vars", str, where)),
    )
    where = f"{source} hardware"
    parsed_hardware = Hardware(
        cpu_model=_field(hardware, "cpu_model", str, where),
        sockets=_field(hardware, "sockets", int, where),
        cores=_field(hardware, "cores", int, where),
        threads=_field(hardware, "threads", int, where),
        mem_mb=_field(hardware, "mem_mb", int, where),
        machine=_field(hardware, "machine", str, where),
        accel=_field(hardware, "accel", str, where),
        mac=_field(hardware, "mac", str, where),
    )
    for key, count in parsed_hardware.topology._asdict().items():
        if count < 1:
            raise DescriptorParseError(f"{where}: field '{key}' must be at least 1 (got {count})")
    if not MAC_ADDRESS_RE.fullmatch(parsed_hardware.mac):
        raise DescriptorParseError(f"{where}: field 'mac' is not a MAC address ('{parsed_hardware.mac}')")
    where = f"{source} firmware"
    parsed_firmware = Firmware(
        code=Path(_field(firmware, "code", str, where)),
        vars_template=Path(_field(firmware, "vars_template", str, where)),
    )
    where = f"{source} network"
    parsed_network = Network(
        mode=_choice(network, "mode", NETWORK_MODES, where),
        bridge_if=_field(network, "bridge_if", str, where),
        forwards=Forwards(
            ssh=_field(forwards, "ssh", int, f"{where} forwards"),
            meye=_field(forwards, "meye", int, f"{where} forwards"),
        ),
    )
    where = f"{source} display"
    parsed_display = Display(
        mode=_choice(display, "mode", DISPLAY_MODES, where),
        vnc=VncSettings(
            use_unix=_field(vnc, "use_unix", bool, f"{where} vnc"),
            host=_field(vnc, "host", str, f"{where} vnc"),
            display=_field(vnc, "display", int, f"{where} vnc"),
            sock=Path(_field(vnc, "sock", str, f"{where} vnc")),
        ),
        spice=SpiceSettings(
            use_unix=_field(spice, "use_unix", bool, f"{where} spice"),
            addr=_field(spice, "addr", str, f"{where} spice"),
            port=_field(spice, "port", int, f"{where} spice"),
            disable_ticketing=_field(spice, "disable_ticketing", bool, f"{where} spice"),
            sock=Path(_field(spice, "sock", str, f"{where} spice")),
        ),
    )
    return VmDescriptor(
        meta=parsed_meta,
        paths=parsed_paths,
        hardware=parsed_hardware,
        firmware=parsed_firmware,
        network=parsed_network,
        display=parsed_display,
    )


def save_descriptor(desc: VmDescriptor) -> Path:
    target = descriptor_path(desc.paths.root)
    try:
        payload = json.dumps(descriptor_to_dict(desc), indent=2)
    except (TypeError, ValueError) as exc:
        raise DescriptorIOError(f"Cannot serialize descriptor for VM '{desc.meta.name}': {exc}") from exc
    try:
        target.write_text(payload + "\n")
    except OSError as exc:
        raise DescriptorIOError(f"Cannot write {target}: {exc}") from exc
    log("DEBUG", f"Wrote {target}")
    return target


def load_descriptor_from_dir(root: Path) -> VmDescriptor:
    source = descriptor_path(root)
    try:
        raw = source.read_text()
    except FileNotFoundError as exc:
        raise VmNotFoundError(f"VM descriptor not found: {source}") from exc
    except OSError as exc:
        raise DescriptorIOError(f"Cannot read {source}: {exc}") from exc
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise DescriptorParseError(f"{source} is not valid JSON: {exc}") from exc
    return descriptor_from_dict(data, source=str(source))


def load_descriptor(name: str) -> VmDescriptor:
    return load_descriptor_from_dir(vm_root(name))
