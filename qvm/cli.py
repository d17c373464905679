"""CLI entry points for qvm."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from qvm.config import load_create_defaults
from qvm.constants import DISPLAY_MODES, NETWORK_MODES, SUPPORTED_ARCHES
from qvm.descriptor import descriptor_to_dict, load_descriptor_from_dir
from qvm.exceptions import ManagerError
from qvm.models import CreateParams, VmDescriptor
from qvm.paths import list_vm_names, resolve_under_root, vm_root
from qvm.utils import log, set_verbose
from qvm.vm import VMManager


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be an integer (got '{raw}')")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1 (got {value})")
    return value


def _port(raw: str) -> int:
    value = _positive_int(raw)
    if value > 65535:
        raise argparse.ArgumentTypeError(f"must be <= 65535 (got {value})")
    return value


def _display_index(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"must be an integer (got '{raw}')")
    if not 0 <= value <= 255:
        raise argparse.ArgumentTypeError(f"must be between 0 and 255 (got {value})")
    return value


def build_parser(defaults: Dict[str, Any]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qvm", description="QEMU VM manager")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Create a new VM (writes vm.json; can create a qcow2 disk)")
    create.add_argument("name")
    create.add_argument("--arch", choices=sorted(SUPPORTED_ARCHES), default=defaults["arch"])
    create.add_argument("--cpu-model", default=defaults["cpu_model"], help="CPU model (e.g. host, qemu64, max)")
    create.add_argument("--smp", type=_positive_int, help="vCPU count (ignored if a topology flag is set)")
    create.add_argument("--sockets", type=_positive_int)
    create.add_argument("--cores", type=_positive_int, help="Cores per socket")
    create.add_argument("--threads", type=_positive_int, help="Threads per core")
    create.add_argument("--mem", type=_positive_int, default=defaults["mem"], help="Memory in MB")
    create.add_argument("--net-mode", choices=NETWORK_MODES, default=defaults["net_mode"])
    create.add_argument("--bridge-if", default=defaults["bridge_if"], help="Bridge interface for vmnet-bridged")
    create.add_argument("--display-mode", choices=DISPLAY_MODES, default=defaults["display_mode"])
    create.add_argument("--disk", type=Path, help="Disk path (qcow2); relative paths live under the VM root")
    create.add_argument("--disk-size", help="Create the qcow2 disk if absent (e.g. 64G)")
    create.add_argument("--vnc-host", default=defaults["vnc_host"])
    create.add_argument("--vnc-display", type=_display_index, default=defaults["vnc_display"])
    create.add_argument("--vnc-sock", type=Path)
    create.add_argument("--vnc-unix", action="store_true", help="Use a VNC UNIX socket")
    create.add_argument("--spice-addr", default=defaults["spice_addr"])
    create.add_argument("--spice-port", type=_port, default=defaults["spice_port"])
    create.add_argument("--spice-sock", type=Path)
    create.add_argument("--spice-unix", action="store_true", help="Use a SPICE UNIX socket")
    create.add_argument(
        "--spice-disable-ticketing",
        action=argparse.BooleanOptionalAction,
        default=defaults["spice_disable_ticketing"],
    )

    delete = sub.add_parser("delete", help="Delete a VM and its associated files")
    delete.add_argument("name")
    delete.add_argument("-f", "--force", action="store_true", help="Skip confirmation prompt")

    show = sub.add_parser("show", help="Show a VM's descriptor")
    show.add_argument("name")
    show.add_argument("--json", action="store_true", help="Print the raw vm.json document")

    sub.add_parser("list", help="List VMs in the storage root")

    display = sub.add_parser("set-display", help="Persist display settings in vm.json")
    display.add_argument("name")
    display.add_argument("mode", choices=DISPLAY_MODES)
    display.add_argument("--vnc-unix", action=argparse.BooleanOptionalAction, default=None)
    display.add_argument("--vnc-host")
    display.add_argument("--vnc-display", type=_display_index)
    display.add_argument("--vnc-sock", type=Path)
    display.add_argument("--spice-unix", action=argparse.BooleanOptionalAction, default=None)
    display.add_argument("--spice-addr")
    display.add_argument("--spice-port", type=_port)
    display.add_argument("--spice-sock", type=Path)
    display.add_argument("--spice-disable-ticketing", action=argparse.BooleanOptionalAction, default=None)
    return parser


def show_descriptor(desc: VmDescriptor) -> None:
    """Print a human readable summary of a descriptor."""
    root = desc.paths.root
    hw = desc.hardware
    print(f"  name:      {desc.meta.name} ({desc.meta.arch})")
    print(f"  uuid:      {desc.meta.uuid}")
    print(f"  created:   {desc.meta.generated}")
    print(f"  root:      {root}")
    print(f"  disk:      {resolve_under_root(root, desc.paths.disk)}")
    print(f"  efi_vars:  {resolve_under_root(root, desc.paths.efi_vars)}")
    print(
        f"  cpu:       {hw.cpu_model} "
        f"({hw.sockets} socket(s) x {hw.cores} core(s) x {hw.threads} thread(s) = {hw.topology.vcpus} vCPUs)"
    )
    print(f"  memory:    {hw.mem_mb} MB")
    print(f"  machine:   {hw.machine} (accel={hw.accel})")
    print(f"  mac:       {hw.mac}")
    print(f"  firmware:  {desc.firmware.code}")
    print(f"             {desc.firmware.vars_template}")
    network = f"  network:   {desc.network.mode}"
    if desc.network.mode == "vmnet-bridged":
        network += f" (bridge {desc.network.bridge_if})"
    print(network)
    display = desc.display
    if display.mode == "vnc":
        vnc = display.vnc
        target = resolve_under_root(root, vnc.sock) if vnc.use_unix else f"{vnc.host}:{vnc.display}"
        print(f"  display:   vnc ({target})")
    elif display.mode == "spice":
        spice = display.spice
        target = resolve_under_root(root, spice.sock) if spice.use_unix else f"{spice.addr}:{spice.port}"
        print(f"  display:   spice ({target})")
    else:
        print(f"  display:   {display.mode}")


def list_vms(manager: VMManager) -> None:
    names = list_vm_names()
    if not names:
        log("INFO", "No VMs found")
        return
    width = max(len(name) for name in names)
    for name in names:
        try:
            desc = load_descriptor_from_dir(vm_root(name))
        except ManagerError as exc:
            print(f"  {name:<{width}}  <unreadable: {exc}>")
            continue
        state = "running" if manager.liveness.is_running(name) else "stopped"
        print(f"  {name:<{width}}  {desc.meta.arch:<8} {desc.hardware.mem_mb:>6} MB  {state}")


def _create_params(args: argparse.Namespace) -> CreateParams:
    return CreateParams(
        name=args.name,
        arch=args.arch,
        cpu_model=args.cpu_model,
        smp=args.smp,
        sockets=args.sockets,
        cores=args.cores,
        threads=args.threads,
        mem=args.mem,
        net_mode=args.net_mode,
        bridge_if=args.bridge_if,
        display_mode=args.display_mode,
        disk=args.disk,
        disk_size=args.disk_size,
        vnc_host=args.vnc_host,
        vnc_display=args.vnc_display,
        vnc_sock=args.vnc_sock,
        vnc_unix=args.vnc_unix,
        spice_addr=args.spice_addr,
        spice_port=args.spice_port,
        spice_sock=args.spice_sock,
        spice_unix=args.spice_unix,
        spice_disable_ticketing=args.spice_disable_ticketing,
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        defaults = load_create_defaults()
    except ManagerError as exc:
        log("ERROR", str(exc))
        return 1
    args = build_parser(defaults).parse_args(argv)
    if args.verbose:
        set_verbose(True)

    manager = VMManager()
    try:
        if args.command == "create":
            manager.create(_create_params(args))
        elif args.command == "delete":
            manager.delete(args.name, force=args.force)
        elif args.command == "show":
            desc = manager.show(args.name)
            if args.json:
                print(json.dumps(descriptor_to_dict(desc), indent=2))
            else:
                show_descriptor(desc)
        elif args.command == "list":
            list_vms(manager)
        elif args.command == "set-display":
            manager.set_display(
                args.name,
                args.mode,
                vnc_unix=args.vnc_unix,
                vnc_host=args.vnc_host,
                vnc_display=args.vnc_display,
                vnc_sock=args.vnc_sock,
                spice_unix=args.spice_unix,
                spice_addr=args.spice_addr,
                spice_port=args.spice_port,
                spice_sock=args.spice_sock,
                spice_disable_ticketing=args.spice_disable_ticketing,
            )
        return 0
    except ManagerError as exc:
        log("ERROR", str(exc))
        return 1
    except KeyboardInterrupt:
        log("INFO", "Operation cancelled by user")
        return 130
