"""Global constants and path configuration for qvm."""

from __future__ import annotations

import os
import re
from pathlib import Path

STORAGE_DIR_NAME = "qvm"
VM_DIR_SUFFIX = ".qvm"
DESCRIPTOR_FILE_NAME = "vm.json"
PID_FILE_NAME = "vm.pid"
DEFAULT_DISK_NAME = "disk.qcow2"
DEFAULT_EFI_VARS_NAME = "efi_vars.fd"
DEFAULT_VNC_SOCK_NAME = "vnc.sock"
DEFAULT_SPICE_SOCK_NAME = "spice.sock"

DESCRIPTOR_VERSION = 1

DEFAULT_CONFIG_PATH = Path("~/.config/qvm/defaults.yaml")

TRUTHY = {"1", "true", "yes", "on"}
MAC_ADDRESS_RE = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")
DISK_SIZE_RE = re.compile(r"^\d+[KMGTkmgt]?$")
VM_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")

_LOG_VERBOSE = os.environ.get("QVM_LOG_VERBOSE", "").lower() in TRUTHY

# Nix system profile; the package store is scanned as a last resort.
NIX_SYSTEM_SHARE = Path("/run/current-system/sw/share/qemu")
NIX_PROFILE_SHARE = Path("/nix/var/nix/profiles/system/sw/share/qemu")
NIX_STORE_ROOT = Path("/nix/store")
NIX_SYSTEM_BIN = Path("/run/current-system/sw/bin")

SUPPORTED_ARCHES = {
    "aarch64": {
        "machine": "virt,gic-version=3",
        "accel": "hvf",
        "emulator": "qemu-system-aarch64",
        "firmware_pairs": (
            ("edk2-aarch64-code.fd", "edk2-arm-vars.fd"),
            ("edk2-aarch64-code.fd", "edk2-aarch64-vars.fd"),
        ),
        "default_firmware": (
            NIX_SYSTEM_SHARE / "edk2-aarch64-code.fd",
            NIX_SYSTEM_SHARE / "edk2-arm-vars.fd",
        ),
    },
    "x86_64": {
        "machine": "q35",
        "accel": "kvm",
        "emulator": "qemu-system-x86_64",
        # host CPU models do not travel between machines for a non-native guest
        "portable_cpu_model": "qemu64",
        "firmware_pairs": (
            ("OVMF_CODE.fd", "OVMF_VARS.fd"),
            ("edk2-x86_64-code.fd", "edk2-x86_64-vars.fd"),
            ("edk2-x86_64-code.fd", "edk2-i386-vars.fd"),
        ),
        "default_firmware": (
            NIX_SYSTEM_SHARE / "OVMF_CODE.fd",
            NIX_SYSTEM_SHARE / "OVMF_VARS.fd",
        ),
    },
}

NETWORK_MODES = ("vmnet-shared", "vmnet-bridged", "user")
DISPLAY_MODES = ("cocoa", "vnc", "spice", "headless")

# Topology used when neither --smp nor an explicit topology is given.
DEFAULT_TOPOLOGY = (1, 4, 1)

CREATE_DEFAULTS = {
    "arch": "aarch64",
    "cpu_model": "host",
    "mem": 4096,
    "net_mode": "vmnet-shared",
    "bridge_if": "en0",
    "display_mode": "cocoa",
    "vnc_host": "127.0.0.1",
    "vnc_display": 1,
    "spice_addr": "127.0.0.1",
    "spice_port": 5930,
    "spice_disable_ticketing": True,
}
