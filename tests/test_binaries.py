"""Tests for qvm.binaries module."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from qvm.binaries import pick_qemu_binary, qemu_binary_candidates
from qvm.exceptions import BinaryNotFoundError, UnsupportedArchError


class TestCandidates:
    def test_nix_path_first(self):
        assert qemu_binary_candidates("x86_64") == [
            "/run/current-system/sw/bin/qemu-system-x86_64",
            "qemu-system-x86_64",
        ]

    @pytest.mark.parametrize("arch", ["unsupported-arch", "riscv64", "", "AARCH64"])
    def test_unsupported(self, arch):
        with pytest.raises(UnsupportedArchError):
            qemu_binary_candidates(arch)


class TestPickQemuBinary:
    def test_unsupported_arch(self):
        with pytest.raises(UnsupportedArchError):
            pick_qemu_binary("unsupported-arch")

    def test_found_on_path(self, tmp_path):
        qemu = tmp_path / "qemu-system-aarch64"
        qemu.write_text("#!/bin/sh\n")
        with (
            patch("qvm.binaries.qemu_binary_candidates", return_value=[str(tmp_path / "missing"), "qemu-system-aarch64"]),
            patch("qvm.binaries.shutil.which", return_value=str(qemu)) as mock_which,
        ):
            assert pick_qemu_binary("aarch64") == qemu
        mock_which.assert_called_once_with("qemu-system-aarch64")

    def test_absolute_candidate_wins(self, tmp_path):
        qemu = tmp_path / "qemu-system-x86_64"
        qemu.write_text("")
        with (
            patch("qvm.binaries.qemu_binary_candidates", return_value=[str(qemu), "qemu-system-x86_64"]),
            patch("qvm.binaries.shutil.which") as mock_which,
        ):
            assert pick_qemu_binary("x86_64") == qemu
        mock_which.assert_not_called()

    def test_directory_is_not_a_binary(self, tmp_path):
        with (
            patch("qvm.binaries.qemu_binary_candidates", return_value=[str(tmp_path)]),
        ):
            with pytest.raises(BinaryNotFoundError, match="x86_64"):
                pick_qemu_binary("x86_64")

    def test_not_found(self, tmp_path):
        with (
            patch("qvm.binaries.qemu_binary_candidates", return_value=[str(tmp_path / "nope"), "qemu-system-x86_64"]),
            patch("qvm.binaries.shutil.which", return_value=None),
        ):
            with pytest.raises(BinaryNotFoundError, match="qemu-system-x86_64 not found"):
                pick_qemu_binary("x86_64")
