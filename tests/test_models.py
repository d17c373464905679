"""Tests for qvm.models module."""

from pathlib import Path

from qvm.models import CreateParams, Display, Forwards, Network, SpiceSettings, Topology, VncSettings


class TestTopology:
    def test_is_named_tuple(self):
        topo = Topology(2, 4, 2)
        assert topo[0] == 2
        assert topo.cores == 4
        assert topo.vcpus == 16


class TestDisplay:
    def test_both_records_present(self):
        display = Display(mode="headless")
        assert display.vnc == VncSettings()
        assert display.spice == SpiceSettings()

    def test_default_sockets_are_relative(self):
        assert VncSettings().sock == Path("vnc.sock")
        assert SpiceSettings().sock == Path("spice.sock")
        assert not VncSettings().sock.is_absolute()

    def test_records_not_shared(self):
        first = Display(mode="vnc")
        second = Display(mode="vnc")
        first.vnc.host = "0.0.0.0"
        assert second.vnc.host == "127.0.0.1"


class TestNetwork:
    def test_forwards_default_zero(self):
        network = Network(mode="user", bridge_if="en0")
        assert network.forwards == Forwards(ssh=0, meye=0)


class TestCreateParams:
    def test_defaults(self):
        params = CreateParams(name="demo")
        assert params.arch == "aarch64"
        assert params.cpu_model == "host"
        assert params.mem == 4096
        assert params.net_mode == "vmnet-shared"
        assert params.display_mode == "cocoa"
        assert params.smp is None
        assert params.disk is None
        assert params.spice_disable_ticketing is True
