"""Tests for qvm.config module."""

from __future__ import annotations

import pytest
import yaml

from qvm.config import config_path, load_create_defaults
from qvm.constants import CREATE_DEFAULTS
from qvm.exceptions import ManagerError


class TestConfigPath:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("QVM_CONFIG", str(tmp_path / "custom.yaml"))
        assert config_path() == tmp_path / "custom.yaml"

    def test_default_under_home(self, monkeypatch, isolated_home):
        monkeypatch.delenv("QVM_CONFIG", raising=False)
        assert config_path() == isolated_home / ".config" / "qvm" / "defaults.yaml"


class TestLoadCreateDefaults:
    def test_missing_file_gives_builtins(self, tmp_path):
        assert load_create_defaults(tmp_path / "missing.yaml") == CREATE_DEFAULTS

    def test_empty_file(self, tmp_path):
        path = tmp_path / "defaults.yaml"
        path.write_text("")
        assert load_create_defaults(path) == CREATE_DEFAULTS

    def test_overrides_merge(self, tmp_path):
        path = tmp_path / "defaults.yaml"
        path.write_text(yaml.dump({"create": {"arch": "x86_64", "mem": 8192, "spice_disable_ticketing": False}}))
        defaults = load_create_defaults(path)
        assert defaults["arch"] == "x86_64"
        assert defaults["mem"] == 8192
        assert defaults["spice_disable_ticketing"] is False
        assert defaults["display_mode"] == CREATE_DEFAULTS["display_mode"]

    def test_does_not_mutate_builtins(self, tmp_path):
        path = tmp_path / "defaults.yaml"
        path.write_text("create:\n  mem: 1024\n")
        load_create_defaults(path)
        assert CREATE_DEFAULTS["mem"] == 4096

    def test_unknown_key_warns(self, tmp_path, capsys):
        path = tmp_path / "defaults.yaml"
        path.write_text("create:\n  colour: blue\n")
        assert load_create_defaults(path) == CREATE_DEFAULTS
        assert "ignoring unknown key 'create.colour'" in capsys.readouterr().out

    @pytest.mark.parametrize("body", ["create:\n  mem: lots\n", "create:\n  mem: true\n", "create:\n  arch: 64\n"])
    def test_wrong_type(self, tmp_path, body):
        path = tmp_path / "defaults.yaml"
        path.write_text(body)
        with pytest.raises(ManagerError, match="must be of type"):
            load_create_defaults(path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "defaults.yaml"
        path.write_text("create: [unclosed\n")
        with pytest.raises(ManagerError, match="invalid YAML"):
            load_create_defaults(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "defaults.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ManagerError, match="expected a YAML mapping"):
            load_create_defaults(path)

    def test_create_must_be_mapping(self, tmp_path):
        path = tmp_path / "defaults.yaml"
        path.write_text("create: 3\n")
        with pytest.raises(ManagerError, match="'create' must be a mapping"):
            load_create_defaults(path)
