"""Defaults file and environment handling for qvm."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from qvm.constants import CREATE_DEFAULTS, DEFAULT_CONFIG_PATH
from qvm.exceptions import ManagerError
from qvm.utils import get_env, log


def config_path() -> Path:
    override = (get_env("QVM_CONFIG") or "").strip()
    if override:
        return Path(override).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def load_create_defaults(path: Optional[Path] = None) -> Dict[str, Any]:
    """Merge the ``create:`` mapping of the defaults file over the built-in defaults.

    A missing file is not an error. Unknown keys are reported and ignored;
    values must have the same type as the built-in default they replace.
    """
    if path is None:
        path = config_path()
    defaults = dict(CREATE_DEFAULTS)
    if not path.exists():
        return defaults

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:
        raise ManagerError(f"{path} contains invalid YAML: {exc}")
    except OSError as exc:
        raise ManagerError(f"Cannot read {path}: {exc}")
    if data is None:
        return defaults
    if not isinstance(data, dict):
        raise ManagerError(f"{path}: expected a YAML mapping, got {type(data).__name__}")

    section = data.get("create") or {}
    if not isinstance(section, dict):
        raise ManagerError(f"{path}: 'create' must be a mapping")

    for key, value in section.items():
        if key not in CREATE_DEFAULTS:
            log("WARN", f"{path}: ignoring unknown key 'create.{key}'")
            continue
        expected = type(CREATE_DEFAULTS[key])
        if expected is int and isinstance(value, bool) or not isinstance(value, expected):
            raise ManagerError(f"{path}: 'create.{key}' must be of type {expected.__name__} (got {value!r})")
        defaults[key] = value
    log("DEBUG", f"Loaded create defaults from {path}")
    return defaults
