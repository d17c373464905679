"""qvm package."""

__all__ = [
    "binaries",
    "cli",
    "config",
    "constants",
    "descriptor",
    "exceptions",
    "firmware",
    "liveness",
    "models",
    "paths",
    "utils",
    "vm",
]
