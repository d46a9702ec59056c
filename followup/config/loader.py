"""Locate and read the layered TOML configuration files.

``config/default.toml`` is always read; ``config/<FOLLOWUP_ENV>.toml`` is
layered over it when present.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_VAR = "FOLLOWUP_CONFIG_DIR"
ENVIRONMENT_VAR = "FOLLOWUP_ENV"
DEFAULT_ENVIRONMENT = "development"

# How many parent directories of the cwd are searched for config/
_SEARCH_DEPTH = 5


def get_environment() -> str:
    return os.environ.get(ENVIRONMENT_VAR, DEFAULT_ENVIRONMENT)


def get_config_dir() -> Path:
    """Return the directory holding the TOML files.

    An explicit FOLLOWUP_CONFIG_DIR must exist. Otherwise the nearest
    ``config/`` at or above the working directory wins, falling back to a
    relative ``config`` path.
    """
    explicit = os.environ.get(CONFIG_DIR_VAR)
    if explicit:
        directory = Path(explicit)
        if not directory.exists():
            raise FileNotFoundError(f"{CONFIG_DIR_VAR} points to a missing directory: {explicit}")
        return directory

    here = Path.cwd()
    for candidate in [here, *here.parents][:_SEARCH_DEPTH]:
        if (candidate / "config").exists():
            return candidate / "config"
    return Path("config")


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse one TOML file.

    Raises:
        FileNotFoundError: The file does not exist
        tomllib.TOMLDecodeError: The file is not valid TOML
    """
    try:
        raw = file_path.read_bytes()
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found: {file_path}") from None
    return tomllib.loads(raw.decode("utf-8"))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` layered on top; inputs are not mutated.

    Tables merge key by key; scalars and arrays from ``override`` replace.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def load_config() -> dict[str, Any]:
    """Read default.toml and merge the current environment's file over it."""
    directory = get_config_dir()

    defaults = directory / "default.toml"
    if not defaults.exists():
        raise FileNotFoundError(
            f"Missing {defaults}; add a default.toml or set {CONFIG_DIR_VAR}"
        )
    layers = [load_toml(defaults)]

    overlay = directory / f"{get_environment()}.toml"
    if overlay.exists():
        layers.append(load_toml(overlay))

    config: dict[str, Any] = {}
    for layer in layers:
        config = deep_merge(config, layer)
    return config
