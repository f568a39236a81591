"""TOML configuration loader for Chronicle.

Reads ``default.toml`` and an optional per-environment overlay from the
configuration directory and deep-merges them into one mapping.
"""

import os
import tomllib
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CHRONICLE_CONFIG_DIR"
ENVIRONMENT_ENV = "CHRONICLE_ENV"
DEFAULT_ENVIRONMENT = "development"

# How far up from the working directory to search for config/
_SEARCH_DEPTH = 5


def get_config_dir() -> Path:
    """Locate the configuration directory.

    ``CHRONICLE_CONFIG_DIR`` wins when set and must exist. Otherwise the
    working directory and its parents are searched for ``config/``.
    """
    explicit = os.environ.get(CONFIG_DIR_ENV)
    if explicit:
        path = Path(explicit)
        if not path.is_dir():
            raise FileNotFoundError(f"Config directory not found: {explicit}")
        return path

    current = Path.cwd()
    for _ in range(_SEARCH_DEPTH):
        candidate = current / "config"
        if candidate.is_dir():
            return candidate
        if current.parent == current:
            break
        current = current.parent

    return Path("config")


def get_environment() -> str:
    """Name of the active environment overlay (``CHRONICLE_ENV``)."""
    return os.environ.get(ENVIRONMENT_ENV, DEFAULT_ENVIRONMENT)


def load_toml(file_path: Path) -> dict[str, Any]:
    """Parse a TOML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        tomllib.TOMLDecodeError: If the TOML syntax is invalid
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with file_path.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``.

    Nested tables merge key by key; any other value in ``override``
    replaces the one in ``base``.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_dir: Path | None = None,
    environment: str | None = None,
) -> dict[str, Any]:
    """Load the merged configuration mapping.

    A missing ``default.toml`` yields an empty mapping so that code
    defaults apply; the environment overlay is optional as well.

    Args:
        config_dir: Directory to read from (default: ``get_config_dir()``)
        environment: Overlay name (default: ``get_environment()``)

    Returns:
        Merged configuration dictionary
    """
    directory = config_dir if config_dir is not None else get_config_dir()
    env = environment if environment is not None else get_environment()

    config: dict[str, Any] = {}

    default_path = directory / "default.toml"
    if default_path.is_file():
        config = load_toml(default_path)

    overlay_path = directory / f"{env}.toml"
    if overlay_path.is_file():
        config = deep_merge(config, load_toml(overlay_path))

    return config
