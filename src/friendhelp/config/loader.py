"""YAML defaults loader.

Reads an optional ``config.yaml`` and flattens nested sections into
upper-case keys so they can seed :class:`~friendhelp.config.settings.Settings`
fields, e.g.::

    llm:
      default_provider: gemini     ->  LLM_DEFAULT_PROVIDER = "gemini"
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = Path("config.yaml")


def get_config_path() -> Path:
    """Return the YAML config path, honouring ``FRIENDHELP_CONFIG``."""
    override = os.getenv("FRIENDHELP_CONFIG")
    return Path(override) if override else DEFAULT_CONFIG_PATH


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}_{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(_flatten(value, name))
        else:
            flat[name.upper()] = value
    return flat


def load_yaml_dict(path: Path) -> dict[str, Any]:
    """Load a YAML mapping from ``path``.

    Returns an empty dict when the file does not exist or is empty.

    Raises:
        ValueError: If the file is not valid YAML or not a mapping.
    """
    if not path.exists():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration must be a dictionary, got {type(data).__name__}\n"
            f"Please check the format of {path}"
        )

    return data


@lru_cache
def get_yaml_defaults(path: Path | None = None) -> dict[str, Any]:
    """Get flattened YAML defaults (cached)."""
    return _flatten(load_yaml_dict(path or get_config_path()))
