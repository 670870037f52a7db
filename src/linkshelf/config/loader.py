from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict


DEFAULT_CONFIG_PATH = Path("config.toml")


def load_raw_config(path: str | Path | None = None) -> Dict[str, Any]:
    """
    Load the application config (config.toml by default, or ``$LINKSHELF_CONFIG``).

    Returns an empty dict when the file is missing so callers can fall back to
    environment variables.
    """
    if path is None:
        path = os.getenv("LINKSHELF_CONFIG") or DEFAULT_CONFIG_PATH
    target = Path(path)
    if not target.is_file():
        return {}

    with target.open("rb") as handle:
        return tomllib.load(handle)


def section(config: dict | None, name: str) -> Dict[str, Any]:
    """Return the ``[linkshelf.<name>]`` table from a raw config dict."""
    return (config or {}).get("linkshelf", {}).get(name, {})


def as_bool(raw: Any) -> bool:
    return str(raw).lower() in ("1", "true", "yes")


__all__ = ["load_raw_config", "section", "as_bool", "DEFAULT_CONFIG_PATH"]
