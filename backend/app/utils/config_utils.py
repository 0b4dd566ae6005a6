"""
Configuration loading for the Dynamic Table CRUD API.

Values come from three layers, lowest precedence first:
built-in defaults, an optional TOML file, and environment variables of the
form CRUD_API__<SECTION>__<KEY>. Keys are addressed with dotted paths such
as "database.path".
"""

import copy
import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

CONFIG_FILE_ENV = "CRUD_API_CONFIG_FILE"
ENV_PREFIX = "CRUD_API__"

DEFAULT_CONFIG: dict[str, Any] = {
    "general": {
        "frontend_url": "*",
        "frontend_dir": "",
    },
    "database": {
        "path": "okr.db",
        "schema_file": str(Path(__file__).parent.parent / "storage" / "database.sql"),
        "apply_schema": True,
    },
    "logging": {
        "level": "INFO",
    },
}

_MISSING = object()


class Config:
    """Read-only view over a nested configuration dictionary."""

    def __init__(self, data: dict[str, Any]):
        self._data = data

    def get(self, key: str, default: Any = None) -> Any:
        value = self._lookup(key)
        return default if value is _MISSING else value

    def get_bool(self, key: str, default: bool = False) -> bool:
        """Interpret string values like "true"/"0" coming from the environment."""
        value = self.get(key, default)
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")

    def __getitem__(self, key: str) -> Any:
        value = self._lookup(key)
        if value is _MISSING:
            raise KeyError(key)
        return value

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self._lookup(key) is not _MISSING

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return _MISSING
            node = node[part]
        return node


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _load_file(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    with open(path, "rb") as f:
        return tomllib.load(f)


def _load_environment(environ: dict[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = [p.lower() for p in name[len(ENV_PREFIX) :].split("__") if p]
        if not parts:
            continue
        node = overrides
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value
    return overrides


def load_config(
    config_file: str | Path | None = None, environ: dict[str, str] | None = None
) -> Config:
    """Build a Config from defaults, the TOML file and the environment."""
    environ = dict(os.environ) if environ is None else environ
    if config_file is None:
        config_file = environ.get(CONFIG_FILE_ENV, "config.toml")

    data = copy.deepcopy(DEFAULT_CONFIG)
    _merge(data, _load_file(Path(config_file)))
    _merge(data, _load_environment(environ))
    return Config(data)


@lru_cache(maxsize=1)
def get_config() -> Config:
    """Return the process-wide configuration, loaded on first use."""
    return load_config()
