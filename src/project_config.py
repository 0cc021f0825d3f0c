"""Project configuration: ``config.toml`` plus a few environment overrides.

``PUZZLE_CONFIG`` points at an alternative TOML file and
``PUZZLE_DATABASE_URL`` replaces ``storage.database_url``.  Values are read
with dotted paths, e.g. ``get_section("generator.random.arrows")``.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import-untyped]


CONFIG_ENV = "PUZZLE_CONFIG"
DEFAULT_PATH = Path(__file__).resolve().parents[1] / "config.toml"

# environment variable -> dotted config path it replaces
_ENV_OVERRIDES: Tuple[Tuple[str, str], ...] = (
    ("PUZZLE_DATABASE_URL", "storage.database_url"),
)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV)
    return Path(override).expanduser() if override else DEFAULT_PATH


def _apply_overrides(config: Dict[str, Any]) -> None:
    for env_name, dotted in _ENV_OVERRIDES:
        value = os.environ.get(env_name)
        if not value:
            continue
        *parents, leaf = dotted.split(".")
        node = config
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value


@lru_cache(maxsize=1)
def get_config() -> Dict[str, Any]:
    """Parse the configuration file once per process (see :func:`reload`)."""

    path = config_path()
    if not path.is_file():
        raise RuntimeError(f"Configuration file '{path}' was not found; set {CONFIG_ENV} to override")
    with path.open("rb") as fh:
        config = tomllib.load(fh)
    _apply_overrides(config)
    return config


def reload() -> None:
    get_config.cache_clear()


def get_section(path: str, default: Any = None) -> Any:
    """Return the value at dotted ``path``.

    A missing key yields ``default`` when one is given and raises
    ``KeyError`` otherwise.
    """

    node: Any = get_config()
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            if default is None:
                raise KeyError(f"Configuration path '{path}' not found")
            return default
        node = node[part]
    return node


def configure_logging(level: str | None = None) -> None:
    name = (level or str(get_section("logging.level", default="INFO"))).upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=_LOG_FORMAT)


__all__ = ["config_path", "configure_logging", "get_config", "get_section", "reload"]
