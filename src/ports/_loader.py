"""Helpers for loading port implementations dynamically."""

from __future__ import annotations

import importlib
from typing import Any, Dict

_TARGET_CACHE: Dict[str, Any] = {}


def load_target(target: str) -> Any:
    """Import the ``"package.module:attr"`` target and cache the attribute."""

    cached = _TARGET_CACHE.get(target)
    if cached is not None:
        return cached

    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ImportError(f"Port target '{target}' must look like 'module:attr'")

    module = importlib.import_module(module_name)
    try:
        value = getattr(module, attr)
    except AttributeError as exc:
        raise ImportError(f"Module '{module_name}' does not expose '{attr}'") from exc

    _TARGET_CACHE[target] = value
    return value


__all__ = ["load_target"]
