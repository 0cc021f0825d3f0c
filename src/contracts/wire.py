"""Canonical JSON encoding for persisted payloads.

Payloads are written with sorted keys, compact separators and UTF-8 text so
that the same logical payload always produces the same bytes.  Floats are not
part of any payload and are rejected rather than rounded.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

__all__ = ["canonical_dumps", "payload_digest"]


def _check(obj: Any, path: str = "$") -> None:
    if obj is None or isinstance(obj, (bool, int, str)):
        return
    if isinstance(obj, float):
        raise TypeError(f"Floats are not allowed in canonical payloads ({path})")
    if isinstance(obj, (list, tuple)):
        for index, item in enumerate(obj):
            _check(item, f"{path}[{index}]")
        return
    if isinstance(obj, dict):
        for key, value in obj.items():
            if not isinstance(key, str):
                raise TypeError(f"Object keys must be strings ({path})")
            _check(value, f"{path}.{key}")
        return
    raise TypeError(f"Unsupported type for canonical JSON at {path}: {type(obj)!r}")


def canonical_dumps(obj: Any) -> str:
    """Return the canonical JSON text for ``obj``."""

    _check(obj)
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"))


def payload_digest(obj: Any) -> str:
    """Return ``sha256-<hex>`` over the canonical encoding of ``obj``."""

    digest = hashlib.sha256(canonical_dumps(obj).encode("utf-8")).hexdigest()
    return f"sha256-{digest}"
