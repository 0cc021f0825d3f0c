"""Generation events as JSON lines.

One directory per UTC day, files ``generation_NN.jsonl`` inside it; a new
file is opened once the current one reaches ``max_bytes``.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from project_config import get_section

__all__ = ["EventLog", "configure", "configure_from_config", "current_log_path", "record_event"]

_LOGGER = logging.getLogger(__name__)

DEFAULT_DIR = "logs/generation"
DEFAULT_MAX_BYTES = 100 * 1024 * 1024


class EventLog:
    """Append-only JSONL sink shared by every generation flow."""

    def __init__(self, base_dir: str | Path = DEFAULT_DIR, *, max_bytes: int | None = None,
                 enabled: bool = True) -> None:
        self.base_dir = Path(base_dir)
        self.max_bytes = max_bytes or DEFAULT_MAX_BYTES
        self.enabled = enabled
        self.path: Optional[Path] = None
        self._lock = threading.Lock()

    def _has_room(self, path: Path) -> bool:
        return not path.exists() or path.stat().st_size < self.max_bytes

    def _target(self) -> Path:
        day_dir = self.base_dir / datetime.now(timezone.utc).strftime("%Y%m%d")
        day_dir.mkdir(parents=True, exist_ok=True)
        if self.path is not None and self.path.parent == day_dir and self._has_room(self.path):
            return self.path
        index = 0
        while not self._has_room(day_dir / f"generation_{index:02d}.jsonl"):
            index += 1
        self.path = day_dir / f"generation_{index:02d}.jsonl"
        return self.path

    def append(self, event: Dict[str, Any]) -> Path:
        record = {"ts": datetime.now(timezone.utc).isoformat(timespec="milliseconds"), **event}
        line = json.dumps(record, sort_keys=True, ensure_ascii=False)
        with self._lock:
            target = self._target()
            with target.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
        return target


_ACTIVE: Optional[EventLog] = None


def configure(base_dir: str | Path, *, max_bytes: int | None = None, enabled: bool = True) -> EventLog:
    """Replace the process-wide event log."""

    global _ACTIVE
    _ACTIVE = EventLog(base_dir, max_bytes=max_bytes, enabled=enabled)
    return _ACTIVE


def configure_from_config() -> EventLog:
    section = get_section("events", default={})
    return configure(
        section.get("dir", DEFAULT_DIR),
        max_bytes=int(section.get("max_bytes", DEFAULT_MAX_BYTES)),
        enabled=bool(section.get("enabled", False)),
    )


def _active() -> EventLog:
    return _ACTIVE if _ACTIVE is not None else configure_from_config()


def record_event(event: Dict[str, Any]) -> Optional[Path]:
    """Write ``event`` when recording is enabled.

    Write failures are logged as warnings and the event is dropped.
    """

    sink = _active()
    if not sink.enabled:
        return None
    try:
        return sink.append(event)
    except OSError as exc:
        _LOGGER.warning("Could not write generation event to %s: %s", sink.base_dir, exc)
        return None


def current_log_path() -> Optional[Path]:
    return _ACTIVE.path if _ACTIVE is not None else None
