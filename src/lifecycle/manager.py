"""Date-keyed puzzle lifecycle, usage counters and solve verification.

State machine::

    draft --publish--> published --archive--> archived
    draft --archive--> archived

Nothing leaves ``archived``.  Archiving keeps ``published_at_utc``.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from contracts.errors import (
    BuildError,
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from contracts.grid import NN, values_to_text, text_to_values
from contracts.payload import parse_puzzle_json, solution_from_payload
from contracts.variants import dedupe_tags, kind_tags
from ports import EnginePort, RendererPort, resolve_engine, resolve_renderer

from .models import (
    ARCHIVED,
    CHECK,
    CHECK_COMPLETE,
    CHECK_INCORRECT,
    CHECK_PARTIAL,
    CHECK_UNAVAILABLE,
    DRAFT,
    PUBLISHED,
    SOLVE,
    STATS_KINDS,
    STATUSES,
    VIEW,
    PuzzleRecord,
    PuzzleStats,
    PuzzleSummary,
    format_utc,
)
from .store import PuzzleStore

_LOGGER = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_GRID_CHARS = frozenset(".0123456789")
_COUNTER_FOR = {VIEW: "views", CHECK: "checks", SOLVE: "solves"}

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_date(value: Any) -> str:
    """Return ``value`` if it is a real ``YYYY-MM-DD`` calendar date."""

    if isinstance(value, str) and _DATE_RE.match(value):
        try:
            date.fromisoformat(value)
        except ValueError:
            pass
        else:
            return value
    raise ValidationError.from_issue("date.format", f"date must be YYYY-MM-DD, got {value!r}", "$.date_utc")


def _validate_status(value: Any, path: str = "$.status") -> str:
    if value not in STATUSES:
        raise ValidationError.from_issue(
            "status.unknown", f"status must be one of {', '.join(STATUSES)}, got {value!r}", path
        )
    return value


def _optional_int(value: Any, name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError.from_issue(f"{name}.type", f"{name} must be an integer, got {value!r}", f"$.{name}")
    return value


def _load_payload(text: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


class PuzzleManager:
    """Owns puzzle records and their counters.

    ``clock`` returns an aware UTC ``datetime``; tests inject a fixed one.
    """

    def __init__(
        self,
        store: Optional[PuzzleStore] = None,
        *,
        engine: Optional[EnginePort] = None,
        renderer: Optional[RendererPort] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.store = store or PuzzleStore()
        self._engine = engine
        self._renderer = renderer
        self.clock = clock or _utcnow

    @property
    def engine(self) -> EnginePort:
        if self._engine is None:
            self._engine = resolve_engine()
        return self._engine

    @property
    def renderer(self) -> RendererPort:
        if self._renderer is None:
            self._renderer = resolve_renderer()
        return self._renderer

    def _now(self) -> str:
        return format_utc(self.clock())

    # ---------- records ----------

    def _record(self, row: Dict[str, Any]) -> PuzzleRecord:
        data = _load_payload(row["puzzle_json"])
        constraints = data.get("constraints")
        solution = solution_from_payload(data)
        return PuzzleRecord(
            date_utc=row["date_utc"],
            status=row["status"],
            puzzle_json=row["puzzle_json"],
            puzzle=row["puzzle"],
            solution=list(solution) if solution is not None else None,
            constraints=constraints if isinstance(constraints, list) else [],
            seed=row["seed"],
            clue_count=row["clue_count"],
            variants=json.loads(row["variants"]),
            title=row["title"],
            author=row["author"],
            difficulty=row["difficulty"],
            svg=row["svg"],
            render_version=row["render_version"],
            created_at_utc=row["created_at_utc"],
            updated_at_utc=row["updated_at_utc"],
            published_at_utc=row["published_at_utc"],
        )

    def create(
        self,
        date_utc: str,
        puzzle_json: str,
        *,
        svg: Optional[str] = None,
        variants: Optional[Sequence[str]] = None,
        status: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None,
        difficulty: Optional[int] = None,
        overwrite: bool = True,
    ) -> PuzzleRecord:
        """Store ``puzzle_json`` under ``date_utc`` and return the record.

        With ``overwrite=False`` an existing date raises :class:`ConflictError`
        and nothing is written.
        """

        date_utc = validate_date(date_utc)
        status = _validate_status(DRAFT if status is None else status)
        difficulty = _optional_int(difficulty, "difficulty")
        if not overwrite and self.store.exists(date_utc):
            raise ConflictError(f"puzzle for {date_utc} already exists")

        imported = parse_puzzle_json(puzzle_json)
        parsed = imported.variants()
        if variants is None:
            tags = kind_tags(parsed)
        else:
            if not isinstance(variants, (list, tuple)) or not all(isinstance(tag, str) for tag in variants):
                raise ValidationError.from_issue("variants.type", "variants must be a list of strings", "$.variants")
            tags = dedupe_tags(variants)

        puzzle = values_to_text(text_to_values(imported.puzzle))
        render_version: Optional[int] = None
        if svg is None:
            try:
                constraints = self.engine.raw_constraint_list(parsed)
            except BuildError as exc:
                raise ValidationError.from_issue("constraints.illegal", str(exc), "$.constraints") from exc
            svg = self.renderer.render(puzzle, constraints, {"title": title})
            render_version = self.renderer.render_version

        now = self._now()
        row = {
            "date_utc": date_utc,
            "status": status,
            "puzzle_json": puzzle_json,
            "puzzle": puzzle,
            "clue_count": imported.clue_count,
            "seed": imported.seed,
            "variants": json.dumps(tags),
            "title": title,
            "author": author,
            "difficulty": difficulty,
            "svg": svg,
            "render_version": render_version,
            "created_at_utc": now,
            "updated_at_utc": now,
            "published_at_utc": now if status == PUBLISHED else None,
        }
        if overwrite:
            self.store.replace_puzzle(row)
        elif not self.store.insert_puzzle(row):
            raise ConflictError(f"puzzle for {date_utc} already exists")
        _LOGGER.info("Stored %s puzzle for %s (%d clues)", status, date_utc, imported.clue_count)
        return self.get(date_utc)

    def get(self, date_utc: str) -> PuzzleRecord:
        date_utc = validate_date(date_utc)
        row = self.store.get_puzzle(date_utc)
        if row is None:
            raise NotFoundError(f"no puzzle for {date_utc}")
        return self._record(row)

    def list(self, status: Optional[str] = None) -> List[PuzzleSummary]:
        if status is not None:
            _validate_status(status)
        return [self._record(row).summary() for row in self.store.list_puzzles(status)]

    def today_published(self, today: Optional[str] = None) -> PuzzleRecord:
        """The published puzzle for ``today`` (default: the clock's UTC date)."""

        date_utc = validate_date(today) if today is not None else self.clock().astimezone(timezone.utc).date().isoformat()
        row = self.store.get_puzzle(date_utc)
        if row is None or row["status"] != PUBLISHED:
            raise NotFoundError(f"no published puzzle for {date_utc}")
        return self._record(row)

    # ---------- transitions ----------

    def publish(self, date_utc: str) -> PuzzleRecord:
        record = self.get(date_utc)
        if record.status == ARCHIVED:
            raise InvalidTransitionError(f"puzzle for {record.date_utc} is archived and cannot be published")
        now = self._now()
        if not self.store.set_status(record.date_utc, PUBLISHED, updated_at_utc=now, published_at_utc=now):
            # archived or removed between the read and the write
            return self.publish(record.date_utc)
        _LOGGER.info("Published puzzle for %s", record.date_utc)
        return self.get(record.date_utc)

    def archive(self, date_utc: str) -> PuzzleRecord:
        record = self.get(date_utc)
        if record.status == ARCHIVED:
            return record
        self.store.set_status(record.date_utc, ARCHIVED, updated_at_utc=self._now())
        _LOGGER.info("Archived puzzle for %s", record.date_utc)
        return self.get(record.date_utc)

    # ---------- counters ----------

    def record_stats_event(self, date_utc: str, kind: str) -> None:
        date_utc = validate_date(date_utc)
        if kind not in STATS_KINDS:
            raise ValidationError.from_issue(
                "stats.kind", f"event kind must be one of {', '.join(STATS_KINDS)}, got {kind!r}", "$.event"
            )
        self.store.increment_stats(date_utc, self._now(), **{_COUNTER_FOR[kind]: 1})

    def get_stats(self, date_utc: str) -> PuzzleStats:
        date_utc = validate_date(date_utc)
        row = self.store.get_stats(date_utc)
        if row is None:
            return PuzzleStats(date_utc=date_utc)
        return PuzzleStats(**row)

    # ---------- checking ----------

    def verify_solve(self, date_utc: str, grid: Any) -> str:
        """Judge a submitted grid against the stored solution.

        Returns ``incorrect``, ``partial``, ``complete`` or ``unavailable``.
        Format errors raise before any counter moves.
        """

        date_utc = validate_date(date_utc)
        row = self.store.get_puzzle(date_utc)
        if row is None or row["status"] != PUBLISHED:
            raise NotFoundError(f"no published puzzle for {date_utc}")

        if not isinstance(grid, str):
            raise ValidationError.from_issue("grid.type", "grid must be a string", "$.grid")
        text = grid.strip()
        if len(text) != NN:
            raise ValidationError.from_issue("grid.length", f"grid must have {NN} characters, got {len(text)}", "$.grid")
        for index, ch in enumerate(text):
            if ch not in _GRID_CHARS:
                raise ValidationError.from_issue("grid.char", f"invalid character {ch!r}", f"$.grid[{index}]")

        solution = solution_from_payload(_load_payload(row["puzzle_json"]))
        now = self._now()
        if solution is None:
            _LOGGER.warning("Stored solution for %s is missing or malformed", date_utc)
            self.store.increment_stats(date_utc, now, checks=1)
            return CHECK_UNAVAILABLE

        status = CHECK_COMPLETE
        for ch, expected in zip(text, solution):
            if ch in ".0":
                status = CHECK_PARTIAL
            elif int(ch) != expected:
                status = CHECK_INCORRECT
                break
        if status == CHECK_COMPLETE:
            self.store.increment_stats(date_utc, now, checks=1, solves=1)
        else:
            self.store.increment_stats(date_utc, now, checks=1)
        return status


__all__ = ["PuzzleManager", "validate_date"]
