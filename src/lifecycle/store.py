"""Relational store for puzzle records and per-date counters (SQLAlchemy Core).

Every public method runs in its own ``engine.begin()`` transaction and issues
a single row-level statement, so writes are atomic without cross-request
locking.  Counter increments are ``INSERT ... ON CONFLICT DO UPDATE`` upserts.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    select,
    update,
)
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.pool import StaticPool

from project_config import get_section

from .models import ARCHIVED, STATUSES

_LOGGER = logging.getLogger(__name__)

metadata = MetaData()

_STATUS_LIST = ", ".join(f"'{status}'" for status in STATUSES)

puzzles = Table(
    "puzzles",
    metadata,
    Column("date_utc", String(10), primary_key=True),
    Column("status", String(16), nullable=False),
    Column("puzzle_json", Text, nullable=False),
    Column("puzzle", String(81), nullable=False),
    Column("clue_count", Integer, nullable=False),
    Column("seed", Integer, nullable=True),
    Column("variants", Text, nullable=False),
    Column("title", Text, nullable=True),
    Column("author", Text, nullable=True),
    Column("difficulty", Integer, nullable=True),
    Column("svg", Text, nullable=True),
    Column("render_version", Integer, nullable=True),
    Column("created_at_utc", String(32), nullable=False),
    Column("updated_at_utc", String(32), nullable=False),
    Column("published_at_utc", String(32), nullable=True),
    CheckConstraint(f"status IN ({_STATUS_LIST})", name="ck_puzzles_status"),
    CheckConstraint("status != 'published' OR svg IS NOT NULL", name="ck_puzzles_published_svg"),
)

puzzle_stats = Table(
    "puzzle_stats",
    metadata,
    Column("date_utc", String(10), primary_key=True),
    Column("views", Integer, nullable=False, default=0),
    Column("checks", Integer, nullable=False, default=0),
    Column("solves", Integer, nullable=False, default=0),
    Column("last_seen_utc", String(32), nullable=True),
    CheckConstraint("views >= 0 AND checks >= 0 AND solves >= 0", name="ck_puzzle_stats_counters"),
)

COUNTERS = ("views", "checks", "solves")


def _build_engine(database_url: str, busy_timeout_s: float) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        raise ValueError(f"unsupported database backend: {url.get_backend_name()}")

    database = url.database
    if not database or database == ":memory:":
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    Path(database).expanduser().parent.mkdir(parents=True, exist_ok=True)
    return create_engine(
        url,
        connect_args={"timeout": busy_timeout_s, "check_same_thread": False},
    )


class PuzzleStore:
    """Thin table gateway used by :class:`~lifecycle.manager.PuzzleManager`."""

    def __init__(self, database_url: Optional[str] = None, *, busy_timeout_s: Optional[float] = None) -> None:
        if database_url is None:
            database_url = str(get_section("storage.database_url", default="sqlite:///data/puzzles.db"))
        if busy_timeout_s is None:
            busy_timeout_s = float(get_section("storage.busy_timeout_s", default=30))
        self.database_url = database_url
        self.engine = _build_engine(database_url, busy_timeout_s)
        metadata.create_all(self.engine)
        _LOGGER.debug("Opened puzzle store at %s", make_url(database_url).render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()

    # ---------- puzzles ----------

    def exists(self, date_utc: str) -> bool:
        stmt = select(puzzles.c.date_utc).where(puzzles.c.date_utc == date_utc)
        with self.engine.connect() as conn:
            return conn.execute(stmt).first() is not None

    def get_puzzle(self, date_utc: str) -> Optional[Dict[str, Any]]:
        stmt = select(puzzles).where(puzzles.c.date_utc == date_utc)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    def list_puzzles(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        stmt = select(puzzles).order_by(puzzles.c.date_utc.desc())
        if status is not None:
            stmt = stmt.where(puzzles.c.status == status)
        with self.engine.connect() as conn:
            return [dict(row) for row in conn.execute(stmt).mappings()]

    def replace_puzzle(self, row: Mapping[str, Any]) -> None:
        """Insert or overwrite the row for ``row["date_utc"]``.

        ``created_at_utc`` of an existing row is kept.
        """

        stmt = sqlite_insert(puzzles).values(**row)
        changes = {name: stmt.excluded[name] for name in row if name not in ("date_utc", "created_at_utc")}
        stmt = stmt.on_conflict_do_update(index_elements=[puzzles.c.date_utc], set_=changes)
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def insert_puzzle(self, row: Mapping[str, Any]) -> bool:
        """Insert unless the date exists; return ``False`` when nothing was written."""

        stmt = sqlite_insert(puzzles).values(**row).on_conflict_do_nothing(index_elements=[puzzles.c.date_utc])
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount == 1

    def set_status(
        self,
        date_utc: str,
        status: str,
        *,
        updated_at_utc: str,
        published_at_utc: Optional[str] = None,
    ) -> bool:
        """Move a non-archived record to ``status``; return whether a row changed."""

        values: Dict[str, Any] = {"status": status, "updated_at_utc": updated_at_utc}
        if published_at_utc is not None:
            values["published_at_utc"] = published_at_utc
        stmt = (
            update(puzzles)
            .where(puzzles.c.date_utc == date_utc)
            .where(puzzles.c.status != ARCHIVED)
            .values(**values)
        )
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount == 1

    # ---------- stats ----------

    def increment_stats(self, date_utc: str, seen_at_utc: str, **deltas: int) -> None:
        """Add ``deltas`` to the counters of ``date_utc`` in one upsert."""

        unknown = set(deltas) - set(COUNTERS)
        if unknown:
            raise ValueError(f"unknown counters: {sorted(unknown)}")
        initial = {name: deltas.get(name, 0) for name in COUNTERS}
        stmt = sqlite_insert(puzzle_stats).values(date_utc=date_utc, last_seen_utc=seen_at_utc, **initial)
        changes: Dict[str, Any] = {
            name: puzzle_stats.c[name] + amount for name, amount in deltas.items() if amount
        }
        changes["last_seen_utc"] = stmt.excluded.last_seen_utc
        stmt = stmt.on_conflict_do_update(index_elements=[puzzle_stats.c.date_utc], set_=changes)
        with self.engine.begin() as conn:
            conn.execute(stmt)

    def get_stats(self, date_utc: str) -> Optional[Dict[str, Any]]:
        stmt = select(puzzle_stats).where(puzzle_stats.c.date_utc == date_utc)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None


__all__ = ["COUNTERS", "PuzzleStore", "metadata", "puzzle_stats", "puzzles"]
