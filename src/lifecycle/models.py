"""Records returned by the lifecycle manager."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

DRAFT = "draft"
PUBLISHED = "published"
ARCHIVED = "archived"
STATUSES = (DRAFT, PUBLISHED, ARCHIVED)

VIEW = "view"
CHECK = "check"
SOLVE = "solve"
STATS_KINDS = (VIEW, CHECK, SOLVE)

CHECK_INCORRECT = "incorrect"
CHECK_PARTIAL = "partial"
CHECK_COMPLETE = "complete"
CHECK_UNAVAILABLE = "unavailable"


def format_utc(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class PuzzleSummary:
    date_utc: str
    status: str
    title: Optional[str]
    author: Optional[str]
    difficulty: Optional[int]
    variants: List[str]
    clue_count: int
    created_at_utc: str
    published_at_utc: Optional[str]
    updated_at_utc: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PuzzleRecord:
    date_utc: str
    status: str
    puzzle_json: str
    puzzle: str
    solution: Optional[List[int]]
    constraints: List[Dict[str, Any]]
    seed: Optional[int]
    clue_count: int
    variants: List[str]
    title: Optional[str]
    author: Optional[str]
    difficulty: Optional[int]
    svg: Optional[str] = field(repr=False)
    render_version: Optional[int]
    created_at_utc: str
    updated_at_utc: str
    published_at_utc: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> PuzzleSummary:
        return PuzzleSummary(
            date_utc=self.date_utc,
            status=self.status,
            title=self.title,
            author=self.author,
            difficulty=self.difficulty,
            variants=list(self.variants),
            clue_count=self.clue_count,
            created_at_utc=self.created_at_utc,
            published_at_utc=self.published_at_utc,
            updated_at_utc=self.updated_at_utc,
        )


@dataclass(frozen=True)
class PuzzleStats:
    date_utc: str
    views: int = 0
    checks: int = 0
    solves: int = 0
    last_seen_utc: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "ARCHIVED",
    "CHECK",
    "CHECK_COMPLETE",
    "CHECK_INCORRECT",
    "CHECK_PARTIAL",
    "CHECK_UNAVAILABLE",
    "DRAFT",
    "PUBLISHED",
    "PuzzleRecord",
    "PuzzleStats",
    "PuzzleSummary",
    "SOLVE",
    "STATS_KINDS",
    "STATUSES",
    "VIEW",
    "format_utc",
]
