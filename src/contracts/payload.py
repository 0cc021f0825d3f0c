"""The persisted puzzle payload (``puzzle_json``)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import ValidationError
from .grid import NN, count_clues
from .schemas import IMPORT_SCHEMA, PAYLOAD_SCHEMA, schema_issues
from .variants import VariantSpec, parse_variants, to_wire
from .wire import canonical_dumps

# Seeds are stored in a signed 64-bit column.
MAX_SEED = (1 << 63) - 1


@dataclass(frozen=True)
class PuzzlePayload:
    """Everything needed to replay, display and check one generated puzzle."""

    puzzle: str
    solution: Tuple[int, ...]
    constraints: Tuple[VariantSpec, ...]
    seed: int
    clue_count: int
    symmetry: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return {
            "puzzle": self.puzzle,
            "solution": list(self.solution),
            "constraints": to_wire(self.constraints),
            "seed": self.seed,
            "clue_count": self.clue_count,
            "symmetry": self.symmetry,
        }

    def dumps(self) -> str:
        """Canonical JSON text, as stored in the ``puzzle_json`` column."""

        return canonical_dumps(self.to_wire())

    @classmethod
    def from_wire(cls, data: Any) -> "PuzzlePayload":
        """Strictly decode a generated payload; every field must be present."""

        issues = schema_issues(PAYLOAD_SCHEMA, data)
        if issues:
            raise ValidationError.from_issues(issues)
        return cls(
            puzzle=data["puzzle"],
            solution=tuple(data["solution"]),
            constraints=tuple(parse_variants(data["constraints"])),
            seed=data["seed"],
            clue_count=data["clue_count"],
            symmetry=data.get("symmetry"),
        )


@dataclass(frozen=True)
class ImportedPuzzle:
    """Loosely decoded ``puzzle_json`` submitted through ``create``."""

    puzzle: str
    constraints: List[Any]
    raw: Dict[str, Any] = field(repr=False)

    @property
    def clue_count(self) -> int:
        value = self.raw.get("clue_count", self.raw.get("clueCount"))
        return value if isinstance(value, int) else count_clues(self.puzzle)

    @property
    def seed(self) -> Optional[int]:
        value = self.raw.get("seed")
        return value if isinstance(value, int) and not isinstance(value, bool) else None

    @property
    def solution(self) -> Optional[Tuple[int, ...]]:
        return solution_from_payload(self.raw)

    def variants(self) -> List[VariantSpec]:
        return parse_variants(self.constraints)


def load_json_object(text: Any, *, what: str = "puzzle_json") -> Dict[str, Any]:
    if not isinstance(text, str):
        raise ValidationError.from_issue("payload.bad_type", f"{what} must be a JSON string")
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError.from_issue("payload.invalid_json", f"invalid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise ValidationError.from_issue("payload.bad_type", f"{what} must encode a JSON object")
    return value


def parse_puzzle_json(text: Any) -> ImportedPuzzle:
    """Decode ``puzzle_json`` text, requiring a puzzle string and typed fields."""

    data = load_json_object(text)
    issues = schema_issues(IMPORT_SCHEMA, data)
    if issues:
        raise ValidationError.from_issues(issues)
    return ImportedPuzzle(puzzle=data["puzzle"], constraints=list(data.get("constraints", [])), raw=data)


def solution_from_payload(data: Dict[str, Any]) -> Optional[Tuple[int, ...]]:
    """Return the stored solution, or ``None`` when it is missing or malformed."""

    solution = data.get("solution")
    if not isinstance(solution, list) or len(solution) != NN:
        return None
    for digit in solution:
        if isinstance(digit, bool) or not isinstance(digit, int) or not 1 <= digit <= 9:
            return None
    return tuple(solution)


__all__ = [
    "MAX_SEED",
    "ImportedPuzzle",
    "PuzzlePayload",
    "load_json_object",
    "parse_puzzle_json",
    "solution_from_payload",
]
