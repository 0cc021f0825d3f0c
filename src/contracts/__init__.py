"""Data contracts: variant model, payload encoding and the error taxonomy."""

from __future__ import annotations

from .errors import (
    BuildError,
    ClueTargetError,
    ConflictError,
    GenerationError,
    InvalidTransitionError,
    NotFoundError,
    PuzzleServiceError,
    RenderError,
    SolveError,
    ValidationError,
    ValidationIssue,
)
from .payload import PuzzlePayload, parse_puzzle_json
from .variants import VariantSpec, kind_tags, parse_variants, to_wire

__all__ = [
    "BuildError",
    "ClueTargetError",
    "ConflictError",
    "GenerationError",
    "InvalidTransitionError",
    "NotFoundError",
    "PuzzlePayload",
    "PuzzleServiceError",
    "RenderError",
    "SolveError",
    "ValidationError",
    "ValidationIssue",
    "VariantSpec",
    "kind_tags",
    "parse_puzzle_json",
    "parse_variants",
    "to_wire",
]
