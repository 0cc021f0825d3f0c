"""Puzzle lifecycle and usage statistics."""

from .manager import PuzzleManager, validate_date
from .models import PuzzleRecord, PuzzleStats, PuzzleSummary
from .store import PuzzleStore

__all__ = ["PuzzleManager", "PuzzleRecord", "PuzzleStats", "PuzzleSummary", "PuzzleStore", "validate_date"]
