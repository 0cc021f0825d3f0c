"""Shared error types for the puzzle service."""

from __future__ import annotations


from dataclasses import dataclass
from typing import Iterable, List, Sequence


@dataclass(frozen=True)
class ValidationIssue:
    """Single validation finding: a stable code, a message and a JSON path."""

    code: str
    msg: str
    path: str


def make_issue(code: str, msg: str, path: str = "$") -> ValidationIssue:
    """Construct a :class:`ValidationIssue`."""

    return ValidationIssue(code=code, msg=msg, path=path)


class PuzzleServiceError(Exception):
    """Base class of every error raised by the service core."""


class ValidationError(PuzzleServiceError):
    """Client input was malformed.  Never retried."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue] | None = None) -> None:
        super().__init__(message)
        self.issues: List[ValidationIssue] = list(issues or [])

    @classmethod
    def from_issue(cls, code: str, msg: str, path: str = "$") -> "ValidationError":
        return cls(msg, [make_issue(code, msg, path)])

    @classmethod
    def from_issues(cls, issues: Iterable[ValidationIssue]) -> "ValidationError":
        collected = list(issues)
        message = "; ".join(f"{issue.path}: {issue.msg}" for issue in collected[:5])
        if len(collected) > 5:
            message += "; …"
        return cls(message, collected)


class ClueTargetError(ValidationError):
    """The requested clue target is outside ``[0, 81)``."""


class EngineError(PuzzleServiceError):
    """The constraint engine refused a request."""


class BuildError(EngineError):
    """A solver could not be assembled from the grid text and variants."""


class SolveError(EngineError):
    """The engine found no solution or ran out of search budget."""


class RenderError(PuzzleServiceError):
    """The renderer could not draw the puzzle."""


class GenerationError(PuzzleServiceError):
    """Generation aborted: the variant set rejects its own full solution."""


class NotFoundError(PuzzleServiceError):
    """No record exists for the requested date."""


class ConflictError(PuzzleServiceError):
    """The write would clobber an existing record."""


class InvalidTransitionError(ConflictError):
    """The lifecycle state machine has no such transition."""


__all__ = [
    "BuildError",
    "ClueTargetError",
    "ConflictError",
    "EngineError",
    "GenerationError",
    "InvalidTransitionError",
    "NotFoundError",
    "PuzzleServiceError",
    "RenderError",
    "SolveError",
    "ValidationError",
    "ValidationIssue",
    "make_issue",
]
