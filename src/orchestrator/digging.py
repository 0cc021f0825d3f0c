"""Greedy, order-randomised clue removal.

The search keeps one mutable grid and rolls back exactly the cell under trial.
It stops as soon as the clue count reaches the target, so the result may keep
more clues than requested and is not guaranteed to be irreducible.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import List, MutableSequence, Optional, Sequence

from contracts.errors import BuildError, ClueTargetError, EngineError, GenerationError
from contracts.grid import NN, values_to_text
from contracts.variants import VariantSpec
from ports.engine_port import EnginePort

_LOGGER = logging.getLogger(__name__)


@dataclass
class DigReport:
    clue_target: int
    trials: int = 0
    removed: int = 0
    rejected: int = 0
    engine_failures: int = 0
    clue_count: int = NN

    def as_dict(self) -> dict:
        return {
            "clue_target": self.clue_target,
            "trials": self.trials,
            "removed": self.removed,
            "rejected": self.rejected,
            "engine_failures": self.engine_failures,
            "clue_count": self.clue_count,
        }


def _count_clues(grid: Sequence[int]) -> int:
    return sum(1 for v in grid if v)


def check_clue_target(clue_target: int) -> None:
    if isinstance(clue_target, bool) or not isinstance(clue_target, int):
        raise ClueTargetError.from_issue("clue_target.type", "clue_target must be an integer", "$.clue_target")
    if not 0 <= clue_target < NN:
        raise ClueTargetError.from_issue(
            "clue_target.range",
            f"clue_target must satisfy 0 <= T < {NN}, got {clue_target}",
            "$.clue_target",
        )


def shuffle_positions(rng: random.Random, positions: MutableSequence[int]) -> None:
    """Fisher-Yates in place: for ``i`` from the end down to 1 swap with ``randrange(i + 1)``."""

    for i in range(len(positions) - 1, 0, -1):
        j = rng.randrange(i + 1)
        positions[i], positions[j] = positions[j], positions[i]


def dig_puzzle(
    solution: Sequence[int],
    clue_target: int,
    variants: Sequence[VariantSpec],
    rng: random.Random,
    engine: EnginePort,
    report: Optional[DigReport] = None,
) -> str:
    """Blank cells of ``solution`` while the puzzle stays uniquely solvable.

    Returns the 81-character puzzle text with ``.`` for blanks.  Raises
    :class:`ClueTargetError` for a target outside ``[0, 81)`` and
    :class:`GenerationError` when the engine rejects the full solution itself.
    """

    check_clue_target(clue_target)
    if len(solution) != NN:
        raise GenerationError(f"solution must have {NN} digits, got {len(solution)}")
    if report is None:
        report = DigReport(clue_target=clue_target)

    grid: List[int] = list(solution)
    try:
        engine.build_solver_with_givens(values_to_text(grid), variants)
    except BuildError as exc:
        raise GenerationError(f"variant set rejects its own full solution: {exc}") from exc

    positions = list(range(NN))
    shuffle_positions(rng, positions)

    clues = _count_clues(grid)
    report.clue_count = clues
    for pos in positions:
        if clues <= clue_target:
            break
        saved = grid[pos]
        grid[pos] = 0
        report.trials += 1
        try:
            handle = engine.build_solver_with_givens(values_to_text(grid), variants)
            unique = engine.check_unique_solution(handle, rng)
        except EngineError as exc:
            _LOGGER.debug("Trial at cell %d kept its clue after engine failure: %s", pos, exc)
            report.engine_failures += 1
            unique = False
        if unique:
            report.removed += 1
        else:
            grid[pos] = saved
            report.rejected += 1
        clues = _count_clues(grid)
        report.clue_count = clues

    _LOGGER.debug(
        "Dig finished: %d clues (target %d) after %d trials",
        report.clue_count,
        clue_target,
        report.trials,
    )
    return values_to_text(grid)


__all__ = ["DigReport", "check_clue_target", "dig_puzzle", "shuffle_positions"]
