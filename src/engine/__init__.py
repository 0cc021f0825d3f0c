"""Bundled constraint engine for 9x9 sudoku with variant rules."""

from __future__ import annotations

import random
from typing import List, Sequence

from contracts.errors import BuildError, SolveError
from contracts.grid import NN, is_grid_text, text_to_values
from contracts.variants import VariantSpec

from .constraints import Constraint, base_constraints, expand, expand_variant
from .solver import DEFAULT_MAX_NODES, Solver


def build_solver(
    puzzle_text: str,
    variants: Sequence[VariantSpec],
    *,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> Solver:
    """Assemble a solver from grid text (``.``/``0`` blanks) and variants.

    Raises ``BuildError`` when the text is malformed or the givens already
    break a rule; illegal variants raise it from :func:`expand`.
    """

    if not is_grid_text(puzzle_text):
        raise BuildError("puzzle text must be exactly 81 characters of '.', '0'-'9'")
    solver = Solver(expand(variants), text_to_values(puzzle_text), max_nodes=max_nodes)
    if not solver.consistent:
        raise BuildError("givens break the rules of the variant set")
    return solver


def full_solution(
    variants: Sequence[VariantSpec],
    rng: random.Random,
    *,
    max_nodes: int = DEFAULT_MAX_NODES,
) -> List[int]:
    """Produce one filled grid satisfying the base rules and ``variants``."""

    solver = Solver(expand(variants), [0] * NN, max_nodes=max_nodes)
    grid = solver.solve(rng)
    if grid is None:
        raise SolveError("variant set has no solution")
    return grid


__all__ = [
    "Constraint",
    "DEFAULT_MAX_NODES",
    "Solver",
    "base_constraints",
    "build_solver",
    "expand",
    "expand_variant",
    "full_solution",
]
