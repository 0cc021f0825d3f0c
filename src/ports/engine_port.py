"""Facade over the constraint engine used by generation and import."""

from __future__ import annotations

import random
from typing import Any, List, Optional, Protocol, Sequence

import engine
from contracts.variants import VariantSpec
from engine.constraints import Constraint
from project_config import get_section


class EnginePort(Protocol):
    """The four engine operations the core relies on."""

    def build_solver_with_givens(self, puzzle_text: str, variants: Sequence[VariantSpec]) -> Any:
        ...

    def check_unique_solution(self, handle: Any, rng: random.Random) -> bool:
        ...

    def full_solution_for(self, variants: Sequence[VariantSpec], rng: random.Random) -> List[int]:
        ...

    def raw_constraint_list(self, variants: Sequence[VariantSpec]) -> List[Constraint]:
        ...


class EngineAdapter:
    """Binds :class:`EnginePort` to the bundled backtracking engine.

    The node budget defaults to ``[engine] max_nodes``.  Handles are
    :class:`engine.Solver` instances; the oracle shuffles digit order with the
    supplied generator so repeated calls advance it.
    """

    def __init__(self, max_nodes: Optional[int] = None) -> None:
        if max_nodes is None:
            max_nodes = int(get_section("engine.max_nodes", default=engine.DEFAULT_MAX_NODES))
        self.max_nodes = max_nodes

    def build_solver_with_givens(self, puzzle_text: str, variants: Sequence[VariantSpec]) -> engine.Solver:
        return engine.build_solver(puzzle_text, variants, max_nodes=self.max_nodes)

    def check_unique_solution(self, handle: engine.Solver, rng: random.Random) -> bool:
        return handle.has_unique_solution(rng)

    def full_solution_for(self, variants: Sequence[VariantSpec], rng: random.Random) -> List[int]:
        return engine.full_solution(variants, rng, max_nodes=self.max_nodes)

    def raw_constraint_list(self, variants: Sequence[VariantSpec]) -> List[Constraint]:
        return engine.expand(variants)


__all__ = ["EngineAdapter", "EnginePort"]
