"""Materialised constraints: base sudoku rules plus expanded variants.

Each :class:`Constraint` is a flat, renderer-friendly record.  Variants are
checked for legality while they are expanded; an illegal variant raises
:class:`~contracts.errors.BuildError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from contracts.errors import BuildError
from contracts.grid import SIZE
from contracts.variants import (
    Arrow,
    Cell,
    Killer,
    King,
    Knight,
    KropkiBlack,
    KropkiWhite,
    Queen,
    Thermo,
    VariantSpec,
)

ROW = "row"
COLUMN = "column"
BOX = "box"

KING_STEPS = ((0, 1), (1, -1), (1, 0), (1, 1))
KNIGHT_STEPS = ((1, 2), (1, -2), (2, 1), (2, -1))


@dataclass(frozen=True)
class Constraint:
    """One rule over a fixed set of cells.

    ``distinct`` marks all-different groups (rows, columns, boxes, killer cages
    without repeats, king and knight pairs).  ``total`` is the cage sum for
    killer cages.
    """

    kind: str
    cells: Tuple[Cell, ...]
    total: Optional[int] = None
    distinct: bool = False


def base_constraints() -> List[Constraint]:
    out: List[Constraint] = []
    for r in range(SIZE):
        out.append(Constraint(ROW, tuple((r, c) for c in range(SIZE)), distinct=True))
    for c in range(SIZE):
        out.append(Constraint(COLUMN, tuple((r, c) for r in range(SIZE)), distinct=True))
    for br in range(0, SIZE, 3):
        for bc in range(0, SIZE, 3):
            cells = tuple((br + dr, bc + dc) for dr in range(3) for dc in range(3))
            out.append(Constraint(BOX, cells, distinct=True))
    return out


def _on_board(cell: Cell) -> bool:
    return 0 <= cell[0] < SIZE and 0 <= cell[1] < SIZE


def _require_on_board(kind: str, cells: Iterable[Cell]) -> None:
    for cell in cells:
        if not _on_board(cell):
            raise BuildError(f"{kind}: cell {cell} is outside the 9x9 grid")


def _require_unique(kind: str, cells: Sequence[Cell]) -> None:
    if len(set(cells)) != len(cells):
        raise BuildError(f"{kind}: cells must not repeat")


def _king_adjacent(a: Cell, b: Cell) -> bool:
    return max(abs(a[0] - b[0]), abs(a[1] - b[1])) == 1


def _require_connected(kind: str, path: Sequence[Cell]) -> None:
    for a, b in zip(path, path[1:]):
        if not _king_adjacent(a, b):
            raise BuildError(f"{kind}: {a} and {b} are not adjacent")


def _moves(steps: Sequence[Tuple[int, int]], kind: str) -> List[Constraint]:
    out: List[Constraint] = []
    for r in range(SIZE):
        for c in range(SIZE):
            for dr, dc in steps:
                other = (r + dr, c + dc)
                if _on_board(other):
                    out.append(Constraint(kind, ((r, c), other), distinct=True))
    return out


def _queen_pairs() -> List[Constraint]:
    out: List[Constraint] = []
    for r in range(SIZE):
        for c in range(SIZE):
            for sign in (1, -1):
                k = 1
                while _on_board((r + k, c + sign * k)):
                    out.append(Constraint(Queen.kind, ((r, c), (r + k, c + sign * k))))
                    k += 1
    return out


def _cage_bounds(size: int, distinct: bool) -> Tuple[int, int]:
    if distinct:
        return sum(range(1, size + 1)), sum(range(10 - size, 10))
    return size, 9 * size


def expand_variant(variant: VariantSpec) -> List[Constraint]:
    """Expand one variant into engine constraints, enforcing legality."""

    if isinstance(variant, (KropkiWhite, KropkiBlack)):
        pair = (variant.a, variant.b)
        _require_on_board(variant.kind, pair)
        a, b = pair
        if abs(a[0] - b[0]) + abs(a[1] - b[1]) != 1:
            raise BuildError(f"{variant.kind}: {a} and {b} are not orthogonal neighbours")
        return [Constraint(variant.kind, pair)]
    if isinstance(variant, Thermo):
        path = variant.path
        _require_on_board(variant.kind, path)
        _require_unique(variant.kind, path)
        _require_connected(variant.kind, path)
        if len(path) > SIZE:
            raise BuildError(f"thermo: path of {len(path)} cells cannot strictly increase")
        return [Constraint(variant.kind, path)]
    if isinstance(variant, Arrow):
        path = variant.path
        _require_on_board(variant.kind, path)
        _require_unique(variant.kind, path)
        _require_connected(variant.kind, path)
        if len(path) < 2:
            raise BuildError("arrow: needs a circle and at least one shaft cell")
        return [Constraint(variant.kind, path)]
    if isinstance(variant, Killer):
        cells = variant.cells
        _require_on_board(variant.kind, cells)
        _require_unique(variant.kind, cells)
        if variant.no_repeats and len(cells) > SIZE:
            raise BuildError(f"killer: {len(cells)} cells cannot hold distinct digits")
        low, high = _cage_bounds(len(cells), variant.no_repeats)
        if not low <= variant.sum <= high:
            raise BuildError(f"killer: sum {variant.sum} is impossible for {len(cells)} cells")
        return [Constraint(variant.kind, cells, total=variant.sum, distinct=variant.no_repeats)]
    if isinstance(variant, King):
        return _moves(KING_STEPS, variant.kind)
    if isinstance(variant, Knight):
        return _moves(KNIGHT_STEPS, variant.kind)
    if isinstance(variant, Queen):
        return _queen_pairs()
    raise BuildError(f"unsupported variant: {variant!r}")


def expand(variants: Iterable[VariantSpec]) -> List[Constraint]:
    """Base rules followed by every variant, in list order."""

    out = base_constraints()
    for variant in variants:
        out.extend(expand_variant(variant))
    return out


__all__ = [
    "BOX",
    "COLUMN",
    "Constraint",
    "ROW",
    "base_constraints",
    "expand",
    "expand_variant",
]
