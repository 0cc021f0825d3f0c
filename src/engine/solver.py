"""Backtracking solver over materialised constraints.

Candidates are kept as bitmasks (digit ``d`` -> bit ``d - 1``).  All-different
groups contribute a running mask per group, king/knight pairs are looked up
directly, and the remaining rules (Kropki dots, thermometers, arrows, cage
sums, queens) are local checks evaluated for the cell being filled.  The search
always branches on the empty cell with the fewest candidates.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence, Tuple

from contracts.errors import SolveError
from contracts.grid import NN, SIZE, index_of
from contracts.variants import ARROW, KILLER, KROPKI_BLACK, KROPKI_WHITE, QUEEN, THERMO

from .constraints import Constraint

FULL = (1 << SIZE) - 1
DEFAULT_MAX_NODES = 200_000


def _bits_to_list(bits: int) -> List[int]:
    out = []
    d = 1
    while bits:
        if bits & 1:
            out.append(d)
        bits >>= 1
        d += 1
    return out


# ---------- local checks ----------
# Each check sees the whole value array (0 = empty) and only judges cells that
# are already filled.


class _Kropki:
    __slots__ = ("a", "b", "white")

    def __init__(self, a: int, b: int, white: bool) -> None:
        self.a, self.b, self.white = a, b, white

    def ok(self, values: List[int]) -> bool:
        va, vb = values[self.a], values[self.b]
        if self.white:
            if va and vb:
                return abs(va - vb) == 1
            return True
        for v in (va, vb):
            if v and v not in (1, 2, 3, 4, 6, 8):
                return False
        if va and vb:
            return va == 2 * vb or vb == 2 * va
        return True


class _Thermo:
    __slots__ = ("path",)

    def __init__(self, path: Sequence[int]) -> None:
        self.path = tuple(path)

    def ok(self, values: List[int]) -> bool:
        n = len(self.path)
        prev_i, prev_v = -1, 0
        for i, idx in enumerate(self.path):
            v = values[idx]
            if not v:
                continue
            if v < i + 1 or v > SIZE - (n - 1 - i):
                return False
            if prev_i >= 0 and v - prev_v < i - prev_i:
                return False
            prev_i, prev_v = i, v
        return True


class _Arrow:
    __slots__ = ("bulb", "shaft")

    def __init__(self, path: Sequence[int]) -> None:
        self.bulb = path[0]
        self.shaft = tuple(path[1:])

    def ok(self, values: List[int]) -> bool:
        total = 0
        open_cells = 0
        for idx in self.shaft:
            v = values[idx]
            if v:
                total += v
            else:
                open_cells += 1
        bulb = values[self.bulb]
        if not bulb:
            return total + open_cells <= SIZE
        if open_cells == 0:
            return total == bulb
        return total + open_cells <= bulb <= total + SIZE * open_cells


class _CageSum:
    __slots__ = ("cells", "total", "distinct")

    def __init__(self, cells: Sequence[int], total: int, distinct: bool) -> None:
        self.cells = tuple(cells)
        self.total = total
        self.distinct = distinct

    def ok(self, values: List[int]) -> bool:
        placed = [values[idx] for idx in self.cells if values[idx]]
        open_cells = len(self.cells) - len(placed)
        running = sum(placed)
        if open_cells == 0:
            return running == self.total
        if self.distinct:
            free = [d for d in range(1, SIZE + 1) if d not in placed]
            if len(free) < open_cells:
                return False
            low = sum(free[:open_cells])
            high = sum(free[-open_cells:])
        else:
            low, high = open_cells, SIZE * open_cells
        return running + low <= self.total <= running + high


class _Queen:
    __slots__ = ("a", "b")

    def __init__(self, a: int, b: int) -> None:
        self.a, self.b = a, b

    def ok(self, values: List[int]) -> bool:
        return not (values[self.a] == SIZE and values[self.b] == SIZE)


class Solver:
    """Solver state for one grid under one constraint set.

    ``values`` holds the givens; searches always restore it before returning,
    so a handle can be queried repeatedly.
    """

    def __init__(
        self,
        constraints: Sequence[Constraint],
        givens: Sequence[int],
        *,
        max_nodes: int = DEFAULT_MAX_NODES,
    ) -> None:
        if len(givens) != NN:
            raise ValueError("givens must contain 81 values")
        self.constraints = list(constraints)
        self.max_nodes = max_nodes
        self.values: List[int] = [0] * NN
        self.nodes = 0

        self._groups: List[Tuple[int, ...]] = []
        self._cell_groups: List[List[int]] = [[] for _ in range(NN)]
        self._pair_peers: List[List[int]] = [[] for _ in range(NN)]
        self._checks: List[list] = [[] for _ in range(NN)]
        self._index(self.constraints)
        self._group_mask: List[int] = [0] * len(self._groups)

        self.consistent = True
        for idx, digit in enumerate(givens):
            if not digit:
                continue
            if not self._candidates(idx) & (1 << (digit - 1)):
                self.consistent = False
            self._place(idx, digit)
        if self.consistent:
            self.consistent = all(check.ok(self.values) for checks in self._checks for check in checks)

    def _index(self, constraints: Sequence[Constraint]) -> None:
        seen_groups: Dict[Tuple[int, ...], int] = {}
        for con in constraints:
            cells = [index_of(r, c) for r, c in con.cells]
            if con.distinct and len(cells) == 2 and con.total is None:
                a, b = cells
                self._pair_peers[a].append(b)
                self._pair_peers[b].append(a)
            elif con.distinct:
                key = tuple(sorted(cells))
                if key not in seen_groups:
                    seen_groups[key] = len(self._groups)
                    self._groups.append(key)
                    for idx in key:
                        self._cell_groups[idx].append(seen_groups[key])
            if con.kind in (KROPKI_WHITE, KROPKI_BLACK):
                check = _Kropki(cells[0], cells[1], con.kind == KROPKI_WHITE)
            elif con.kind == THERMO:
                check = _Thermo(cells)
            elif con.kind == ARROW:
                check = _Arrow(cells)
            elif con.kind == KILLER:
                check = _CageSum(cells, con.total or 0, con.distinct)
            elif con.kind == QUEEN:
                check = _Queen(cells[0], cells[1])
            else:
                continue
            for idx in set(cells):
                self._checks[idx].append(check)

    # ---------- state ----------

    def _place(self, idx: int, digit: int) -> None:
        self.values[idx] = digit
        bit = 1 << (digit - 1)
        for g in self._cell_groups[idx]:
            self._group_mask[g] |= bit

    def _unplace(self, idx: int, digit: int) -> None:
        self.values[idx] = 0
        bit = 1 << (digit - 1)
        for g in self._cell_groups[idx]:
            self._group_mask[g] &= ~bit

    def _candidates(self, idx: int) -> int:
        used = 0
        for g in self._cell_groups[idx]:
            used |= self._group_mask[g]
        values = self.values
        for peer in self._pair_peers[idx]:
            v = values[peer]
            if v:
                used |= 1 << (v - 1)
        mask = FULL & ~used
        checks = self._checks[idx]
        if not checks or not mask:
            return mask
        allowed = 0
        for d in _bits_to_list(mask):
            values[idx] = d
            if all(check.ok(values) for check in checks):
                allowed |= 1 << (d - 1)
        values[idx] = 0
        return allowed

    def _select_cell(self) -> Optional[Tuple[int, int]]:
        best: Optional[Tuple[int, int]] = None
        best_count = SIZE + 1
        for idx in range(NN):
            if self.values[idx]:
                continue
            mask = self._candidates(idx)
            k = mask.bit_count()
            if k == 0:
                return (idx, 0)
            if k < best_count:
                best, best_count = (idx, mask), k
                if k == 1:
                    break
        return best

    # ---------- search ----------

    def _search(self, limit: int, rng: Optional[random.Random], found: List[List[int]]) -> int:
        self.nodes += 1
        if self.nodes > self.max_nodes:
            raise SolveError(f"search budget of {self.max_nodes} nodes exhausted")
        cell = self._select_cell()
        if cell is None:
            found.append(self.values[:])
            return 1
        idx, mask = cell
        if mask == 0:
            return 0
        digits = _bits_to_list(mask)
        if rng is not None:
            rng.shuffle(digits)
        count = 0
        for d in digits:
            self._place(idx, d)
            try:
                count += self._search(limit - count, rng, found)
            finally:
                self._unplace(idx, d)
            if count >= limit:
                break
        return count

    def count_solutions(self, limit: int = 2, rng: Optional[random.Random] = None) -> int:
        """Count completions of the givens, stopping once ``limit`` is reached."""

        if not self.consistent:
            return 0
        self.nodes = 0
        return self._search(limit, rng, [])

    def has_unique_solution(self, rng: Optional[random.Random] = None) -> bool:
        return self.count_solutions(2, rng) == 1

    def solve(self, rng: Optional[random.Random] = None) -> Optional[List[int]]:
        """Return one completion (first found in ``rng`` order), or ``None``."""

        if not self.consistent:
            return None
        self.nodes = 0
        found: List[List[int]] = []
        self._search(1, rng, found)
        return found[0] if found else None


__all__ = ["DEFAULT_MAX_NODES", "Solver"]
