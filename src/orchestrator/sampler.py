"""Sample local variants that a known full solution already satisfies.

Random generation first fixes a solution and then decorates it, so every
sampled dot, line and cage is consistent by construction.  Lines and cages
never share cells with each other.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, fields
from typing import Any, List, Mapping, Optional, Sequence, Set, Tuple

from contracts.grid import NN, SIZE, index_of
from contracts.variants import Arrow, Cell, Killer, KropkiBlack, KropkiWhite, Thermo, VariantSpec
from project_config import get_section

_ORTHOGONAL = ((0, 1), (1, 0), (0, -1), (-1, 0))
_KING = ((-1, -1), (-1, 0), (-1, 1), (0, -1), (0, 1), (1, -1), (1, 0), (1, 1))


@dataclass(frozen=True)
class RandomConfig:
    """Knobs of ``[generator.random]``."""

    clue_target: int = 30
    global_variant_probability: float = 0.35
    kropki_white: int = 4
    kropki_black: int = 3
    thermos: int = 1
    thermo_min_length: int = 3
    thermo_max_length: int = 5
    arrows: int = 1
    killer_cages: int = 2
    killer_max_cells: int = 4
    sampling_attempts: int = 200

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RandomConfig":
        values = {}
        for item in fields(cls):
            if item.name in data:
                default = getattr(cls, item.name)
                values[item.name] = type(default)(data[item.name])
        return cls(**values)

    @classmethod
    def from_config(cls) -> "RandomConfig":
        return cls.from_mapping(get_section("generator.random", default={}))


def _on_board(r: int, c: int) -> bool:
    return 0 <= r < SIZE and 0 <= c < SIZE


class _Sampler:
    def __init__(self, solution: Sequence[int], rng: random.Random, config: RandomConfig) -> None:
        if len(solution) != NN:
            raise ValueError("solution must contain 81 digits")
        self.solution = list(solution)
        self.rng = rng
        self.config = config
        self.taken: Set[Cell] = set()
        self.pairs: Set[Tuple[Cell, Cell]] = set()

    def digit(self, cell: Cell) -> int:
        return self.solution[index_of(*cell)]

    def random_cell(self) -> Cell:
        return (self.rng.randrange(SIZE), self.rng.randrange(SIZE))

    def neighbours(self, cell: Cell, steps: Sequence[Tuple[int, int]]) -> List[Cell]:
        out = [(cell[0] + dr, cell[1] + dc) for dr, dc in steps]
        return [n for n in out if _on_board(*n)]

    # ---------- dots ----------

    def dots(self, count: int, black: bool) -> List[VariantSpec]:
        out: List[VariantSpec] = []
        for _ in range(self.config.sampling_attempts):
            if len(out) >= count:
                break
            a = self.random_cell()
            b = self.rng.choice(self.neighbours(a, _ORTHOGONAL))
            key = (min(a, b), max(a, b))
            if key in self.pairs:
                continue
            da, db = self.digit(a), self.digit(b)
            if black and (da == 2 * db or db == 2 * da):
                out.append(KropkiBlack(key[0], key[1]))
            elif not black and abs(da - db) == 1:
                out.append(KropkiWhite(key[0], key[1]))
            else:
                continue
            self.pairs.add(key)
        return out

    # ---------- lines ----------

    def thermo(self) -> Optional[Thermo]:
        cfg = self.config
        length = self.rng.randint(cfg.thermo_min_length, cfg.thermo_max_length)
        start = self.random_cell()
        if start in self.taken:
            return None
        path = [start]
        while len(path) < length:
            last = path[-1]
            options = [
                n for n in self.neighbours(last, _KING)
                if n not in self.taken and n not in path and self.digit(n) > self.digit(last)
            ]
            if not options:
                break
            path.append(self.rng.choice(options))
        if len(path) < cfg.thermo_min_length:
            return None
        return Thermo(tuple(path))

    def arrow(self) -> Optional[Arrow]:
        bulb = self.random_cell()
        if bulb in self.taken:
            return None
        target = self.digit(bulb)
        path = [bulb]
        total = 0
        while total < target:
            options = [
                n for n in self.neighbours(path[-1], _KING)
                if n not in self.taken and n not in path and total + self.digit(n) <= target
            ]
            if not options:
                return None
            nxt = self.rng.choice(options)
            path.append(nxt)
            total += self.digit(nxt)
        if len(path) < 2:
            return None
        return Arrow(tuple(path))

    def killer(self) -> Optional[Killer]:
        size = self.rng.randint(2, max(2, self.config.killer_max_cells))
        start = self.random_cell()
        if start in self.taken:
            return None
        cage = [start]
        digits = {self.digit(start)}
        while len(cage) < size:
            frontier = [
                n for cell in cage for n in self.neighbours(cell, _ORTHOGONAL)
                if n not in self.taken and n not in cage and self.digit(n) not in digits
            ]
            if not frontier:
                break
            nxt = self.rng.choice(frontier)
            cage.append(nxt)
            digits.add(self.digit(nxt))
        if len(cage) < 2:
            return None
        return Killer(tuple(cage), sum(digits), True)

    def shapes(self, count: int, make) -> List[VariantSpec]:
        out: List[VariantSpec] = []
        for _ in range(self.config.sampling_attempts):
            if len(out) >= count:
                break
            shape = make()
            if shape is None:
                continue
            cells = shape.cells if isinstance(shape, Killer) else shape.path
            self.taken.update(cells)
            out.append(shape)
        return out


def sample_local_variants(
    solution: Sequence[int],
    rng: random.Random,
    config: Optional[RandomConfig] = None,
) -> List[VariantSpec]:
    """Draw dots, thermometers, arrows and killer cages true for ``solution``.

    Counts are upper bounds: a shape that cannot be placed within
    ``sampling_attempts`` draws is skipped.
    """

    sampler = _Sampler(solution, rng, config or RandomConfig.from_config())
    cfg = sampler.config
    variants: List[VariantSpec] = []
    variants.extend(sampler.shapes(cfg.thermos, sampler.thermo))
    variants.extend(sampler.shapes(cfg.arrows, sampler.arrow))
    variants.extend(sampler.shapes(cfg.killer_cages, sampler.killer))
    variants.extend(sampler.dots(cfg.kropki_white, black=False))
    variants.extend(sampler.dots(cfg.kropki_black, black=True))
    return variants


__all__ = ["RandomConfig", "sample_local_variants"]
