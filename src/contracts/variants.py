"""Variant constraint model and its canonical JSON encoding.

A variant is one extra placement rule layered over the classic row/column/box
rules.  The model is a closed set of frozen dataclasses; ``parse_variants`` and
``to_wire`` convert between them and the wire layout used for persistence::

    {"type": "kropki_white", "a": [r, c], "b": [r, c]}
    {"type": "thermo", "path": [[r, c], ...]}
    {"type": "killer", "cells": [[r, c], ...], "sum": N, "no_repeats": true}
    {"type": "king"}

Only shapes are validated here.  Whether a cell is on the board or two Kropki
cells touch is decided by the engine when the rule is applied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Iterable, List, Mapping, Tuple, Union

from .errors import ValidationError

Cell = Tuple[int, int]

KROPKI_WHITE = "kropki_white"
KROPKI_BLACK = "kropki_black"
THERMO = "thermo"
ARROW = "arrow"
KILLER = "killer"
KING = "king"
KNIGHT = "knight"
QUEEN = "queen"

KINDS = (KROPKI_WHITE, KROPKI_BLACK, THERMO, ARROW, KILLER, KING, KNIGHT, QUEEN)


def _is_index(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _as_cell(value: Any, field: str) -> Cell:
    if isinstance(value, (list, tuple)) and len(value) == 2 and all(_is_index(v) for v in value):
        return (value[0], value[1])
    raise ValueError(f"{field} must be a (row, col) pair of non-negative integers, got {value!r}")


def _as_path(value: Any, field: str) -> Tuple[Cell, ...]:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValueError(f"{field} must be a non-empty sequence of cells")
    return tuple(_as_cell(item, f"{field}[{i}]") for i, item in enumerate(value))


@dataclass(frozen=True)
class _Pair:
    a: Cell
    b: Cell

    def __post_init__(self) -> None:
        object.__setattr__(self, "a", _as_cell(self.a, "a"))
        object.__setattr__(self, "b", _as_cell(self.b, "b"))


@dataclass(frozen=True)
class KropkiWhite(_Pair):
    """Orthogonal neighbours whose digits differ by exactly one."""

    kind: ClassVar[str] = KROPKI_WHITE


@dataclass(frozen=True)
class KropkiBlack(_Pair):
    """Orthogonal neighbours where one digit is double the other."""

    kind: ClassVar[str] = KROPKI_BLACK


@dataclass(frozen=True)
class _Path:
    path: Tuple[Cell, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", _as_path(self.path, "path"))


@dataclass(frozen=True)
class Thermo(_Path):
    """Digits strictly increase from the bulb (first cell) along the path."""

    kind: ClassVar[str] = THERMO


@dataclass(frozen=True)
class Arrow(_Path):
    """The circle (first cell) equals the sum of the shaft cells."""

    kind: ClassVar[str] = ARROW


@dataclass(frozen=True)
class Killer:
    """A cage whose digits add up to ``sum``."""

    cells: Tuple[Cell, ...]
    sum: int
    no_repeats: bool = True

    kind: ClassVar[str] = KILLER

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", _as_path(self.cells, "cells"))
        if not _is_index(self.sum):
            raise ValueError(f"sum must be a non-negative integer, got {self.sum!r}")
        if not isinstance(self.no_repeats, bool):
            raise ValueError(f"no_repeats must be a boolean, got {self.no_repeats!r}")


@dataclass(frozen=True)
class King:
    kind: ClassVar[str] = KING


@dataclass(frozen=True)
class Knight:
    kind: ClassVar[str] = KNIGHT


@dataclass(frozen=True)
class Queen:
    kind: ClassVar[str] = QUEEN


VariantSpec = Union[KropkiWhite, KropkiBlack, Thermo, Arrow, Killer, King, Knight, Queen]


# ---------- decoding ----------


class _Decoder:
    """Collects issues while decoding one element of the constraint list."""

    def __init__(self, item: Mapping[str, Any], path: str) -> None:
        self.item = item
        self.path = path

    def field(self, name: str) -> Any:
        if name not in self.item:
            kind = self.item.get("type")
            raise ValidationError.from_issue(
                "variant.missing_field", f"{kind} missing {name}", f"{self.path}.{name}"
            )
        return self.item[name]

    def cell(self, name: str) -> Cell:
        value = self.field(name)
        return _cell_from_wire(value, f"{self.path}.{name}")

    def cells(self, name: str) -> Tuple[Cell, ...]:
        value = self.field(name)
        where = f"{self.path}.{name}"
        if not isinstance(value, list):
            raise ValidationError.from_issue("variant.bad_shape", f"{name} must be an array of cells", where)
        if not value:
            raise ValidationError.from_issue("variant.bad_shape", f"{name} must have at least one cell", where)
        return tuple(_cell_from_wire(item, f"{where}[{i}]") for i, item in enumerate(value))


def _cell_from_wire(value: Any, where: str) -> Cell:
    if not isinstance(value, list):
        raise ValidationError.from_issue("variant.bad_shape", "cell must be a [row, col] array", where)
    if len(value) != 2:
        raise ValidationError.from_issue("variant.bad_shape", "cell must have two elements", where)
    row, col = value
    if not _is_index(row):
        raise ValidationError.from_issue("variant.bad_shape", "row must be a non-negative integer", f"{where}[0]")
    if not _is_index(col):
        raise ValidationError.from_issue("variant.bad_shape", "col must be a non-negative integer", f"{where}[1]")
    return (row, col)


def _decode_killer(dec: _Decoder) -> Killer:
    cells = dec.cells("cells")
    total = dec.field("sum")
    if not _is_index(total):
        raise ValidationError.from_issue(
            "variant.bad_shape", "killer sum must be a non-negative integer", f"{dec.path}.sum"
        )
    no_repeats = dec.item.get("no_repeats", True)
    if not isinstance(no_repeats, bool):
        raise ValidationError.from_issue(
            "variant.bad_shape", "killer no_repeats must be a boolean", f"{dec.path}.no_repeats"
        )
    return Killer(cells=cells, sum=total, no_repeats=no_repeats)


_DECODERS: Dict[str, Callable[[_Decoder], VariantSpec]] = {
    KROPKI_WHITE: lambda dec: KropkiWhite(dec.cell("a"), dec.cell("b")),
    KROPKI_BLACK: lambda dec: KropkiBlack(dec.cell("a"), dec.cell("b")),
    THERMO: lambda dec: Thermo(dec.cells("path")),
    ARROW: lambda dec: Arrow(dec.cells("path")),
    KILLER: _decode_killer,
    KING: lambda dec: King(),
    KNIGHT: lambda dec: Knight(),
    QUEEN: lambda dec: Queen(),
}


def normalize_constraints_input(wire: Any) -> List[Any]:
    """Accept either a bare list or an object holding a ``constraints`` list."""

    if isinstance(wire, list):
        return list(wire)
    if isinstance(wire, dict) and isinstance(wire.get("constraints"), list):
        return list(wire["constraints"])
    raise ValidationError.from_issue("variant.not_array", "constraints must be a JSON array")


def parse_variant(item: Any, path: str = "$") -> VariantSpec:
    """Decode one wire object into a :data:`VariantSpec`."""

    if not isinstance(item, dict):
        raise ValidationError.from_issue("variant.bad_shape", "constraint must be an object", path)
    kind = item.get("type")
    if not isinstance(kind, str):
        raise ValidationError.from_issue("variant.missing_type", "constraint missing type", f"{path}.type")
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise ValidationError.from_issue(
            "variant.unknown_type", f"unknown constraint type: {kind}", f"{path}.type"
        )
    return decoder(_Decoder(item, path))


def parse_variants(wire: Any) -> List[VariantSpec]:
    """Parse the wire form (list or ``{"constraints": [...]}``) into variants.

    The first malformed element aborts parsing with a
    :class:`~contracts.errors.ValidationError` that names the offending path.
    """

    items = normalize_constraints_input(wire)
    return [parse_variant(item, f"$[{index}]") for index, item in enumerate(items)]


# ---------- encoding ----------


def _cell_to_wire(cell: Cell) -> List[int]:
    return [cell[0], cell[1]]


def variant_to_wire(variant: VariantSpec) -> Dict[str, Any]:
    if isinstance(variant, (KropkiWhite, KropkiBlack)):
        return {"type": variant.kind, "a": _cell_to_wire(variant.a), "b": _cell_to_wire(variant.b)}
    if isinstance(variant, (Thermo, Arrow)):
        return {"type": variant.kind, "path": [_cell_to_wire(c) for c in variant.path]}
    if isinstance(variant, Killer):
        return {
            "type": KILLER,
            "cells": [_cell_to_wire(c) for c in variant.cells],
            "sum": variant.sum,
            "no_repeats": variant.no_repeats,
        }
    if isinstance(variant, (King, Knight, Queen)):
        return {"type": variant.kind}
    raise TypeError(f"Unsupported variant: {variant!r}")


def to_wire(variants: Iterable[VariantSpec]) -> List[Dict[str, Any]]:
    """Structural inverse of :func:`parse_variants`."""

    return [variant_to_wire(v) for v in variants]


# ---------- summaries ----------


def dedupe_tags(tags: Iterable[str]) -> List[str]:
    """Drop repeated tags, keeping the first occurrence of each."""

    return list(dict.fromkeys(tags))


def kind_tags(variants: Iterable[VariantSpec]) -> List[str]:
    """Distinct kind discriminators in order of first appearance."""

    return dedupe_tags(v.kind for v in variants)


__all__ = [
    "ARROW",
    "Arrow",
    "Cell",
    "KILLER",
    "KINDS",
    "KING",
    "KNIGHT",
    "KROPKI_BLACK",
    "KROPKI_WHITE",
    "Killer",
    "King",
    "Knight",
    "KropkiBlack",
    "KropkiWhite",
    "QUEEN",
    "Queen",
    "THERMO",
    "Thermo",
    "VariantSpec",
    "dedupe_tags",
    "kind_tags",
    "normalize_constraints_input",
    "parse_variant",
    "parse_variants",
    "to_wire",
    "variant_to_wire",
]
