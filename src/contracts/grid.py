"""Grid text helpers shared by the engine, the generator and the lifecycle."""

from __future__ import annotations

from typing import List, Optional, Sequence

SIZE = 9
NN = SIZE * SIZE
BLANKS = frozenset(".0")
DIGITS = frozenset("123456789")


def index_of(row: int, col: int) -> int:
    return row * SIZE + col


def cell_of(index: int) -> tuple[int, int]:
    return divmod(index, SIZE)


def values_to_text(values: Sequence[Optional[int]]) -> str:
    """Render cell values (``None``/0 for blanks) as an 81-character string."""

    return "".join(str(v) if v else "." for v in values)


def text_to_values(text: str) -> List[int]:
    """Parse grid text into a list of ints, 0 for blanks.  Assumes valid text."""

    return [0 if ch in BLANKS else int(ch) for ch in text]


def count_clues(text: str) -> int:
    return sum(1 for ch in text if ch not in BLANKS)


def is_grid_text(text: object) -> bool:
    return (
        isinstance(text, str)
        and len(text) == NN
        and all(ch in BLANKS or ch in DIGITS for ch in text)
    )


def format_grid(text: str) -> str:
    """Pretty-print grid text as a boxed 9x9 block, used by the CLI."""

    lines = []
    for r in range(SIZE):
        if r % 3 == 0:
            lines.append("+-------+-------+-------+")
        row = []
        for c in range(SIZE):
            ch = text[index_of(r, c)]
            row.append("." if ch in BLANKS else ch)
            if c % 3 == 2:
                row.append("|")
        lines.append("| " + " ".join(row[:-1]) + " |")
    lines.append("+-------+-------+-------+")
    return "\n".join(lines)


__all__ = [
    "BLANKS",
    "DIGITS",
    "NN",
    "SIZE",
    "cell_of",
    "count_clues",
    "format_grid",
    "index_of",
    "is_grid_text",
    "text_to_values",
    "values_to_text",
]
