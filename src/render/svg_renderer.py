"""Draw a puzzle grid and its variant markings as SVG using matplotlib.

Only the object-oriented API is used (``Figure`` + ``savefig``); no pyplot
state is touched, so rendering is safe inside a web worker.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Set, Tuple

import matplotlib
from matplotlib.figure import Figure
from matplotlib.patches import Circle, FancyArrowPatch

from contracts.errors import RenderError
from contracts.grid import NN, SIZE, cell_of
from contracts.variants import ARROW, KILLER, KING, KNIGHT, KROPKI_BLACK, KROPKI_WHITE, QUEEN, THERMO
from engine.constraints import Constraint
from project_config import get_section

_LOGGER = logging.getLogger(__name__)

_GLOBAL_LABELS = {KING: "Anti-king", KNIGHT: "Anti-knight", QUEEN: "Queen (9s)"}
_PX_PER_INCH = 72.0

Cell = Tuple[int, int]


@dataclass(frozen=True)
class RenderOptions:
    cell_px: int = 48
    font_scale: float = 0.55
    title: Optional[str] = None

    @classmethod
    def from_config(cls) -> "RenderOptions":
        section = get_section("render", default={})
        return cls(
            cell_px=int(section.get("cell_px", cls.cell_px)),
            font_scale=float(section.get("font_scale", cls.font_scale)),
        )

    def merged(self, overrides: Optional[Mapping[str, Any]]) -> "RenderOptions":
        if not overrides:
            return self
        known = {key: overrides[key] for key in ("cell_px", "font_scale", "title") if key in overrides}
        return replace(self, **known)


def _centre(cell: Cell) -> Tuple[float, float]:
    r, c = cell
    return c + 0.5, SIZE - r - 0.5


class SvgRenderer:
    """Renderer port implementation producing a standalone SVG document."""

    def __init__(self, options: Optional[RenderOptions] = None, render_version: Optional[int] = None) -> None:
        self.options = options or RenderOptions.from_config()
        if render_version is None:
            render_version = int(get_section("render.render_version", default=1))
        self.render_version = render_version

    def render(
        self,
        puzzle_text: str,
        constraints: Sequence[Constraint],
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        if len(puzzle_text) != NN:
            raise RenderError("puzzle text must have 81 characters")
        opts = self.options.merged(options)
        try:
            return self._draw(puzzle_text, constraints, opts)
        except (ValueError, TypeError, RuntimeError, OSError) as exc:
            raise RenderError(f"failed to render puzzle: {exc}") from exc

    # ---------- drawing ----------

    def _draw(self, puzzle_text: str, constraints: Sequence[Constraint], opts: RenderOptions) -> str:
        globals_seen: List[str] = []
        for con in constraints:
            if con.kind in _GLOBAL_LABELS and con.kind not in globals_seen:
                globals_seen.append(con.kind)
        captions: List[Tuple[str, float]] = []
        if opts.title:
            captions.append((opts.title, 0.8))
        if globals_seen:
            captions.append((" / ".join(_GLOBAL_LABELS[kind] for kind in globals_seen), 0.6))

        side_in = opts.cell_px * SIZE / _PX_PER_INCH
        extra_in = len(captions) * opts.cell_px * 0.6 / _PX_PER_INCH
        fig = Figure(figsize=(side_in, side_in + extra_in))
        ax = fig.add_axes([0.0, 0.0, 1.0, side_in / (side_in + extra_in)])
        ax.set_xlim(0, SIZE)
        ax.set_ylim(0, SIZE)
        ax.set_aspect("equal")
        ax.axis("off")

        font_pt = opts.cell_px * opts.font_scale
        for con in constraints:
            if con.kind == KILLER:
                self._draw_killer(ax, con, font_pt)
            elif con.kind == THERMO:
                self._draw_thermo(ax, con)
            elif con.kind == ARROW:
                self._draw_arrow(ax, con)
        self._draw_lines(ax)
        for con in constraints:
            if con.kind in (KROPKI_WHITE, KROPKI_BLACK):
                self._draw_dot(ax, con)
        self._draw_givens(ax, puzzle_text, font_pt)

        band = extra_in / (side_in + extra_in)
        for row, (text, scale) in enumerate(captions):
            y = 1.0 - (row + 0.5) * band / len(captions)
            fig.text(0.5, y, text, ha="center", va="center", fontsize=font_pt * scale)

        buffer = io.StringIO()
        with matplotlib.rc_context({"svg.fonttype": "none", "svg.hashsalt": "puzzle"}):
            fig.savefig(buffer, format="svg", metadata={"Date": None})
        return buffer.getvalue()

    @staticmethod
    def _draw_lines(ax) -> None:
        for i in range(SIZE + 1):
            lw = 2.5 if i % 3 == 0 else 0.8
            ax.plot([i, i], [0, SIZE], color="black", linewidth=lw, solid_capstyle="projecting")
            ax.plot([0, SIZE], [i, i], color="black", linewidth=lw, solid_capstyle="projecting")

    @staticmethod
    def _draw_givens(ax, puzzle_text: str, font_pt: float) -> None:
        for idx, ch in enumerate(puzzle_text):
            if ch in ".0":
                continue
            x, y = _centre(cell_of(idx))
            ax.text(x, y, ch, ha="center", va="center", fontsize=font_pt)

    @staticmethod
    def _draw_dot(ax, con: Constraint) -> None:
        (ax_, ay), (bx, by) = (_centre(cell) for cell in con.cells)
        face = "black" if con.kind == KROPKI_BLACK else "white"
        ax.add_patch(Circle(((ax_ + bx) / 2, (ay + by) / 2), 0.12, facecolor=face, edgecolor="black",
                            linewidth=1.0, zorder=5))

    @staticmethod
    def _draw_thermo(ax, con: Constraint) -> None:
        points = [_centre(cell) for cell in con.cells]
        ax.add_patch(Circle(points[0], 0.35, facecolor="#c8c8c8", edgecolor="none", zorder=1))
        if len(points) > 1:
            xs, ys = zip(*points)
            ax.plot(xs, ys, color="#c8c8c8", linewidth=10, solid_capstyle="round", zorder=1)

    @staticmethod
    def _draw_arrow(ax, con: Constraint) -> None:
        points = [_centre(cell) for cell in con.cells]
        ax.add_patch(Circle(points[0], 0.38, facecolor="white", edgecolor="#707070", linewidth=1.5, zorder=2))
        for start, end in zip(points, points[1:]):
            last = end == points[-1]
            ax.add_patch(FancyArrowPatch(start, end, arrowstyle="-|>" if last else "-",
                                         mutation_scale=12, color="#707070", linewidth=1.5,
                                         shrinkA=14 if start == points[0] else 0, shrinkB=4 if last else 0,
                                         zorder=1))

    @staticmethod
    def _draw_killer(ax, con: Constraint, font_pt: float) -> None:
        cells: Set[Cell] = set(con.cells)
        inset = 0.08
        for r, c in sorted(cells):
            left, right = c + inset, c + 1 - inset
            top, bottom = SIZE - r - inset, SIZE - r - 1 + inset
            edges: Dict[Cell, Tuple[Tuple[float, float], Tuple[float, float]]] = {
                (r - 1, c): ((left, top), (right, top)),
                (r + 1, c): ((left, bottom), (right, bottom)),
                (r, c - 1): ((left, bottom), (left, top)),
                (r, c + 1): ((right, bottom), (right, top)),
            }
            for neighbour, (p, q) in edges.items():
                if neighbour not in cells:
                    ax.plot([p[0], q[0]], [p[1], q[1]], color="black", linewidth=0.8, linestyle=(0, (3, 2)))
        if con.total is not None:
            r, c = min(cells)
            ax.text(c + 0.1, SIZE - r - 0.1, str(con.total), ha="left", va="top",
                    fontsize=font_pt * 0.35, zorder=4)


__all__ = ["RenderOptions", "SvgRenderer"]
