"""Renderer capability consumed by generation and the lifecycle manager."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from engine.constraints import Constraint


class RendererPort(Protocol):
    render_version: int

    def render(
        self,
        puzzle_text: str,
        constraints: Sequence[Constraint],
        options: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Return an SVG document; raise ``RenderError`` on failure."""
        ...


__all__ = ["RendererPort"]
