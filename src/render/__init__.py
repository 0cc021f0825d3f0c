"""SVG rendering of puzzles and their variant markings."""

from .svg_renderer import RenderOptions, SvgRenderer

__all__ = ["RenderOptions", "SvgRenderer"]
