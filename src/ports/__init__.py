"""Port facades: resolve the configured engine and renderer bindings."""

from __future__ import annotations

import logging
from typing import Any

from project_config import get_section

from ._loader import load_target
from .engine_port import EngineAdapter, EnginePort
from .renderer_port import RendererPort

_LOGGER = logging.getLogger(__name__)

_DEFAULT_ENGINE = "ports.engine_port:EngineAdapter"
_DEFAULT_RENDERER = "render.svg_renderer:SvgRenderer"


def _instantiate(role: str, default: str) -> Any:
    target = str(get_section(f"ports.{role}", default=default))
    factory = load_target(target)
    _LOGGER.debug("Resolved %s port to %s", role, target)
    return factory()


def resolve_engine() -> EnginePort:
    """Instantiate the engine named by ``[ports] engine``."""

    return _instantiate("engine", _DEFAULT_ENGINE)


def resolve_renderer() -> RendererPort:
    """Instantiate the renderer named by ``[ports] renderer``."""

    return _instantiate("renderer", _DEFAULT_RENDERER)


__all__ = [
    "EngineAdapter",
    "EnginePort",
    "RendererPort",
    "resolve_engine",
    "resolve_renderer",
]
