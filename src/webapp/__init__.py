"""Flask HTTP surface over generation and the puzzle lifecycle."""

from .app import create_app

__all__ = ["create_app"]
