"""User input interface components."""

from .cli import app

__all__ = ["app"]
