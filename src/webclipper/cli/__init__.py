"""Command line interface for webclipper."""

from .main import webclipper

__all__ = ["webclipper"]
