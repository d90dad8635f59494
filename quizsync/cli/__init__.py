"""Command-line interface for quizsync."""

from .main import main

__all__ = ["main"]
