"""Command-line interface for yin_tuner."""

from .main import main

__all__ = ["main"]
