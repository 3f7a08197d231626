"""Presentation of tuner readings."""

from .console import ConsoleDisplay, needle_position, render_reading, tuning_status

__all__ = ["ConsoleDisplay", "needle_position", "render_reading", "tuning_status"]
