"""Single-line console display with a cents gauge."""

from __future__ import annotations
import sys
from typing import Optional, TextIO

from ..note_types import TunerNote, TunerReading
from ..core.interfaces import ITunerDisplay

GAUGE_RANGE = 50  # +/- cents shown on the gauge
NEEDLE_CENTER = 50  # % position for in tune
GAUGE_WIDTH = 41  # characters, odd so there is a centre cell

NO_NOTE_LABEL = "—"


def needle_position(cents: float) -> float:
    """Map a cents offset to a gauge position in percent (50 = in tune).

    Offsets beyond the gauge range are pinned to its ends.
    """
    clamped = max(-GAUGE_RANGE, min(GAUGE_RANGE, cents))
    return NEEDLE_CENTER + (clamped / GAUGE_RANGE) * 50


def tuning_status(note: TunerNote) -> str:
    """Colour class of the needle for a note."""
    if note.in_tune:
        return "in-tune"
    if note.almost_in_tune:
        return "out-of-tune"
    return "very-out-of-tune"


def render_gauge(cents: Optional[float]) -> str:
    """Draw the gauge as text, e.g. ``[----------|---^------]``."""
    cells = ["-"] * GAUGE_WIDTH
    centre = GAUGE_WIDTH // 2
    cells[centre] = "|"
    percent = NEEDLE_CENTER if cents is None else needle_position(cents)
    cells[round(percent / 100 * (GAUGE_WIDTH - 1))] = "^"
    return "[" + "".join(cells) + "]"


def render_reading(note: Optional[TunerNote]) -> str:
    """Format one display line; None gives the reset display."""
    if note is None:
        return f"{NO_NOTE_LABEL:<4} {0.0:7.1f} Hz {'':>9} {render_gauge(None)}"

    return (
        f"{note.display_name:<4} {note.frequency:7.1f} Hz {note.cents:+6.1f} ct "
        f"{render_gauge(note.cents)} {tuning_status(note)}"
    )


class ConsoleDisplay(ITunerDisplay):
    """Redraws one terminal line per reading."""

    def __init__(self, stream: Optional[TextIO] = None, newline: bool = False):
        """Initialize the display.

        Args:
            stream: Where to write, stdout by default
            newline: Print each reading on its own line instead of redrawing
        """
        self._stream = stream or sys.stdout
        self._newline = newline
        self._last_line: Optional[str] = None

    def update(self, reading: TunerReading) -> None:
        line = render_reading(reading.note)
        if line == self._last_line and not self._newline:
            return
        self._last_line = line

        if self._newline:
            self._stream.write(f"{reading.timestamp:8.3f}s  {line}\n")
        else:
            self._stream.write("\r" + line)
        self._stream.flush()

    def close(self) -> None:
        """Move past the redrawn line."""
        if not self._newline and self._last_line is not None:
            self._stream.write("\n")
            self._stream.flush()
