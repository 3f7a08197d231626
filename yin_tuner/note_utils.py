"""Utility functions for working with musical notes and frequencies.

MIDI numbering: C-1 = 0, C0 = 12, A4 = 69, C8 = 108.
"""

import numpy as np
from typing import List, Tuple

REFERENCE_MIDI = 69  # MIDI note number of A4
DEFAULT_REFERENCE_FREQUENCY = 440.0  # Hz

NOTE_NAMES_SHARPS: List[str] = [
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
]
NOTE_NAMES_FLATS: List[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]


def frequency_to_midi_note(
    frequency: float, reference_frequency: float = DEFAULT_REFERENCE_FREQUENCY
) -> float:
    """Convert a frequency to a fractional MIDI note number.

    Args:
        frequency: Frequency in Hz (must be positive)
        reference_frequency: Frequency of A4 in Hz

    Returns:
        MIDI note number, e.g. 69.0 for A4 or 69.5 for a quarter tone above it
    """
    return REFERENCE_MIDI + 12 * float(np.log2(frequency / reference_frequency))


def midi_note_to_frequency(
    midi_note: float, reference_frequency: float = DEFAULT_REFERENCE_FREQUENCY
) -> float:
    """Convert a (possibly fractional) MIDI note number to Hz."""
    return reference_frequency * 2.0 ** ((midi_note - REFERENCE_MIDI) / 12.0)


def midi_note_to_name(midi_note: int, use_flats: bool = False) -> Tuple[str, int]:
    """Get the note name and SPN octave for a MIDI note number.

    Args:
        midi_note: Integer MIDI note number
        use_flats: If True, use flat notes (e.g., 'Bb') instead of sharps (e.g., 'A#')

    Returns:
        ``(name, octave)``, e.g. ``("C#", 4)`` for 61

    Note:
        Octave numbers change between B and C (e.g., B3 -> C4)
    """
    names = NOTE_NAMES_FLATS if use_flats else NOTE_NAMES_SHARPS
    return names[midi_note % 12], midi_note // 12 - 1
