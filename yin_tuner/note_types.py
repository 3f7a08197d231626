"""Type definitions for the yin_tuner project."""

from enum import Enum
from typing import Optional, Union
from dataclasses import dataclass


@dataclass(frozen=True)
class Detected:
    """A pitch found in one audio frame."""

    frequency: float  # Frequency in Hz
    confidence: float  # CMNDF value at the chosen lag, lower is better

    def __str__(self):
        return f"{self.frequency:.2f}Hz (cmndf {self.confidence:.3f})"


class NoPitchReason(Enum):
    """Why a frame produced no pitch."""

    EMPTY_FRAME = "empty frame"
    INVALID_SAMPLES = "non-finite samples"
    SILENCE = "silence"
    FRAME_TOO_SHORT = "frame too short for lag range"
    OUT_OF_RANGE = "frequency out of range"
    STOPPED = "session stopped"


@dataclass(frozen=True)
class NoPitch:
    """No pitch was found in one audio frame."""

    reason: NoPitchReason

    def __str__(self):
        return f"no pitch ({self.reason.value})"


PitchResult = Union[Detected, NoPitch]


@dataclass
class TunerNote:
    """Represents a frequency mapped onto the nearest equal-tempered note."""

    name: str  # Note name without octave (e.g., 'A', 'C#')
    octave: int  # Scientific pitch octave (A4 -> 4)
    cents: float  # Offset from the target note, -50 to +50
    frequency: float  # Measured frequency in Hz
    target_frequency: float  # Frequency of the nearest note in Hz
    midi_note: int  # MIDI number of the nearest note
    in_tune: bool  # |cents| < 5
    almost_in_tune: bool  # |cents| < 20

    @property
    def display_name(self) -> str:
        return f"{self.name}{self.octave}"


@dataclass
class TunerReading:
    """Everything the tuner produced for one frame."""

    timestamp: float
    result: PitchResult
    smoothed_frequency: Optional[float] = None
    note: Optional[TunerNote] = None
