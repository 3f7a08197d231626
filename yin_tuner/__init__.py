"""yin_tuner: real-time YIN pitch detection with a note and cents readout."""

__version__ = "0.1.0"

from .note_types import Detected, NoPitch, NoPitchReason, PitchResult, TunerNote, TunerReading
from .detection import FrequencySmoother, YinDetector
from .services.frequency import FrequencyService
from .session import TunerSession

__all__ = [
    "Detected",
    "NoPitch",
    "NoPitchReason",
    "PitchResult",
    "TunerNote",
    "TunerReading",
    "FrequencySmoother",
    "YinDetector",
    "FrequencyService",
    "TunerSession",
]
