"""Frequency to note mapping with an adjustable reference pitch."""

import numbers

import numpy as np
from typing import ClassVar, Optional

from ..logging_config import get_logger
from ..note_types import TunerNote
from ..note_utils import (
    DEFAULT_REFERENCE_FREQUENCY,
    frequency_to_midi_note,
    midi_note_to_frequency,
    midi_note_to_name,
)

logger = get_logger(__name__)


class FrequencyService:
    """Maps frequencies to the nearest note relative to a reference A4.

    Each session owns its own instance, so changing the reference pitch never
    affects another tuner running in the same process.
    """

    IN_TUNE_CENTS: ClassVar[float] = 5.0
    ALMOST_IN_TUNE_CENTS: ClassVar[float] = 20.0

    def __init__(
        self,
        reference_frequency: float = DEFAULT_REFERENCE_FREQUENCY,
        use_flats: bool = False,
    ) -> None:
        """Initialize the service.

        Args:
            reference_frequency: Frequency of A4 in Hz
            use_flats: If True, name notes with flats (e.g., 'Gb') instead of sharps (e.g., 'F#')
        """
        self.reference_frequency = reference_frequency
        self.use_flats = use_flats

    @property
    def reference_frequency(self) -> float:
        """Get the current reference frequency of A4 in Hz."""
        return self._reference_frequency

    @reference_frequency.setter
    def reference_frequency(self, frequency: float) -> None:
        """Set a new reference frequency for A4.

        Raises:
            ValueError: If the frequency is not a finite number > 0
        """
        if (
            not isinstance(frequency, numbers.Real)
            or not np.isfinite(frequency)
            or frequency <= 0
        ):
            raise ValueError(
                f"Reference frequency must be a finite number > 0, got {frequency}"
            )
        self._reference_frequency = float(frequency)
        logger.debug(f"Reference frequency set to {self._reference_frequency:g}Hz")

    def frequency_to_note(self, frequency: Optional[float]) -> Optional[TunerNote]:
        """Convert a frequency to the nearest note with its cents offset.

        Args:
            frequency: Frequency in Hz, or None

        Returns:
            TunerNote, or None for a missing, non-finite or non-positive frequency
        """
        if frequency is None or not np.isfinite(frequency) or frequency <= 0:
            return None

        midi_note = frequency_to_midi_note(frequency, self._reference_frequency)
        nearest = int(round(midi_note))
        cents = 100.0 * (midi_note - nearest)

        name, octave = midi_note_to_name(nearest, self.use_flats)
        return TunerNote(
            name=name,
            octave=octave,
            cents=cents,
            frequency=float(frequency),
            target_frequency=midi_note_to_frequency(nearest, self._reference_frequency),
            midi_note=nearest,
            in_tune=abs(cents) < self.IN_TUNE_CENTS,
            almost_in_tune=abs(cents) < self.ALMOST_IN_TUNE_CENTS,
        )
