"""Defines the core interfaces for the yin_tuner application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

import numpy as np

if TYPE_CHECKING:
    from ..note_types import PitchResult, TunerReading


class IAudioProvider(ABC):
    """Interface for audio sources that hand out one frame per call."""

    @abstractmethod
    def start(self) -> None:
        """Start capturing audio."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing audio and release the device."""
        pass

    @abstractmethod
    def get_waveform(self) -> Optional[np.ndarray]:
        """Return the current frame, or None when no audio is available."""
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Check if audio is running."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the frames in Hz."""
        pass


class IPitchDetector(ABC):
    """Interface for single-frame pitch estimators."""

    @abstractmethod
    def detect(self, frame: np.ndarray, sample_rate: float) -> PitchResult:
        """Estimate the pitch of one frame."""
        pass


class ITunerDisplay(ABC):
    """Interface for anything that shows tuner readings."""

    @abstractmethod
    def update(self, reading: TunerReading) -> None:
        """Show one reading. A reading without a note resets the display."""
        pass
