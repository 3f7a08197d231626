"""Core components for the yin_tuner application."""

# Import interfaces for easier access
from .interfaces import (
    IAudioProvider,
    IPitchDetector,
    ITunerDisplay,
)

__all__ = ["IAudioProvider", "IPitchDetector", "ITunerDisplay"]
