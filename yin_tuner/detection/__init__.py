"""Pitch detection: the YIN estimator and the smoothing layer behind it."""

from .yin import YinDetector, lag_range
from .smoother import FrequencySmoother

__all__ = ["YinDetector", "FrequencySmoother", "lag_range"]
