import numpy as np
import pytest


def make_sine(frequency, sample_rate=44100, length=4096, amplitude=0.5, phase=0.0):
    """Pure sine frame as float32, the format the audio providers deliver."""
    t = np.arange(length) / sample_rate
    return (amplitude * np.sin(2 * np.pi * frequency * t + phase)).astype(np.float32)


@pytest.fixture
def sine():
    return make_sine
