"""YIN fundamental-frequency estimation.

Implementation based on:
de Cheveigné, A., & Kawahara, H. (2002). YIN, a fundamental-frequency
estimator for speech and music. Journal of the Acoustical Society of America,
111(4), 1917-1930. DOI: https://doi.org/10.1121/1.1458024

The pipeline is difference function -> cumulative mean normalization ->
absolute threshold -> parabolic interpolation. Each stage is a module-level
function so it can be inspected on its own; ``YinDetector`` ties them
together and owns the scratch arrays reused between frames.
"""

from __future__ import annotations
import numpy as np
from typing import ClassVar, Optional, Tuple

from ..logging_config import get_logger
from ..note_types import Detected, NoPitch, NoPitchReason, PitchResult
from ..core.interfaces import IPitchDetector

logger = get_logger(__name__)

# The lowest note of a 5 string bass is B0 = 30.9 Hz and the highest note on a
# piano is C8 = 4186 Hz. Reaching 27 Hz at 44.1 kHz needs lags up to ~1633
# samples, so frames of 4096 samples or more are recommended.
MIN_FREQUENCY = 27.0  # Hz
MAX_FREQUENCY = 5000.0  # Hz

# Absolute threshold suggested by the YIN paper
THRESHOLD = 0.1

DIFFERENCE_METHODS = ("fft", "direct")


def lag_range(
    sample_rate: float,
    frame_length: int,
    min_frequency: float = MIN_FREQUENCY,
    max_frequency: float = MAX_FREQUENCY,
) -> Tuple[int, int]:
    """Return the ``(tau_min, tau_max)`` lag bounds for a frame.

    Args:
        sample_rate: Sample rate in Hz
        frame_length: Number of samples in the frame
        min_frequency: Lowest detectable frequency, sets tau_max
        max_frequency: Highest detectable frequency, sets tau_min

    Returns:
        Integer lag bounds. tau_max is clamped to ``frame_length - 1`` and may
        end up below tau_min for short frames.
    """
    tau_min = int(sample_rate // max_frequency)
    tau_max = min(int(sample_rate // min_frequency), frame_length - 1)
    return tau_min, tau_max


def difference_function(
    samples: np.ndarray,
    tau_max: int,
    method: str = "fft",
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Compute the YIN difference function for lags ``0..tau_max``.

    d(tau) = ACF(x, 0) + ACF(x[tau:], 0) - 2 * ACF(x, tau)

    which is the squared difference between the frame and its copy shifted by
    ``tau`` samples, written with autocorrelation terms.

    Args:
        samples: 1-D float64 frame
        tau_max: Largest lag to evaluate, must be < len(samples)
        method: "fft" computes every ACF(x, tau) with one zero-padded real FFT;
            "direct" takes one dot product per lag
        out: Optional array of length ``tau_max + 1`` to write into

    Returns:
        Array ``d`` of length ``tau_max + 1`` with ``d[0] == 0``
    """
    if method not in DIFFERENCE_METHODS:
        raise ValueError(f"Unknown difference method: {method}")

    n = len(samples)
    if not 0 <= tau_max < n:
        raise ValueError(f"tau_max must be in [0, {n - 1}], got {tau_max}")

    df = out if out is not None else np.empty(tau_max + 1, dtype=np.float64)
    df[0] = 0.0
    if tau_max == 0:
        return df

    energy = float(np.dot(samples, samples))

    if method == "fft":
        # suffix[t] = sum(x[t:] ** 2)
        suffix = np.cumsum((samples * samples)[::-1])[::-1]

        # Pad to at least n + tau_max so the circular correlation never wraps
        # into the lags we keep
        size = 1 << int(np.ceil(np.log2(n + tau_max)))
        spectrum = np.fft.rfft(samples, size)
        acf = np.fft.irfft(spectrum * np.conj(spectrum), size)

        df[1:] = energy + suffix[1 : tau_max + 1] - 2.0 * acf[1 : tau_max + 1]
        # FFT round-off can dip a hair below zero on a sum of squares
        np.maximum(df, 0.0, out=df)
    else:
        for tau in range(1, tau_max + 1):
            shifted = samples[tau:]
            df[tau] = (
                energy
                + np.dot(shifted, shifted)
                - 2.0 * np.dot(samples[: n - tau], shifted)
            )

    return df


def cumulative_mean_normalized_difference(
    df: np.ndarray, out: Optional[np.ndarray] = None
) -> np.ndarray:
    """Normalize a difference function by its running mean (CMNDF).

    cmndf[0] = 1 and cmndf[tau] = d(tau) * tau / sum(d[1..tau]). Lags whose
    running sum is still zero (silence) get 1.

    Args:
        df: Difference function from ``difference_function``
        out: Optional array of the same length to write into

    Returns:
        The CMNDF curve
    """
    cmndf = out if out is not None else np.empty_like(df)
    cmndf[:] = 1.0
    if len(df) < 2:
        return cmndf

    cumulative = np.cumsum(df[1:])
    lags = np.arange(1, len(df), dtype=np.float64)
    np.divide(df[1:] * lags, cumulative, out=cmndf[1:], where=cumulative != 0)
    return cmndf


def absolute_threshold(
    cmndf: np.ndarray, threshold: float, tau_min: int, tau_max: int
) -> int:
    """Pick the best lag in ``[tau_min, tau_max)``.

    The first lag under ``threshold`` is followed down to the bottom of its
    valley. Without any crossing the global minimum of the range wins.

    Raises:
        ValueError: If the search range is empty
    """
    if tau_min >= tau_max:
        raise ValueError(f"Empty lag range [{tau_min}, {tau_max})")

    window = cmndf[tau_min:tau_max]
    below = np.flatnonzero(window < threshold)
    if below.size:
        tau = tau_min + int(below[0])
        while tau + 1 < tau_max and cmndf[tau + 1] < cmndf[tau]:
            tau += 1
        return tau

    return tau_min + int(np.argmin(window))


def parabolic_refine(cmndf: np.ndarray, tau: int) -> float:
    """Refine an integer lag to sub-sample precision.

    Fits a parabola through ``(tau - 1, tau, tau + 1)`` and returns its vertex.
    The integer lag comes back unchanged when a neighbour is missing or the
    three points are collinear.
    """
    if tau < 1 or tau + 1 >= len(cmndf):
        return float(tau)

    left = float(cmndf[tau - 1])
    centre = float(cmndf[tau])
    right = float(cmndf[tau + 1])

    denominator = left - 2.0 * centre + right
    if denominator == 0.0:
        return float(tau)

    refined = tau + 0.5 * (left - right) / denominator
    if not np.isfinite(refined):
        return float(tau)
    return refined


class YinDetector(IPitchDetector):
    """Frame-by-frame YIN pitch detector.

    ``detect`` never raises for frame content: every degenerate case comes
    back as ``NoPitch`` with a reason. The difference and CMNDF arrays are kept
    on the instance and reused while the lag range stays the same, so an
    instance must not be shared between threads.
    """

    MIN_FREQUENCY: ClassVar[float] = MIN_FREQUENCY
    MAX_FREQUENCY: ClassVar[float] = MAX_FREQUENCY
    THRESHOLD: ClassVar[float] = THRESHOLD

    def __init__(
        self,
        min_frequency: float = MIN_FREQUENCY,
        max_frequency: float = MAX_FREQUENCY,
        threshold: float = THRESHOLD,
        min_rms: float = 0.0,
        difference_method: str = "fft",
    ) -> None:
        """Initialize the detector.

        Args:
            min_frequency: Lowest frequency to report in Hz
            max_frequency: Highest frequency to report in Hz
            threshold: CMNDF absolute threshold for candidate lags
            min_rms: Frames quieter than this RMS are treated as silence
                (0 disables the gate)
            difference_method: "fft" or "direct", see ``difference_function``
        """
        if min_frequency <= 0:
            raise ValueError("min_frequency must be positive")
        if max_frequency <= min_frequency:
            raise ValueError("max_frequency must be greater than min_frequency")
        if difference_method not in DIFFERENCE_METHODS:
            raise ValueError(f"Unknown difference method: {difference_method}")

        self._min_frequency = float(min_frequency)
        self._max_frequency = float(max_frequency)
        self.threshold = threshold
        self.min_rms = min_rms
        self._difference_method = difference_method

        self._df = np.empty(0, dtype=np.float64)
        self._cmndf = np.empty(0, dtype=np.float64)

        logger.info(
            f"YIN detector initialized: range={self._min_frequency:g}-{self._max_frequency:g}Hz, "
            f"threshold={self._threshold}, method={difference_method}"
        )

    def lag_range(self, sample_rate: float, frame_length: int) -> Tuple[int, int]:
        """Lag bounds for this detector's frequency range."""
        return lag_range(
            sample_rate, frame_length, self._min_frequency, self._max_frequency
        )

    def detect(self, frame: np.ndarray, sample_rate: float) -> PitchResult:
        """Estimate the pitch of one frame.

        Args:
            frame: Time-domain samples (1-D; the first channel of 2-D input is used)
            sample_rate: Sample rate of the frame in Hz

        Returns:
            ``Detected(frequency, confidence)`` or ``NoPitch(reason)``

        Raises:
            ValueError: If sample_rate is not positive
        """
        if not sample_rate > 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate}")

        samples = np.asarray(frame, dtype=np.float64)
        if samples.ndim > 1:
            samples = samples[:, 0]

        n = len(samples)
        if n == 0:
            return NoPitch(NoPitchReason.EMPTY_FRAME)

        energy = float(np.dot(samples, samples))
        if not np.isfinite(energy):
            logger.debug("Frame contains non-finite samples")
            return NoPitch(NoPitchReason.INVALID_SAMPLES)
        if energy == 0.0 or np.sqrt(energy / n) < self._min_rms:
            return NoPitch(NoPitchReason.SILENCE)

        tau_min, tau_max = self.lag_range(sample_rate, n)
        if tau_min >= tau_max:
            logger.debug(
                f"Frame of {n} samples too short for lags [{tau_min}, {tau_max}]"
            )
            return NoPitch(NoPitchReason.FRAME_TOO_SHORT)

        df, cmndf = self._scratch(tau_max + 1)
        difference_function(samples, tau_max, self._difference_method, out=df)
        cumulative_mean_normalized_difference(df, out=cmndf)

        tau = absolute_threshold(cmndf, self._threshold, tau_min, tau_max)
        confidence = float(cmndf[tau])
        refined = parabolic_refine(cmndf, tau)

        if refined <= 0:
            return NoPitch(NoPitchReason.OUT_OF_RANGE)

        frequency = sample_rate / refined
        if not self._min_frequency <= frequency <= self._max_frequency:
            logger.debug(
                f"Rejected {frequency:.2f}Hz at lag {refined:.2f} (cmndf {confidence:.3f})"
            )
            return NoPitch(NoPitchReason.OUT_OF_RANGE)

        logger.debug(
            f"Detected {frequency:.2f}Hz at lag {refined:.2f} (cmndf {confidence:.3f})"
        )
        return Detected(frequency=float(frequency), confidence=confidence)

    def _scratch(self, size: int) -> Tuple[np.ndarray, np.ndarray]:
        """Return the reusable df/cmndf arrays, reallocating on a size change."""
        if self._df.shape[0] != size:
            self._df = np.empty(size, dtype=np.float64)
            self._cmndf = np.empty(size, dtype=np.float64)
        return self._df, self._cmndf

    # Property getters and setters
    @property
    def min_frequency(self) -> float:
        """Lowest reported frequency in Hz."""
        return self._min_frequency

    @property
    def max_frequency(self) -> float:
        """Highest reported frequency in Hz."""
        return self._max_frequency

    @property
    def difference_method(self) -> str:
        return self._difference_method

    @property
    def threshold(self) -> float:
        """Get the CMNDF absolute threshold."""
        return self._threshold

    @threshold.setter
    def threshold(self, value: float) -> None:
        """Set the CMNDF absolute threshold."""
        if not 0.0 < value <= 1.0:
            raise ValueError("threshold must be in (0.0, 1.0]")
        self._threshold = float(value)

    @property
    def min_rms(self) -> float:
        """Get the RMS level under which frames count as silence."""
        return self._min_rms

    @min_rms.setter
    def min_rms(self, value: float) -> None:
        """Set the silence gate."""
        if value < 0:
            raise ValueError("min_rms must not be negative")
        self._min_rms = float(value)
