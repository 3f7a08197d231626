from collections import deque
from typing import ClassVar, Deque, Optional, Tuple

from ..logging_config import get_logger
from ..note_types import Detected, PitchResult

logger = get_logger(__name__)


class FrequencySmoother:
    """
    Turns the frame-by-frame detector output into a steadier reading.

    Confident detections go into a short FIFO window and the output is the
    plain average of that window. Anything else empties the window, so a
    confidence dip drops the reading instead of dragging the average.
    """

    SMOOTHING_FRAMES: ClassVar[int] = 3
    CONFIDENCE_THRESHOLD: ClassVar[float] = 0.15

    def __init__(
        self,
        smoothing_frames: int = SMOOTHING_FRAMES,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
    ):
        if smoothing_frames < 1:
            raise ValueError("smoothing_frames must be at least 1")
        if confidence_threshold <= 0:
            raise ValueError("confidence_threshold must be positive")

        self._confidence_threshold = float(confidence_threshold)
        self._history: Deque[float] = deque(maxlen=smoothing_frames)

    def update(self, result: Optional[PitchResult]) -> Optional[float]:
        """Feed one detector result and get the smoothed frequency.

        Args:
            result: ``Detected``, ``NoPitch`` or None for this frame

        Returns:
            The mean of the accepted frequencies, or None when this frame
            failed the confidence gate (the history is cleared).
        """
        if (
            isinstance(result, Detected)
            and result.confidence < self._confidence_threshold
        ):
            self._history.append(result.frequency)
            return sum(self._history) / len(self._history)

        if self._history:
            logger.debug(f"Gate closed on {result}, dropping {len(self._history)} frames")
        self._history.clear()
        return None

    def reset(self) -> None:
        """Forget all accepted frequencies."""
        self._history.clear()

    @property
    def history(self) -> Tuple[float, ...]:
        """Accepted frequencies, oldest first."""
        return tuple(self._history)

    @property
    def smoothing_frames(self) -> int:
        return self._history.maxlen

    @property
    def confidence_threshold(self) -> float:
        return self._confidence_threshold
