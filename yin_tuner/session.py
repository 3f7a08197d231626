"""Tuner session tying an audio source to the detector, smoother and note mapping."""

from __future__ import annotations
import time
from typing import Optional

from .logging_config import get_logger
from .note_types import NoPitch, NoPitchReason, TunerReading
from .core.events import TunerEvents
from .core.interfaces import IAudioProvider, IPitchDetector
from .detection.smoother import FrequencySmoother
from .detection.yin import YinDetector
from .services.frequency import FrequencyService

logger = get_logger(__name__)


class TunerSession:
    """One tuning session.

    The session owns every piece of mutable state the tuner needs: the audio
    source, the detector (and its scratch arrays), the smoothing history and
    the reference pitch. All processing happens on the thread that calls
    ``process_frame`` or ``run``.
    """

    DEFAULT_FRAME_RATE = 60.0  # frames per second

    def __init__(
        self,
        audio_provider: IAudioProvider,
        detector: Optional[IPitchDetector] = None,
        smoother: Optional[FrequencySmoother] = None,
        frequency_service: Optional[FrequencyService] = None,
        events: Optional[TunerEvents] = None,
    ) -> None:
        """Initialize the session.

        Args:
            audio_provider: Source of frames
            detector: Pitch detector, or None for a default YinDetector
            smoother: Smoother, or None for a default FrequencySmoother
            frequency_service: Note mapping, or None for A4 = 440 Hz
            events: Event hub for readings and errors, or None to create one
        """
        self._audio_provider = audio_provider
        self._detector = detector or YinDetector()
        self._smoother = smoother or FrequencySmoother()
        self._frequency_service = frequency_service or FrequencyService()
        self._events = events or TunerEvents()

        self._running = False
        self._start_time = 0.0

    def start(self) -> None:
        """Start the audio source with a fresh smoothing history."""
        if self._running:
            logger.warning("Tuner session already running")
            return

        self._smoother.reset()
        self._audio_provider.start()
        self._running = True
        self._start_time = time.monotonic()
        logger.info(f"Tuner session started at {self._audio_provider.sample_rate} Hz")

    def stop(self) -> None:
        """Stop the audio source, clear history and reset listeners' display."""
        if not self._running:
            return

        self._running = False
        self._audio_provider.stop()
        self._smoother.reset()
        self._events.emit_reading(
            TunerReading(
                timestamp=time.monotonic() - self._start_time,
                result=NoPitch(NoPitchReason.STOPPED),
            )
        )
        logger.info("Tuner session stopped")

    def process_frame(self, timestamp: Optional[float] = None) -> Optional[TunerReading]:
        """Run one frame through detector, smoother and note mapping.

        Args:
            timestamp: Time of the frame in seconds, or None for time since start

        Returns:
            The reading, or None when the provider had no frame or processing
            failed (the error is logged and emitted as an error event)
        """
        waveform = self._audio_provider.get_waveform()
        if waveform is None:
            return None

        if timestamp is None:
            timestamp = time.monotonic() - self._start_time

        try:
            result = self._detector.detect(waveform, self._audio_provider.sample_rate)
            smoothed = self._smoother.update(result)
            note = self._frequency_service.frequency_to_note(smoothed)
        except Exception as e:
            logger.error(f"Error processing frame at {timestamp:.3f}s: {e}", exc_info=True)
            self._events.emit_error(e)
            return None

        reading = TunerReading(
            timestamp=timestamp, result=result, smoothed_frequency=smoothed, note=note
        )
        self._events.emit_reading(reading)
        return reading

    def run(
        self,
        frame_rate: Optional[float] = DEFAULT_FRAME_RATE,
        duration: Optional[float] = None,
    ) -> int:
        """Process frames at a fixed cadence until stopped.

        The loop ends when ``stop`` is called, ``duration`` seconds pass, or
        the provider stops on its own (e.g. end of file). The session is
        stopped on exit.

        Args:
            frame_rate: Frames per second, or None to process as fast as possible
            duration: Maximum run time in seconds, or None to run until stopped

        Returns:
            Number of frames that produced a reading
        """
        if not self._running:
            self.start()

        interval = 1.0 / frame_rate if frame_rate else 0.0
        deadline = None if duration is None else time.monotonic() + duration
        frames = 0

        try:
            while self._running:
                frame_start = time.monotonic()
                if deadline is not None and frame_start >= deadline:
                    break

                if self.process_frame() is not None:
                    frames += 1
                elif not self._audio_provider.is_running:
                    logger.info("Audio source finished")
                    break

                remaining = interval - (time.monotonic() - frame_start)
                if remaining > 0:
                    time.sleep(remaining)
        finally:
            self.stop()

        logger.info(f"Processed {frames} frames")
        return frames

    @property
    def events(self) -> TunerEvents:
        return self._events

    @property
    def smoother(self) -> FrequencySmoother:
        return self._smoother

    @property
    def frequency_service(self) -> FrequencyService:
        return self._frequency_service

    @property
    def detector(self) -> IPitchDetector:
        return self._detector

    def is_running(self) -> bool:
        """Check if the session is running."""
        return self._running
