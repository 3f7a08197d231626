"""Audio sources that hand the tuner one time-domain frame at a time."""

from __future__ import annotations
import threading
from typing import Any, ClassVar, List, Optional

import numpy as np
import soundfile as sf

from ..logging_config import get_logger
from ..core.interfaces import IAudioProvider

logger = get_logger(__name__)


class AudioInputError(RuntimeError):
    """Raised when an audio device or file cannot be opened."""


def load_sounddevice() -> Any:
    """Import sounddevice on first use.

    Deferred because importing it loads PortAudio, which machines without an
    audio stack (CI, file-only analysis) do not have.
    """
    import sounddevice

    return sounddevice


class LiveAudioProvider(IAudioProvider):
    """Provides live audio from an input device using sounddevice.

    The stream callback keeps a rolling window of the most recent
    ``frame_size`` samples, like an analyser node; ``get_waveform`` returns a
    copy of that window. The window starts out as silence.
    """

    SAMPLE_RATE: ClassVar[int] = 44100  # Hz
    FRAME_SIZE: ClassVar[int] = 4096  # Samples per analysis frame
    BLOCK_SIZE: ClassVar[int] = 1024  # Samples per stream callback
    FALLBACK_SAMPLE_RATES: ClassVar[List[int]] = [48000, 44100, 22050, 16000]

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: Optional[int] = None,
        frame_size: Optional[int] = None,
        channels: int = 1,
        block_size: Optional[int] = None,
    ) -> None:
        """Initialize the provider.

        Args:
            device_id: Audio input device ID, or None for the default device
            sample_rate: Preferred sample rate in Hz
            frame_size: Length of the frames handed to the detector
            channels: Channels to open; only the first one is analysed
            block_size: Samples per stream callback
        """
        self._device_id = device_id
        self._sample_rate = sample_rate or self.SAMPLE_RATE
        self._frame_size = frame_size or self.FRAME_SIZE
        self._channels = channels
        self._block_size = block_size or self.BLOCK_SIZE

        self._stream: Any = None
        self._window = np.zeros(self._frame_size, dtype=np.float32)
        self._lock = threading.Lock()
        self._running = False

    def start(self) -> None:
        """Open the input stream, trying fallback sample rates if needed.

        Raises:
            AudioInputError: If no sample rate works with the device
        """
        if self._running:
            logger.warning("Audio input already running")
            return

        rates = [self._sample_rate] + [
            r for r in self.FALLBACK_SAMPLE_RATES if r != self._sample_rate
        ]

        try:
            sd = load_sounddevice()
        except OSError as e:
            raise AudioInputError(f"Audio backend unavailable: {e}") from e

        last_error: Optional[Exception] = None
        for rate in rates:
            try:
                logger.info(f"Trying to start audio input with sample rate: {rate} Hz")
                self._stream = sd.InputStream(
                    device=self._device_id,
                    channels=self._channels,
                    samplerate=rate,
                    blocksize=self._block_size,
                    callback=self._audio_callback,
                    dtype="float32",
                )
                self._stream.start()
            except Exception as e:
                logger.warning(f"Failed to start audio input with sample rate {rate} Hz: {e}")
                last_error = e
                self._close_stream()
                continue

            self._sample_rate = rate
            with self._lock:
                self._window.fill(0.0)
            self._running = True
            logger.info(
                f"Audio input started: device={self._device_id}, rate={rate}Hz, "
                f"frame_size={self._frame_size}"
            )
            return

        raise AudioInputError(
            f"Could not start audio input on device {self._device_id}: {last_error}"
        )

    def stop(self) -> None:
        """Stop the stream and release the device."""
        if not self._running:
            return
        self._close_stream()
        self._running = False
        logger.info("Audio input stopped")

    def get_waveform(self) -> Optional[np.ndarray]:
        """Return a copy of the latest ``frame_size`` samples."""
        if not self._running:
            return None
        with self._lock:
            return self._window.copy()

    def _audio_callback(
        self, indata: np.ndarray, _frames: int, _time_info, status
    ) -> None:
        """Append the new block to the rolling window.

        Runs on the audio thread: it only copies samples.
        """
        if status:
            logger.warning(f"Audio callback status: {status}")

        mono = indata[:, 0] if indata.ndim > 1 else indata
        self._push(mono)

    def _push(self, samples: np.ndarray) -> None:
        n = len(samples)
        if n == 0:
            return
        with self._lock:
            if n >= self._frame_size:
                self._window[:] = samples[-self._frame_size :]
            else:
                self._window[:-n] = self._window[n:]
                self._window[-n:] = samples

    def _close_stream(self) -> None:
        if self._stream is None:
            return
        try:
            self._stream.stop()
            self._stream.close()
        except Exception as e:
            logger.error(f"Error closing audio stream: {e}")
        self._stream = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def frame_size(self) -> int:
        return self._frame_size


class WavFileAudioProvider(IAudioProvider):
    """Provides frames read from an audio file with soundfile.

    Each ``get_waveform`` call returns the next ``frame_size`` samples and
    advances by ``hop_size``. The last partial frame is zero-padded. When the
    file is exhausted the provider stops itself unless ``loop`` is set.
    """

    def __init__(
        self,
        file_path: str,
        frame_size: int = LiveAudioProvider.FRAME_SIZE,
        hop_size: Optional[int] = None,
        loop: bool = False,
        gain: float = 1.0,
    ):
        if frame_size < 1:
            raise ValueError("frame_size must be at least 1")
        if hop_size is not None and hop_size < 1:
            raise ValueError("hop_size must be at least 1")

        self._file_path = file_path
        self._frame_size = frame_size
        self._hop_size = hop_size or frame_size
        self._loop = loop
        self._gain = gain
        self._position = 0
        self._running = False

        try:
            data, self._sample_rate = sf.read(
                file_path, dtype="float32", always_2d=True
            )
        except (RuntimeError, OSError) as e:
            raise AudioInputError(f"Could not read audio file {file_path}: {e}") from e

        # Mix down to mono
        self._samples = data.mean(axis=1).astype(np.float32)
        if self._gain != 1.0:
            self._samples *= self._gain

        logger.info(
            f"Loaded {file_path}: {len(self._samples)} samples at {self._sample_rate}Hz "
            f"({data.shape[1]} channel(s))"
        )

    def start(self) -> None:
        self._position = 0
        self._running = True

    def stop(self) -> None:
        self._running = False

    def get_waveform(self) -> Optional[np.ndarray]:
        if not self._running:
            return None

        total = len(self._samples)
        if self._position >= total:
            if self._loop and total > 0:
                self._position = 0
            else:
                self._running = False
                return None

        frame = self._samples[self._position : self._position + self._frame_size]
        if len(frame) < self._frame_size:
            frame = np.pad(frame, (0, self._frame_size - len(frame)))
        else:
            frame = frame.copy()

        self._position += self._hop_size
        return frame

    @property
    def is_running(self) -> bool:
        """Returns True while frames are left to read."""
        return self._running

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def position_seconds(self) -> float:
        """Start time of the next frame within the file."""
        return self._position / self._sample_rate
