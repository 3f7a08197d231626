"""Factory for creating yin_tuner components."""

from typing import Optional, Dict, Type

from ..logging_config import get_logger
from ..detection.yin import YinDetector
from ..detection.smoother import FrequencySmoother
from ..services.audio_providers import LiveAudioProvider, WavFileAudioProvider
from ..services.frequency import FrequencyService
from ..session import TunerSession
from .config import ConfigManager
from .interfaces import IAudioProvider, IPitchDetector

logger = get_logger(__name__)


class ComponentFactory:
    """Builds tuner components from stored configuration plus overrides."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

        # Register default component implementations
        self.detector_classes: Dict[str, Type[IPitchDetector]] = {
            "yin": YinDetector,
        }

    def create_detector(self, implementation: str = "yin", **kwargs) -> IPitchDetector:
        """Create a pitch detector.

        Args:
            implementation: Name of the implementation to use
            **kwargs: Parameters overriding the "detector" configuration

        Returns:
            Pitch detector instance

        Raises:
            ValueError: If the implementation is not registered
        """
        if implementation not in self.detector_classes:
            raise ValueError(f"Unknown pitch detector implementation: {implementation}")

        config = self.config_manager.get_config("detector")
        config.update(kwargs)

        instance = self.detector_classes[implementation](**config)
        logger.info(f"Created pitch detector: {implementation}")
        return instance

    def create_smoother(self, **kwargs) -> FrequencySmoother:
        """Create a frequency smoother from the "smoother" configuration."""
        config = self.config_manager.get_config("smoother")
        config.update(kwargs)
        return FrequencySmoother(**config)

    def create_frequency_service(self, **kwargs) -> FrequencyService:
        """Create the note mapping from the "tuning" configuration."""
        config = self.config_manager.get_config("tuning")
        config.update(kwargs)
        return FrequencyService(**config)

    def create_live_audio_provider(self, **kwargs) -> LiveAudioProvider:
        """Create a microphone provider from the "audio_input" configuration."""
        config = self.config_manager.get_config("audio_input")
        config.update(kwargs)
        return LiveAudioProvider(**config)

    def create_file_audio_provider(
        self, file_path: str, **kwargs
    ) -> WavFileAudioProvider:
        """Create a file provider; frame_size defaults to the "audio_input" one."""
        kwargs.setdefault(
            "frame_size", self.config_manager.get_config("audio_input")["frame_size"]
        )
        return WavFileAudioProvider(file_path, **kwargs)

    def create_session(
        self,
        audio_provider: IAudioProvider,
        detector: Optional[IPitchDetector] = None,
        smoother: Optional[FrequencySmoother] = None,
        frequency_service: Optional[FrequencyService] = None,
    ) -> TunerSession:
        """Create a tuner session, filling in configured defaults.

        Args:
            audio_provider: Source of frames
            detector: Detector, or None to create one from configuration
            smoother: Smoother, or None to create one from configuration
            frequency_service: Note mapping, or None to create one from configuration

        Returns:
            A stopped TunerSession
        """
        session = TunerSession(
            audio_provider=audio_provider,
            detector=detector or self.create_detector(),
            smoother=smoother or self.create_smoother(),
            frequency_service=frequency_service or self.create_frequency_service(),
        )
        logger.info("Created tuner session")
        return session
