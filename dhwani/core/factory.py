"""Factory for creating Dhwani components."""

from typing import Optional

from ..logger import get_logger
from ..detection.pitch_estimator import build_estimator
from ..session import TunerSession
from ..services.audio_providers import WavFileAudioProvider
from ..services.tuner_service import TunerService
from .config import ConfigManager, TunerConfig
from .interfaces import IPitchEstimator, IAudioProvider

logger = get_logger(__name__)


class ComponentFactory:
    """Factory for creating Dhwani components."""

    def __init__(self, config_manager: Optional[ConfigManager] = None):
        """Initialize the component factory.

        Args:
            config_manager: Configuration manager, or None to create a default one
        """
        self.config_manager = config_manager or ConfigManager()

    def tuner_config(self, **overrides) -> TunerConfig:
        """Stored tuner configuration with ``overrides`` applied (None values ignored)."""
        return self.config_manager.get_tuner_config(**overrides)

    def create_pitch_estimator(
        self, config: Optional[TunerConfig] = None, **kwargs
    ) -> IPitchEstimator:
        """Create the pitch estimator named by ``config.estimator``.

        Args:
            config: Tuner configuration, or None for the stored one
            **kwargs: Constructor arguments overriding those taken from config

        Returns:
            Pitch estimator instance
        """
        config = config or self.tuner_config()
        instance = build_estimator(config, **kwargs)
        logger.info(f"Created pitch estimator: {config.estimator}")
        return instance

    def create_session(self, config: Optional[TunerConfig] = None, **overrides) -> TunerSession:
        """Create a tuner session from the stored configuration plus overrides."""
        config = config or self.tuner_config(**overrides)
        return TunerSession(config, estimator=self.create_pitch_estimator(config))

    def create_audio_input(self, file_path: Optional[str] = None, **kwargs) -> IAudioProvider:
        """Create an audio provider.

        Args:
            file_path: Stream this file instead of a live input device
            **kwargs: Additional parameters to pass to the constructor

        Returns:
            Audio provider instance
        """
        config = self.config_manager.get_config("audio_input")
        if file_path is not None:
            params = {"chunk_size": config["chunk_size"], **kwargs}
            instance = WavFileAudioProvider(file_path, **params)
            logger.info(f"Created file audio input: {file_path}")
            return instance

        # Imported here so that file-based use works without PortAudio
        from ..services.live_audio import LiveAudioProvider

        params = {
            "sample_rate": config["sample_rate"],
            "channels": config["channels"],
            "chunk_size": config["chunk_size"],
        }
        params.update(kwargs)
        instance = LiveAudioProvider(**params)
        logger.info(f"Created live audio input: device={params.get('device_id')}")
        return instance

    def create_tuner_service(
        self,
        audio_input: Optional[IAudioProvider] = None,
        session: Optional[TunerSession] = None,
        **overrides,
    ) -> TunerService:
        """Create a tuner service, building any missing collaborators."""
        if audio_input is None:
            audio_input = self.create_audio_input()
        if session is None:
            session = self.create_session(**overrides)

        frame_size = self.config_manager.get_config("audio_input")["frame_size"]
        instance = TunerService(audio_input, session=session, frame_size=frame_size)

        logger.info("Created tuner service")
        return instance
