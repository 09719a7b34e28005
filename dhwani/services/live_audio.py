"""Microphone input through PortAudio.

Kept apart from :mod:`dhwani.services.audio_providers` because importing
sounddevice fails on machines without the PortAudio library.
"""

from typing import Callable, List, Optional, Tuple

import numpy as np
import sounddevice as sd

from ..core.interfaces import IAudioProvider
from ..logger import get_logger

logger = get_logger(__name__)


def list_input_devices() -> List[Tuple[int, str, float]]:
    """(device id, name, default sample rate) of every device with inputs."""
    return [
        (index, device["name"], device["default_samplerate"])
        for index, device in enumerate(sd.query_devices())
        if device["max_input_channels"] > 0
    ]


class LiveAudioProvider(IAudioProvider):
    """Delivers float32 blocks from an input device as they are recorded."""

    def __init__(
        self,
        device_id: Optional[int] = None,
        sample_rate: int = 44100,
        channels: int = 1,
        chunk_size: int = 1024,
    ):
        """
        Args:
            device_id: PortAudio device index, None for the system default
            sample_rate: Capture rate in Hz
            channels: Channels to record; the service mixes them down
            chunk_size: Frames per callback
        """
        self._device_id = device_id
        self._sample_rate = sample_rate
        self._channels = channels
        self._chunk_size = chunk_size
        self._on_data: Optional[Callable[[bytes], None]] = None
        self._stream: Optional[sd.InputStream] = None

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def start(self, on_data_callback: Callable[[bytes], None]) -> None:
        if self._stream is not None:
            return
        self._on_data = on_data_callback
        stream = sd.InputStream(
            device=self._device_id,
            samplerate=self._sample_rate,
            channels=self._channels,
            blocksize=self._chunk_size,
            dtype="float32",
            callback=self._on_block,
        )
        stream.start()
        self._stream = stream
        logger.info(
            f"Recording from device {self._device_id if self._device_id is not None else 'default'} "
            f"at {self._sample_rate}Hz, {self._channels} channel(s), blocks of {self._chunk_size}"
        )

    def stop(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()
        logger.info("Recording stopped")

    def _on_block(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        # Runs on the PortAudio thread
        if status:
            logger.warning(f"Input stream status: {status}")
        if self._on_data is not None:
            self._on_data(indata.tobytes())
