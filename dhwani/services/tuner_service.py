from typing import Callable, Optional

import numpy as np

from ..core.events import TunerEvents
from ..core.interfaces import IAudioProvider, ITunerService
from ..logger import get_logger
from ..note_types import NoteEvent
from ..session import TunerSession

logger = get_logger(__name__)


class TunerService(ITunerService):
    """Feeds an audio stream through a tuner session, one analysis frame at a time.

    Incoming chunks are mixed down to mono and appended to a rolling frame of
    ``frame_size`` samples. Once the frame is full, every chunk triggers one
    call to :meth:`TunerSession.process` on the latest ``frame_size`` samples,
    stamped with the stream's own sample clock.
    """

    def __init__(
        self,
        audio_provider: IAudioProvider,
        session: Optional[TunerSession] = None,
        frame_size: int = 2048,
    ) -> None:
        if frame_size < 3:
            raise ValueError("frame_size must be at least 3 samples")

        self._audio_provider = audio_provider
        self._session = session or TunerSession()
        self._frame_size = frame_size
        self._frame = np.zeros(frame_size, dtype=np.float32)
        self._filled = 0
        self._samples_seen = 0
        self._running = False
        self.events = TunerEvents()

    @property
    def session(self) -> TunerSession:
        return self._session

    @property
    def frame_size(self) -> int:
        return self._frame_size

    def start(self, on_note_event: Optional[Callable[[NoteEvent], None]] = None) -> None:
        """Starts the tuner service."""
        if self._running:
            return
        if on_note_event is not None:
            self.events.on_note_event(on_note_event)
        self._running = True
        self._audio_provider.start(self._audio_callback)
        logger.info(
            f"Tuner service started: rate={self._audio_provider.sample_rate} "
            f"frame={self._frame_size}"
        )

    def stop(self) -> None:
        """Stops the tuner service and closes its session."""
        if not self._running:
            return
        self._running = False
        self._audio_provider.stop()
        self._session.close()
        logger.info("Tuner service stopped")

    def is_running(self) -> bool:
        return self._running

    def _audio_callback(self, audio_data: bytes) -> None:
        """Receives audio data from the provider and processes it."""
        if not self._running:
            return
        try:
            self.feed(self._to_mono(audio_data))
        except Exception as e:
            logger.error(f"Error processing audio chunk: {e}", exc_info=True)

    def _to_mono(self, audio_data: bytes) -> np.ndarray:
        # Convert bytes back to a numpy array of float32
        chunk = np.frombuffer(audio_data, dtype=np.float32)

        num_channels = self._audio_provider.channels
        if num_channels > 1 and chunk.size > 0:
            chunk = chunk.reshape(-1, num_channels).mean(axis=1)
        return chunk

    def feed(self, chunk: np.ndarray) -> Optional[NoteEvent]:
        """Push mono samples; run the session once a full frame is available."""
        if chunk.size == 0:
            return None

        self._samples_seen += chunk.size
        if chunk.size >= self._frame_size:
            self._frame[:] = chunk[-self._frame_size:]
            self._filled = self._frame_size
        else:
            self._frame = np.roll(self._frame, -chunk.size)
            self._frame[-chunk.size:] = chunk
            self._filled = min(self._frame_size, self._filled + chunk.size)

        if self._filled < self._frame_size:
            return None

        sample_rate = self._audio_provider.sample_rate
        timestamp = self._samples_seen / sample_rate
        event = self._session.process(self._frame, sample_rate, timestamp)
        if event is None:
            self.events.emit_silence(timestamp)
        else:
            self.events.emit_note_event(event)
        return event
