"""File-backed audio input.

Streams any file libsndfile can read, in fixed-size float32 blocks, from a
background thread. Used by ``dhwani analyze`` and by the tests, so nothing
here touches an audio device.
"""

import threading
import time
from typing import Callable, Optional

import soundfile as sf

from ..core.interfaces import IAudioProvider
from ..logger import get_logger

logger = get_logger(__name__)


class WavFileAudioProvider(IAudioProvider):
    """Replays an audio file as if it were a live input."""

    def __init__(
        self,
        file_path: str,
        chunk_size: int,
        loop: bool = False,
        gain: float = 1.0,
        realtime: bool = True,
    ):
        """
        Args:
            file_path: Audio file to stream
            chunk_size: Frames per callback
            loop: Restart from the beginning at end of file
            gain: Linear gain applied to every block
            realtime: Sleep between blocks at the file's own rate; False
                streams as fast as the consumer keeps up

        Raises:
            RuntimeError: If libsndfile cannot open the file
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")

        info = sf.info(file_path)
        self._file_path = file_path
        self._sample_rate = info.samplerate
        self._channels = info.channels
        self._chunk_size = chunk_size
        self._loop = loop
        self._gain = gain
        self._realtime = realtime

        self._on_data_callback: Optional[Callable[[bytes], None]] = None
        self._stop_requested = threading.Event()
        self._finished = threading.Event()
        self._thread: Optional[threading.Thread] = None
        logger.debug(
            f"Opened {file_path}: {info.frames} frames at {info.samplerate}Hz, "
            f"{info.channels} channel(s)"
        )

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def is_running(self) -> bool:
        return self._thread is not None and not self._finished.is_set()

    def start(self, on_data_callback: Callable[[bytes], None]) -> None:
        if self.is_running:
            return
        self._on_data_callback = on_data_callback
        self._stop_requested.clear()
        self._finished.clear()
        self._thread = threading.Thread(
            target=self._stream_blocks, name="dhwani-file-input", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_requested.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the whole file has been delivered or the stream stopped.

        Returns:
            False if ``timeout`` expired first
        """
        return self._finished.wait(timeout)

    def _stream_blocks(self) -> None:
        pause = self._chunk_size / self._sample_rate if self._realtime else 0.0
        try:
            with sf.SoundFile(self._file_path) as f:
                while not self._stop_requested.is_set():
                    for block in f.blocks(self._chunk_size, dtype="float32", always_2d=True):
                        if self._stop_requested.is_set():
                            break
                        if self._gain != 1.0:
                            block *= self._gain
                        self._on_data_callback(block.tobytes())
                        if pause:
                            time.sleep(pause)
                    if not self._loop:
                        break
                    f.seek(0)
        except (OSError, RuntimeError) as e:
            logger.error(f"Streaming {self._file_path} failed: {e}", exc_info=True)
        finally:
            self._finished.set()
            logger.debug(f"Finished streaming {self._file_path}")
