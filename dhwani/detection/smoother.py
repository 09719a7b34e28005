import math
from collections import deque
from typing import Deque, Optional

from ..errors import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)


class FrequencySmoother:
    """
    Stabilizes a stream of raw pitch estimates with a median-guarded moving average.
    """

    def __init__(self, capacity: int = 5, tolerance_hz: float = 5.0):
        if capacity < 1:
            raise ConfigurationError("Smoothing window capacity must be at least 1")
        if tolerance_hz < 0:
            raise ConfigurationError("Smoothing tolerance must not be negative")

        self._tolerance_hz = tolerance_hz
        self._window: Deque[float] = deque(maxlen=int(capacity))

    @property
    def capacity(self) -> int:
        return self._window.maxlen

    @property
    def window(self):
        """Snapshot of the samples currently held, oldest first."""
        return tuple(self._window)

    def push(self, frequency: Optional[float]) -> Optional[float]:
        """
        Add one raw estimate and return the smoothed frequency.

        A missing estimate leaves the window untouched and returns None, so a
        brief dropout does not erase the history.
        """
        if frequency is None:
            return None
        if not math.isfinite(frequency) or frequency <= 0:
            logger.debug(f"Ignoring invalid frequency sample: {frequency}")
            return None

        self._window.append(float(frequency))

        ordered = sorted(self._window)
        median = ordered[len(ordered) // 2]
        mean = sum(self._window) / len(self._window)

        # A large gap between mean and median means a spike is dragging the mean
        if abs(mean - median) > self._tolerance_hz:
            logger.debug(f"Outlier in window, using median {median:.2f}Hz (mean {mean:.2f}Hz)")
            return median
        return mean

    def clear(self) -> None:
        self._window.clear()
