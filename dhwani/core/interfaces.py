"""Defines the core interfaces for the Dhwani application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Optional, Callable

import numpy as np

from ..note_types import NoteEvent


class IPitchEstimator(ABC):
    """Interface for single-frame pitch estimation algorithms."""

    @classmethod
    def from_config(cls, config, **overrides) -> "IPitchEstimator":
        """Build from a tuner config; the default takes only ``overrides``."""
        return cls(**overrides)

    @abstractmethod
    def estimate(self, buffer: np.ndarray, sample_rate: float) -> Optional[float]:
        """Return the fundamental frequency of one frame in Hz, or None."""
        pass


class IAudioProvider(ABC):
    """An abstract interface for audio providers."""

    @abstractmethod
    def start(self, on_data_callback: Callable[[bytes], None]) -> None:
        """Starts the audio stream, calling the callback with float32 chunks as bytes."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stops the audio stream."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the audio stream."""
        pass

    @property
    @abstractmethod
    def channels(self) -> int:
        """The number of channels in the audio stream."""
        pass


class ITunerService(ABC):
    """Interface for the service feeding an audio stream through a tuner session."""

    @abstractmethod
    def start(self, on_note_event: Callable[[NoteEvent], None]) -> None:
        """Start the tuner service."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop the tuner service."""
        pass

    @abstractmethod
    def is_running(self) -> bool:
        """True between start() and stop()."""
        pass
