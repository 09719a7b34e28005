"""Tuning session: the per-frame pipeline and the state it carries between frames."""

from __future__ import annotations

import time
from typing import Optional

import numpy as np

from .core.config import TunerConfig
from .core.interfaces import IPitchEstimator
from .detection.note_mapper import NoteMapper
from .detection.note_tracker import NoteTracker
from .detection.pitch_estimator import build_estimator
from .detection.smoother import FrequencySmoother
from .errors import SessionClosedError
from .logger import get_logger
from .note_types import NoteEvent, TrackedNote
from .scale import ScaleTable, cents_difference

logger = get_logger(__name__)


class TunerSession:
    """One singer's tuning session.

    Owns the scale table, the smoothing window and the note tracker. Call
    :meth:`process` once per audio frame, strictly in order and from one
    thread; independent sessions share nothing. The table is built once and
    the configuration cannot change for the life of the session.

    Example:
        >>> with TunerSession(TunerConfig(tonic=240.0)) as session:
        ...     event = session.process(frame, 44100)
    """

    def __init__(
        self,
        config: Optional[TunerConfig] = None,
        estimator: Optional[IPitchEstimator] = None,
    ) -> None:
        self._config = config or TunerConfig()
        self._table = ScaleTable(self._config.tonic, self._config.octaves)
        self._estimator = estimator or build_estimator(self._config)
        self._smoother = FrequencySmoother(
            self._config.smoothing_window, self._config.smoothing_tolerance_hz
        )
        self._mapper = NoteMapper(
            self._table,
            range_cents=self._config.range_cents,
            rejection_cents=self._config.rejection_cents,
        )
        self._tracker = NoteTracker(
            hold_time=self._config.hold_time,
            confidence_cents=self._config.confidence_cents,
        )
        self._last_event: Optional[NoteEvent] = None
        self._closed = False

        logger.info(
            f"Tuner session started: Sa={self._config.tonic:.2f}Hz "
            f"estimator={type(self._estimator).__name__} octaves={list(self._config.octaves)}"
        )

    @property
    def config(self) -> TunerConfig:
        return self._config

    @property
    def table(self) -> ScaleTable:
        return self._table

    @property
    def mapper(self) -> NoteMapper:
        return self._mapper

    @property
    def current_note(self) -> Optional[TrackedNote]:
        """The locked swar, readable between frames."""
        return self._tracker.locked

    @property
    def last_event(self) -> Optional[NoteEvent]:
        """Most recent non-empty event, for renderers that redraw between frames."""
        return self._last_event

    @property
    def closed(self) -> bool:
        return self._closed

    def process(
        self,
        buffer: np.ndarray,
        sample_rate: float,
        timestamp: Optional[float] = None,
    ) -> Optional[NoteEvent]:
        """Run one audio frame through the pipeline.

        Args:
            buffer: One frame of mono samples in [-1, 1]
            sample_rate: Sample rate of ``buffer`` in Hz
            timestamp: Frame time in seconds; defaults to ``time.monotonic()``

        Returns:
            The locked swar with this frame's deviation from it, or None when
            the frame carried no usable pitch or nothing has been locked yet.
            A None frame leaves the lock in place.

        Raises:
            ConfigurationError: For an empty buffer or non-positive sample rate
            SessionClosedError: If the session was closed
        """
        if self._closed:
            raise SessionClosedError("Tuner session is closed")
        now = time.monotonic() if timestamp is None else timestamp

        raw = self._estimator.estimate(buffer, sample_rate)
        if raw is not None and not (
            self._config.min_frequency <= raw <= self._config.max_frequency
        ):
            logger.debug(f"Dropping {raw:.1f}Hz outside vocal range")
            raw = None

        smoothed = self._smoother.push(raw)
        if smoothed is None:
            return None

        locked = self._tracker.locked
        candidate = self._mapper.map(smoothed, locked.key if locked else None)
        changed = self._tracker.update(candidate, now)

        locked = self._tracker.locked
        if locked is None:
            return None

        ideal = self._table.frequency(locked.octave, locked.swar)
        event = NoteEvent(
            swar=locked.swar,
            octave=locked.octave,
            frequency=smoothed,
            cents=cents_difference(smoothed, ideal),
            ideal_frequency=ideal,
            timestamp=now,
            changed=changed,
            raw_frequency=raw,
        )
        self._last_event = event
        return event

    def close(self) -> None:
        """Drop the smoothing history and end the session."""
        if self._closed:
            return
        self._smoother.clear()
        self._last_event = None
        self._closed = True
        logger.info("Tuner session closed")

    def __enter__(self) -> "TunerSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
