"""Frequency to swar classification against a :class:`~dhwani.scale.ScaleTable`."""

from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from ..errors import ConfigurationError
from ..logger import get_logger
from ..note_types import NoteCandidate
from ..scale import SWAR_NAMES, ScaleTable, cents_difference, swar_index

logger = get_logger(__name__)


class NoteMapper:
    """Maps a frequency onto the nearest swar of a scale table.

    Every (octave, swar) pair owns an acceptance interval of
    ``+-range_cents`` around its ideal frequency. :meth:`map` only accepts a
    frequency that falls inside some interval, and prefers the interval of
    the swar the caller is currently locked on. :meth:`nearest` is the
    unbounded alternative: closest pair by cents, rejected beyond
    ``rejection_cents``.
    """

    def __init__(
        self,
        table: ScaleTable,
        range_cents: float = 50.0,
        rejection_cents: float = 100.0,
        prefilter_hz: float = 50.0,
    ) -> None:
        """Initialize the mapper.

        Args:
            table: Ideal frequencies to map onto
            range_cents: Half-width of each swar's acceptance interval
            rejection_cents: Largest deviation :meth:`nearest` still reports
            prefilter_hz: :meth:`nearest` skips pairs further than this in Hz
        """
        if range_cents <= 0:
            raise ConfigurationError("range_cents must be positive")
        if rejection_cents <= 0:
            raise ConfigurationError("rejection_cents must be positive")
        if prefilter_hz <= 0:
            raise ConfigurationError("prefilter_hz must be positive")

        self._table = table
        self._range_cents = float(range_cents)
        self._rejection_cents = float(rejection_cents)
        self._prefilter_hz = float(prefilter_hz)

        ideal = table.frequencies
        spread = 2.0 ** (self._range_cents / 1200.0)
        self._lower = ideal / spread
        self._upper = ideal * spread
        self._lower.flags.writeable = False
        self._upper.flags.writeable = False

    @property
    def table(self) -> ScaleTable:
        return self._table

    @property
    def range_cents(self) -> float:
        return self._range_cents

    def bounds(self, octave: int, swar: str) -> Tuple[float, float]:
        """Acceptance interval ``(lower, upper)`` in Hz of one swar."""
        row, col = self._table.row(octave), swar_index(swar)
        return float(self._lower[row, col]), float(self._upper[row, col])

    def map(
        self,
        frequency: Optional[float],
        locked: Optional[Tuple[str, int]] = None,
    ) -> Optional[NoteCandidate]:
        """Classify ``frequency`` by acceptance interval.

        Args:
            frequency: Frequency in Hz, or None
            locked: ``(swar, octave)`` currently locked on, checked first

        Returns:
            The matching candidate, or None when no interval contains the
            frequency
        """
        if not self._usable(frequency):
            return None

        if locked is not None:
            swar, octave = locked
            if octave in self._table.octaves:
                lower, upper = self.bounds(octave, swar)
                if lower <= frequency <= upper:
                    return self._candidate(self._table.row(octave), swar_index(swar), frequency)

        inside = (self._lower <= frequency) & (frequency <= self._upper)
        if not inside.any():
            logger.debug(f"{frequency:.2f}Hz is outside every swar range")
            return None

        # Rows are ascending octaves and columns canonical swar order, so the
        # flattened argmin keeps the first pair on an exact tie
        deviation = np.abs(np.log2(frequency / self._table.frequencies))
        deviation = np.where(inside, deviation, np.inf)
        row, col = np.unravel_index(int(np.argmin(deviation)), deviation.shape)
        return self._candidate(int(row), int(col), frequency)

    def nearest(self, frequency: Optional[float]) -> Optional[NoteCandidate]:
        """Closest swar by cents over the whole table, or None beyond the rejection bound."""
        if not self._usable(frequency):
            return None

        best = None
        best_cents = math.inf
        for row, octave in enumerate(self._table.octaves):
            for col in range(len(SWAR_NAMES)):
                ideal = self._table.frequencies[row, col]
                if abs(ideal - frequency) > self._prefilter_hz:
                    continue
                cents = cents_difference(frequency, ideal)
                if abs(cents) < abs(best_cents):
                    best, best_cents = (row, col), cents

        if best is None or abs(best_cents) > self._rejection_cents:
            return None
        return self._candidate(best[0], best[1], frequency)

    def _candidate(self, row: int, col: int, frequency: float) -> NoteCandidate:
        ideal = float(self._table.frequencies[row, col])
        return NoteCandidate(
            swar=SWAR_NAMES[col],
            octave=self._table.octaves[row],
            ideal_frequency=ideal,
            cents=cents_difference(frequency, ideal),
        )

    @staticmethod
    def _usable(frequency: Optional[float]) -> bool:
        return frequency is not None and math.isfinite(frequency) and frequency > 0
