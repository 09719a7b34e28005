"""Swar definitions and the just-intonation frequency table."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from fractions import Fraction
from types import MappingProxyType
from typing import ClassVar, Dict, Iterator, Mapping, Sequence, Tuple, TypeAlias

import numpy as np

from .errors import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)

SwarName: TypeAlias = str
Frequency: TypeAlias = float


@dataclass(frozen=True)
class ScaleDegree:
    """One swar of the Hindustani scale and its ratio to Sa."""

    name: SwarName
    ratio: Fraction

    def __str__(self):
        return self.name


# Canonical order, one octave. Lowercase = komal, uppercase = shuddha, Ma# = tivra.
SWARS: Tuple[ScaleDegree, ...] = (
    ScaleDegree("Sa", Fraction(1, 1)),
    ScaleDegree("re", Fraction(16, 15)),
    ScaleDegree("Re", Fraction(9, 8)),
    ScaleDegree("ga", Fraction(6, 5)),
    ScaleDegree("Ga", Fraction(5, 4)),
    ScaleDegree("Ma", Fraction(4, 3)),
    ScaleDegree("Ma#", Fraction(45, 32)),
    ScaleDegree("Pa", Fraction(3, 2)),
    ScaleDegree("dha", Fraction(8, 5)),
    ScaleDegree("Dha", Fraction(5, 3)),
    ScaleDegree("ni", Fraction(9, 5)),
    ScaleDegree("Ni", Fraction(15, 8)),
)

SWAR_NAMES: Tuple[SwarName, ...] = tuple(s.name for s in SWARS)

OCTAVE_NAMES: Mapping[int, str] = MappingProxyType(
    {-1: "Mandra", 0: "Madhya", 1: "Taar", 2: "Ati Taar"}
)

DEFAULT_TONIC: Frequency = 240.0
DEFAULT_OCTAVES: Tuple[int, ...] = (-1, 0, 1, 2)


def cents_difference(frequency: float, reference: float) -> float:
    """Signed distance from ``reference`` to ``frequency`` in cents."""
    return 1200.0 * math.log2(frequency / reference)


def octave_name(octave: int) -> str:
    """Traditional name of a saptak, e.g. 0 -> 'Madhya'."""
    return OCTAVE_NAMES.get(octave, "Unknown")


def swar_index(name: SwarName) -> int:
    """Position of a swar in the canonical order.

    Raises:
        ConfigurationError: If ``name`` is not one of the 12 swars
    """
    try:
        return SWAR_NAMES.index(name)
    except ValueError:
        raise ConfigurationError(f"Unknown swar: {name!r}") from None


class ScaleTable:
    """Ideal frequency of every (octave, swar) pair for a fixed tonic.

    The table is a dense ``(len(octaves), 12)`` array built once at
    construction and marked read-only. Rows follow ``octaves`` in ascending
    order, columns follow :data:`SWARS`.

    ``table[octave]`` returns a read-only ``{swar name: Hz}`` mapping, so
    ``table[0]["Pa"]`` is the madhya Pa.
    """

    DEGREES: ClassVar[Tuple[ScaleDegree, ...]] = SWARS

    def __init__(
        self,
        tonic: Frequency = DEFAULT_TONIC,
        octaves: Sequence[int] = DEFAULT_OCTAVES,
    ) -> None:
        if (
            isinstance(tonic, bool)
            or not isinstance(tonic, numbers.Real)
            or not math.isfinite(tonic)
            or tonic <= 0
        ):
            raise ConfigurationError(f"Tonic frequency must be positive, got {tonic!r}")

        octaves = tuple(octaves)
        if not octaves:
            raise ConfigurationError("At least one octave is required")
        if any(not isinstance(o, numbers.Integral) or isinstance(o, bool) for o in octaves):
            raise ConfigurationError(f"Octave indices must be integers, got {octaves!r}")
        octaves = tuple(int(o) for o in octaves)
        if list(octaves) != sorted(set(octaves)):
            raise ConfigurationError(
                f"Octave indices must be distinct and ascending, got {octaves!r}"
            )

        self._tonic = float(tonic)
        self._octaves = octaves
        self._row_of: Dict[int, int] = {o: i for i, o in enumerate(octaves)}

        # Scaling by a power of two is exact, so octaves are exact doublings
        base = np.array([self._tonic * float(s.ratio) for s in self.DEGREES])
        table = np.empty((len(octaves), len(self.DEGREES)), dtype=np.float64)
        for row, octave in enumerate(octaves):
            table[row] = base * (2.0**octave)
        table.flags.writeable = False
        self._frequencies = table

        self._rows = tuple(
            MappingProxyType(dict(zip(SWAR_NAMES, (float(f) for f in table[row]))))
            for row in range(len(octaves))
        )

        logger.debug(
            f"Scale table built: tonic={self._tonic:.2f}Hz octaves={list(octaves)} "
            f"range={table[0, 0]:.2f}-{table[-1, -1]:.2f}Hz"
        )

    @property
    def tonic(self) -> Frequency:
        return self._tonic

    @property
    def octaves(self) -> Tuple[int, ...]:
        return self._octaves

    @property
    def frequencies(self) -> np.ndarray:
        """Read-only ``(octaves, swars)`` array of ideal frequencies."""
        return self._frequencies

    def row(self, octave: int) -> int:
        """Array row holding ``octave``."""
        try:
            return self._row_of[octave]
        except KeyError:
            raise ConfigurationError(
                f"Octave {octave} is not in the table {list(self._octaves)}"
            ) from None

    def frequency(self, octave: int, swar: SwarName) -> Frequency:
        """Ideal frequency of ``swar`` in ``octave``."""
        return float(self._frequencies[self.row(octave), swar_index(swar)])

    def __getitem__(self, octave: int) -> Mapping[SwarName, Frequency]:
        return self._rows[self.row(octave)]

    def __iter__(self) -> Iterator[Tuple[int, ScaleDegree, Frequency]]:
        """Yield ``(octave, degree, frequency)`` ascending by frequency."""
        for row, octave in enumerate(self._octaves):
            for col, degree in enumerate(self.DEGREES):
                yield octave, degree, float(self._frequencies[row, col])

    def __len__(self) -> int:
        return self._frequencies.size

    def __repr__(self):
        return f"ScaleTable(tonic={self._tonic}, octaves={self._octaves})"
