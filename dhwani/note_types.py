"""Type definitions for the Dhwani project."""

from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class NoteCandidate:
    """The swar a single frame's frequency falls on."""

    swar: str  # Swar name (e.g., 'Sa', 'Ma#')
    octave: int  # Octave index (0 is madhya saptak)
    ideal_frequency: float  # Just-intonation frequency of swar/octave in Hz
    cents: float  # Signed deviation of the frame frequency from ideal_frequency

    @property
    def key(self):
        return self.swar, self.octave


@dataclass(frozen=True)
class TrackedNote:
    """The swar the tracker is currently locked on."""

    swar: str
    octave: int
    locked_at: float  # Time the lock started, in seconds

    @property
    def key(self):
        return self.swar, self.octave


@dataclass(frozen=True)
class NoteEvent:
    """Per-frame output of a tuner session, consumed by rendering."""

    swar: str  # Locked swar
    octave: int  # Locked octave
    frequency: float  # Smoothed frequency of this frame in Hz
    cents: float  # Deviation of this frame from the locked swar's ideal frequency
    ideal_frequency: float
    timestamp: float
    changed: bool = False  # True on the frame the lock moved to this swar
    raw_frequency: Optional[float] = None  # Estimator output before smoothing

    def __str__(self):
        sign = "+" if self.cents > 0 else ""
        return (
            f"{self.swar} ({self.octave}) | {self.frequency:.1f} Hz | "
            f"{sign}{self.cents:.0f} cents"
        )
