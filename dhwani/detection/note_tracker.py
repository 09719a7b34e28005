from typing import Optional

from ..errors import ConfigurationError
from ..logger import get_logger
from ..note_types import NoteCandidate, TrackedNote

logger = get_logger(__name__)


class NoteTracker:
    """
    Hysteresis state machine that turns per-frame candidates into a stable locked swar.

    The tracker starts unlocked and locks on the first candidate it sees. Once
    locked it never unlocks; a different swar takes over only when the
    candidate is far enough from its own ideal frequency to be unambiguous, or
    when the current lock is older than the hold time.
    """

    def __init__(self, hold_time: float = 0.1, confidence_cents: float = 40.0):
        """
        Args:
            hold_time: Seconds a fresh lock resists low-confidence changes
            confidence_cents: Deviation above which a different swar switches at once
        """
        if hold_time < 0:
            raise ConfigurationError("hold_time must not be negative")
        if confidence_cents < 0:
            raise ConfigurationError("confidence_cents must not be negative")

        self._hold_time = hold_time
        self._confidence_cents = confidence_cents
        self._locked: Optional[TrackedNote] = None

    @property
    def locked(self) -> Optional[TrackedNote]:
        """The current lock, or None before the first candidate."""
        return self._locked

    @property
    def is_locked(self) -> bool:
        return self._locked is not None

    @property
    def hold_time(self) -> float:
        return self._hold_time

    @property
    def confidence_cents(self) -> float:
        return self._confidence_cents

    def update(self, candidate: Optional[NoteCandidate], now: float) -> bool:
        """
        Feed one frame's candidate.

        Returns:
            True if the lock moved to a different swar (or was first acquired).
        """
        if candidate is None:
            return False

        if self._locked is None:
            self._locked = TrackedNote(candidate.swar, candidate.octave, now)
            logger.info(f"Locked on {candidate.swar} ({candidate.octave}), {candidate.cents:+.1f} cents")
            return True

        if candidate.key == self._locked.key:
            return False

        held_for = now - self._locked.locked_at
        if abs(candidate.cents) > self._confidence_cents:
            reason = f"confident change ({candidate.cents:+.1f} cents)"
        elif held_for > self._hold_time:
            reason = f"held {held_for * 1000:.0f}ms"
        else:
            logger.debug(
                f"Suppressed {self._locked.swar} -> {candidate.swar} "
                f"({candidate.cents:+.1f} cents after {held_for * 1000:.0f}ms)"
            )
            return False

        logger.info(
            f"Swar changed: {self._locked.swar} ({self._locked.octave}) -> "
            f"{candidate.swar} ({candidate.octave}), {reason}"
        )
        self._locked = TrackedNote(candidate.swar, candidate.octave, now)
        return True
