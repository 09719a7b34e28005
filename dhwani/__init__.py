"""Dhwani - Hindustani classical vocal tuner.

Real-time pitch estimation and swar classification against a
just-intonation scale built on a configurable tonic (Sa).
"""

from .errors import DhwaniError, ConfigurationError, SessionClosedError
from .note_types import NoteCandidate, NoteEvent, TrackedNote
from .scale import SWARS, ScaleDegree, ScaleTable, cents_difference
from .core.config import TunerConfig
from .session import TunerSession

__version__ = "0.3.0"

__all__ = [
    "DhwaniError",
    "ConfigurationError",
    "SessionClosedError",
    "NoteCandidate",
    "NoteEvent",
    "TrackedNote",
    "SWARS",
    "ScaleDegree",
    "ScaleTable",
    "cents_difference",
    "TunerConfig",
    "TunerSession",
]
