"""Per-frame detection pipeline: estimate, smooth, map, track."""

from .pitch_estimator import AutocorrelationPitchEstimator, YinPitchEstimator
from .smoother import FrequencySmoother
from .note_mapper import NoteMapper
from .note_tracker import NoteTracker

__all__ = [
    "AutocorrelationPitchEstimator",
    "YinPitchEstimator",
    "FrequencySmoother",
    "NoteMapper",
    "NoteTracker",
]
