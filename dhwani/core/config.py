"""Configuration management for Dhwani components."""

from dataclasses import asdict, dataclass, fields
from typing import Dict, Any, Optional, Tuple
import json
import math
import numbers
from pathlib import Path

from ..detection.pitch_estimator import ESTIMATOR_CLASSES
from ..errors import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

ESTIMATORS = tuple(ESTIMATOR_CLASSES)


@dataclass(frozen=True)
class TunerConfig:
    """Parameters of one tuning session. Fixed once the session is built."""

    tonic: float = 240.0  # Sa in Hz at octave 0
    octaves: Tuple[int, ...] = (-1, 0, 1, 2)
    estimator: str = "yin"
    threshold: float = 0.10  # YIN absolute threshold, lower is stricter
    silence_rms: float = 1e-4
    min_frequency: float = 70.0  # Estimates outside the vocal range are dropped
    max_frequency: float = 1000.0
    smoothing_window: int = 5
    smoothing_tolerance_hz: float = 5.0
    range_cents: float = 50.0  # Half-width of each swar's acceptance interval
    rejection_cents: float = 100.0
    hold_time_ms: float = 100.0
    confidence_cents: float = 40.0

    def __post_init__(self):
        def real(name, value):
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
                raise ConfigurationError(f"{name} must be a finite number, got {value!r}")
            return float(value)

        def integral(name, value):
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
            return int(value)

        # numpy scalars are accepted and stored as plain Python numbers
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "octaves":
                value = tuple(integral("octave", o) for o in value)
            elif f.name == "smoothing_window":
                value = integral(f.name, value)
            elif f.name != "estimator":
                value = real(f.name, value)
            object.__setattr__(self, f.name, value)

        for name in ("tonic", "min_frequency", "max_frequency", "range_cents", "rejection_cents"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be a positive number, got {getattr(self, name)!r}")
        for name in ("silence_rms", "smoothing_tolerance_hz", "hold_time_ms", "confidence_cents"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative, got {getattr(self, name)!r}")

        if not 0.0 < self.threshold < 1.0:
            raise ConfigurationError(f"threshold must be in (0, 1), got {self.threshold!r}")
        if self.min_frequency >= self.max_frequency:
            raise ConfigurationError(
                f"min_frequency ({self.min_frequency}) must be below max_frequency ({self.max_frequency})"
            )
        if self.smoothing_window < 1:
            raise ConfigurationError(
                f"smoothing_window must be an integer >= 1, got {self.smoothing_window!r}"
            )
        if self.estimator not in ESTIMATORS:
            raise ConfigurationError(
                f"Unknown estimator {self.estimator!r}, expected one of {ESTIMATORS}"
            )
        if not self.octaves:
            raise ConfigurationError("At least one octave is required")

    @property
    def hold_time(self) -> float:
        """Hold duration in seconds."""
        return self.hold_time_ms / 1000.0

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "TunerConfig":
        """Build a config from a dictionary, ignoring keys it does not know."""
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            logger.warning(f"Ignoring unknown tuner settings: {sorted(unknown)}")
        return cls(**{k: v for k, v in values.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        values = asdict(self)
        values["octaves"] = list(self.octaves)
        return values

    def replace(self, **changes) -> "TunerConfig":
        """Copy with some fields changed; None values are ignored."""
        values = self.to_dict()
        values.update({k: v for k, v in changes.items() if v is not None})
        return TunerConfig.from_dict(values)


DEFAULT_AUDIO_INPUT: Dict[str, Any] = {
    "sample_rate": 44100,
    "chunk_size": 1024,  # Frames per provider callback
    "frame_size": 2048,  # Samples per analysis frame
    "channels": 1,
}


class ConfigManager:
    """JSON-file backed settings, one file per section.

    Sections are ``tuner`` (a :class:`TunerConfig` as a dict) and
    ``audio_input``. Missing files are created with defaults; unreadable
    files are logged and replaced by defaults in memory only.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Args:
            config_dir: Directory holding the section files, defaults to
                ``~/.config/dhwani``
        """
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".config" / "dhwani"
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.default_configs: Dict[str, Dict[str, Any]] = {
            "tuner": TunerConfig().to_dict(),
            "audio_input": dict(DEFAULT_AUDIO_INPUT),
        }
        self.configs = {
            name: self.load_config(name, defaults)
            for name, defaults in self.default_configs.items()
        }

    def _path(self, name: str) -> Path:
        return self.config_dir / f"{name}.json"

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Read one section, filling keys the file lacks from ``default_config``."""
        path = self._path(name)
        if not path.exists():
            self.save_config(name, default_config)
            return dict(default_config)

        try:
            stored = json.loads(path.read_text())
            if not isinstance(stored, dict):
                raise ValueError("top-level JSON value is not an object")
        except (OSError, ValueError) as e:
            logger.error(f"Could not read {path}, using defaults: {e}")
            return dict(default_config)

        logger.info(f"Loaded {name} settings from {path}")
        return {**default_config, **stored}

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Write one section; returns False (and logs) if the file cannot be written."""
        path = self._path(name)
        try:
            path.write_text(json.dumps(config, indent=2))
        except OSError as e:
            logger.error(f"Could not write {path}: {e}")
            return False
        logger.info(f"Saved {name} settings to {path}")
        return True

    def get_config(self, name: str) -> Dict[str, Any]:
        """Copy of one section, or an empty dict for an unknown name."""
        return dict(self.configs.get(name, {}))

    def get_tuner_config(self, **overrides) -> TunerConfig:
        """Stored tuner settings as a :class:`TunerConfig`, with ``overrides`` applied.

        Raises:
            ConfigurationError: If the stored or overridden values are invalid
        """
        return TunerConfig.from_dict(self.get_config("tuner")).replace(**overrides)

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Merge ``updates`` into a section and persist it.

        Tuner updates are validated first; nothing changes if they are invalid.

        Returns:
            False for an unknown section or a failed write

        Raises:
            ConfigurationError: If a tuner update is invalid
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration section: {name}")
            return False

        merged = {**self.configs[name], **updates}
        if name == "tuner":
            merged = TunerConfig.from_dict(merged).to_dict()
        self.configs[name] = merged
        return self.save_config(name, merged)

    def reset_config(self, name: str) -> bool:
        """Restore a section to its defaults and persist it."""
        if name not in self.default_configs:
            logger.error(f"Unknown configuration section: {name}")
            return False
        self.configs[name] = dict(self.default_configs[name])
        return self.save_config(name, self.configs[name])
