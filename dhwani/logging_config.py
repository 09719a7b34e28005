"""Per-module log levels and the console handler shared by every Dhwani logger.

Library code logs through :func:`dhwani.logger.get_logger`; only entry points
call :func:`setup_logging`, which attaches the handler and applies the levels
below. Names passed to :func:`get_logger` here must appear in the table.
"""

import logging
import sys
from typing import Dict, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

MODULE_LOG_LEVELS: Dict[str, int] = {
    "dhwani": logging.INFO,
    "dhwani.scale": logging.INFO,
    "dhwani.session": logging.INFO,
    "dhwani.detection": logging.INFO,
    "dhwani.detection.pitch_estimator": logging.INFO,  # DEBUG logs every frame
    "dhwani.detection.note_tracker": logging.INFO,
    "dhwani.core": logging.INFO,
    "dhwani.services": logging.INFO,
    "dhwani.cli": logging.WARNING,  # CLI prints its own output
    "dhwani.logger": logging.WARNING,
    # Third-party
    "sounddevice": logging.ERROR,
    "soundfile": logging.ERROR,
    # Root
    "": logging.ERROR,
}

_console_handler: Optional[logging.Handler] = None
_configured: Dict[str, logging.Logger] = {}


def _resolve_level(level: str) -> Optional[int]:
    numeric = logging.getLevelName(level.upper())
    return numeric if isinstance(numeric, int) else None


def _attach(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    if _console_handler is not None:
        logger.addHandler(_console_handler)
    logger.propagate = False


def setup_logging(level: Optional[str] = None) -> None:
    """Install the console handler and the per-module levels.

    Args:
        level: Level name (e.g. "DEBUG") applied to every ``dhwani`` logger
            instead of its table entry
    """
    global _console_handler

    # Rebuilt on each call so it writes to whatever sys.stdout is now
    _console_handler = logging.StreamHandler(sys.stdout)
    _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    override = None
    if level:
        override = _resolve_level(level)
        if override is None:
            logging.getLogger("dhwani").error(f"Invalid log level: {level}")

    for name, default in MODULE_LOG_LEVELS.items():
        logger = logging.getLogger(name)
        own = name == "dhwani" or name.startswith("dhwani.")
        logger.setLevel(override if own and override is not None else default)
        _attach(logger)

    logging.getLogger("dhwani").debug("Logging configuration complete")


def get_logger(name: str) -> logging.Logger:
    """Logger for a name listed in :data:`MODULE_LOG_LEVELS`.

    Raises:
        ValueError: If ``name`` has no entry in the table
    """
    if name in _configured:
        return _configured[name]
    if name not in MODULE_LOG_LEVELS:
        raise ValueError(
            f"Logger '{name}' not found in MODULE_LOG_LEVELS. "
            "Please add it to the configuration."
        )

    logger = logging.getLogger(name)
    logger.setLevel(MODULE_LOG_LEVELS[name])
    if _console_handler is not None and _console_handler not in logger.handlers:
        logger.addHandler(_console_handler)
    logger.propagate = False
    _configured[name] = logger
    return logger
