"""Exception types raised by Dhwani.

Per-frame "nothing detected" outcomes are never exceptions; they are
reported as ``None``. These types are reserved for bad configuration,
malformed calls and misuse of a closed session.
"""


class DhwaniError(Exception):
    """Base class for all Dhwani errors."""


class ConfigurationError(DhwaniError, ValueError):
    """Raised for invalid configuration values or malformed call arguments."""


class SessionClosedError(DhwaniError, RuntimeError):
    """Raised when a closed tuner session is used."""
