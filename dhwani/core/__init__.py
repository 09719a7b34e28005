"""Core components for the Dhwani application."""

# Import interfaces for easier access
from .interfaces import (
    IPitchEstimator,
    IAudioProvider,
    ITunerService,
)

__all__ = ["IPitchEstimator", "IAudioProvider", "ITunerService"]
