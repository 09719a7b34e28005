"""Adapters between audio sources and tuner sessions.

``LiveAudioProvider`` lives in :mod:`dhwani.services.live_audio` and is not
imported here, since importing sounddevice needs the PortAudio library.
"""

from .audio_providers import WavFileAudioProvider
from .tuner_service import TunerService

__all__ = ["WavFileAudioProvider", "TunerService"]
