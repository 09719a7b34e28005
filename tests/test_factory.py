import unittest

import numpy as np
import pytest
import soundfile as sf

from dhwani.core.config import ConfigManager
from dhwani.core.events import EventEmitter, TunerEvents, TunerEventType
from dhwani.core.factory import ComponentFactory
from dhwani.detection.pitch_estimator import AutocorrelationPitchEstimator, YinPitchEstimator
from dhwani.errors import ConfigurationError
from dhwani.services.audio_providers import WavFileAudioProvider


@pytest.fixture
def factory(tmp_path):
    return ComponentFactory(ConfigManager(str(tmp_path)))


def test_estimator_from_stored_config(factory):
    factory.config_manager.update_config("tuner", {"threshold": 0.15})
    estimator = factory.create_pitch_estimator()
    assert isinstance(estimator, YinPitchEstimator)
    assert estimator.threshold == 0.15
    assert estimator.min_frequency == 70.0


def test_estimator_keyword_overrides(factory):
    config = factory.tuner_config(estimator="autocorrelation")
    estimator = factory.create_pitch_estimator(config, correlation_threshold=0.8)
    assert isinstance(estimator, AutocorrelationPitchEstimator)
    assert estimator.correlation_threshold == 0.8


def test_session_overrides(factory):
    session = factory.create_session(tonic=220.0, hold_time_ms=None)
    assert session.config.tonic == 220.0
    assert session.config.hold_time_ms == 100.0
    assert session.table.frequency(0, "Pa") == pytest.approx(330.0)


def test_invalid_override(factory):
    with pytest.raises(ConfigurationError):
        factory.create_session(range_cents=-10)


def test_file_audio_input_and_service(factory, tmp_path):
    path = tmp_path / "tone.wav"
    sf.write(str(path), np.zeros(4096), 22050)

    provider = factory.create_audio_input(file_path=str(path), realtime=False)
    assert isinstance(provider, WavFileAudioProvider)
    assert provider.sample_rate == 22050

    service = factory.create_tuner_service(audio_input=provider, tonic=200.0)
    assert service.frame_size == 2048
    assert service.session.config.tonic == 200.0


class TestEvents(unittest.TestCase):
    def test_listeners_receive_arguments(self):
        emitter = EventEmitter()
        received = []
        emitter.on(TunerEventType.SILENCE, received.append)
        emitter.on(TunerEventType.SILENCE, received.append)  # registered once
        emitter.emit(TunerEventType.SILENCE, 1.25)
        self.assertEqual(received, [1.25])

    def test_failing_listener_is_isolated(self):
        emitter = EventEmitter()
        received = []

        def broken(value):
            raise RuntimeError("boom")

        emitter.on("tick", broken)
        emitter.on("tick", received.append)
        emitter.emit("tick", 3)
        self.assertEqual(received, [3])

    def test_clear(self):
        events = TunerEvents()
        received = []
        events.on_note_event(received.append)
        events.clear()
        events.emit_note_event("event")
        self.assertEqual(received, [])
