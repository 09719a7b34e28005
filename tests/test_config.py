import json
import unittest

import numpy as np
import pytest

from dhwani.core.config import ConfigManager, TunerConfig
from dhwani.errors import ConfigurationError


class TestTunerConfig(unittest.TestCase):
    def test_defaults(self):
        config = TunerConfig()
        self.assertEqual(config.tonic, 240.0)
        self.assertEqual(config.octaves, (-1, 0, 1, 2))
        self.assertEqual(config.estimator, "yin")
        self.assertEqual(config.hold_time, 0.1)

    def test_octaves_become_a_tuple(self):
        self.assertEqual(TunerConfig(octaves=[0, 1]).octaves, (0, 1))

    def test_invalid_values(self):
        for changes in (
            {"tonic": 0},
            {"tonic": float("nan")},
            {"threshold": 0.0},
            {"threshold": 1.0},
            {"min_frequency": 500.0, "max_frequency": 400.0},
            {"smoothing_window": 0},
            {"smoothing_window": 2.5},
            {"estimator": "fft"},
            {"hold_time_ms": -1},
            {"range_cents": 0},
            {"octaves": ()},
        ):
            with self.subTest(changes=changes):
                with self.assertRaises(ConfigurationError):
                    TunerConfig(**changes)

    def test_numpy_scalars_become_plain_numbers(self):
        config = TunerConfig(
            tonic=np.float32(240.0),
            smoothing_window=np.int64(5),
            hold_time_ms=np.int64(150),
            octaves=(np.int64(0), np.int64(1)),
        )
        self.assertEqual(config.tonic, 240.0)
        self.assertIs(type(config.tonic), float)
        self.assertEqual(config.smoothing_window, 5)
        self.assertIs(type(config.smoothing_window), int)
        self.assertEqual(config.hold_time, 0.15)
        self.assertEqual(config.octaves, (0, 1))
        # Stays JSON serialisable
        self.assertEqual(json.loads(json.dumps(config.to_dict()))["smoothing_window"], 5)

    def test_booleans_are_not_numbers(self):
        with self.assertRaises(ConfigurationError):
            TunerConfig(smoothing_window=True)
        with self.assertRaises(ConfigurationError):
            TunerConfig(tonic=True)

    def test_configuration_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            TunerConfig(tonic=-240.0)

    def test_from_dict_ignores_unknown_keys(self):
        config = TunerConfig.from_dict({"tonic": 220.0, "colour": "blue"})
        self.assertEqual(config.tonic, 220.0)

    def test_dict_round_trip(self):
        config = TunerConfig(tonic=261.63, octaves=(0, 1), estimator="autocorrelation")
        values = config.to_dict()
        self.assertEqual(values["octaves"], [0, 1])
        self.assertEqual(TunerConfig.from_dict(values), config)

    def test_replace_skips_none(self):
        config = TunerConfig().replace(tonic=None, threshold=0.2)
        self.assertEqual(config.tonic, 240.0)
        self.assertEqual(config.threshold, 0.2)

    def test_replace_validates(self):
        with self.assertRaises(ConfigurationError):
            TunerConfig().replace(hold_time_ms=-5)


def test_manager_writes_defaults(tmp_path):
    manager = ConfigManager(str(tmp_path))
    assert (tmp_path / "tuner.json").exists()
    assert (tmp_path / "audio_input.json").exists()
    assert manager.get_tuner_config() == TunerConfig()
    assert manager.get_config("audio_input")["frame_size"] == 2048


def test_manager_persists_updates(tmp_path):
    manager = ConfigManager(str(tmp_path))
    assert manager.update_config("tuner", {"tonic": 220.0})

    reloaded = ConfigManager(str(tmp_path))
    assert reloaded.get_tuner_config().tonic == 220.0


def test_manager_rejects_invalid_tuner_update(tmp_path):
    manager = ConfigManager(str(tmp_path))
    with pytest.raises(ConfigurationError):
        manager.update_config("tuner", {"tonic": -1})
    assert manager.get_tuner_config().tonic == 240.0


def test_manager_unknown_name(tmp_path):
    manager = ConfigManager(str(tmp_path))
    assert manager.update_config("display", {"colour": "blue"}) is False
    assert manager.reset_config("display") is False
    assert manager.get_config("display") == {}


def test_manager_recovers_from_corrupt_file(tmp_path):
    (tmp_path / "tuner.json").write_text("{not json")
    manager = ConfigManager(str(tmp_path))
    assert manager.get_tuner_config() == TunerConfig()


def test_manager_fills_missing_keys(tmp_path):
    (tmp_path / "tuner.json").write_text(json.dumps({"tonic": 200.0}))
    manager = ConfigManager(str(tmp_path))
    config = manager.get_tuner_config()
    assert config.tonic == 200.0
    assert config.threshold == 0.10


def test_manager_overrides_and_reset(tmp_path):
    manager = ConfigManager(str(tmp_path))
    manager.update_config("tuner", {"range_cents": 30.0})
    assert manager.get_tuner_config(threshold=0.2).threshold == 0.2
    assert manager.get_tuner_config().range_cents == 30.0

    assert manager.reset_config("tuner")
    assert manager.get_tuner_config().range_cents == 50.0
    stored = json.loads((tmp_path / "tuner.json").read_text())
    assert stored["range_cents"] == 50.0
