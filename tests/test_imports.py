"""Every module imports without audio hardware."""

import importlib

import pytest

MODULES = [
    "dhwani",
    "dhwani.errors",
    "dhwani.logger",
    "dhwani.logging_config",
    "dhwani.note_types",
    "dhwani.scale",
    "dhwani.session",
    "dhwani.core",
    "dhwani.core.config",
    "dhwani.core.events",
    "dhwani.core.factory",
    "dhwani.core.interfaces",
    "dhwani.detection",
    "dhwani.detection.note_mapper",
    "dhwani.detection.note_tracker",
    "dhwani.detection.pitch_estimator",
    "dhwani.detection.smoother",
    "dhwani.services",
    "dhwani.services.audio_providers",
    "dhwani.services.tuner_service",
    "dhwani.cli",
    "dhwani.cli.main",
]


@pytest.mark.parametrize("name", MODULES)
def test_import(name):
    assert importlib.import_module(name) is not None


def test_logger_names_are_configured():
    from dhwani.logging_config import MODULE_LOG_LEVELS, get_logger

    assert get_logger("dhwani.session").name == "dhwani.session"
    with pytest.raises(ValueError):
        get_logger("dhwani.not_a_module")
    assert "dhwani.cli" in MODULE_LOG_LEVELS
