"""Unit tests for Settings validation."""

import pytest
from pydantic import ValidationError

from classbook.core.config import Settings


def test_defaults_use_sqlite_and_studio_scope():
    settings = Settings(_env_file=None)
    assert settings.is_sqlite
    assert settings.class_overlap_scope == "studio"
    assert (settings.min_class_duration_minutes, settings.max_class_duration_minutes) == (15, 480)


def test_log_level_is_normalized():
    assert Settings(log_level="debug", _env_file=None).log_level == "DEBUG"


def test_unknown_log_level_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="chatty", _env_file=None)


def test_duration_bounds_must_be_ordered():
    with pytest.raises(ValidationError):
        Settings(min_class_duration_minutes=60, max_class_duration_minutes=30, _env_file=None)


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("CLASSBOOK_CLASS_OVERLAP_SCOPE", "instructor")
    assert Settings(_env_file=None).class_overlap_scope == "instructor"
