"""Shared test fixtures for briefscript."""

from __future__ import annotations

from pathlib import Path

import pytest

from briefscript.config import Settings, SharedConfig
from briefscript.forms import FormDescriptor
from briefscript.preferences import (
    APP_SCOPE,
    PULL_SCOPE,
    PUSH_SCOPE,
    InMemoryPreferences,
)

GOLDEN_DIR = Path(__file__).parent / "golden"


@pytest.fixture
def golden_dir() -> Path:
    return GOLDEN_DIR


@pytest.fixture
def census() -> FormDescriptor:
    return FormDescriptor("f1", "Census")


@pytest.fixture
def shared() -> SharedConfig:
    return SharedConfig(storage_directory=Path("/data"))


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(preferences_path=tmp_path / "prefs" / "preferences.json")


@pytest.fixture
def app_preferences(tmp_path: Path) -> InMemoryPreferences:
    return InMemoryPreferences(APP_SCOPE, {"storage_directory": str(tmp_path / "storage")})


@pytest.fixture
def pull_preferences() -> InMemoryPreferences:
    return InMemoryPreferences(PULL_SCOPE)


@pytest.fixture
def push_preferences() -> InMemoryPreferences:
    return InMemoryPreferences(PUSH_SCOPE)
