"""Tests for preference stores."""

from __future__ import annotations

import json
import stat
from pathlib import Path

import pytest

from briefscript.exceptions import InvalidPreferencesError
from briefscript.preferences import (
    InMemoryPreferences,
    JsonFilePreferences,
    get_storage_directory,
    get_store_passwords_consent,
    set_storage_directory,
    set_store_passwords_consent,
)


class TestJsonFilePreferences:
    """Tests for JsonFilePreferences."""

    def test_missing_file_reads_empty(self, tmp_path: Path) -> None:
        prefs = JsonFilePreferences(tmp_path / "prefs.json", "automation.pull")
        assert prefs.get("url") is None
        assert prefs.get("url", "fallback") == "fallback"
        assert prefs.keys() == []

    def test_put_and_get(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "prefs.json"
        prefs = JsonFilePreferences(path, "automation.pull")

        prefs.put("url", "https://a.example.org")

        assert prefs.get("url") == "https://a.example.org"
        assert JsonFilePreferences(path, "automation.pull").get("url") == "https://a.example.org"

    def test_scopes_are_separate(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        pull = JsonFilePreferences(path, "automation.pull")
        push = JsonFilePreferences(path, "automation.push")

        pull.put("url", "https://pull.example.org")
        push.put("url", "https://push.example.org")
        pull.clear()

        assert pull.keys() == []
        assert push.get("url") == "https://push.example.org"
        assert json.loads(path.read_text()) == {
            "automation.push": {"url": "https://push.example.org"}
        }

    def test_remove(self, tmp_path: Path) -> None:
        prefs = JsonFilePreferences(tmp_path / "prefs.json", "s")
        prefs.put("a", "1")
        prefs.put("b", "2")

        prefs.remove("a")
        prefs.remove("missing")

        assert prefs.keys() == ["b"]

    def test_file_is_private(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        JsonFilePreferences(path, "s").put("password", "s3cret")
        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        path.write_text("{not json")
        with pytest.raises(InvalidPreferencesError):
            JsonFilePreferences(path, "s").get("a")

    def test_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        path.write_text("[]")
        with pytest.raises(InvalidPreferencesError):
            JsonFilePreferences(path, "s").keys()

    def test_scope_not_an_object(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        path.write_text('{"automation.pull": "oops"}')
        prefs = JsonFilePreferences(path, "automation.pull")
        with pytest.raises(InvalidPreferencesError):
            prefs.get("url")
        with pytest.raises(InvalidPreferencesError):
            prefs.put("url", "https://a.example.org")

    def test_scope_value_not_a_string(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        path.write_text('{"automation.pull": {"kind": "aggregate", "url": 5}}')
        with pytest.raises(InvalidPreferencesError):
            JsonFilePreferences(path, "automation.pull").get("kind")

    def test_other_scopes_are_not_checked(self, tmp_path: Path) -> None:
        path = tmp_path / "prefs.json"
        path.write_text('{"automation.pull": {"url": 5}, "briefscript": {"a": "1"}}')
        assert JsonFilePreferences(path, "briefscript").get("a") == "1"


class TestApplicationPreferences:
    """Tests for the application scope helpers."""

    def test_storage_directory(self) -> None:
        prefs = InMemoryPreferences("briefscript")
        assert get_storage_directory(prefs) is None

        set_storage_directory(prefs, Path("/data"))

        assert get_storage_directory(prefs) == Path("/data")

    def test_store_passwords_consent_defaults_off(self) -> None:
        prefs = InMemoryPreferences("briefscript")
        assert get_store_passwords_consent(prefs) is False

        set_store_passwords_consent(prefs, True)
        assert get_store_passwords_consent(prefs) is True

        set_store_passwords_consent(prefs, False)
        assert get_store_passwords_consent(prefs) is False
