"""Key-value preference stores with named scopes.

Two kinds of scope are used: one per automation role (``automation.pull``,
``automation.push``) holding endpoint configuration, and the application
scope holding the shared storage directory and the store-passwords consent.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

from loguru import logger

from briefscript.exceptions import InvalidPreferencesError

APP_SCOPE = "briefscript"
PULL_SCOPE = "automation.pull"
PUSH_SCOPE = "automation.push"

STORAGE_DIRECTORY_KEY = "storage_directory"
STORE_PASSWORDS_KEY = "store_passwords"


class PreferenceStore(Protocol):
    """Opaque get/put/clear store for one scope."""

    scope: str

    def get(self, key: str, default: str | None = None) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def clear(self) -> None: ...


class InMemoryPreferences:
    """Preference store kept in a dict. Nothing survives the process."""

    def __init__(self, scope: str, values: dict[str, str] | None = None) -> None:
        self.scope = scope
        self._values: dict[str, str] = dict(values or {})

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def put(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)

    def clear(self) -> None:
        self._values.clear()


class JsonFilePreferences:
    """Preference store backed by a JSON file shared between scopes.

    The file holds one object per scope name. Every write rewrites the
    whole file through a temporary file so readers never see a partial
    document. The file is created with owner-only permissions because it
    may hold passwords.
    """

    def __init__(self, path: Path, scope: str) -> None:
        """Initialize the store.

        Args:
            path: The JSON file. Created on first write.
            scope: Name of the scope this instance reads and writes.
        """
        self._path = path
        self.scope = scope

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._read_scope().get(key, default)

    def put(self, key: str, value: str) -> None:
        document = self._read_all()
        document.setdefault(self.scope, {})[key] = value
        self._write_all(document)

    def remove(self, key: str) -> None:
        document = self._read_all()
        if key in document.get(self.scope, {}):
            del document[self.scope][key]
            self._write_all(document)

    def keys(self) -> list[str]:
        return list(self._read_scope())

    def clear(self) -> None:
        document = self._read_all()
        if document.pop(self.scope, None) is not None:
            self._write_all(document)

    def _read_scope(self) -> dict[str, str]:
        return self._read_all().get(self.scope, {})

    def _read_all(self) -> dict[str, dict[str, str]]:
        if not self._path.exists():
            return {}
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise InvalidPreferencesError(self.scope, f"{self._path} is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise InvalidPreferencesError(self.scope, f"{self._path} does not hold a JSON object")
        scope = document.get(self.scope, {})
        if not isinstance(scope, dict) or not all(
            isinstance(key, str) and isinstance(value, str) for key, value in scope.items()
        ):
            raise InvalidPreferencesError(
                self.scope, f"{self._path} does not map {self.scope} to string values"
            )
        return document

    def _write_all(self, document: dict[str, dict[str, str]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".prefs-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, sort_keys=True)
                f.write("\n")
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Wrote preferences scope {} to {}", self.scope, self._path)


def get_storage_directory(app_preferences: PreferenceStore) -> Path | None:
    """Return the shared storage directory, if one has been chosen."""
    value = app_preferences.get(STORAGE_DIRECTORY_KEY)
    return Path(value) if value else None


def set_storage_directory(app_preferences: PreferenceStore, directory: Path) -> None:
    app_preferences.put(STORAGE_DIRECTORY_KEY, str(directory))


def get_store_passwords_consent(app_preferences: PreferenceStore) -> bool:
    """Whether the operator agreed to keep passwords in preferences."""
    return app_preferences.get(STORE_PASSWORDS_KEY) == "true"


def set_store_passwords_consent(app_preferences: PreferenceStore, consent: bool) -> None:
    app_preferences.put(STORE_PASSWORDS_KEY, "true" if consent else "false")
