"""Custom exceptions for briefscript."""

from __future__ import annotations

from pathlib import Path


class BriefscriptError(Exception):
    """Base exception for all briefscript errors."""

    pass


class MissingConfigurationError(BriefscriptError):
    """Raised when something required for script generation is not configured."""

    def __init__(self, item: str, message: str | None = None) -> None:
        self.item = item
        super().__init__(message or f"Missing configuration: {item}")


class EndpointUnavailableError(BriefscriptError):
    """Raised when a source cannot enumerate its forms."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Endpoint unavailable at {url}: {reason}")


class ScriptWriteError(BriefscriptError):
    """Raised when the generated script cannot be written to disk."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write script {path}: {reason}")


class InvalidPreferencesError(BriefscriptError):
    """Raised when a stored preference record cannot be used."""

    def __init__(self, scope: str, reason: str) -> None:
        self.scope = scope
        self.reason = reason
        super().__init__(f"Invalid preferences in scope '{scope}': {reason}")
