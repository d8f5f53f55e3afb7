"""Configuration using pydantic-settings.

Every value can be overridden with a ``BRIEFSCRIPT_``-prefixed environment
variable or a ``.env`` file in the working directory.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for script generation and the CLI."""

    model_config = SettingsConfigDict(
        env_prefix="BRIEFSCRIPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Generated command lines start with "<runtime_command> <jar_name>"
    runtime_command: str = "java -jar"
    jar_name: str = "briefcase.jar"

    # Where the export phase writes its CSV files
    export_directory: str = "/tmp"

    # Preference file shared by all scopes
    preferences_path: Path = Path.home() / ".config" / "briefscript" / "preferences.json"

    # Seconds before form enumeration gives up on a server
    http_timeout: float = 30.0

    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def runtime_invocation(self) -> str:
        """Command prefix shared by every generated line."""
        return f"{self.runtime_command} {self.jar_name}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class SharedConfig:
    """Application-wide values every phase of a generated script needs.

    ``storage_directory`` is None until the operator picks one; script
    generation refuses to run without it.
    """

    storage_directory: Path | None
    runtime_invocation: str = "java -jar briefcase.jar"
    export_directory: str = "/tmp"
