"""Compose and write automation scripts.

A script has three phases separated by two blank lines each:

    <pull lines from the pull source>


    <one export line per selected form>


    <push lines from the push source>
"""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from briefscript.config import SharedConfig
from briefscript.exceptions import MissingConfigurationError, ScriptWriteError
from briefscript.export import export_command
from briefscript.forms import FormDescriptor
from briefscript.sources import Source

PHASE_SEPARATOR = ["", ""]


@dataclass(frozen=True)
class AutomationConfiguration:
    """Where the generated script goes."""

    script_location: Path | None = None

    def require_script_location(self) -> Path:
        if self.script_location is None:
            raise MissingConfigurationError("script location")
        return self.script_location


def script_name(platform: str | None = None) -> str:
    """File name for the generated script on ``platform`` (defaults to the host)."""
    platform = sys.platform if platform is None else platform
    return "automation.bat" if platform.startswith("win") else "automation.sh"


def compose(
    pull_source: Source | None,
    push_source: Source | None,
    selected_forms: Sequence[FormDescriptor],
    configuration: AutomationConfiguration,
    shared: SharedConfig,
) -> list[str]:
    """Build the lines of an automation script.

    Nothing is cached between calls, so the same inputs always give the
    same lines.

    Raises:
        MissingConfigurationError: If a source, the script location or the
            storage directory is missing.
    """
    if pull_source is None:
        raise MissingConfigurationError("pull source")
    if push_source is None:
        raise MissingConfigurationError("push source")
    configuration.require_script_location()
    if shared.storage_directory is None:
        raise MissingConfigurationError("storage directory")

    forms = list(selected_forms)
    lines = list(pull_source.pull_script_lines(forms, shared))
    lines.extend(PHASE_SEPARATOR)
    lines.extend(
        export_command(
            form,
            shared.storage_directory,
            shared.export_directory,
            shared.runtime_invocation,
        )
        for form in forms
    )
    lines.extend(PHASE_SEPARATOR)
    lines.extend(push_source.push_script_lines(forms, shared))
    return lines


def write_script(lines: Sequence[str], target: Path) -> Path:
    """Write ``lines`` to ``target``, replacing any existing file.

    The content goes to a temporary file next to ``target`` first and is
    then renamed over it, so ``target`` is either the old file or the
    complete new one. The directory is not created.

    Raises:
        ScriptWriteError: If the file cannot be written.
    """
    content = "\n".join(lines)
    tmp_name: str | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}-")
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.chmod(tmp_name, 0o644 if target.name.endswith(".bat") else 0o755)
        os.replace(tmp_name, target)
    except OSError as e:
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise ScriptWriteError(target, str(e)) from e

    logger.info("Wrote automation script {} ({} lines)", target, len(lines))
    return target


def generate_script(
    pull_source: Source | None,
    push_source: Source | None,
    selected_forms: Sequence[FormDescriptor],
    configuration: AutomationConfiguration,
    shared: SharedConfig,
    platform: str | None = None,
) -> Path:
    """Compose a script and write it into the configured location.

    Returns:
        Path of the written script.
    """
    lines = compose(pull_source, push_source, selected_forms, configuration, shared)
    target = configuration.require_script_location() / script_name(platform)
    return write_script(lines, target)
