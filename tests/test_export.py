"""Tests for export command lines."""

from __future__ import annotations

from pathlib import Path

from briefscript.export import export_command
from briefscript.forms import FormDescriptor


def test_export_command_template(census: FormDescriptor) -> None:
    """Should fill the fixed positional template."""
    assert export_command(census, Path("/data"), "/tmp") == (
        "java -jar briefcase.jar --export --form_id f1 --storage_directory /data"
        " --export_directory /tmp --export_filename Census.csv"
    )


def test_export_command_custom_runtime(census: FormDescriptor) -> None:
    """Should use the given runtime invocation as prefix."""
    line = export_command(census, "/data", "/out", runtime_invocation="java -Xmx2g -jar bc.jar")
    assert line.startswith("java -Xmx2g -jar bc.jar --export ")
    assert "--export_directory /out" in line


def test_export_command_uses_name_verbatim() -> None:
    """Form names are not escaped."""
    form = FormDescriptor("hh", "Household Survey")
    line = export_command(form, "/data", "/tmp")
    assert line.endswith("--export_filename Household Survey.csv")
