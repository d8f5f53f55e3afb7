"""Tests for script composition and writing."""

from __future__ import annotations

import stat
from pathlib import Path

import pytest

from briefscript.composer import (
    AutomationConfiguration,
    compose,
    generate_script,
    script_name,
    write_script,
)
from briefscript.config import SharedConfig
from briefscript.exceptions import MissingConfigurationError, ScriptWriteError
from briefscript.export import export_command
from briefscript.forms import FormDescriptor
from tests.fakes import FakeSource


@pytest.fixture
def configuration(tmp_path: Path) -> AutomationConfiguration:
    return AutomationConfiguration(tmp_path)


class TestCompose:
    """Tests for compose()."""

    def test_phases_in_order(
        self, census: FormDescriptor, shared: SharedConfig, configuration: AutomationConfiguration
    ) -> None:
        """Pull lines, two blanks, export lines, two blanks, push lines."""
        lines = compose(FakeSource("a"), FakeSource("b"), [census], configuration, shared)
        assert lines == [
            "pull --all",
            "",
            "",
            "java -jar briefcase.jar --export --form_id f1 --storage_directory /data"
            " --export_directory /tmp --export_filename Census.csv",
            "",
            "",
            "push --all",
        ]

    def test_empty_selection(
        self, shared: SharedConfig, configuration: AutomationConfiguration
    ) -> None:
        lines = compose(FakeSource("a"), FakeSource("b"), [], configuration, shared)
        assert lines == ["pull --all", "", "", "", "", "push --all"]

    def test_export_lines_follow_selection_order(
        self, shared: SharedConfig, configuration: AutomationConfiguration
    ) -> None:
        forms = [FormDescriptor("b", "B"), FormDescriptor("a", "A"), FormDescriptor("b", "B")]
        pull = FakeSource("a", pull_lines=("p1", "p2"))
        push = FakeSource("b", push_lines=())

        lines = compose(pull, push, forms, configuration, shared)

        expected_exports = [export_command(f, Path("/data"), "/tmp") for f in forms]
        assert lines == ["p1", "p2", "", "", *expected_exports, "", ""]

    def test_same_inputs_same_output(
        self, census: FormDescriptor, shared: SharedConfig, configuration: AutomationConfiguration
    ) -> None:
        pull, push = FakeSource("a"), FakeSource("b")
        first = compose(pull, push, [census], configuration, shared)
        second = compose(pull, push, [census], configuration, shared)
        assert first == second
        assert first is not second

    @pytest.mark.parametrize("missing", ["pull", "push"])
    def test_missing_source(
        self,
        missing: str,
        census: FormDescriptor,
        shared: SharedConfig,
        configuration: AutomationConfiguration,
    ) -> None:
        pull = None if missing == "pull" else FakeSource("a")
        push = None if missing == "push" else FakeSource("b")
        with pytest.raises(MissingConfigurationError) as exc_info:
            compose(pull, push, [census], configuration, shared)
        assert exc_info.value.item == f"{missing} source"

    def test_missing_script_location(self, census: FormDescriptor, shared: SharedConfig) -> None:
        with pytest.raises(MissingConfigurationError):
            compose(FakeSource("a"), FakeSource("b"), [census], AutomationConfiguration(), shared)

    def test_missing_storage_directory(
        self, census: FormDescriptor, configuration: AutomationConfiguration
    ) -> None:
        with pytest.raises(MissingConfigurationError) as exc_info:
            compose(
                FakeSource("a"),
                FakeSource("b"),
                [census],
                configuration,
                SharedConfig(storage_directory=None),
            )
        assert exc_info.value.item == "storage directory"


class TestWriteScript:
    """Tests for write_script() and generate_script()."""

    def test_writes_newline_joined_lines(self, tmp_path: Path) -> None:
        target = write_script(["a", "", "b"], tmp_path / "automation.sh")
        assert target.read_text(encoding="utf-8") == "a\n\nb"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "automation.sh"
        target.write_text("old content that is longer than the new one")

        write_script(["new"], target)

        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["automation.sh"]

    @pytest.mark.parametrize(
        ("name", "mode"), [("automation.sh", 0o755), ("automation.bat", 0o644)]
    )
    def test_file_mode(self, tmp_path: Path, name: str, mode: int) -> None:
        target = tmp_path / name
        target.write_text("old")

        write_script(["new"], target)

        assert stat.S_IMODE(target.stat().st_mode) == mode

    def test_missing_directory(self, tmp_path: Path) -> None:
        target = tmp_path / "missing" / "automation.sh"
        with pytest.raises(ScriptWriteError) as exc_info:
            write_script(["a"], target)
        assert exc_info.value.path == target
        assert isinstance(exc_info.value.__cause__, OSError)
        assert not target.exists()

    def test_end_to_end(
        self, census: FormDescriptor, shared: SharedConfig, tmp_path: Path
    ) -> None:
        path = generate_script(
            FakeSource("a"),
            FakeSource("b"),
            [census],
            AutomationConfiguration(tmp_path),
            shared,
            platform="linux",
        )

        assert path == tmp_path / "automation.sh"
        assert path.read_text() == "\n".join(
            [
                "pull --all",
                "",
                "",
                "java -jar briefcase.jar --export --form_id f1 --storage_directory /data"
                " --export_directory /tmp --export_filename Census.csv",
                "",
                "",
                "push --all",
            ]
        )

    def test_missing_source_writes_nothing(
        self, census: FormDescriptor, shared: SharedConfig, tmp_path: Path
    ) -> None:
        with pytest.raises(MissingConfigurationError):
            generate_script(
                None, FakeSource("b"), [census], AutomationConfiguration(tmp_path), shared
            )
        assert list(tmp_path.iterdir()) == []


class TestScriptName:
    """Tests for script_name()."""

    def test_windows(self) -> None:
        assert script_name("win32") == "automation.bat"

    @pytest.mark.parametrize("platform", ["linux", "darwin"])
    def test_posix(self, platform: str) -> None:
        assert script_name(platform) == "automation.sh"
