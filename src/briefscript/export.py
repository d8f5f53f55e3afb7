"""Export command lines for the middle phase of an automation script."""

from __future__ import annotations

from pathlib import Path

from briefscript.forms import FormDescriptor

EXPORT_TEMPLATE = (
    "{runtime} --export --form_id {form_id} --storage_directory {storage_dir}"
    " --export_directory {export_dir} --export_filename {form_name}.csv"
)


def export_command(
    form: FormDescriptor,
    storage_directory: Path | str,
    export_directory: Path | str,
    runtime_invocation: str = "java -jar briefcase.jar",
) -> str:
    """Build the command that exports one form to CSV.

    The form name is used verbatim as the file name.
    """
    return EXPORT_TEMPLATE.format(
        runtime=runtime_invocation,
        form_id=form.form_id,
        storage_dir=storage_directory,
        export_dir=export_directory,
        form_name=form.name,
    )
