"""Forms already present in the local storage directory."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Protocol

from loguru import logger

from briefscript.forms import FormDescriptor, TransferType

STORAGE_FOLDER_NAME = "ODK Briefcase Storage"

XFORMS_NS = "http://www.w3.org/2002/xforms"
XHTML_NS = "http://www.w3.org/1999/xhtml"


class FormCache(Protocol):
    """Read-only listing of known forms."""

    def get_forms(self) -> list[FormDescriptor]: ...


class DirectoryFormCache:
    """Lists the form definitions kept under a storage directory.

    Expected directory structure:
        storage_directory/
            ODK Briefcase Storage/
                forms/
                    <Form Name>/
                        <Form Name>.xml
    """

    def __init__(self, storage_directory: Path | None) -> None:
        self._forms_dir = (
            storage_directory / STORAGE_FOLDER_NAME / "forms" if storage_directory else None
        )

    def get_forms(self) -> list[FormDescriptor]:
        """Read every form definition, sorted by folder name.

        Definitions that cannot be parsed are skipped. Without a storage
        directory the listing is empty.
        """
        if self._forms_dir is None or not self._forms_dir.is_dir():
            return []

        forms = []
        for form_dir in sorted(p for p in self._forms_dir.iterdir() if p.is_dir()):
            definition = form_dir / f"{form_dir.name}.xml"
            if not definition.is_file():
                continue
            try:
                forms.append(read_form_definition(definition))
            except (ET.ParseError, ValueError) as e:
                logger.warning("Skipping unreadable form definition {}: {}", definition, e)
        return forms


def read_form_definition(path: Path) -> FormDescriptor:
    """Build a descriptor from an XForm definition file.

    The form id is the ``id`` attribute of the instance's root element (or
    the element's name when absent). The display name is the XHTML title,
    falling back to the folder name.

    Raises:
        ET.ParseError: If the file is not well-formed XML.
        ValueError: If the file has no primary instance.
    """
    root = ET.parse(path).getroot()

    instance = root.find(f".//{{{XFORMS_NS}}}instance")
    if instance is None or len(instance) == 0:
        raise ValueError("no primary instance")
    data = instance[0]
    form_id = data.get("id") or _local_name(data.tag)

    title = root.findtext(f".//{{{XHTML_NS}}}title")
    name = title.strip() if title and title.strip() else path.parent.name

    return FormDescriptor(form_id, name, TransferType.EXPORT)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
