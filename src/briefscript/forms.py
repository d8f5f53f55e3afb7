"""Form descriptors and the selection set used to build automation scripts."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from enum import Enum


class TransferType(Enum):
    PULL = "pull"
    PUSH = "push"
    EXPORT = "export"


@dataclass(frozen=True)
class FormDescriptor:
    """A data-collection form known to the system."""

    form_id: str
    name: str
    transfer_type: TransferType = TransferType.EXPORT

    def __str__(self) -> str:
        return f"{self.name} ({self.form_id})"


@dataclass(frozen=True)
class _Entry:
    form: FormDescriptor
    selected: bool = False


class FormSelection:
    """Ordered set of known forms with a per-form selection flag.

    Entries are keyed by form id and kept in insertion order, which is the
    order the generated script lists them in.
    """

    def __init__(self, forms: Iterable[FormDescriptor] = ()) -> None:
        self._entries: dict[str, _Entry] = {}
        self.load(forms)

    def load(self, forms: Iterable[FormDescriptor]) -> None:
        """Replace the working set. Every loaded form starts unselected."""
        self._entries = {form.form_id: _Entry(form) for form in forms}

    def merge(self, forms: Iterable[FormDescriptor]) -> None:
        """Reconcile a refreshed listing with the current set.

        Surviving forms keep their position and selection flag but take the
        refreshed descriptor. New forms are appended unselected. Forms absent
        from the listing are retained.
        """
        for form in forms:
            existing = self._entries.get(form.form_id)
            if existing is None:
                self._entries[form.form_id] = _Entry(form)
            else:
                self._entries[form.form_id] = replace(existing, form=form)

    def selected_forms(self) -> list[FormDescriptor]:
        return [entry.form for entry in self._entries.values() if entry.selected]

    def forms(self) -> list[FormDescriptor]:
        return [entry.form for entry in self._entries.values()]

    def get(self, form_id: str) -> FormDescriptor:
        return self._entries[form_id].form

    def is_selected(self, form_id: str) -> bool:
        return self._entries[form_id].selected

    def select(self, form_id: str) -> None:
        self._set(form_id, True)

    def deselect(self, form_id: str) -> None:
        self._set(form_id, False)

    def toggle(self, form_id: str) -> None:
        self._set(form_id, not self.is_selected(form_id))

    def select_all(self) -> None:
        for form_id in self._entries:
            self._set(form_id, True)

    def clear_all(self) -> None:
        for form_id in self._entries:
            self._set(form_id, False)

    def all_selected(self) -> bool:
        return bool(self._entries) and all(e.selected for e in self._entries.values())

    def some_selected(self) -> bool:
        return any(e.selected for e in self._entries.values())

    def is_empty(self) -> bool:
        return not self._entries

    def _set(self, form_id: str, selected: bool) -> None:
        entry = self._entries[form_id]
        self._entries[form_id] = replace(entry, selected=selected)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[FormDescriptor]:
        return iter(self.forms())

    def __contains__(self, form_id: object) -> bool:
        return form_id in self._entries
