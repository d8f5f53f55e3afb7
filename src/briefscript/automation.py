"""Automation state: active sources, form selection and refresh notifications.

``Automation`` owns the pull source, the push source and the form
selection. Configuration events persist the new source, reload the forms it
offers and notify refresh listeners. Script generation reads the current
state and writes the script.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from loguru import logger

from briefscript.composer import AutomationConfiguration, generate_script
from briefscript.config import Settings, SharedConfig, get_settings
from briefscript.exceptions import EndpointUnavailableError
from briefscript.form_cache import DirectoryFormCache, FormCache
from briefscript.forms import FormDescriptor, FormSelection
from briefscript.preferences import (
    APP_SCOPE,
    PULL_SCOPE,
    PUSH_SCOPE,
    JsonFilePreferences,
    PreferenceStore,
    get_storage_directory,
    get_store_passwords_consent,
)
from briefscript.sources import Source, read_source_preferences


class Listeners:
    """Callbacks invoked synchronously in registration order.

    A failing callback is logged and does not stop the ones after it.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._callbacks: list[Callable[..., None]] = []

    def add(self, callback: Callable[..., None]) -> None:
        self._callbacks.append(callback)

    def remove(self, callback: Callable[..., None]) -> None:
        self._callbacks.remove(callback)

    def notify(self, *args: object) -> None:
        for callback in list(self._callbacks):
            try:
                callback(*args)
            except Exception:
                logger.exception("{} listener {!r} failed", self._name, callback)

    def __len__(self) -> int:
        return len(self._callbacks)


class Automation:
    """Keeps the automation sources and form selection in sync with preferences."""

    def __init__(
        self,
        forms: FormSelection,
        pull_preferences: PreferenceStore,
        push_preferences: PreferenceStore,
        app_preferences: PreferenceStore,
        form_cache: FormCache,
        settings: Settings | None = None,
    ) -> None:
        """Initialize without touching any server.

        Call ``restore()`` afterwards to bring back previously saved sources.

        Args:
            forms: The selection set this instance owns.
            pull_preferences: Scope holding the pull source configuration.
            push_preferences: Scope holding the push source configuration.
            app_preferences: Application scope; only read here.
            form_cache: Listing of forms in local storage.
            settings: Defaults for the generated commands.
        """
        self.forms = forms
        self._pull_preferences = pull_preferences
        self._push_preferences = push_preferences
        self._app_preferences = app_preferences
        self._form_cache = form_cache
        self._settings = settings or get_settings()
        self._pull_source: Source | None = None
        self._push_source: Source | None = None
        self.refresh_listeners = Listeners("refresh")
        self.generation_listeners = Listeners("generation")

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> Automation:
        """Build an instance backed by the preference file named in ``settings``."""
        settings = settings or get_settings()
        path = settings.preferences_path
        app_preferences = JsonFilePreferences(path, APP_SCOPE)
        form_cache = DirectoryFormCache(get_storage_directory(app_preferences))
        return cls(
            forms=FormSelection(form_cache.get_forms()),
            pull_preferences=JsonFilePreferences(path, PULL_SCOPE),
            push_preferences=JsonFilePreferences(path, PUSH_SCOPE),
            app_preferences=app_preferences,
            form_cache=form_cache,
            settings=settings,
        )

    @property
    def pull_source(self) -> Source | None:
        return self._pull_source

    @property
    def push_source(self) -> Source | None:
        return self._push_source

    # --- Configuration events ---

    def set_pull_source(self, source: Source) -> None:
        """Make ``source`` the pull source.

        The form list is fetched first. If that fails the previous source
        and its saved configuration stay as they were.

        Raises:
            EndpointUnavailableError: If the source cannot list its forms.
        """
        form_list = self._persist(source, self._pull_preferences)
        self._pull_source = source
        self._load(form_list)

    def set_push_source(self, source: Source) -> None:
        """Make ``source`` the push source. See ``set_pull_source``."""
        form_list = self._persist(source, self._push_preferences)
        self._push_source = source
        self._load(form_list)

    def _persist(self, source: Source, preferences: PreferenceStore) -> list[FormDescriptor]:
        form_list = source.get_form_list()
        preferences.clear()
        source.store_preferences(preferences, get_store_passwords_consent(self._app_preferences))
        logger.info("Configured {} in {}", source, preferences.scope)
        return form_list

    def _load(self, form_list: list[FormDescriptor]) -> None:
        self.forms.load(form_list)
        self.refresh_listeners.notify()

    def restore(self) -> None:
        """Bring back the saved pull and push sources.

        Each source is restored independently and its forms are loaded as if
        it had just been configured. A restored source stays active even if
        its server cannot be reached.

        Raises:
            EndpointUnavailableError: The first listing failure, after both
                sources have been tried.
        """
        errors: list[EndpointUnavailableError] = []
        source = read_source_preferences(self._pull_preferences)
        if source is not None:
            self._pull_source = source
            self._restore(source, self._pull_preferences, errors)
        source = read_source_preferences(self._push_preferences)
        if source is not None:
            self._push_source = source
            self._restore(source, self._push_preferences, errors)
        if errors:
            raise errors[0]

    def _restore(
        self,
        source: Source,
        preferences: PreferenceStore,
        errors: list[EndpointUnavailableError],
    ) -> None:
        logger.debug("Restored {} from {}", source, preferences.scope)
        try:
            self.forms.load(source.get_form_list())
        except EndpointUnavailableError as e:
            logger.warning("Could not list forms of restored {}: {}", source, e.reason)
            errors.append(e)
        self.refresh_listeners.notify()

    # --- External events ---

    def update_forms(self) -> None:
        """Merge the form cache into the selection, keeping user choices."""
        self.forms.merge(self._form_cache.get_forms())
        self.refresh_listeners.notify()

    def on_cache_update(self) -> None:
        self.update_forms()

    def on_form_status_changed(self) -> None:
        self.refresh_listeners.notify()

    # --- Generation ---

    def shared_config(self, export_directory: str | None = None) -> SharedConfig:
        return SharedConfig(
            storage_directory=get_storage_directory(self._app_preferences),
            runtime_invocation=self._settings.runtime_invocation,
            export_directory=export_directory or self._settings.export_directory,
        )

    def generate(
        self,
        configuration: AutomationConfiguration,
        export_directory: str | None = None,
        platform: str | None = None,
    ) -> Path:
        """Write the automation script for the current selection.

        Generation listeners receive the script path on success.

        Raises:
            MissingConfigurationError: If a source, the script location or the
                storage directory is missing.
            ScriptWriteError: If the script cannot be written.
        """
        path = generate_script(
            self._pull_source,
            self._push_source,
            self.forms.selected_forms(),
            configuration,
            self.shared_config(export_directory),
            platform=platform,
        )
        self.generation_listeners.notify(path)
        return path
