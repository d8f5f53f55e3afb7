"""briefscript: Generate pull, export and push automation scripts for form data."""

from briefscript.automation import Automation, Listeners
from briefscript.composer import (
    AutomationConfiguration,
    compose,
    generate_script,
    script_name,
    write_script,
)
from briefscript.config import Settings, SharedConfig, get_settings
from briefscript.exceptions import (
    BriefscriptError,
    EndpointUnavailableError,
    InvalidPreferencesError,
    MissingConfigurationError,
    ScriptWriteError,
)
from briefscript.export import export_command
from briefscript.form_cache import DirectoryFormCache, FormCache
from briefscript.forms import FormDescriptor, FormSelection, TransferType
from briefscript.preferences import (
    InMemoryPreferences,
    JsonFilePreferences,
    PreferenceStore,
)
from briefscript.sources import (
    AggregateServer,
    CentralServer,
    Source,
    read_source_preferences,
)

__all__ = [
    # Automation
    "Automation",
    "Listeners",
    # Composition
    "AutomationConfiguration",
    "compose",
    "generate_script",
    "script_name",
    "write_script",
    "export_command",
    # Forms
    "FormDescriptor",
    "FormSelection",
    "TransferType",
    "FormCache",
    "DirectoryFormCache",
    # Sources
    "Source",
    "AggregateServer",
    "CentralServer",
    "read_source_preferences",
    # Preferences
    "PreferenceStore",
    "InMemoryPreferences",
    "JsonFilePreferences",
    # Configuration
    "Settings",
    "SharedConfig",
    "get_settings",
    # Exceptions
    "BriefscriptError",
    "MissingConfigurationError",
    "EndpointUnavailableError",
    "ScriptWriteError",
    "InvalidPreferencesError",
]
