"""Pull and push sources.

A source is a configured remote server. It can list the forms it hosts,
emit the command lines a generated script runs to pull from or push to it,
and save or restore its own configuration in a preference scope.

Defines the Source contract and implementations:
- AggregateServer: ODK Aggregate, forms listed through the OpenRosa formList
- CentralServer: ODK Central, forms listed through the REST API
"""

from __future__ import annotations

import ssl
import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, ClassVar

import certifi
import httpx
from loguru import logger

from briefscript.config import SharedConfig
from briefscript.exceptions import EndpointUnavailableError, InvalidPreferencesError
from briefscript.forms import FormDescriptor, TransferType
from briefscript.preferences import PreferenceStore

DEFAULT_TIMEOUT = 30.0

OPENROSA_XFORMS_LIST_NS = "http://openrosa.org/xforms/xformsList"

KIND_KEY = "kind"
URL_KEY = "url"
PROJECT_ID_KEY = "project_id"
USERNAME_KEY = "username"
PASSWORD_KEY = "password"


class Source(ABC):
    """A configured server that forms are pulled from or pushed to.

    Instances are immutable. Reconfiguring a source means building a new
    instance and replacing the old one.
    """

    kind: ClassVar[str]

    @property
    @abstractmethod
    def url(self) -> str:
        """Base URL identifying the server."""

    @abstractmethod
    def get_form_list(self) -> list[FormDescriptor]:
        """List the forms available on the server.

        Raises:
            EndpointUnavailableError: If the server cannot be reached or
                returns something that is not a form list.
        """

    @abstractmethod
    def pull_script_lines(
        self, forms: Sequence[FormDescriptor], shared: SharedConfig
    ) -> list[str]:
        """Command lines that pull ``forms`` from this server, in order."""

    @abstractmethod
    def push_script_lines(
        self, forms: Sequence[FormDescriptor], shared: SharedConfig
    ) -> list[str]:
        """Command lines that push ``forms`` to this server, in order."""

    @abstractmethod
    def store_preferences(self, preferences: PreferenceStore, store_passwords: bool) -> None:
        """Save this source's configuration.

        Credentials are written only when ``store_passwords`` is True.
        """

    @classmethod
    @abstractmethod
    def read_preferences(cls, preferences: PreferenceStore) -> Source | None:
        """Rebuild a source from saved configuration, or None if there is none."""


def _make_client(timeout: float) -> httpx.Client:
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    return httpx.Client(timeout=timeout, verify=ssl_context, follow_redirects=True)


def _credential_args(username: str | None, password: str | None) -> str:
    args = ""
    if username:
        args += f" --odk_username {username}"
    if password:
        args += f" --odk_password {password}"
    return args


# --- ODK Aggregate ---


@dataclass(frozen=True)
class AggregateServer(Source):
    """An ODK Aggregate server, optionally with credentials."""

    kind: ClassVar[str] = "aggregate"

    base_url: str
    username: str | None = None
    password: str | None = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT
    client: httpx.Client | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def url(self) -> str:
        return self.base_url

    def get_form_list(self) -> list[FormDescriptor]:
        """GET {url}/formList"""
        endpoint = f"{self.base_url}/formList"
        headers = {"X-OpenRosa-Version": "1.0"}
        body = _fetch(
            self.base_url, endpoint, headers, self._auth(), self.client, self.timeout
        ).text
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise EndpointUnavailableError(self.base_url, f"Malformed form list: {e}") from e

        forms = []
        for xform in root.iter(f"{{{OPENROSA_XFORMS_LIST_NS}}}xform"):
            form_id = xform.findtext(f"{{{OPENROSA_XFORMS_LIST_NS}}}formID")
            if not form_id:
                continue
            name = xform.findtext(f"{{{OPENROSA_XFORMS_LIST_NS}}}name") or form_id
            forms.append(FormDescriptor(form_id, name, TransferType.PULL))
        logger.debug("Aggregate server {} lists {} form(s)", self.base_url, len(forms))
        return forms

    def pull_script_lines(
        self, forms: Sequence[FormDescriptor], shared: SharedConfig
    ) -> list[str]:
        return [self._script_line("--pull_aggregate", form, shared) for form in forms]

    def push_script_lines(
        self, forms: Sequence[FormDescriptor], shared: SharedConfig
    ) -> list[str]:
        return [self._script_line("--push_aggregate", form, shared) for form in forms]

    def _script_line(self, operation: str, form: FormDescriptor, shared: SharedConfig) -> str:
        return (
            f"{shared.runtime_invocation} {operation}"
            f" --form_id {form.form_id}"
            f" --storage_directory {shared.storage_directory}"
            f" --odk_url {self.base_url}"
            f"{_credential_args(self.username, self.password)}"
        )

    def _auth(self) -> httpx.BasicAuth | None:
        if self.username and self.password:
            return httpx.BasicAuth(self.username, self.password)
        return None

    def store_preferences(self, preferences: PreferenceStore, store_passwords: bool) -> None:
        preferences.put(KIND_KEY, self.kind)
        preferences.put(URL_KEY, self.base_url)
        if store_passwords:
            if self.username:
                preferences.put(USERNAME_KEY, self.username)
            if self.password:
                preferences.put(PASSWORD_KEY, self.password)

    @classmethod
    def read_preferences(cls, preferences: PreferenceStore) -> AggregateServer | None:
        url = preferences.get(URL_KEY)
        if not url:
            return None
        return cls(
            base_url=url,
            username=preferences.get(USERNAME_KEY),
            password=preferences.get(PASSWORD_KEY),
        )

    def __str__(self) -> str:
        return f"Aggregate server at {self.base_url}"


# --- ODK Central ---


@dataclass(frozen=True)
class CentralServer(Source):
    """A project on an ODK Central server."""

    kind: ClassVar[str] = "central"

    base_url: str
    project_id: int
    email: str | None = None
    password: str | None = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT
    client: httpx.Client | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @property
    def url(self) -> str:
        return self.base_url

    def get_form_list(self) -> list[FormDescriptor]:
        """GET {url}/v1/projects/{projectId}/forms"""
        endpoint = f"{self.base_url}/v1/projects/{self.project_id}/forms"
        headers = {"Accept": "application/json"}
        response = _fetch(
            self.base_url, endpoint, headers, self._auth(), self.client, self.timeout
        )
        try:
            data: Any = response.json()
        except ValueError as e:
            raise EndpointUnavailableError(self.base_url, f"Malformed form list: {e}") from e
        if not isinstance(data, list):
            raise EndpointUnavailableError(self.base_url, "Form list is not a JSON array")

        forms = []
        for item in data:
            form_id = item.get("xmlFormId") if isinstance(item, dict) else None
            if not form_id:
                continue
            forms.append(FormDescriptor(form_id, item.get("name") or form_id, TransferType.PULL))
        logger.debug(
            "Central project {} at {} lists {} form(s)", self.project_id, self.base_url, len(forms)
        )
        return forms

    def pull_script_lines(
        self, forms: Sequence[FormDescriptor], shared: SharedConfig
    ) -> list[str]:
        return [self._script_line("--pull_central", form, shared) for form in forms]

    def push_script_lines(
        self, forms: Sequence[FormDescriptor], shared: SharedConfig
    ) -> list[str]:
        return [self._script_line("--push_central", form, shared) for form in forms]

    def _script_line(self, operation: str, form: FormDescriptor, shared: SharedConfig) -> str:
        return (
            f"{shared.runtime_invocation} {operation}"
            f" --form_id {form.form_id}"
            f" --storage_directory {shared.storage_directory}"
            f" --odk_url {self.base_url}"
            f" --project_id {self.project_id}"
            f"{_credential_args(self.email, self.password)}"
        )

    def _auth(self) -> httpx.BasicAuth | None:
        if self.email and self.password:
            return httpx.BasicAuth(self.email, self.password)
        return None

    def store_preferences(self, preferences: PreferenceStore, store_passwords: bool) -> None:
        preferences.put(KIND_KEY, self.kind)
        preferences.put(URL_KEY, self.base_url)
        preferences.put(PROJECT_ID_KEY, str(self.project_id))
        if store_passwords:
            if self.email:
                preferences.put(USERNAME_KEY, self.email)
            if self.password:
                preferences.put(PASSWORD_KEY, self.password)

    @classmethod
    def read_preferences(cls, preferences: PreferenceStore) -> CentralServer | None:
        url = preferences.get(URL_KEY)
        if not url:
            return None
        project_id = preferences.get(PROJECT_ID_KEY)
        try:
            parsed_project_id = int(project_id or "")
        except ValueError as e:
            raise InvalidPreferencesError(
                preferences.scope, f"Central project id {project_id!r} is not a number"
            ) from e
        return cls(
            base_url=url,
            project_id=parsed_project_id,
            email=preferences.get(USERNAME_KEY),
            password=preferences.get(PASSWORD_KEY),
        )

    def __str__(self) -> str:
        return f"Central project {self.project_id} at {self.base_url}"


# --- HTTP helper ---


def _fetch(
    source_url: str,
    endpoint: str,
    headers: dict[str, str],
    auth: httpx.BasicAuth | None,
    client: httpx.Client | None,
    timeout: float,
) -> httpx.Response:
    """GET ``endpoint``, mapping every failure to EndpointUnavailableError.

    Uses ``client`` when given, otherwise a short-lived client of its own.
    """
    owns_client = client is None
    http = client if client is not None else _make_client(timeout)
    try:
        response = http.get(endpoint, headers=headers, auth=auth or httpx.USE_CLIENT_DEFAULT)
        response.raise_for_status()
        return response
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status in (401, 403):
            reason = f"Authentication failed ({status})"
        else:
            reason = f"HTTP {status}"
        raise EndpointUnavailableError(source_url, reason) from e
    except httpx.RequestError as e:
        raise EndpointUnavailableError(source_url, f"Network error: {e}") from e
    finally:
        if owns_client:
            http.close()


# --- Registry ---

SOURCE_KINDS: dict[str, type[Source]] = {
    AggregateServer.kind: AggregateServer,
    CentralServer.kind: CentralServer,
}


def read_source_preferences(preferences: PreferenceStore) -> Source | None:
    """Restore whichever kind of source was saved in ``preferences``.

    Returns None when nothing was saved.

    Raises:
        InvalidPreferencesError: If the saved kind is not known.
    """
    kind = preferences.get(KIND_KEY)
    if kind is None:
        return None
    source_class = SOURCE_KINDS.get(kind)
    if source_class is None:
        raise InvalidPreferencesError(preferences.scope, f"Unknown source kind {kind!r}")
    return source_class.read_preferences(preferences)

