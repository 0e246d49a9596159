"""
Service account credential lookup.

The CI host owns credential storage; this module only needs to find a
credential by ID and turn it into google-auth credentials. The default
store reads a YAML file:

.. code-block:: yaml

    credentials:
      ci-robot:
        keyFile: /etc/ci/keys/ci-robot.json
      release-robot:
        key: {"type": "service_account", ...}
        scope: [release]
        domains: [gcr.io]

``scope`` restricts which contexts may see the credential and
``domains`` which hosts it may be used against; both are optional.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence, Union, runtime_checkable

import yaml
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from containersecurity import messages
from containersecurity.errors import CredentialsNotFoundError, CredentialStoreError

logger = logging.getLogger(__name__)


class RobotCredentials:
    """A service account credential resolved from the store."""

    def __init__(
        self,
        credentials_id: str,
        key_info: Optional[dict[str, Any]] = None,
        key_file: Optional[str] = None,
    ) -> None:
        if key_info is None and key_file is None:
            raise ValueError("Either key_info or key_file is required")
        self.credentials_id = credentials_id
        self.key_info = key_info
        self.key_file = key_file

    def google_credential(self, scopes: Sequence[str]) -> service_account.Credentials:
        """Build scoped google-auth credentials.

        Raises:
            ValueError: If the key material is malformed.
            OSError: If the key file cannot be read.
        """
        if self.key_info is not None:
            return service_account.Credentials.from_service_account_info(
                self.key_info, scopes=list(scopes)
            )
        return service_account.Credentials.from_service_account_file(
            self.key_file, scopes=list(scopes)
        )

    def refresh_token(self, scopes: Sequence[str]) -> None:
        """Obtain an access token, proving the key is usable.

        Raises:
            google.auth.exceptions.GoogleAuthError: If the token exchange fails.
        """
        credential = self.google_credential(scopes)
        credential.refresh(Request())


@runtime_checkable
class CredentialStore(Protocol):
    """Lookup interface of the credential store."""

    def lookup(
        self,
        scope: Optional[str],
        domain_requirements: Sequence[str],
        credentials_id: str,
    ) -> RobotCredentials:
        ...

    def list_ids(self, scope: Optional[str] = None) -> list[str]:
        ...


class FileCredentialStore:
    """Credential store backed by a YAML file.

    A store that cannot be parsed raises ``CredentialStoreError`` from
    every operation; an entry that is not a mapping is hidden from
    ``list_ids`` and rejected by ``lookup``.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._entries: Optional[dict[str, Any]] = None

    def _load(self) -> dict[str, Any]:
        if self._entries is None:
            if not self.path.exists():
                logger.debug("Credential store %s does not exist", self.path)
                self._entries = {}
                return self._entries
            try:
                with open(self.path) as f:
                    data = yaml.safe_load(f) or {}
            except (yaml.YAMLError, OSError) as e:
                raise CredentialStoreError(
                    messages.invalid_credential_store(str(self.path), str(e))
                ) from e
            credentials = data.get("credentials") if isinstance(data, dict) else None
            if credentials is not None and not isinstance(credentials, dict):
                raise CredentialStoreError(
                    messages.invalid_credential_store(
                        str(self.path), "'credentials' must be a mapping"
                    )
                )
            self._entries = dict(credentials or {})
        return self._entries

    @staticmethod
    def _visible(entry: dict[str, Any], scope: Optional[str]) -> bool:
        allowed = entry.get("scope")
        return not allowed or scope in allowed

    @staticmethod
    def _matches_domains(entry: dict[str, Any], domain_requirements: Sequence[str]) -> bool:
        domains = entry.get("domains")
        return not domains or all(d in domains for d in domain_requirements)

    def list_ids(self, scope: Optional[str] = None) -> list[str]:
        ids = []
        for credentials_id, entry in self._load().items():
            if entry is not None and not isinstance(entry, dict):
                logger.warning("Skipping malformed credential entry %s", credentials_id)
                continue
            if self._visible(entry or {}, scope):
                ids.append(credentials_id)
        return ids

    def lookup(
        self,
        scope: Optional[str],
        domain_requirements: Sequence[str],
        credentials_id: str,
    ) -> RobotCredentials:
        """Find the service account credential with ``credentials_id``.

        Raises:
            CredentialsNotFoundError: If no visible service account entry
                has that ID.
            CredentialStoreError: If the store or the entry is malformed.
        """
        entry = self._load().get(credentials_id)
        if entry is not None and not isinstance(entry, dict):
            raise CredentialStoreError(messages.invalid_credential_entry(credentials_id))
        if (
            not entry
            or not self._visible(entry, scope)
            or not self._matches_domains(entry, domain_requirements)
        ):
            raise CredentialsNotFoundError(
                credentials_id, messages.failed_to_retrieve_credentials(credentials_id)
            )

        key = entry.get("key")
        if isinstance(key, str):
            try:
                key = json.loads(key)
            except json.JSONDecodeError as e:
                raise CredentialStoreError(
                    messages.invalid_credential_entry(credentials_id)
                ) from e
        if key is not None and not isinstance(key, dict):
            raise CredentialStoreError(messages.invalid_credential_entry(credentials_id))
        key_file = entry.get("keyFile")
        if key is None and key_file is None:
            raise CredentialsNotFoundError(
                credentials_id, messages.failed_to_retrieve_credentials(credentials_id)
            )
        if key_file is not None:
            key_file = str(Path(key_file).expanduser())
        return RobotCredentials(credentials_id, key_info=key, key_file=key_file)
