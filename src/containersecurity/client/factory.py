"""
Client factory for the Google Cloud APIs used by attestation builds.

Usage::

    from containersecurity.client import get_client_factory

    with get_client_factory("ci-robot") as factory:
        projects = factory.cloud_resource_manager_client().list_projects()
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

import httpx
from google.auth.credentials import Credentials
from google.auth.exceptions import GoogleAuthError

from containersecurity import messages
from containersecurity.client.binary_authorization import BinaryAuthorizationClient
from containersecurity.client.container_analysis import ContainerAnalysisClient
from containersecurity.client.credentials import CredentialStore, FileCredentialStore
from containersecurity.client.kms import CloudKMSClient
from containersecurity.client.registry import ContainerClient
from containersecurity.client.resource_manager import CloudResourceManagerClient
from containersecurity.client.scopes import container_security_scopes
from containersecurity.config import ContainerSecurityConfig, get_config
from containersecurity.errors import ClientInitializationError

logger = logging.getLogger(__name__)


class ClientFactory:
    """Creates API clients sharing one credential and HTTP connection pool."""

    def __init__(
        self,
        credentials: Credentials,
        config: Optional[ContainerSecurityConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or get_config()
        self.credentials = credentials
        self._http = httpx.Client(
            timeout=self.config.http_timeout_seconds,
            transport=transport,
            headers={"User-Agent": self.config.application_name},
        )

    def __enter__(self) -> "ClientFactory":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def cloud_resource_manager_client(self) -> CloudResourceManagerClient:
        return CloudResourceManagerClient(
            self.config.resource_manager_endpoint, self.credentials, self._http
        )

    def binary_authorization_client(self) -> BinaryAuthorizationClient:
        return BinaryAuthorizationClient(
            self.config.binary_authorization_endpoint, self.credentials, self._http
        )

    def cloud_kms_client(self) -> CloudKMSClient:
        return CloudKMSClient(self.config.cloud_kms_endpoint, self.credentials, self._http)

    def container_analysis_client(self) -> ContainerAnalysisClient:
        return ContainerAnalysisClient(
            self.config.container_analysis_endpoint, self.credentials, self._http
        )

    def container_client(self) -> ContainerClient:
        return ContainerClient(self.credentials, self._http, scheme=self.config.registry_scheme)


ClientFactorySupplier = Callable[[str], ClientFactory]
"""Returns a ClientFactory for a credentials ID."""


def get_client_factory(
    credentials_id: Optional[str],
    store: Optional[CredentialStore] = None,
    scope: Optional[str] = None,
    domain_requirements: Sequence[str] = (),
    transport: Optional[httpx.BaseTransport] = None,
    config: Optional[ContainerSecurityConfig] = None,
) -> ClientFactory:
    """Create a ``ClientFactory`` for the credentials with ``credentials_id``.

    Args:
        credentials_id: ID of the service account credentials.
        store: Credential store; defaults to the configured YAML file.
        scope: Context the credential must be visible in.
        domain_requirements: Hosts the credential must be usable for.
        transport: Optional httpx transport, a default is used if unset.
        config: Optional configuration, the global one if unset.

    Raises:
        ClientInitializationError: If the ID is empty, the credential is
            not found, or the credential cannot be initialized.
    """
    if not credentials_id:
        raise ClientInitializationError(messages.CREDENTIALS_ID_REQUIRED)

    config = config or get_config()
    if store is None:
        store = FileCredentialStore(config.credentials_file)

    try:
        robot = store.lookup(scope, domain_requirements, credentials_id)
        credential = robot.google_credential(container_security_scopes())
    except (GoogleAuthError, ValueError, OSError) as e:
        logger.warning("Client initialization failed for %s: %s", credentials_id, e)
        raise ClientInitializationError(
            messages.failed_to_initialize_http_transport(e)
        ) from e
    return ClientFactory(credential, config=config, transport=transport)
