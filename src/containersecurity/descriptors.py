"""
Fill and check operations for every configurable field.

These are the adapters a configuration UI or the CLI calls while a user
fills in a build: ``fill_*_items`` returns the ``SelectableList`` for a
dropdown and ``check_*`` returns the ``ValidationResult`` for a field.
Neither ever raises for remote or credential failures.

Fields depend on each other in this order::

    credentialsId -> projectId
    credentialsId -> attestorProjectId -> attestorId -> publicKeyId

Usage::

    descriptor = BinAuthzDescriptor()
    options = descriptor.fill_attestor_id_items("ci-robot", "policy-project", "")
    result = descriptor.check_attestor_id("ci-robot", "policy-project", "qa-attestor")
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from google.auth.exceptions import GoogleAuthError

from containersecurity import messages
from containersecurity.client.credentials import CredentialStore, FileCredentialStore
from containersecurity.client.factory import (
    ClientFactory,
    ClientFactorySupplier,
    get_client_factory,
)
from containersecurity.client.scopes import container_security_scopes
from containersecurity.config import get_config
from containersecurity.errors import (
    ClientInitializationError,
    ErrorKind,
    ParentNotFoundError,
)
from containersecurity.otel import emit_validation_result
from containersecurity.reference import check_container_qualifier, check_container_uri
from containersecurity.validation import (
    IdentifierResolver,
    SelectableList,
    ValidationResult,
    validate_required_fields,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


PROJECT_ID_RESOLVER = IdentifierResolver(
    field="projectId",
    missing_messages=[messages.PROJECT_CREDENTIAL_ID_REQUIRED],
    required_message=messages.PROJECT_ID_REQUIRED,
    fill_error=messages.project_id_fill_error,
    verification_error=messages.project_id_verification_error,
    not_found_message=messages.PROJECT_ID_NOT_UNDER_CREDENTIAL,
)

ATTESTOR_PROJECT_ID_RESOLVER = IdentifierResolver(
    field="attestorProjectId",
    missing_messages=[messages.PROJECT_CREDENTIAL_ID_REQUIRED],
    required_message=messages.ATTESTOR_PROJECT_ID_REQUIRED,
    fill_error=messages.project_id_fill_error,
    verification_error=messages.project_id_verification_error,
    not_found_message=messages.PROJECT_ID_NOT_UNDER_CREDENTIAL,
)

ATTESTOR_ID_RESOLVER = IdentifierResolver(
    field="attestorId",
    missing_messages=[
        messages.PROJECT_CREDENTIAL_ID_REQUIRED,
        messages.ATTESTOR_ID_PROJECT_ID_REQUIRED,
    ],
    required_message=messages.ATTESTOR_ID_REQUIRED,
    fill_error=messages.attestor_id_fill_error,
    verification_error=messages.attestor_id_verification_error,
    not_found_message=messages.ATTESTOR_ID_NOT_UNDER_PROJECT,
)

# Listing and verification failures share one message for public keys.
PUBLIC_KEY_ID_RESOLVER = IdentifierResolver(
    field="publicKeyId",
    missing_messages=[
        messages.PROJECT_CREDENTIAL_ID_REQUIRED,
        messages.PUBLIC_KEY_ID_PROJECT_ID_REQUIRED,
        messages.PUBLIC_KEY_ID_ATTESTOR_ID_REQUIRED,
    ],
    required_message=messages.PUBLIC_KEY_ID_REQUIRED,
    fill_error=messages.public_key_id_fill_error,
    verification_error=messages.public_key_id_fill_error,
    not_found_message=messages.PUBLIC_KEY_ID_NOT_FOR_ATTESTOR,
)


def _checked(field: str, result: ValidationResult) -> ValidationResult:
    emit_validation_result(field, result)
    return result


class _Descriptor:
    """Shared client plumbing for the descriptors."""

    def __init__(
        self,
        client_factory: ClientFactorySupplier = get_client_factory,
        credential_store: Optional[CredentialStore] = None,
        scope: Optional[str] = None,
    ) -> None:
        self.client_factory = client_factory
        self._credential_store = credential_store
        self.scope = scope

    @property
    def credential_store(self) -> CredentialStore:
        if self._credential_store is None:
            self._credential_store = FileCredentialStore(get_config().credentials_file)
        return self._credential_store

    def _with_factory(self, credentials_id: str, action: Callable[[ClientFactory], T]) -> T:
        factory = self.client_factory(credentials_id)
        try:
            return action(factory)
        finally:
            factory.close()

    def _list_projects(self, credentials_id: str) -> list[str]:
        return self._with_factory(
            credentials_id,
            lambda f: [
                p.project_id for p in f.cloud_resource_manager_client().list_projects()
            ],
        )


class BuildDescriptor(_Descriptor):
    """Fields of the build: credentials, project and container."""

    def fill_credentials_id_items(self) -> SelectableList:
        try:
            credentials_ids = self.credential_store.list_ids(self.scope)
        except ClientInitializationError as e:
            logger.warning("Listing credentials failed: %s", e)
            return SelectableList.sentinel(str(e))
        result = SelectableList().add("", "")
        for credentials_id in credentials_ids:
            result.add(credentials_id)
        return result

    def check_credentials_id(self, credentials_id: Optional[str]) -> ValidationResult:
        """Check that the credentials exist and can obtain an access token."""

        def terminal() -> ValidationResult:
            try:
                robot = self.credential_store.lookup(self.scope, (), credentials_id or "")
            except ClientInitializationError as e:
                return ValidationResult.error(str(e), ErrorKind.CREDENTIAL_AUTH_FAILURE)
            try:
                robot.refresh_token(container_security_scopes())
            except (GoogleAuthError, ValueError, OSError) as e:
                logger.debug("Token refresh for %s failed: %s", credentials_id, e)
                return ValidationResult.error(
                    messages.CREDENTIAL_AUTH_FAILED, ErrorKind.CREDENTIAL_AUTH_FAILURE
                )
            return ValidationResult.ok()

        return _checked(
            "credentialsId",
            validate_required_fields([credentials_id], [messages.NO_CREDENTIAL], terminal),
        )

    def fill_project_id_items(
        self, credentials_id: Optional[str], project_id: Optional[str]
    ) -> SelectableList:
        return PROJECT_ID_RESOLVER.resolve([credentials_id], project_id, self._list_projects)

    def check_project_id(
        self, credentials_id: Optional[str], project_id: Optional[str]
    ) -> ValidationResult:
        return _checked(
            "projectId",
            PROJECT_ID_RESOLVER.validate([credentials_id], project_id, self._list_projects),
        )

    def check_container_uri(
        self, project_id: Optional[str], container_uri: Optional[str]
    ) -> ValidationResult:
        return _checked("containerUri", check_container_uri(project_id, container_uri))

    def fill_container_qualifier_type_items(self) -> SelectableList:
        return (
            SelectableList()
            .add(messages.QUALIFIER_TYPE_DIGEST, "true")
            .add(messages.QUALIFIER_TYPE_TAG, "false")
        )

    def check_container_qualifier(
        self,
        credentials_id: Optional[str],
        container_qualifier: Optional[str],
        container_qualifier_type: bool,
    ) -> ValidationResult:
        return _checked(
            "containerQualifier",
            check_container_qualifier(
                credentials_id, container_qualifier, container_qualifier_type
            ),
        )


class BinAuthzDescriptor(_Descriptor):
    """Fields of the attestation step: attestor project, attestor and key."""

    def _list_attestors(self, credentials_id: str, attestor_project_id: str) -> list[str]:
        return self._with_factory(
            credentials_id,
            lambda f: [
                a.attestor_id
                for a in f.binary_authorization_client().list_attestors(attestor_project_id)
            ],
        )

    def _list_public_keys(
        self, credentials_id: str, attestor_project_id: str, attestor_id: str
    ) -> list[str]:
        def keys(factory: ClientFactory) -> list[str]:
            attestor = factory.binary_authorization_client().get_attestor(
                attestor_project_id, attestor_id
            )
            if attestor is None:
                raise ParentNotFoundError(messages.ATTESTOR_ID_NOT_UNDER_PROJECT)
            return [k.id for k in attestor.public_keys if k.is_eligible]

        return self._with_factory(credentials_id, keys)

    def fill_attestor_project_id_items(
        self, credentials_id: Optional[str], attestor_project_id: Optional[str]
    ) -> SelectableList:
        return ATTESTOR_PROJECT_ID_RESOLVER.resolve(
            [credentials_id], attestor_project_id, self._list_projects
        )

    def check_attestor_project_id(
        self, credentials_id: Optional[str], attestor_project_id: Optional[str]
    ) -> ValidationResult:
        return _checked(
            "attestorProjectId",
            ATTESTOR_PROJECT_ID_RESOLVER.validate(
                [credentials_id], attestor_project_id, self._list_projects
            ),
        )

    def fill_attestor_id_items(
        self,
        credentials_id: Optional[str],
        attestor_project_id: Optional[str],
        attestor_id: Optional[str],
    ) -> SelectableList:
        return ATTESTOR_ID_RESOLVER.resolve(
            [credentials_id, attestor_project_id], attestor_id, self._list_attestors
        )

    def check_attestor_id(
        self,
        credentials_id: Optional[str],
        attestor_project_id: Optional[str],
        attestor_id: Optional[str],
    ) -> ValidationResult:
        return _checked(
            "attestorId",
            ATTESTOR_ID_RESOLVER.validate(
                [credentials_id, attestor_project_id], attestor_id, self._list_attestors
            ),
        )

    def fill_public_key_id_items(
        self,
        credentials_id: Optional[str],
        attestor_project_id: Optional[str],
        attestor_id: Optional[str],
        public_key_id: Optional[str],
    ) -> SelectableList:
        return PUBLIC_KEY_ID_RESOLVER.resolve(
            [credentials_id, attestor_project_id, attestor_id],
            public_key_id,
            self._list_public_keys,
        )

    def check_public_key_id(
        self,
        credentials_id: Optional[str],
        attestor_project_id: Optional[str],
        attestor_id: Optional[str],
        public_key_id: Optional[str],
    ) -> ValidationResult:
        return _checked(
            "publicKeyId",
            PUBLIC_KEY_ID_RESOLVER.validate(
                [credentials_id, attestor_project_id, attestor_id],
                public_key_id,
                self._list_public_keys,
            ),
        )
