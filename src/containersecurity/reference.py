"""
Container reference validation and resolution.

A container is configured as a repository URI plus a qualifier, either a
digest or a tag. Validation is purely syntactic and happens while the
build is being configured; resolution to ``repo@sha256:...`` happens
once per build execution:

- a digest is expanded against the build environment (it may be a
  ``$VARIABLE`` set by an earlier stage);
- a tag is looked up in the registry with the build's credentials.
"""

from __future__ import annotations

import logging
import re
from typing import Mapping, Optional

from containersecurity import messages
from containersecurity.client.factory import ClientFactorySupplier
from containersecurity.environment import replace_macro
from containersecurity.errors import (
    ClientInitializationError,
    ContainerReferenceError,
    ErrorKind,
    RemoteServiceError,
)
from containersecurity.models import (
    ContainerQualifier,
    QualifierKind,
    canonical_reference,
)
from containersecurity.validation.chain import validate_required_fields
from containersecurity.validation.result import ValidationResult

logger = logging.getLogger(__name__)

CONTAINER_DIGEST_MACRO_PATTERN = re.compile(r"^\$[a-zA-Z0-9_]+$")
CONTAINER_DIGEST_PATTERN = re.compile(r"^sha256:[a-fA-F0-9]{64}$")
CONTAINER_TAG_PATTERN = re.compile(r"^[a-zA-Z0-9_][a-zA-Z0-9_.\-]{0,127}$")
CONTAINER_URI_PATTERN_TEMPLATE = (
    r"^[a-z]*\.?gcr\.io/%s/([a-z0-9\-]+[a-z0-9]/)*[a-z0-9\-]+[a-z0-9]$"
)


def container_uri_pattern(project_id: str) -> str:
    return CONTAINER_URI_PATTERN_TEMPLATE % re.escape(project_id)


def check_container_uri(project_id: Optional[str], container_uri: Optional[str]) -> ValidationResult:
    """Validate a registry URI scoped to ``project_id``, without tag or digest."""

    def terminal() -> ValidationResult:
        uri_pattern = container_uri_pattern(project_id or "")
        if not re.search(uri_pattern, container_uri or ""):
            return ValidationResult.error(
                messages.container_pattern_no_match("URI", uri_pattern),
                ErrorKind.PATTERN_MISMATCH,
            )
        return ValidationResult.ok()

    return validate_required_fields(
        [container_uri, project_id],
        [messages.CONTAINER_URI_REQUIRED, messages.CONTAINER_URI_PROJECT_ID_REQUIRED],
        terminal,
    )


def check_container_qualifier(
    credentials_id: Optional[str],
    container_qualifier: Optional[str],
    is_digest: bool,
) -> ValidationResult:
    """Validate a digest or tag.

    A ``$VARIABLE`` digest is accepted with a warning since its value is
    only known when the build runs. A tag additionally needs credentials
    because resolving it requires a registry lookup.
    """
    if not container_qualifier:
        return ValidationResult.error(messages.CONTAINER_QUALIFIER_REQUIRED)
    if is_digest:
        if CONTAINER_DIGEST_MACRO_PATTERN.search(container_qualifier):
            return ValidationResult.warning(messages.CONTAINER_DIGEST_MACRO_WARNING)
        if not CONTAINER_DIGEST_PATTERN.search(container_qualifier):
            return ValidationResult.error(
                messages.container_pattern_no_match(
                    "Digest", CONTAINER_DIGEST_PATTERN.pattern
                ),
                ErrorKind.PATTERN_MISMATCH,
            )
    else:
        if not CONTAINER_TAG_PATTERN.search(container_qualifier):
            return ValidationResult.error(
                messages.container_pattern_no_match("Tag", CONTAINER_TAG_PATTERN.pattern),
                ErrorKind.PATTERN_MISMATCH,
            )
        if not credentials_id:
            return ValidationResult.error(
                messages.CONTAINER_TAG_CREDENTIAL_ID_REQUIRED,
                ErrorKind.CONFIGURATION_INCOMPLETE,
            )
    return ValidationResult.ok()


class ContainerReferenceResolver:
    """Turns a configured container into its canonical digest reference."""

    def __init__(self, client_factory: ClientFactorySupplier) -> None:
        self.client_factory = client_factory

    def validate(
        self,
        repository_uri: Optional[str],
        project_id: Optional[str],
        qualifier: ContainerQualifier,
        credentials_id: Optional[str],
    ) -> ValidationResult:
        """Validate the URI, then the qualifier."""
        result = check_container_uri(project_id, repository_uri)
        if result.is_error:
            return result
        return check_container_qualifier(
            credentials_id, qualifier.value, qualifier.kind == QualifierKind.DIGEST
        )

    def resolve(
        self,
        repository_uri: str,
        project_id: str,
        qualifier: ContainerQualifier,
        credentials_id: Optional[str],
        environment: Mapping[str, str],
    ) -> str:
        """Return ``repository_uri@sha256:...`` for the current execution.

        Raises:
            ContainerReferenceError: If the configuration is invalid, the
                expanded digest is malformed, or the tag lookup fails.
        """
        result = self.validate(repository_uri, project_id, qualifier, credentials_id)
        if result.is_error:
            raise ContainerReferenceError(
                result.error_kind or ErrorKind.CONFIGURATION_INCOMPLETE, result.message
            )

        if qualifier.kind == QualifierKind.DIGEST:
            digest = replace_macro(qualifier.value, environment) or ""
            if not CONTAINER_DIGEST_PATTERN.search(digest):
                raise ContainerReferenceError(
                    ErrorKind.PATTERN_MISMATCH,
                    messages.container_pattern_no_match(
                        "Digest", CONTAINER_DIGEST_PATTERN.pattern
                    )
                    + f" (expanded {qualifier.value!r} to {digest!r})",
                )
        else:
            digest = self._lookup_tag(repository_uri, qualifier.value, credentials_id or "")

        reference = canonical_reference(repository_uri, digest)
        logger.info("Resolved %s to %s", qualifier.value, reference)
        return reference

    def _lookup_tag(self, repository_uri: str, tag: str, credentials_id: str) -> str:
        try:
            factory = self.client_factory(credentials_id)
        except ClientInitializationError as e:
            raise ContainerReferenceError(ErrorKind.CREDENTIAL_AUTH_FAILURE, str(e)) from e
        try:
            return factory.container_client().get_digest(repository_uri, tag)
        except (RemoteServiceError, ValueError) as e:
            raise ContainerReferenceError(
                ErrorKind.REMOTE_LISTING_FAILURE,
                f"Failed to resolve tag {tag!r} of {repository_uri}: {e}",
            ) from e
        finally:
            factory.close()
