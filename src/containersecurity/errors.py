"""
Exception types raised across container security operations.

Configuration-time checks never let these escape: descriptors convert
them into ``ValidationResult`` errors tagged with an ``ErrorKind``.
Execution-time failures become a diagnostic line plus ``BuildFailure``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

CONFLICT_STATUS_CODE = 409
CONFLICT_MARKER = "409 Conflict"


class ErrorKind(str, Enum):
    """Failure taxonomy reported to users and build logs."""

    CONFIGURATION_INCOMPLETE = "configuration_incomplete"
    REMOTE_LISTING_FAILURE = "remote_listing_failure"
    NOT_UNDER_PARENT = "not_under_parent"
    PATTERN_MISMATCH = "pattern_mismatch"
    SIGNING_OR_SUBMISSION_FAILURE = "signing_or_submission_failure"
    CREDENTIAL_AUTH_FAILURE = "credential_auth_failure"


class ContainerSecurityError(Exception):
    """Base class for all container security errors."""


class ClientInitializationError(ContainerSecurityError):
    """Credentials could not be turned into authenticated API clients."""


class CredentialsNotFoundError(ClientInitializationError):
    """No usable service account credentials exist for an ID."""

    def __init__(self, credentials_id: str, message: str) -> None:
        self.credentials_id = credentials_id
        super().__init__(message)


class CredentialStoreError(ClientInitializationError):
    """The credential store itself is unreadable or malformed."""


class RemoteServiceError(ContainerSecurityError):
    """A remote API call failed.

    ``status_code`` is the HTTP status when the service answered, or
    ``None`` for transport failures.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_conflict(self) -> bool:
        """True when the remote object already exists."""
        if self.status_code is not None:
            return self.status_code == CONFLICT_STATUS_CODE
        return CONFLICT_MARKER in self.message


class ParentNotFoundError(ContainerSecurityError):
    """The parent object of a listing does not exist."""


class ContainerReferenceError(ContainerSecurityError):
    """A container reference could not be validated or resolved."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        self.kind = kind
        super().__init__(message)


class BuildFailure(ContainerSecurityError):
    """Raised to fail the surrounding build."""
