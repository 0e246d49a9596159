"""
User-facing message catalog.

Only the texts live here. Which message is shown for which missing or
invalid condition is decided by the resolvers and descriptors.
"""

from __future__ import annotations

# Build (container) fields
NO_CREDENTIAL = "Credentials are required."
CREDENTIAL_AUTH_FAILED = (
    "Unable to authenticate with the selected credentials. Check that the "
    "service account key is valid and has not been revoked."
)
PROJECT_CREDENTIAL_ID_REQUIRED = "Credentials are required to list projects."
PROJECT_ID_REQUIRED = "A project ID is required."
PROJECT_ID_NOT_UNDER_CREDENTIAL = (
    "The project is not accessible with the provided credentials."
)
CONTAINER_URI_REQUIRED = "A container URI is required."
CONTAINER_URI_PROJECT_ID_REQUIRED = (
    "A project ID is required to validate the container URI."
)
CONTAINER_QUALIFIER_REQUIRED = "A container digest or tag is required."
CONTAINER_DIGEST_MACRO_WARNING = (
    "The digest will be expanded from the build environment and is only "
    "validated when the build runs."
)
CONTAINER_TAG_CREDENTIAL_ID_REQUIRED = (
    "Credentials are required to resolve a container tag to a digest."
)

# Attestation step fields
ATTESTOR_PROJECT_ID_REQUIRED = "An attestor project ID is required."
ATTESTOR_ID_PROJECT_ID_REQUIRED = "An attestor project ID is required to list attestors."
ATTESTOR_ID_REQUIRED = "An attestor ID is required."
ATTESTOR_ID_NOT_UNDER_PROJECT = "The attestor does not exist in the attestor project."
PUBLIC_KEY_ID_PROJECT_ID_REQUIRED = (
    "An attestor project ID is required to list public keys."
)
PUBLIC_KEY_ID_ATTESTOR_ID_REQUIRED = "An attestor ID is required to list public keys."
PUBLIC_KEY_ID_REQUIRED = "A public key ID is required."
PUBLIC_KEY_ID_NOT_FOR_ATTESTOR = "The public key is not registered with the attestor."

# Client factory
CREDENTIALS_ID_REQUIRED = "A credentials ID is required to create API clients."

QUALIFIER_TYPE_DIGEST = "Digest"
QUALIFIER_TYPE_TAG = "Tag"


def project_id_fill_error(error: str) -> str:
    return f"Failed to list projects: {error}"


def project_id_verification_error(error: str) -> str:
    return f"Failed to verify the project ID: {error}"


def attestor_id_fill_error(error: str) -> str:
    return f"Failed to list attestors: {error}"


def attestor_id_verification_error(error: str) -> str:
    return f"Failed to verify the attestor ID: {error}"


def public_key_id_fill_error(error: str) -> str:
    return f"Failed to list public keys: {error}"


def container_pattern_no_match(kind: str, pattern: str) -> str:
    """Message for a syntactic field that does not match ``pattern``."""
    return f"The container {kind} does not match the required pattern: {pattern}"


def failed_to_retrieve_credentials(credentials_id: str) -> str:
    return f"Failed to retrieve service account credentials with ID '{credentials_id}'."


def invalid_credential_store(path: str, error: str) -> str:
    return f"Credential store {path} could not be read: {error}"


def invalid_credential_entry(credentials_id: str) -> str:
    return f"Service account credentials with ID '{credentials_id}' are malformed."


def failed_to_initialize_http_transport(error: object) -> str:
    return f"Failed to initialize HTTP transport: {error}"


def attestation_intro(attestor_project_id: str, attestor_id: str, reference: str) -> str:
    return (
        f"Creating attestation with attestor projects/{attestor_project_id}/"
        f"attestors/{attestor_id} for {reference}"
    )


def attestation_failed(reference: str, attestor_id: str, error: str) -> str:
    return (
        f"Failed to create attestation for {reference} with attestor "
        f"{attestor_id}: {error}"
    )


def attestation_already_exists(error: str) -> str:
    return f"Attestation already exists: {error}"


def client_unavailable(error: str) -> str:
    return f"Failed to get credentials id from parent: {error}"


def reference_resolution_failed(error: str) -> str:
    return f"Failed to resolve container reference: {error}"


def build_step_failed(attestor_id: str, reason: str) -> str:
    return f"Attestation with attestor {attestor_id} failed: {reason}"
