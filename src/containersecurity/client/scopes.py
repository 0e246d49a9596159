"""OAuth2 scopes requested for the service account credentials."""

from __future__ import annotations

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
CLOUD_KMS_SCOPE = "https://www.googleapis.com/auth/cloudkms"

BINARY_AUTHORIZATION_SCOPES = (CLOUD_PLATFORM_SCOPE,)
CLOUD_KMS_SCOPES = (CLOUD_PLATFORM_SCOPE, CLOUD_KMS_SCOPE)
CONTAINER_ANALYSIS_SCOPES = (CLOUD_PLATFORM_SCOPE,)
CLOUD_RESOURCE_MANAGER_SCOPES = (CLOUD_PLATFORM_SCOPE,)


def container_security_scopes() -> list[str]:
    """All scopes the API clients need, deduplicated in a stable order."""
    scopes: list[str] = []
    for group in (
        BINARY_AUTHORIZATION_SCOPES,
        CLOUD_KMS_SCOPES,
        CONTAINER_ANALYSIS_SCOPES,
        CLOUD_RESOURCE_MANAGER_SCOPES,
    ):
        for scope in group:
            if scope not in scopes:
                scopes.append(scope)
    return scopes
