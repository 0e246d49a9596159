"""Tests for container reference validation and resolution."""

from unittest.mock import MagicMock

import pytest

from containersecurity import messages
from containersecurity.errors import (
    ClientInitializationError,
    ContainerReferenceError,
    ErrorKind,
    RemoteServiceError,
)
from containersecurity.models import ContainerQualifier, QualifierKind
from containersecurity.reference import (
    ContainerReferenceResolver,
    check_container_qualifier,
    check_container_uri,
    container_uri_pattern,
)
from containersecurity.validation import ValidationKind

DIGEST = "sha256:" + "0123456789abcdef" * 4


def digest(value: str) -> ContainerQualifier:
    return ContainerQualifier(kind=QualifierKind.DIGEST, value=value)


def tag(value: str) -> ContainerQualifier:
    return ContainerQualifier(kind=QualifierKind.TAG, value=value)


# ---------------------------------------------------------------------------
# Configuration-time checks
# ---------------------------------------------------------------------------


class TestCheckContainerUri:

    @pytest.mark.parametrize(
        "uri",
        [
            "gcr.io/test-project/app",
            "us.gcr.io/test-project/team/app",
            "eu.gcr.io/test-project/a-b/c-d",
        ],
    )
    def test_valid_uris(self, uri):
        assert check_container_uri("test-project", uri).is_ok

    @pytest.mark.parametrize(
        "uri",
        [
            "gcr.io/other-project/app",
            "docker.io/test-project/app",
            "gcr.io/test-project/app:latest",
            "gcr.io/test-project/App",
            "gcr.io/test-project/app-",
        ],
    )
    def test_invalid_uris_report_pattern(self, uri):
        result = check_container_uri("test-project", uri)

        assert result.is_error
        assert result.error_kind == ErrorKind.PATTERN_MISMATCH
        assert container_uri_pattern("test-project") in result.message

    def test_uri_checked_before_project(self):
        result = check_container_uri("", "")

        assert result.message == messages.CONTAINER_URI_REQUIRED

    def test_project_required(self):
        result = check_container_uri("", "gcr.io/test-project/app")

        assert result.message == messages.CONTAINER_URI_PROJECT_ID_REQUIRED


class TestCheckContainerQualifier:

    def test_empty_qualifier(self):
        result = check_container_qualifier("c", "", True)

        assert result.message == messages.CONTAINER_QUALIFIER_REQUIRED

    def test_macro_digest_is_warning(self):
        result = check_container_qualifier("", "$DIGEST", True)

        assert result.kind == ValidationKind.WARNING
        assert result.message == messages.CONTAINER_DIGEST_MACRO_WARNING

    def test_valid_digest(self):
        assert check_container_qualifier("", DIGEST, True).is_ok

    @pytest.mark.parametrize("value", ["sha256:abc", "latest", "sha512:" + "a" * 64, "${DIGEST}"])
    def test_invalid_digest(self, value):
        result = check_container_qualifier("c", value, True)

        assert result.is_error
        assert result.error_kind == ErrorKind.PATTERN_MISMATCH

    def test_valid_tag_with_credentials(self):
        assert check_container_qualifier("c", "v1.2.3", False).is_ok

    def test_valid_tag_without_credentials(self):
        result = check_container_qualifier("", "v1", False)

        assert result.is_error
        assert result.message == messages.CONTAINER_TAG_CREDENTIAL_ID_REQUIRED
        assert result.error_kind == ErrorKind.CONFIGURATION_INCOMPLETE

    def test_tag_pattern_checked_before_credentials(self):
        result = check_container_qualifier("", ".bad", False)

        assert result.error_kind == ErrorKind.PATTERN_MISMATCH
        assert "Tag" in result.message

    def test_tag_too_long(self):
        result = check_container_qualifier("c", "a" * 129, False)

        assert result.error_kind == ErrorKind.PATTERN_MISMATCH


# ---------------------------------------------------------------------------
# Execution-time resolution
# ---------------------------------------------------------------------------


class TestResolve:

    def test_digest_is_used_as_is(self, factory_supplier):
        resolver = ContainerReferenceResolver(factory_supplier)

        reference = resolver.resolve(
            "gcr.io/test-project/app", "test-project", digest(DIGEST), "", {}
        )

        assert reference == f"gcr.io/test-project/app@{DIGEST}"
        factory_supplier.assert_not_called()

    def test_macro_digest_is_expanded(self, factory_supplier):
        resolver = ContainerReferenceResolver(factory_supplier)

        reference = resolver.resolve(
            "gcr.io/test-project/app",
            "test-project",
            digest("$IMAGE_DIGEST"),
            "",
            {"IMAGE_DIGEST": DIGEST},
        )

        assert reference == f"gcr.io/test-project/app@{DIGEST}"

    def test_unset_macro_fails_at_execution(self, factory_supplier):
        resolver = ContainerReferenceResolver(factory_supplier)

        with pytest.raises(ContainerReferenceError) as exc_info:
            resolver.resolve(
                "gcr.io/test-project/app", "test-project", digest("$IMAGE_DIGEST"), "", {}
            )

        assert exc_info.value.kind == ErrorKind.PATTERN_MISMATCH

    def test_tag_is_looked_up(self, factory_supplier, mock_factory):
        mock_factory.container_client.return_value.get_digest.return_value = DIGEST
        resolver = ContainerReferenceResolver(factory_supplier)

        reference = resolver.resolve(
            "gcr.io/test-project/app", "test-project", tag("v1"), "robot", {}
        )

        assert reference == f"gcr.io/test-project/app@{DIGEST}"
        factory_supplier.assert_called_once_with("robot")
        mock_factory.container_client.return_value.get_digest.assert_called_once_with(
            "gcr.io/test-project/app", "v1"
        )
        mock_factory.close.assert_called_once()

    def test_tag_lookup_failure(self, factory_supplier, mock_factory):
        mock_factory.container_client.return_value.get_digest.side_effect = (
            RemoteServiceError("404 Not Found", status_code=404)
        )
        resolver = ContainerReferenceResolver(factory_supplier)

        with pytest.raises(ContainerReferenceError) as exc_info:
            resolver.resolve("gcr.io/test-project/app", "test-project", tag("v1"), "robot", {})

        assert exc_info.value.kind == ErrorKind.REMOTE_LISTING_FAILURE
        assert "404 Not Found" in str(exc_info.value)
        mock_factory.close.assert_called_once()

    def test_tag_client_failure(self):
        supplier = MagicMock(side_effect=ClientInitializationError("bad key"))
        resolver = ContainerReferenceResolver(supplier)

        with pytest.raises(ContainerReferenceError) as exc_info:
            resolver.resolve("gcr.io/test-project/app", "test-project", tag("v1"), "robot", {})

        assert exc_info.value.kind == ErrorKind.CREDENTIAL_AUTH_FAILURE

    def test_invalid_configuration_is_rejected_before_lookup(self, factory_supplier):
        resolver = ContainerReferenceResolver(factory_supplier)

        with pytest.raises(ContainerReferenceError) as exc_info:
            resolver.resolve("gcr.io/test-project/app", "test-project", tag("v1"), "", {})

        assert str(exc_info.value) == messages.CONTAINER_TAG_CREDENTIAL_ID_REQUIRED
        factory_supplier.assert_not_called()

    def test_uri_outside_project_is_rejected(self, factory_supplier):
        resolver = ContainerReferenceResolver(factory_supplier)

        with pytest.raises(ContainerReferenceError) as exc_info:
            resolver.resolve("gcr.io/other/app", "test-project", digest(DIGEST), "", {})

        assert exc_info.value.kind == ErrorKind.PATTERN_MISMATCH
