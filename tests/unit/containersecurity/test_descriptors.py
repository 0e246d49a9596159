"""Tests for the fill and check operations of each field."""

import functools
from unittest.mock import MagicMock

import pytest
import yaml
from google.auth.exceptions import RefreshError

from containersecurity import messages
from containersecurity.client.credentials import FileCredentialStore
from containersecurity.client.factory import get_client_factory
from containersecurity.descriptors import BinAuthzDescriptor, BuildDescriptor
from containersecurity.errors import (
    ClientInitializationError,
    CredentialsNotFoundError,
    ErrorKind,
    RemoteServiceError,
)
from containersecurity.models import Attestor, CloudProject
from containersecurity.validation import ValidationKind

KEY_ID = "projects/p/locations/global/keyRings/r/cryptoKeys/k/cryptoKeyVersions/1"
OTHER_KEY_ID = "projects/p/locations/global/keyRings/r/cryptoKeys/k/cryptoKeyVersions/2"


def projects(*ids):
    return [CloudProject(project_id=i) for i in ids]


def attestor(name, *key_ids):
    return Attestor.model_validate(
        {
            "name": f"projects/policy/attestors/{name}",
            "userOwnedDrydockNote": {"publicKeys": [{"id": k} for k in key_ids]},
        }
    )


@pytest.fixture
def store():
    return MagicMock(name="CredentialStore")


@pytest.fixture
def unreadable_store(tmp_path):
    path = tmp_path / "credentials.yaml"
    path.write_text("credentials: [unclosed\n")
    return FileCredentialStore(path)


@pytest.fixture
def build_descriptor(factory_supplier, store):
    return BuildDescriptor(factory_supplier, credential_store=store)


@pytest.fixture
def binauthz_descriptor(factory_supplier, store):
    return BinAuthzDescriptor(factory_supplier, credential_store=store)


@pytest.fixture
def resource_manager(mock_factory):
    client = mock_factory.cloud_resource_manager_client.return_value
    client.list_projects.return_value = projects("other", "test")
    return client


@pytest.fixture
def binauthz(mock_factory):
    return mock_factory.binary_authorization_client.return_value


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentialsId:

    def test_fill_lists_store_ids(self, build_descriptor, store):
        store.list_ids.return_value = ["a", "b"]

        options = build_descriptor.fill_credentials_id_items()

        assert options.values == ["", "a", "b"]

    def test_check_empty(self, build_descriptor, store):
        result = build_descriptor.check_credentials_id("")

        assert result.message == messages.NO_CREDENTIAL
        store.lookup.assert_not_called()

    def test_check_unknown_credential(self, build_descriptor, store):
        store.lookup.side_effect = CredentialsNotFoundError(
            "x", messages.failed_to_retrieve_credentials("x")
        )

        result = build_descriptor.check_credentials_id("x")

        assert result.message == messages.failed_to_retrieve_credentials("x")
        assert result.error_kind == ErrorKind.CREDENTIAL_AUTH_FAILURE

    def test_check_refresh_failure(self, build_descriptor, store):
        store.lookup.return_value.refresh_token.side_effect = RefreshError("revoked")

        result = build_descriptor.check_credentials_id("x")

        assert result.message == messages.CREDENTIAL_AUTH_FAILED
        assert result.error_kind == ErrorKind.CREDENTIAL_AUTH_FAILURE

    def test_check_ok(self, build_descriptor, store):
        result = build_descriptor.check_credentials_id("x")

        assert result.is_ok
        store.lookup.return_value.refresh_token.assert_called_once()

    def test_check_inline_key_that_is_not_json(self, factory_supplier, tmp_path):
        path = tmp_path / "credentials.yaml"
        path.write_text(yaml.safe_dump({"credentials": {"robot": {"key": "not json"}}}))
        descriptor = BuildDescriptor(factory_supplier, credential_store=FileCredentialStore(path))

        result = descriptor.check_credentials_id("robot")

        assert result.kind == ValidationKind.ERROR
        assert result.message == messages.invalid_credential_entry("robot")
        assert result.error_kind == ErrorKind.CREDENTIAL_AUTH_FAILURE

    def test_fill_unreadable_store(self, factory_supplier, unreadable_store):
        descriptor = BuildDescriptor(factory_supplier, credential_store=unreadable_store)

        options = descriptor.fill_credentials_id_items()

        assert len(options) == 1
        assert options[0].value == ""
        assert str(unreadable_store.path) in options[0].label


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


class TestProjectId:

    def test_fill_without_credentials(self, build_descriptor, factory_supplier):
        options = build_descriptor.fill_project_id_items("", "")

        assert options.is_sentinel
        assert options[0].label == messages.PROJECT_CREDENTIAL_ID_REQUIRED
        factory_supplier.assert_not_called()

    def test_fill_selects_current(self, build_descriptor, resource_manager, mock_factory):
        options = build_descriptor.fill_project_id_items("c", "test")

        assert options.values == ["", "other", "test"]
        assert options.selected.value == "test"
        mock_factory.close.assert_called_once()

    def test_fill_selects_first_when_unset(self, build_descriptor, resource_manager):
        options = build_descriptor.fill_project_id_items("c", "")

        assert options.selected.value == "other"

    def test_fill_with_unreadable_store(self, unreadable_store):
        supplier = functools.partial(get_client_factory, store=unreadable_store)
        descriptor = BuildDescriptor(supplier, credential_store=unreadable_store)

        options = descriptor.fill_project_id_items("robot", "")

        assert len(options) == 1
        assert options[0].value == ""
        assert str(unreadable_store.path) in options[0].label

    def test_fill_client_failure(self, store):
        supplier = MagicMock(side_effect=ClientInitializationError("bad credential"))
        descriptor = BuildDescriptor(supplier, credential_store=store)

        options = descriptor.fill_project_id_items("c", "")

        assert options[0].label == "bad credential"

    def test_fill_listing_failure(self, build_descriptor, resource_manager):
        resource_manager.list_projects.side_effect = RemoteServiceError("403 Forbidden")

        options = build_descriptor.fill_project_id_items("c", "")

        assert options[0].label == messages.project_id_fill_error("403 Forbidden")

    def test_check_order(self, build_descriptor):
        assert build_descriptor.check_project_id("", "").message == (
            messages.PROJECT_CREDENTIAL_ID_REQUIRED
        )
        assert build_descriptor.check_project_id("c", "").message == messages.PROJECT_ID_REQUIRED

    def test_check_not_under_credential(self, build_descriptor, resource_manager):
        result = build_descriptor.check_project_id("c", "missing")

        assert result.message == messages.PROJECT_ID_NOT_UNDER_CREDENTIAL

    def test_check_verification_error(self, build_descriptor, resource_manager):
        resource_manager.list_projects.side_effect = RemoteServiceError("timeout")

        result = build_descriptor.check_project_id("c", "test")

        assert result.message == messages.project_id_verification_error("timeout")

    def test_check_ok(self, build_descriptor, resource_manager):
        assert build_descriptor.check_project_id("c", "test").is_ok


# ---------------------------------------------------------------------------
# Container
# ---------------------------------------------------------------------------


class TestContainer:

    def test_qualifier_type_items(self, build_descriptor):
        options = build_descriptor.fill_container_qualifier_type_items()

        assert [(o.label, o.value) for o in options] == [("Digest", "true"), ("Tag", "false")]

    def test_check_uri(self, build_descriptor):
        assert build_descriptor.check_container_uri("p", "gcr.io/p/app").is_ok

    def test_check_qualifier_macro_warning(self, build_descriptor):
        result = build_descriptor.check_container_qualifier("", "$DIGEST", True)

        assert result.kind == ValidationKind.WARNING

    def test_check_tag_requires_credentials(self, build_descriptor):
        result = build_descriptor.check_container_qualifier("", "v1", False)

        assert result.message == messages.CONTAINER_TAG_CREDENTIAL_ID_REQUIRED


# ---------------------------------------------------------------------------
# Attestor project and attestor
# ---------------------------------------------------------------------------


class TestAttestorProjectId:

    def test_fill(self, binauthz_descriptor, resource_manager):
        options = binauthz_descriptor.fill_attestor_project_id_items("c", "")

        assert options.values == ["", "other", "test"]

    def test_check_required(self, binauthz_descriptor):
        result = binauthz_descriptor.check_attestor_project_id("c", "")

        assert result.message == messages.ATTESTOR_PROJECT_ID_REQUIRED

    def test_check_not_under_credential(self, binauthz_descriptor, resource_manager):
        result = binauthz_descriptor.check_attestor_project_id("c", "nope")

        assert result.message == messages.PROJECT_ID_NOT_UNDER_CREDENTIAL


class TestAttestorId:

    def test_fill_without_project_makes_no_remote_call(
        self, binauthz_descriptor, factory_supplier
    ):
        options = binauthz_descriptor.fill_attestor_id_items("c", "", "")

        assert options[0].label == messages.ATTESTOR_ID_PROJECT_ID_REQUIRED
        factory_supplier.assert_not_called()

    def test_fill_without_credentials(self, binauthz_descriptor):
        options = binauthz_descriptor.fill_attestor_id_items("", "p", "")

        assert options[0].label == messages.PROJECT_CREDENTIAL_ID_REQUIRED

    def test_fill_uses_last_name_segment(self, binauthz_descriptor, binauthz):
        binauthz.list_attestors.return_value = [attestor("qa"), attestor("prod")]

        options = binauthz_descriptor.fill_attestor_id_items("c", "policy", "prod")

        assert options.values == ["", "qa", "prod"]
        assert options.selected.value == "prod"
        binauthz.list_attestors.assert_called_once_with("policy")

    def test_fill_error(self, binauthz_descriptor, binauthz):
        binauthz.list_attestors.side_effect = RemoteServiceError("404 Not Found")

        options = binauthz_descriptor.fill_attestor_id_items("c", "policy", "")

        assert options[0].label == messages.attestor_id_fill_error("404 Not Found")

    def test_check_not_under_project(self, binauthz_descriptor, binauthz):
        binauthz.list_attestors.return_value = [attestor("qa")]

        result = binauthz_descriptor.check_attestor_id("c", "policy", "prod")

        assert result.message == messages.ATTESTOR_ID_NOT_UNDER_PROJECT
        assert result.error_kind == ErrorKind.NOT_UNDER_PARENT

    def test_check_verification_error(self, binauthz_descriptor, binauthz):
        binauthz.list_attestors.side_effect = RemoteServiceError("500")

        result = binauthz_descriptor.check_attestor_id("c", "policy", "qa")

        assert result.message == messages.attestor_id_verification_error("500")
        assert result.error_kind == ErrorKind.REMOTE_LISTING_FAILURE

    def test_check_ok(self, binauthz_descriptor, binauthz):
        binauthz.list_attestors.return_value = [attestor("qa")]

        assert binauthz_descriptor.check_attestor_id("c", "policy", "qa").is_ok


# ---------------------------------------------------------------------------
# Public key
# ---------------------------------------------------------------------------


class TestPublicKeyId:

    @pytest.mark.parametrize(
        "prerequisites,expected",
        [
            (("", "p", "a"), messages.PROJECT_CREDENTIAL_ID_REQUIRED),
            (("c", "", "a"), messages.PUBLIC_KEY_ID_PROJECT_ID_REQUIRED),
            (("c", "p", ""), messages.PUBLIC_KEY_ID_ATTESTOR_ID_REQUIRED),
        ],
    )
    def test_fill_missing_prerequisite(self, binauthz_descriptor, prerequisites, expected):
        options = binauthz_descriptor.fill_public_key_id_items(*prerequisites, "")

        assert options.is_sentinel
        assert options[0].label == expected

    def test_fill_lists_only_eligible_keys(self, binauthz_descriptor, binauthz):
        binauthz.get_attestor.return_value = attestor(
            "qa", "ni:///sha-256;abc", KEY_ID, OTHER_KEY_ID, "projects/p/short"
        )

        options = binauthz_descriptor.fill_public_key_id_items("c", "policy", "qa", "")

        assert options.values == ["", KEY_ID, OTHER_KEY_ID]
        assert options.selected.value == KEY_ID
        binauthz.get_attestor.assert_called_once_with("policy", "qa")

    def test_fill_missing_attestor(self, binauthz_descriptor, binauthz):
        binauthz.get_attestor.return_value = None

        options = binauthz_descriptor.fill_public_key_id_items("c", "policy", "qa", "")

        assert options[0].label == messages.ATTESTOR_ID_NOT_UNDER_PROJECT

    def test_fill_error(self, binauthz_descriptor, binauthz):
        binauthz.get_attestor.side_effect = RemoteServiceError("403 Forbidden")

        options = binauthz_descriptor.fill_public_key_id_items("c", "policy", "qa", "")

        assert options[0].label == messages.public_key_id_fill_error("403 Forbidden")

    def test_check_required(self, binauthz_descriptor):
        result = binauthz_descriptor.check_public_key_id("c", "policy", "qa", "")

        assert result.message == messages.PUBLIC_KEY_ID_REQUIRED

    def test_check_not_for_attestor(self, binauthz_descriptor, binauthz):
        binauthz.get_attestor.return_value = attestor("qa", KEY_ID)

        result = binauthz_descriptor.check_public_key_id("c", "policy", "qa", OTHER_KEY_ID)

        assert result.message == messages.PUBLIC_KEY_ID_NOT_FOR_ATTESTOR

    def test_check_ok(self, binauthz_descriptor, binauthz):
        binauthz.get_attestor.return_value = attestor("qa", KEY_ID)

        assert binauthz_descriptor.check_public_key_id("c", "policy", "qa", KEY_ID).is_ok


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


class TestDependentFieldScenarios:

    def test_credential_then_project_then_attestor(
        self, binauthz_descriptor, resource_manager, factory_supplier
    ):
        assert binauthz_descriptor.fill_attestor_project_id_items("", "")[0].label == (
            messages.PROJECT_CREDENTIAL_ID_REQUIRED
        )

        projects_list = binauthz_descriptor.fill_attestor_project_id_items("c", "")
        assert projects_list.values == ["", "other", "test"]

        factory_supplier.reset_mock()
        attestors = binauthz_descriptor.fill_attestor_id_items("c", "", "")
        assert attestors[0].label == messages.ATTESTOR_ID_PROJECT_ID_REQUIRED
        factory_supplier.assert_not_called()

    def test_tag_without_credentials_is_error(self, build_descriptor):
        result = build_descriptor.check_container_qualifier("", "v1", False)

        assert result.is_error
        assert result.message == messages.CONTAINER_TAG_CREDENTIAL_ID_REQUIRED
