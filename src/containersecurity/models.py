"""
Data model for container attestation.

Remote objects (projects, attestors, public keys, occurrences) are parsed
from the JSON REST representations of their services, so field aliases
follow the wire names.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

PUBLIC_KEY_ID_ELEMENTS_LENGTH = 10
PUBLIC_KEY_PROJECT_MARKER = "projects/"
PROJECT_ID_INDEX = 1
LOCATION_INDEX = 3
KEY_RING_INDEX = 5
CRYPTO_KEY_INDEX = 7
CRYPTO_KEY_VERSION_INDEX = 9


def name_from_self_link(self_link: str) -> str:
    """Return the last path segment of a resource name or URL."""
    return self_link.rstrip("/").rsplit("/", 1)[-1]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CloudProject(_WireModel):
    project_id: str = Field(alias="projectId")
    lifecycle_state: Optional[str] = Field(default=None, alias="lifecycleState")


class AttestorPublicKey(_WireModel):
    id: str
    comment: Optional[str] = None

    @property
    def is_eligible(self) -> bool:
        return is_eligible_public_key_id(self.id)


class UserOwnedNote(_WireModel):
    note_reference: Optional[str] = Field(default=None, alias="noteReference")
    public_keys: list[AttestorPublicKey] = Field(default_factory=list, alias="publicKeys")


class Attestor(_WireModel):
    name: str
    description: Optional[str] = None
    user_owned_drydock_note: Optional[UserOwnedNote] = Field(
        default=None, alias="userOwnedDrydockNote"
    )

    @property
    def attestor_id(self) -> str:
        return name_from_self_link(self.name)

    @property
    def public_keys(self) -> list[AttestorPublicKey]:
        if self.user_owned_drydock_note is None:
            return []
        return self.user_owned_drydock_note.public_keys


def is_eligible_public_key_id(key_id: str) -> bool:
    """Only full KMS key-version paths can be used for signing."""
    return (
        PUBLIC_KEY_PROJECT_MARKER in key_id
        and len(key_id.split("/")) == PUBLIC_KEY_ID_ELEMENTS_LENGTH
    )


class KeyVersionPath(BaseModel):
    """The five components of a KMS crypto key version resource name."""

    model_config = ConfigDict(frozen=True)

    project: str
    location: str
    key_ring: str
    crypto_key: str
    version: str

    @classmethod
    def parse(cls, key_id: str) -> "KeyVersionPath":
        """Split ``projects/p/locations/l/keyRings/r/cryptoKeys/k/cryptoKeyVersions/v``.

        Raises:
            ValueError: If ``key_id`` is not an eligible key version path.
        """
        if not is_eligible_public_key_id(key_id):
            raise ValueError(f"Malformed public key ID: {key_id!r}")
        parts = key_id.split("/")
        return cls(
            project=parts[PROJECT_ID_INDEX],
            location=parts[LOCATION_INDEX],
            key_ring=parts[KEY_RING_INDEX],
            crypto_key=parts[CRYPTO_KEY_INDEX],
            version=parts[CRYPTO_KEY_VERSION_INDEX],
        )

    @property
    def resource_name(self) -> str:
        return (
            f"projects/{self.project}/locations/{self.location}"
            f"/keyRings/{self.key_ring}/cryptoKeys/{self.crypto_key}"
            f"/cryptoKeyVersions/{self.version}"
        )


class QualifierKind(str, Enum):
    DIGEST = "digest"
    TAG = "tag"

    @classmethod
    def from_flag(cls, is_digest: bool) -> "QualifierKind":
        """Map the persisted boolean (true = Digest) to a kind."""
        return cls.DIGEST if is_digest else cls.TAG


class ContainerQualifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: QualifierKind
    value: str


class ContainerReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    repository_uri: str
    qualifier: ContainerQualifier


def canonical_reference(repository_uri: str, digest: str) -> str:
    return f"{repository_uri}@{digest}"


class AttestationRequest(BaseModel):
    """Everything needed to submit one attestation occurrence."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    resource_uri: str
    attestor_project_id: str
    note_id: str
    signature: str
    public_key_id: str
    encoded_payload: str

    @property
    def note_name(self) -> str:
        return f"projects/{self.attestor_project_id}/notes/{self.note_id}"


class Occurrence(_WireModel):
    """A created attestation occurrence."""

    name: str
    note_name: Optional[str] = Field(default=None, alias="noteName")
    attestation: dict[str, Any] = Field(default_factory=dict)

    @property
    def generic_signed_attestation(self) -> dict[str, Any]:
        return (
            self.attestation.get("attestation", {}).get("genericSignedAttestation", {})
        )
