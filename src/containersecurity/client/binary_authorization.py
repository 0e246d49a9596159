"""Binary Authorization client: attestors and signature payloads."""

from __future__ import annotations

import json
from typing import Optional

from containersecurity.client._http import GoogleApiClient
from containersecurity.errors import RemoteServiceError
from containersecurity.models import Attestor

CONTAINER_SIGNATURE_TYPE = "Google cloud binauthz container signature"


class BinaryAuthorizationClient(GoogleApiClient):

    def list_attestors(self, project_id: str) -> list[Attestor]:
        """List the attestors of a project.

        Raises:
            ValueError: If ``project_id`` is empty.
            RemoteServiceError: If the listing fails.
        """
        if not project_id:
            raise ValueError("project_id is required")
        return [
            Attestor.model_validate(item)
            for item in self._paginate(f"projects/{project_id}/attestors", "attestors")
        ]

    def get_attestor(self, project_id: str, attestor_id: str) -> Optional[Attestor]:
        """Fetch one attestor, or ``None`` if it does not exist."""
        if not project_id or not attestor_id:
            raise ValueError("project_id and attestor_id are required")
        try:
            data = self._get_json(f"projects/{project_id}/attestors/{attestor_id}")
        except RemoteServiceError as e:
            if e.status_code == 404:
                return None
            raise
        return Attestor.model_validate(data)

    def generate_attestation_payload(self, reference: str) -> bytes:
        """Build the container signature payload for ``repo@sha256:...``.

        The payload is the service's atomic container signature document,
        serialized with sorted keys and no whitespace so identical
        references always sign identical bytes.

        Raises:
            ValueError: If ``reference`` is not digest-qualified.
        """
        repository, sep, digest = reference.partition("@")
        if not sep or not repository or not digest:
            raise ValueError(f"Container reference must be digest-qualified: {reference!r}")
        data = {
            "critical": {
                "identity": {"docker-reference": repository},
                "image": {"docker-manifest-digest": digest},
                "type": CONTAINER_SIGNATURE_TYPE,
            },
        }
        return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")
