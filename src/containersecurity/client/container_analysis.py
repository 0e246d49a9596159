"""Container Analysis client: attestation occurrences."""

from __future__ import annotations

from containersecurity.client._http import GoogleApiClient
from containersecurity.models import AttestationRequest, Occurrence

SIMPLE_SIGNING_JSON = "SIMPLE_SIGNING_JSON"


class ContainerAnalysisClient(GoogleApiClient):

    def create_attestation(self, request: AttestationRequest) -> Occurrence:
        """Create an attestation occurrence of the attestor's note.

        Raises:
            RemoteServiceError: If the occurrence cannot be created. An
                existing occurrence is reported with status 409.
        """
        body = {
            "resource": {"uri": request.resource_uri},
            "noteName": request.note_name,
            "attestation": {
                "attestation": {
                    "genericSignedAttestation": {
                        "contentType": SIMPLE_SIGNING_JSON,
                        "serializedPayload": request.encoded_payload,
                        "signatures": [
                            {
                                "signature": request.signature,
                                "publicKeyId": request.public_key_id,
                            }
                        ],
                    }
                }
            },
        }
        data = self._request(
            "POST", f"projects/{request.project_id}/occurrences", body=body
        ).json()
        return Occurrence.model_validate(data)
