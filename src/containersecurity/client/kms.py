"""Cloud KMS client for asymmetric signing."""

from __future__ import annotations

import base64
import hashlib

from containersecurity.client._http import GoogleApiClient
from containersecurity.errors import RemoteServiceError
from containersecurity.models import KeyVersionPath


class CloudKMSClient(GoogleApiClient):

    def asymmetric_sign(
        self,
        project: str,
        location: str,
        key_ring: str,
        crypto_key: str,
        crypto_key_version: str,
        payload: bytes,
    ) -> str:
        """Sign the SHA-256 digest of ``payload`` with a key version.

        Returns:
            The base64 encoded signature.

        Raises:
            RemoteServiceError: If the sign request fails.
        """
        key = KeyVersionPath(
            project=project,
            location=location,
            key_ring=key_ring,
            crypto_key=crypto_key,
            version=crypto_key_version,
        )
        digest = base64.b64encode(hashlib.sha256(payload).digest()).decode("ascii")
        data = self._request(
            "POST",
            f"{key.resource_name}:asymmetricSign",
            body={"digest": {"sha256": digest}},
        ).json()
        signature = data.get("signature")
        if not signature:
            raise RemoteServiceError(
                f"asymmetricSign for {key.resource_name} returned no signature"
            )
        return signature
