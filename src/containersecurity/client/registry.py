"""Container registry client resolving tags to manifest digests."""

from __future__ import annotations

import httpx
from google.auth.credentials import Credentials

from containersecurity.client._http import GoogleApiClient
from containersecurity.errors import RemoteServiceError

DIGEST_HEADER = "Docker-Content-Digest"
MANIFEST_MEDIA_TYPES = ",".join(
    [
        "application/vnd.docker.distribution.manifest.v2+json",
        "application/vnd.docker.distribution.manifest.list.v2+json",
        "application/vnd.oci.image.manifest.v1+json",
        "application/vnd.oci.image.index.v1+json",
    ]
)


class ContainerClient(GoogleApiClient):
    """Talks to the registry v2 API of the host named in each URI."""

    def __init__(self, credentials: Credentials, http: httpx.Client, scheme: str = "https") -> None:
        super().__init__("", credentials, http)
        self.scheme = scheme

    def get_digest(self, container_uri: str, tag: str) -> str:
        """Return the ``sha256:...`` digest currently tagged ``tag``.

        Raises:
            ValueError: If ``container_uri`` has no repository path.
            RemoteServiceError: If the manifest cannot be fetched.
        """
        host, _, repository = container_uri.partition("/")
        if not host or not repository:
            raise ValueError(f"Container URI has no repository: {container_uri!r}")
        url = f"{self.scheme}://{host}/v2/{repository}/manifests/{tag}"
        response = self._request("HEAD", url, headers={"Accept": MANIFEST_MEDIA_TYPES})
        digest = response.headers.get(DIGEST_HEADER)
        if not digest:
            raise RemoteServiceError(f"{url} returned no {DIGEST_HEADER} header")
        return digest
