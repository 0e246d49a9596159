"""Cloud Resource Manager client: projects visible to the credentials."""

from __future__ import annotations

from containersecurity.client._http import GoogleApiClient
from containersecurity.models import CloudProject


class CloudResourceManagerClient(GoogleApiClient):

    def list_projects(self) -> list[CloudProject]:
        """List projects in the order the service returns them.

        Raises:
            RemoteServiceError: If any page cannot be fetched.
        """
        return [
            CloudProject.model_validate(item)
            for item in self._paginate("projects", "projects")
        ]
