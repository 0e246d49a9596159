"""
Authenticated Google Cloud API clients.

Public API::

    from containersecurity.client import (
        ClientFactory,
        CredentialStore,
        FileCredentialStore,
        RobotCredentials,
        get_client_factory,
    )
"""

from containersecurity.client.credentials import (
    CredentialStore,
    FileCredentialStore,
    RobotCredentials,
)
from containersecurity.client.factory import (
    ClientFactory,
    ClientFactorySupplier,
    get_client_factory,
)
from containersecurity.client.scopes import container_security_scopes

__all__ = [
    "ClientFactory",
    "ClientFactorySupplier",
    "CredentialStore",
    "FileCredentialStore",
    "RobotCredentials",
    "container_security_scopes",
    "get_client_factory",
]
