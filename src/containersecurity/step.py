"""Base class of the steps a container security build runs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import BaseModel, ConfigDict

from containersecurity.client.factory import ClientFactorySupplier
from containersecurity.logger import BuildLogger

if TYPE_CHECKING:
    from containersecurity.build import ContainerSecurityBuild


class BuildStep(BaseModel, ABC):
    """One action performed against the build's resolved container.

    Steps read the shared fields (credentials, project) from the parent
    build and receive the canonical ``repo@sha256:...`` reference, which
    the build resolves once before running any step.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    @abstractmethod
    def perform(
        self,
        parent: "ContainerSecurityBuild",
        reference: str,
        environment: Mapping[str, str],
        build_logger: BuildLogger,
        client_factory: ClientFactorySupplier,
    ) -> Any:
        """Run the step.

        Raises:
            BuildFailure: If the surrounding build must fail.
        """
