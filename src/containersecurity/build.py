"""
Container security build: one container, several steps.

The build holds the fields shared by its steps (credentials, project and
the container to act on) and the ordered list of steps. Executing it
resolves the container to a canonical digest reference once, then runs
each step against that reference.

Example configuration::

    credentialsId: ci-robot
    projectId: my-project
    containerUri: gcr.io/my-project/app
    containerQualifier: $IMAGE_DIGEST
    containerQualifierType: true   # true = digest, false = tag
    buildSteps:
      - kind: binauthz
        attestorProjectId: policy-project
        attestorId: qa-attestor
        publicKeyId: projects/.../cryptoKeyVersions/1
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from containersecurity import messages
from containersecurity.binauthz import BinAuthzBuildStep
from containersecurity.client.factory import ClientFactorySupplier, get_client_factory
from containersecurity.errors import BuildFailure, ContainerReferenceError
from containersecurity.logger import BuildLogger
from containersecurity.models import ContainerQualifier, ContainerReference, QualifierKind
from containersecurity.pipeline import PipelineResult
from containersecurity.reference import ContainerReferenceResolver
from containersecurity.step import BuildStep

logger = logging.getLogger(__name__)

__all__ = ["BuildStep", "ContainerSecurityBuild"]


class ContainerSecurityBuild(BaseModel):
    """Persisted build configuration; immutable while a build runs."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    credentials_id: str = Field(default="", alias="credentialsId")
    project_id: str = Field(default="", alias="projectId")
    container_uri: str = Field(default="", alias="containerUri")
    container_qualifier: str = Field(default="", alias="containerQualifier")
    container_qualifier_type: bool = Field(default=True, alias="containerQualifierType")
    build_steps: list[BinAuthzBuildStep] = Field(default_factory=list, alias="buildSteps")

    @property
    def qualifier(self) -> ContainerQualifier:
        return ContainerQualifier(
            kind=QualifierKind.from_flag(self.container_qualifier_type),
            value=self.container_qualifier,
        )

    @property
    def container_reference(self) -> ContainerReference:
        return ContainerReference(repository_uri=self.container_uri, qualifier=self.qualifier)

    def resolve_reference(
        self,
        environment: Mapping[str, str],
        client_factory: ClientFactorySupplier = get_client_factory,
    ) -> str:
        """Return the canonical ``repo@sha256:...`` for this execution.

        Raises:
            ContainerReferenceError: If the container cannot be resolved.
        """
        container = self.container_reference
        resolver = ContainerReferenceResolver(client_factory)
        return resolver.resolve(
            container.repository_uri,
            self.project_id,
            container.qualifier,
            self.credentials_id,
            environment,
        )

    def perform(
        self,
        environment: Mapping[str, str],
        build_logger: Optional[BuildLogger] = None,
        client_factory: ClientFactorySupplier = get_client_factory,
    ) -> list[PipelineResult]:
        """Resolve the container, then run every step in order.

        Raises:
            BuildFailure: If the container cannot be resolved or a step
                fails the build. Later steps are not run.
        """
        build_logger = build_logger or BuildLogger(project=self.project_id)
        logger.info("Performing container security build steps for %s", self.container_uri)

        try:
            reference = self.resolve_reference(environment, client_factory)
        except ContainerReferenceError as e:
            build_logger.println(messages.reference_resolution_failed(str(e)))
            build_logger.log_event(
                "reference.failed",
                level="error",
                container_uri=self.container_uri,
                error_kind=e.kind.value,
                error=str(e),
            )
            raise BuildFailure(str(e)) from e

        build_logger.log_event(
            "reference.resolved",
            reference=reference,
            container_uri=self.container_uri,
            attestor_ids=[step.attestor_id for step in self.build_steps],
        )
        return [
            step.perform(self, reference, environment, build_logger, client_factory)
            for step in self.build_steps
        ]
