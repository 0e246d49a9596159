"""
Binary Authorization attestation step.

Persisted as::

    buildSteps:
      - kind: binauthz
        attestorProjectId: policy-project
        attestorId: qa-attestor
        publicKeyId: projects/p/locations/global/keyRings/r/cryptoKeys/k/cryptoKeyVersions/1
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Mapping

from pydantic import Field

from containersecurity import messages
from containersecurity.client.factory import ClientFactorySupplier
from containersecurity.errors import BuildFailure
from containersecurity.logger import BuildLogger
from containersecurity.pipeline import AttestationPipeline, PipelineResult
from containersecurity.step import BuildStep

if TYPE_CHECKING:
    from containersecurity.build import ContainerSecurityBuild

logger = logging.getLogger(__name__)


class BinAuthzBuildStep(BuildStep):
    """Creates a signed attestation for the build's container."""

    kind: Literal["binauthz"] = "binauthz"
    attestor_project_id: str = Field(default="", alias="attestorProjectId")
    attestor_id: str = Field(default="", alias="attestorId")
    public_key_id: str = Field(default="", alias="publicKeyId")

    def perform(
        self,
        parent: "ContainerSecurityBuild",
        reference: str,
        environment: Mapping[str, str],
        build_logger: BuildLogger,
        client_factory: ClientFactorySupplier,
    ) -> PipelineResult:
        pipeline = AttestationPipeline(client_factory, build_logger)
        result = pipeline.run(
            credentials_id=parent.credentials_id,
            project_id=parent.project_id,
            reference=reference,
            attestor_project_id=self.attestor_project_id,
            attestor_id=self.attestor_id,
            public_key_id=self.public_key_id,
        )
        if result.fails_build:
            raise BuildFailure(messages.build_step_failed(self.attestor_id, result.reason))
        if not result.succeeded:
            logger.warning(
                "Skipped attestation with %s for %s: %s",
                self.attestor_id,
                reference,
                result.reason,
            )
        return result
