"""
Attestation pipeline for one canonical container reference.

The pipeline is linear and attempts each stage once::

    START -> CLIENT_ACQUIRED -> PAYLOAD_GENERATED -> SIGNED -> SUBMITTED -> DONE
                                                                  \\-> ALREADY_EXISTS

``ABORTED`` is reachable from every state. The outcome is returned as a
``PipelineResult``; deciding whether an abort fails the build is left
to the caller (see ``PipelineResult.fails_build``).

Usage::

    pipeline = AttestationPipeline(get_client_factory, BuildLogger())
    result = pipeline.run(
        credentials_id="ci-robot",
        project_id="my-project",
        reference="gcr.io/my-project/app@sha256:...",
        attestor_project_id="policy-project",
        attestor_id="qa-attestor",
        public_key_id="projects/p/locations/l/keyRings/r/cryptoKeys/k/cryptoKeyVersions/1",
    )
"""

from __future__ import annotations

import base64
import json
import logging
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from containersecurity import messages
from containersecurity.client.factory import ClientFactory, ClientFactorySupplier
from containersecurity.errors import (
    ClientInitializationError,
    ErrorKind,
    RemoteServiceError,
)
from containersecurity.logger import BuildLogger
from containersecurity.models import AttestationRequest, KeyVersionPath
from containersecurity.otel import emit_pipeline_result, emit_pipeline_transition

logger = logging.getLogger(__name__)

RESOURCE_URI_SCHEME = "https://"
NOTE_SUFFIX = "-note"


class PipelineState(str, Enum):
    START = "start"
    CLIENT_ACQUIRED = "client_acquired"
    PAYLOAD_GENERATED = "payload_generated"
    SIGNED = "signed"
    SUBMITTED = "submitted"
    DONE = "done"
    ALREADY_EXISTS = "already_exists"
    ABORTED = "aborted"


class PipelineOutcome(str, Enum):
    DONE = "done"
    ALREADY_EXISTS = "already_exists"
    ABORTED = "aborted"


class PipelineResult(BaseModel):
    """Terminal outcome of one pipeline run.

    ``last_state`` is the last state reached before the outcome; for an
    abort it tells how far the pipeline got.
    """

    outcome: PipelineOutcome
    last_state: PipelineState
    reference: str
    reason: str = ""
    error_kind: Optional[ErrorKind] = None
    occurrence_name: Optional[str] = None
    signed_attestation: dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.outcome in (PipelineOutcome.DONE, PipelineOutcome.ALREADY_EXISTS)

    @property
    def fails_build(self) -> bool:
        """Aborts fail the build unless no client could be acquired."""
        return (
            self.outcome == PipelineOutcome.ABORTED
            and self.last_state != PipelineState.START
        )


def note_id_for(attestor_id: str) -> str:
    return attestor_id + NOTE_SUFFIX


def resource_uri_for(reference: str) -> str:
    return RESOURCE_URI_SCHEME + reference


class AttestationPipeline:
    """Generates, signs and submits an attestation for a container reference."""

    def __init__(self, client_factory: ClientFactorySupplier, build_logger: BuildLogger) -> None:
        self.client_factory = client_factory
        self.build_logger = build_logger

    def run(
        self,
        credentials_id: str,
        project_id: str,
        reference: str,
        attestor_project_id: str,
        attestor_id: str,
        public_key_id: str,
    ) -> PipelineResult:
        """Attest ``reference`` with the attestor's key.

        Never raises for remote or credential failures; those are
        reported through the returned result.
        """
        self.build_logger.println(
            messages.attestation_intro(attestor_project_id, attestor_id, reference)
        )
        self.build_logger.log_event(
            "attestation.started",
            reference=reference,
            attestor_project_id=attestor_project_id,
            attestor_id=attestor_id,
        )
        emit_pipeline_transition(PipelineState.START, reference)

        try:
            factory = self.client_factory(credentials_id)
        except ClientInitializationError as e:
            self.build_logger.println(messages.client_unavailable(str(e)))
            self.build_logger.log_event(
                "client.unavailable",
                level="warn",
                reference=reference,
                attestor_id=attestor_id,
                credentials_id=credentials_id,
                error=str(e),
            )
            return self._finish(
                PipelineResult(
                    outcome=PipelineOutcome.ABORTED,
                    last_state=PipelineState.START,
                    reference=reference,
                    reason=str(e),
                    error_kind=ErrorKind.CREDENTIAL_AUTH_FAILURE,
                )
            )

        try:
            return self._attest(
                factory,
                project_id,
                reference,
                attestor_project_id,
                attestor_id,
                public_key_id,
            )
        finally:
            factory.close()

    def _attest(
        self,
        factory: ClientFactory,
        project_id: str,
        reference: str,
        attestor_project_id: str,
        attestor_id: str,
        public_key_id: str,
    ) -> PipelineResult:
        binary_authorization = factory.binary_authorization_client()
        kms = factory.cloud_kms_client()
        container_analysis = factory.container_analysis_client()
        state = self._advance(PipelineState.CLIENT_ACQUIRED, reference)

        try:
            key = KeyVersionPath.parse(public_key_id)
            payload = binary_authorization.generate_attestation_payload(reference)
            state = self._advance(PipelineState.PAYLOAD_GENERATED, reference)

            signature = kms.asymmetric_sign(
                key.project,
                key.location,
                key.key_ring,
                key.crypto_key,
                key.version,
                payload,
            )
            state = self._advance(PipelineState.SIGNED, reference)

            request = AttestationRequest(
                project_id=project_id,
                resource_uri=resource_uri_for(reference),
                attestor_project_id=attestor_project_id,
                note_id=note_id_for(attestor_id),
                signature=signature,
                public_key_id=public_key_id,
                encoded_payload=base64.b64encode(payload).decode("ascii"),
            )
            occurrence = container_analysis.create_attestation(request)
            state = self._advance(PipelineState.SUBMITTED, reference)
        except RemoteServiceError as e:
            if state == PipelineState.SIGNED and e.is_conflict:
                return self._already_exists(reference, attestor_id, e)
            return self._abort(state, reference, attestor_id, e)
        except ValueError as e:
            return self._abort(state, reference, attestor_id, e)

        signed_attestation = occurrence.generic_signed_attestation
        self.build_logger.println(occurrence.name)
        self.build_logger.println(json.dumps(signed_attestation, indent=2, sort_keys=True))
        self.build_logger.log_event(
            "attestation.created",
            reference=reference,
            attestor_id=attestor_id,
            occurrence=occurrence.name,
        )
        self._advance(PipelineState.DONE, reference)
        return self._finish(
            PipelineResult(
                outcome=PipelineOutcome.DONE,
                last_state=PipelineState.DONE,
                reference=reference,
                occurrence_name=occurrence.name,
                signed_attestation=signed_attestation,
            )
        )

    def _already_exists(
        self, reference: str, attestor_id: str, error: RemoteServiceError
    ) -> PipelineResult:
        self.build_logger.println(messages.attestation_already_exists(str(error)))
        self.build_logger.log_event(
            "attestation.already_exists", reference=reference, attestor_id=attestor_id
        )
        self._advance(PipelineState.ALREADY_EXISTS, reference)
        return self._finish(
            PipelineResult(
                outcome=PipelineOutcome.ALREADY_EXISTS,
                last_state=PipelineState.ALREADY_EXISTS,
                reference=reference,
                reason=str(error),
            )
        )

    def _abort(
        self,
        state: PipelineState,
        reference: str,
        attestor_id: str,
        error: Exception,
    ) -> PipelineResult:
        self.build_logger.println(
            messages.attestation_failed(reference, attestor_id, str(error))
        )
        self.build_logger.log_event(
            "attestation.failed",
            level="error",
            reference=reference,
            attestor_id=attestor_id,
            state=state.value,
            error=str(error),
        )
        logger.error("Attestation of %s aborted after %s: %s", reference, state.value, error)
        return self._finish(
            PipelineResult(
                outcome=PipelineOutcome.ABORTED,
                last_state=state,
                reference=reference,
                reason=str(error),
                error_kind=ErrorKind.SIGNING_OR_SUBMISSION_FAILURE,
            )
        )

    @staticmethod
    def _advance(state: PipelineState, reference: str) -> PipelineState:
        emit_pipeline_transition(state, reference)
        return state

    @staticmethod
    def _finish(result: PipelineResult) -> PipelineResult:
        emit_pipeline_result(result)
        return result
