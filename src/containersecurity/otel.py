"""
OTel span event emission for validation and attestation.

Events are added to the current span only when it is recording, so
callers never need to check whether tracing is configured.

Usage::

    from containersecurity.otel import emit_validation_result

    emit_validation_result("projectId", result)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import trace as otel_trace

from containersecurity.validation.result import ValidationResult

if TYPE_CHECKING:
    from containersecurity.pipeline import PipelineResult, PipelineState

logger = logging.getLogger(__name__)


def _add_span_event(name: str, attributes: dict[str, str | int | float | bool]) -> None:
    """Add an event to the current OTel span if it is recording."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_validation_result(field: str, result: ValidationResult) -> None:
    """Event name: ``containersecurity.validation.result``"""
    attrs: dict[str, str | int | float | bool] = {
        "validation.field": field,
        "validation.kind": result.kind.value,
    }
    if result.error_kind is not None:
        attrs["validation.error_kind"] = result.error_kind.value
    if result.message:
        attrs["validation.message"] = result.message
    _add_span_event("containersecurity.validation.result", attrs)


def emit_pipeline_transition(state: "PipelineState", reference: str) -> None:
    """Event name: ``containersecurity.pipeline.transition``"""
    logger.debug("Attestation pipeline reached %s for %s", state.value, reference)
    _add_span_event(
        "containersecurity.pipeline.transition",
        {
            "pipeline.state": state.value,
            "pipeline.reference": reference,
        },
    )


def emit_pipeline_result(result: "PipelineResult") -> None:
    """Event name: ``containersecurity.pipeline.result``"""
    attrs: dict[str, str | int | float | bool] = {
        "pipeline.outcome": result.outcome.value,
        "pipeline.last_state": result.last_state.value,
        "pipeline.reference": result.reference,
    }
    if result.reason:
        attrs["pipeline.reason"] = result.reason
    if result.occurrence_name:
        attrs["pipeline.occurrence"] = result.occurrence_name
    _add_span_event("containersecurity.pipeline.result", attrs)
