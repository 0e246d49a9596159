"""
Ordered required-field checks.

``validate_required_fields`` is the common front half of every field
check: the first empty field decides the message the user sees, so the
order of ``fields`` matters.
"""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from containersecurity.errors import ErrorKind
from containersecurity.validation.result import ValidationResult


def validate_required_fields(
    fields: Sequence[Optional[str]],
    messages: Sequence[str],
    terminal: Callable[[], ValidationResult],
) -> ValidationResult:
    """Return an error for the first empty field, else ``terminal()``.

    Args:
        fields: Field values in the order they must be filled in.
        messages: One message per field, used when that field is empty.
        terminal: The rest of the validation, only called when every
            field is present.

    Raises:
        ValueError: If ``fields`` and ``messages`` differ in length.
    """
    if len(fields) != len(messages):
        raise ValueError(
            f"fields and messages must have the same length "
            f"({len(fields)} != {len(messages)})"
        )
    for value, message in zip(fields, messages):
        if not value:
            return ValidationResult.error(message, ErrorKind.CONFIGURATION_INCOMPLETE)
    return terminal()
