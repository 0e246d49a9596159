"""
Field validation and dependent identifier resolution.

Public API::

    from containersecurity.validation import (
        IdentifierResolver,
        ListOption,
        SelectableList,
        ValidationKind,
        ValidationResult,
        validate_required_fields,
    )
"""

from containersecurity.validation.chain import validate_required_fields
from containersecurity.validation.resolver import IdentifierResolver
from containersecurity.validation.result import (
    ListOption,
    SelectableList,
    ValidationKind,
    ValidationResult,
)

__all__ = [
    "IdentifierResolver",
    "ListOption",
    "SelectableList",
    "ValidationKind",
    "ValidationResult",
    "validate_required_fields",
]
