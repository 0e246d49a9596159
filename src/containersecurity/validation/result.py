"""
Result types returned across the configuration boundary.

``ValidationResult`` is the ok/warning/error verdict for a single field.
``SelectableList`` is the option list offered for a dependent field.
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from containersecurity.errors import ErrorKind


class ValidationKind(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class ValidationResult(BaseModel):
    """Outcome of validating one configuration field."""

    model_config = ConfigDict(frozen=True)

    kind: ValidationKind
    message: str = ""
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(kind=ValidationKind.OK)

    @classmethod
    def warning(cls, message: str) -> "ValidationResult":
        return cls(kind=ValidationKind.WARNING, message=message)

    @classmethod
    def error(
        cls,
        message: str,
        error_kind: ErrorKind = ErrorKind.CONFIGURATION_INCOMPLETE,
    ) -> "ValidationResult":
        return cls(kind=ValidationKind.ERROR, message=message, error_kind=error_kind)

    @property
    def is_ok(self) -> bool:
        return self.kind == ValidationKind.OK

    @property
    def is_error(self) -> bool:
        return self.kind == ValidationKind.ERROR


class ListOption(BaseModel):
    label: str
    value: str
    selected: bool = False


class SelectableList(BaseModel):
    """Ordered dropdown options; at most one is selected."""

    options: list[ListOption] = Field(default_factory=list)

    @classmethod
    def sentinel(cls, message: str) -> "SelectableList":
        """A single unselectable entry meaning "cannot list yet"."""
        return cls(options=[ListOption(label=message, value="")])

    def add(self, label: str, value: Optional[str] = None) -> "SelectableList":
        self.options.append(ListOption(label=label, value=label if value is None else value))
        return self

    def select(self, value: str) -> None:
        """Select the first entry with ``value``, or the first non-empty one.

        With no non-empty entries nothing is selected.
        """
        for option in self.options:
            option.selected = False
        if value:
            for option in self.options:
                if option.value == value:
                    option.selected = True
                    return
        for option in self.options:
            if option.value:
                option.selected = True
                return

    @property
    def selected(self) -> Optional[ListOption]:
        return next((o for o in self.options if o.selected), None)

    @property
    def values(self) -> list[str]:
        return [o.value for o in self.options]

    @property
    def is_sentinel(self) -> bool:
        return (
            len(self.options) == 1
            and bool(self.options[0].label)
            and not self.options[0].value
        )

    def __iter__(self) -> Iterator[ListOption]:  # type: ignore[override]
        return iter(self.options)

    def __len__(self) -> int:
        return len(self.options)

    def __getitem__(self, index: int) -> ListOption:
        return self.options[index]
