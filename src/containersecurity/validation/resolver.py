"""
Dependent identifier resolution.

Each configurable identifier (project, attestor, public key) can only be
listed once the identifiers it depends on are filled in. An
``IdentifierResolver`` holds the messages for one such field and offers
two operations over a caller-supplied lister:

- ``resolve`` builds the option list, or a one-entry sentinel list when
  listing is not possible (missing prerequisite, listing failure).
- ``validate`` checks that a chosen value is among the listed candidates.

Listing failures never escape either operation.

Usage::

    resolver = IdentifierResolver(
        field="attestorId",
        missing_messages=[CRED_REQUIRED, PROJECT_REQUIRED],
        required_message=ATTESTOR_REQUIRED,
        fill_error=attestor_id_fill_error,
        verification_error=attestor_id_verification_error,
        not_found_message=ATTESTOR_NOT_UNDER_PROJECT,
    )
    options = resolver.resolve([creds_id, project_id], current, lister)
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Sequence

from containersecurity.errors import (
    ClientInitializationError,
    ErrorKind,
    ParentNotFoundError,
    RemoteServiceError,
)
from containersecurity.validation.chain import validate_required_fields
from containersecurity.validation.result import SelectableList, ValidationResult

logger = logging.getLogger(__name__)

Lister = Callable[..., Iterable[str]]
"""Called with the prerequisite values, returns candidate identifiers."""


class IdentifierResolver:
    """Fills and validates one dependent identifier field."""

    def __init__(
        self,
        field: str,
        missing_messages: Sequence[str],
        required_message: str,
        fill_error: Callable[[str], str],
        verification_error: Callable[[str], str],
        not_found_message: str,
    ) -> None:
        self.field = field
        self.missing_messages = list(missing_messages)
        self.required_message = required_message
        self.fill_error = fill_error
        self.verification_error = verification_error
        self.not_found_message = not_found_message

    def _check_arity(self, prerequisites: Sequence[Optional[str]]) -> None:
        if len(prerequisites) != len(self.missing_messages):
            raise ValueError(
                f"{self.field}: expected {len(self.missing_messages)} "
                f"prerequisites, got {len(prerequisites)}"
            )

    def resolve(
        self,
        prerequisites: Sequence[Optional[str]],
        current_value: Optional[str],
        lister: Lister,
    ) -> SelectableList:
        """List candidates for the field and select one.

        Args:
            prerequisites: Values of the fields this one depends on, in
                declaration order.
            current_value: The value currently chosen, possibly empty.
            lister: Called as ``lister(*prerequisites)``.

        Returns:
            A leading empty placeholder followed by the candidates, with
            ``current_value`` selected if listed, else the first
            non-empty candidate. A sentinel list when listing is not
            possible.
        """
        self._check_arity(prerequisites)
        for value, message in zip(prerequisites, self.missing_messages):
            if not value:
                return SelectableList.sentinel(message)

        try:
            candidates = list(lister(*prerequisites))
        except ClientInitializationError as e:
            return SelectableList.sentinel(str(e))
        except ParentNotFoundError as e:
            return SelectableList.sentinel(str(e))
        except (RemoteServiceError, ValueError) as e:
            logger.debug("Listing %s failed: %s", self.field, e)
            return SelectableList.sentinel(self.fill_error(str(e)))

        result = SelectableList().add("", "")
        for candidate in candidates:
            result.add(candidate)
        result.select(current_value or "")
        return result

    def validate(
        self,
        prerequisites: Sequence[Optional[str]],
        target_value: Optional[str],
        lister: Lister,
    ) -> ValidationResult:
        """Check that ``target_value`` exists under its prerequisites.

        Empty prerequisites are reported in order, then an empty target,
        then listing failures, then absence from the listing.
        """
        self._check_arity(prerequisites)

        def terminal() -> ValidationResult:
            try:
                candidates = list(lister(*prerequisites))
            except ClientInitializationError as e:
                return ValidationResult.error(str(e), ErrorKind.CREDENTIAL_AUTH_FAILURE)
            except ParentNotFoundError as e:
                return ValidationResult.error(str(e), ErrorKind.NOT_UNDER_PARENT)
            except (RemoteServiceError, ValueError) as e:
                logger.debug("Verifying %s failed: %s", self.field, e)
                return ValidationResult.error(
                    self.verification_error(str(e)), ErrorKind.REMOTE_LISTING_FAILURE
                )
            if target_value not in candidates:
                return ValidationResult.error(
                    self.not_found_message, ErrorKind.NOT_UNDER_PARENT
                )
            return ValidationResult.ok()

        return validate_required_fields(
            [*prerequisites, target_value],
            [*self.missing_messages, self.required_message],
            terminal,
        )
