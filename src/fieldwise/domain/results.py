"""Result types returned by the Validator façade.

INVARIANT: A result never raises on construction. Callers inspect
``ok`` / ``errors`` or opt into an exception via ``raise_for_errors()``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel

from fieldwise.domain.errors import ValidationError, ValidationErrors
from fieldwise.domain.partial import IncompleteField, PartialState
from fieldwise.domain.types import ErrorKind


class _Outcome(BaseModel):
    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    errors: tuple[ValidationError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_of(self, kind: ErrorKind) -> list[ValidationError]:
        return [e for e in self.errors if e.kind is kind]

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationErrors(self.errors)


class DecodeResult(_Outcome):
    """Outcome of decoding a complete JSON document.

    ``value`` is None only when decoding itself failed (a decode error or
    an unresolvable discriminator); otherwise it is returned alongside any
    validation errors so partially-invalid input remains inspectable.
    """

    value: Any = None


class EncodeResult(_Outcome):
    """Outcome of encoding a record to JSON bytes."""

    data: bytes | None = None


class PartialResult(_Outcome):
    """Outcome of decoding a possibly-truncated JSON document.

    Attributes:
        value: Best-effort value, or None when a discriminator is still
            incomplete.
        state: Completeness report for the repaired document.
        repaired: The repaired JSON text the value was decoded from.
        errors: Errors outside incomplete subtrees.
    """

    value: Any = None
    state: PartialState = PartialState()
    repaired: str = ""

    @property
    def is_complete(self) -> bool:
        return self.state.is_complete

    @property
    def incomplete_fields(self) -> tuple[IncompleteField, ...]:
        return self.state.incomplete_fields

    def waiting_for(self) -> list[str]:
        return self.state.waiting_for()

    def is_field_complete(self, *path: str) -> bool:
        return self.state.is_field_complete(*path)
