"""ValidationError and the exceptions raised by the engine.

INVARIANT: ValidationError instances are frozen. Nested errors are
re-parented with :meth:`ValidationError.under`, which returns a copy.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel

from fieldwise.domain.paths import join_path
from fieldwise.domain.types import ErrorKind


class ValidationError(BaseModel):
    """One path-qualified failure.

    Attributes:
        path: Declared field names (and ``"[i]"`` indices) from the root.
        message: Human-readable description of the failure.
        kind: Failure classification.
        wire_path: The same location expressed with wire names. Used to
            correlate errors with partial-document incompleteness.
    """

    model_config = {"frozen": True}

    path: tuple[str, ...] = ()
    message: str
    kind: ErrorKind
    wire_path: tuple[str, ...] = ()

    @property
    def location(self) -> str:
        """Dotted rendering of :attr:`path`."""
        return join_path(self.path)

    def under(self, path: tuple[str, ...], wire_path: tuple[str, ...]) -> ValidationError:
        """Return a copy prefixed with *path* / *wire_path*."""
        return self.model_copy(
            update={"path": path + self.path, "wire_path": wire_path + self.wire_path}
        )

    def __str__(self) -> str:
        if not self.path:
            return self.message
        return f"{self.location}: {self.message}"


class ValidationErrors(Exception):
    """Raised by ``raise_for_errors()`` when a result carries errors."""

    def __init__(self, errors: Iterable[ValidationError]) -> None:
        self.errors: tuple[ValidationError, ...] = tuple(errors)
        super().__init__("; ".join(str(e) for e in self.errors))

    def kinds(self) -> set[ErrorKind]:
        return {e.kind for e in self.errors}


class RuleDeclarationError(TypeError):
    """A record type declares its rules incorrectly.

    Raised eagerly at registration time, never from a validation call.
    """
