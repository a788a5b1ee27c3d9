"""Completeness bookkeeping for partially received documents."""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, computed_field

from fieldwise.domain.paths import ancestors, join_path
from fieldwise.domain.types import TruncationReason

_CONTAINER_REASONS = frozenset(
    {TruncationReason.OBJECT_TRUNCATED, TruncationReason.ARRAY_TRUNCATED}
)


class IncompleteField(BaseModel):
    """A wire path that has not fully arrived, and why."""

    model_config = {"frozen": True}

    path: tuple[str, ...] = ()
    reason: TruncationReason

    @property
    def json_path(self) -> str:
        return join_path(self.path)

    @property
    def is_container(self) -> bool:
        return self.reason in _CONTAINER_REASONS


class PartialState(BaseModel):
    """Which parts of one parse attempt are not yet trustworthy.

    :attr:`incomplete_fields` lists named wire paths, inner subtrees
    before the containers that enclose them.  The root never appears
    there: every object or array still open at the end of the input,
    the root included as ``()``, is listed in :attr:`open_paths`.

    A path is incomplete when it is listed itself, or when an ancestor
    value was cut off.  An open container does not taint members that
    have already fully arrived.
    """

    model_config = {"frozen": True}

    incomplete_fields: tuple[IncompleteField, ...] = ()
    open_paths: tuple[tuple[str, ...], ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_complete(self) -> bool:
        return not self.incomplete_fields and not self.open_paths

    def covers(self, path: tuple[str, ...]) -> bool:
        """True when *path* is incomplete itself or sits under a cut-off value."""
        target = tuple(path)
        if target in self.open_paths or self.marks(target):
            return True
        leaves = {f.path for f in self.incomplete_fields if not f.is_container}
        return any(candidate in leaves for candidate in ancestors(target))

    def marks(self, path: tuple[str, ...]) -> bool:
        """True when *path* itself, not an ancestor, is listed."""
        target = tuple(path)
        return any(f.path == target for f in self.incomplete_fields)

    def is_open(self, path: tuple[str, ...]) -> bool:
        """Whether the container at *path* may still receive members."""
        return tuple(path) in self.open_paths

    def is_field_complete(self, *path: str) -> bool:
        return not self.covers(path)

    def waiting_for(self) -> list[str]:
        """Dotted wire paths still awaiting data, in recorded order."""
        return [f.json_path for f in self.incomplete_fields]

    def with_prefix(self, fields: Iterable[IncompleteField]) -> PartialState:
        """Return a copy with *fields* placed ahead of the existing entries."""
        return self.model_copy(update={"incomplete_fields": (*fields, *self.incomplete_fields)})
