"""Pluggy hook specifications for fieldwise.

Two notification hooks fire after decoding work completes.  One
setup-time hook lets plugins contribute explicit field rules for record
types they do not own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from fieldwise.domain.rules import FieldRule

PROJECT_NAME = "fieldwise"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class FieldwiseHookSpec:
    """Hook specifications for the fieldwise plugin system."""

    @hookspec
    def register_rules(self) -> dict[type, dict[str, FieldRule]] | None:
        """Return ``{record_type: {field_name: FieldRule}}`` registrations."""

    @hookspec
    def post_decode(
        self,
        type_name: str,
        ok: bool,
        error_count: int,
    ) -> None:
        """Called after a full-document decode."""

    @hookspec
    def post_stream_complete(
        self,
        type_name: str,
        buffer_size: int,
    ) -> None:
        """Called once when a stream session's document becomes complete."""
