"""Command: close a truncated JSON document and report what is missing."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from fieldwise.commands._base import FieldwiseCommand

if TYPE_CHECKING:
    from fieldwise.commands._context import AppContext


@click.command(
    cls=FieldwiseCommand,
    examples="""\
  fieldwise repair partial.json
  fieldwise -q repair partial.json > closed.json
  fieldwise --json repair partial.json""",
)
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_obj
def repair(app: AppContext, file: Path) -> None:
    """Repair FILE into the nearest syntactically valid JSON."""
    app.emit(app.service.repair(file))
