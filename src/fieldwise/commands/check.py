"""Command: decode and validate a JSON document against a record type."""

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
  fieldwise check myapp.models:Person person.json
  fieldwise --json check myapp.models:Person person.json
  fieldwise check myapp.models:Animal pet.json --tag species \\
      --variant cat=myapp.models:Cat --variant dog=myapp.models:Dog""",
)
@click.argument("target")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--tag", default=None, help="Discriminator field for a polymorphic root.")
@click.option(
    "--variant",
    "variants",
    multiple=True,
    metavar="VALUE=MODULE:CLASS",
    help="Discriminator value to record type mapping (repeatable).",
)
@click.pass_obj
def check(
    app: AppContext,
    target: str,
    file: Path,
    tag: str | None,
    variants: tuple[str, ...],
) -> None:
    """Validate FILE as an instance of TARGET (``module:Class``)."""
    if variants and not tag:
        raise click.UsageError("--variant requires --tag")
    app.emit(app.service.check(target, file, tag=tag, variants=variants))
