"""Command: replay a JSON document through a streaming session."""

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
  fieldwise stream myapp.models:Person person.json
  fieldwise -v stream myapp.models:Person person.json --chunk-size 4""",
)
@click.argument("target")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=None,
    help="Bytes per chunk (default: [stream] chunk_size from fieldwise.toml).",
)
@click.option("--tag", default=None, help="Discriminator field for a polymorphic root.")
@click.option(
    "--variant",
    "variants",
    multiple=True,
    metavar="VALUE=MODULE:CLASS",
    help="Discriminator value to record type mapping (repeatable).",
)
@click.pass_obj
def stream(
    app: AppContext,
    target: str,
    file: Path,
    chunk_size: int | None,
    tag: str | None,
    variants: tuple[str, ...],
) -> None:
    """Feed FILE to TARGET's stream session chunk by chunk."""
    if variants and not tag:
        raise click.UsageError("--variant requires --tag")
    size = chunk_size or app.settings.stream.chunk_size
    app.emit(app.service.replay(target, file, chunk_size=size, tag=tag, variants=variants))
