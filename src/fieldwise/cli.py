"""Root CLI group for fieldwise with global flags and command registration."""

from __future__ import annotations

import click

from fieldwise import __version__
from fieldwise.commands import register_commands
from fieldwise.commands._base import FieldwiseGroup
from fieldwise.commands._context import AppContext
from fieldwise.config.settings import FieldwiseSettings


@click.group(
    cls=FieldwiseGroup,
    invoke_without_command=True,
    examples="""\
  fieldwise check myapp.models:Person person.json
  fieldwise repair partial.json
  fieldwise stream myapp.models:Person person.json --chunk-size 8""",
)
@click.version_option(version=__version__, prog_name="fieldwise")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
) -> None:
    """fieldwise: validate, repair, and stream-decode JSON records."""
    ctx.ensure_object(dict)
    settings = FieldwiseSettings.from_cli(
        config_path=config_path,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
