"""AppContext — shared Click context for all commands.

Created once by the root CLI group and handed to subcommands through
``@click.pass_obj``.  Builds the plugin manager and document service on
first use and centralizes result emission (stdout/stderr routing and
exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from fieldwise.config.logging import configure_logging, get_logger
from fieldwise.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from fieldwise.config.settings import FieldwiseSettings
    from fieldwise.engine.registry import RuleRegistry
    from fieldwise.plugins.manager import PluginManager
    from fieldwise.services.documents import DocumentService
    from fieldwise.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    Plugins are discovered lazily so ``--help`` and ``--version`` never
    import third-party entry points.
    """

    def __init__(self, settings: FieldwiseSettings) -> None:
        self.settings = settings
        self._plugins: PluginManager | None = None
        self._service: DocumentService | None = None

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def registry(self) -> RuleRegistry:
        from fieldwise.engine.registry import default_registry

        return default_registry

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager (discovered on first access when enabled)."""
        if self._plugins is None:
            from fieldwise.plugins.manager import PluginManager

            self._plugins = PluginManager(self.registry)
            if self.settings.plugins.enabled:
                self._plugins.discover_and_load(disabled=self.settings.plugins.disabled)
        return self._plugins

    @property
    def service(self) -> DocumentService:
        if self._service is None:
            from fieldwise.services.documents import DocumentService

            self._service = DocumentService(
                config=self.settings.engine,
                registry=self.registry,
                plugins=self.plugins,
            )
        return self._service

    def emit(self, result: ServiceResult) -> None:
        """Format and output a ServiceResult with correct exit semantics.

        * Success: writes to stdout and returns.  Warnings go to stderr
          so they don't pollute piped output.
        * Failure: writes to stderr and exits with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        get_logger().debug("command_result", op=result.op, ok=result.ok)
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
