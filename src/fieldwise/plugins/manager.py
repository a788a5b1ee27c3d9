"""Plugin discovery, loading, and hook dispatch.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
Capabilities: explicit rule registration and decode/stream notifications.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from typing import Any

import pluggy

from fieldwise.domain.errors import RuleDeclarationError
from fieldwise.engine.registry import RuleRegistry, default_registry
from fieldwise.plugins.hookspecs import PROJECT_NAME, FieldwiseHookSpec

ENTRY_POINT_GROUP = "fieldwise.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Manages plugin discovery, rule registration, and notifications."""

    def __init__(self, registry: RuleRegistry | None = None) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(FieldwiseHookSpec)
        self._registry = registry if registry is not None else default_registry
        self._loaded: bool = False

    def discover_and_load(self, *, disabled: Iterable[str] = ()) -> list[str]:
        """Load entry-point plugins and apply their rule registrations.

        Plugins named in *disabled* are blocked before loading.
        Returns the names of all registered plugins.
        """
        for name in disabled:
            self._pm.set_blocked(name)
        self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._instantiate_plugin_classes()
        for plugin in self._pm.get_plugins():
            self._apply_rules(plugin)
        self._loaded = True
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register a plugin instance directly and apply its rules."""
        resolved_name = name or plugin.__class__.__name__
        self._pm.register(plugin, name=resolved_name)
        self._apply_rules(plugin)
        logger.debug("Registered plugin: %s", resolved_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    @property
    def is_loaded(self) -> bool:
        """Whether discover_and_load() has been called."""
        return self._loaded

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or p.__class__.__name__ for p in self._pm.get_plugins()]

    def notify(self, hook_name: str, **payload: Any) -> None:
        """Dispatch a notification hook; failures are logged, never raised."""
        caller = getattr(self._pm.hook, hook_name)
        try:
            caller(**payload)
        except Exception:
            logger.warning("Plugin hook %s failed", hook_name, exc_info=True)

    def _instantiate_plugin_classes(self) -> None:
        """Replace entry-point plugin classes with instances.

        Hook dispatch against a class object leaves ``self`` unbound.
        """
        for plugin in list(self._pm.get_plugins()):
            if not inspect.isclass(plugin):
                continue
            plugin_name = self._pm.get_name(plugin) or plugin.__name__
            self._pm.unregister(plugin)
            try:
                instance = plugin()
            except Exception:
                logger.warning("Failed to instantiate plugin %s", plugin_name, exc_info=True)
                continue
            self._pm.register(instance, name=plugin_name)

    def _apply_rules(self, plugin: object) -> None:
        """Feed one plugin's ``register_rules`` result into the registry."""
        plugin_name = self._pm.get_name(plugin) or plugin.__class__.__name__
        hook = getattr(plugin, "register_rules", None)
        if hook is None:
            return
        try:
            registrations = hook()
        except Exception:
            logger.warning("Failed to collect rules from plugin %s", plugin_name, exc_info=True)
            return
        if registrations is None:
            return
        if not isinstance(registrations, dict):
            logger.warning("Plugin %s returned non-dict rule registrations", plugin_name)
            return
        for record_type, rules in registrations.items():
            try:
                self._registry.register(record_type, rules)
            except RuleDeclarationError:
                logger.warning(
                    "Skipping rules for %r from plugin %s",
                    record_type,
                    plugin_name,
                    exc_info=True,
                )
