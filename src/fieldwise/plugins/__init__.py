"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``fieldwise.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from fieldwise.plugins.hookspecs import hookimpl
from fieldwise.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
