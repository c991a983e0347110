"""Extension layer: plugin system via pluggy.

Discovery: entry_points (pip-installed) in the ``dwellguard.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from dwellguard.plugins.event_bus import EventBus
from dwellguard.plugins.manager import PluginManager

__all__ = ["EventBus", "PluginManager"]
