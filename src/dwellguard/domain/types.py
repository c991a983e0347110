"""Enums shared across the engine.

Storage areas, rule actions, and the platform event names delivered
to the router.
"""

from __future__ import annotations

from enum import StrEnum


class StorageAreaName(StrEnum):
    """Durable key/value scopes."""

    LOCAL = "local"
    SYNC = "sync"


class RuleAction(StrEnum):
    """Dynamic rule action types."""

    BLOCK = "block"


class ResourceType(StrEnum):
    """Request types a block rule applies to."""

    MAIN_FRAME = "main_frame"
    SUB_FRAME = "sub_frame"


class EventKind(StrEnum):
    """Platform notifications understood by the event router."""

    TAB_ACTIVATED = "tab_activated"
    TAB_UPDATED = "tab_updated"
    TAB_REMOVED = "tab_removed"
    WINDOW_FOCUS_CHANGED = "window_focus_changed"
    WINDOW_CREATED = "window_created"
    SETTINGS_CHANGED = "settings_changed"
    ALARM = "alarm"
    INSTALLED = "installed"
    STARTUP = "startup"


# Window id reported by the platform when no browser window has focus.
WINDOW_ID_NONE = -1
