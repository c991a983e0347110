"""Pluggy hook specifications for enforcement events.

Plugins observe enforcement; they cannot veto it. Blocking itself is
silent from the engine's side, so these hooks are how a desktop
notifier, an audit log, or a hosts-file exporter learns about it.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "dwellguard"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class DwellguardHookSpec:
    """Hook specifications for the dwellguard plugin system."""

    @hookspec
    def post_block(
        self,
        domain: str,
        rule_id: int,
        used_seconds: int,
        limit_seconds: int,
    ) -> None:
        """Called when a block rule for *domain* is newly created."""

    @hookspec
    def post_unblock(self, domain: str, rule_id: int, reason: str) -> None:
        """Called when a domain's rule is removed (``reason``: policy_removed)."""

    @hookspec
    def post_reset(self, rule_ids: list[int], day: str) -> None:
        """Called after the daily full reset removed *rule_ids*."""

    @hookspec
    def post_window_closed(self, window_id: int) -> None:
        """Called after a private-browsing window was closed."""
