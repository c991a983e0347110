"""Command group: edit the synced restricted-domain policy."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from dwellguard.commands._base import DwellGroup

if TYPE_CHECKING:
    from dwellguard.commands._context import AppContext

_POLICY_EXAMPLES = """\
  dwellguard policy show
  dwellguard policy set youtube.com 30
  dwellguard policy set https://www.reddit.com/ 15
  dwellguard policy remove youtube.com"""


@click.group(cls=DwellGroup, examples=_POLICY_EXAMPLES)
@click.pass_obj
def policy(app: AppContext) -> None:
    """Show and edit per-domain daily limits."""


@policy.command(
    examples="""\
  dwellguard policy show
  dwellguard --json policy show"""
)
@click.pass_obj
def show(app: AppContext) -> None:
    """List restricted domains and their daily limits."""
    from dwellguard.services.policy_admin import PolicyAdmin

    app.emit(PolicyAdmin(app.host).show())


@policy.command(
    "set",
    examples="""\
  dwellguard policy set youtube.com 30
  dwellguard policy set news.ycombinator.com 10""",
)
@click.argument("domain")
@click.argument("minutes", type=int)
@click.pass_obj
def set_limit(app: AppContext, domain: str, minutes: int) -> None:
    """Limit DOMAIN to MINUTES of focused time per day."""
    from dwellguard.services.policy_admin import PolicyAdmin

    # Attach the router first so the edit is live-synced in this process.
    app.router  # noqa: B018
    app.emit(PolicyAdmin(app.host).set_limit(domain, minutes))


@policy.command(examples="  dwellguard policy remove youtube.com")
@click.argument("domain")
@click.pass_obj
def remove(app: AppContext, domain: str) -> None:
    """Stop limiting DOMAIN and lift its block, if any."""
    from dwellguard.services.policy_admin import PolicyAdmin

    app.router  # noqa: B018
    app.emit(PolicyAdmin(app.host).remove(domain))
