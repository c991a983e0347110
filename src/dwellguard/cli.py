"""Root CLI group for dwellguard with global flags and command registration."""

from __future__ import annotations

import click

from dwellguard import __version__
from dwellguard.commands import register_commands
from dwellguard.commands._context import AppContext
from dwellguard.config.settings import DwellSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="dwellguard")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory holding the engine database.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    data_dir: str | None,
) -> None:
    """dwellguard: per-domain daily time limits for the browser."""
    ctx.ensure_object(dict)
    # Unset flags are left out so env vars and dwellguard.toml still apply.
    flags = {
        "json_output": json_output,
        "quiet": quiet,
        "verbose": verbose,
        "log_json": log_json,
    }
    settings = DwellSettings.from_cli(
        config_path=config_path,
        data_dir=data_dir,
        **{name: True for name, value in flags.items() if value},
    )
    app = AppContext(settings)
    ctx.obj = app
    ctx.call_on_close(app.close)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
