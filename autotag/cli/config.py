"""Configuration commands for autotag CLI.

This module provides commands for viewing configuration and profiles.
"""

from __future__ import annotations

import click

from autotag.cli.utils import load_config_for_cli, print_error, print_info


@click.group()
def config() -> None:
    r"""Manage configuration commands.

    \b
    Examples:
        $ autotag config show
        $ autotag --profile dev config show
        $ autotag config profiles
    """


@config.command()
@click.option(
    "--key",
    "-k",
    type=str,
    default=None,
    help="Show specific config value (e.g., engine.add_cooldown)",
)
@click.pass_context
def show(ctx: click.Context, key: str | None) -> None:
    r"""Display current configuration.

    Shows the merged configuration from profile, file, and environment
    variables.

    \b
    Examples:
        $ autotag config show
        $ autotag config show --key engine.reapply_interval
    """
    config_file = ctx.obj.get("config_file")
    cfg = load_config_for_cli(
        config_file=str(config_file) if config_file else None,
        profile=ctx.obj.get("profile", "default"),
        verbose=ctx.obj.get("verbose", False),
    )

    if key:
        value: object = cfg.to_dict()
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                print_error(f"Configuration key not found: {key}")
                return
            value = value[part]
        click.echo(value)
        return

    click.echo(cfg.to_yaml())


@config.command()
def profiles() -> None:
    r"""List available configuration profiles.

    \b
    Examples:
        $ autotag config profiles
    """
    # Lazy import to avoid circular import
    from autotag.config import list_profiles

    print_info("Available configuration profiles:")
    click.echo()
    for profile_name in list_profiles():
        click.echo(f"  • {profile_name}")
    click.echo()
    print_info("Use --profile to select a profile:")
    click.echo("  $ autotag --profile dev config show")
