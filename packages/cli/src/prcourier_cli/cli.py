"""CLI entry point for prcourier.

Commands:
  post    deliver a findings file to a pull request as review comments
"""

from __future__ import annotations

import logging

import click

from prcourier_cli.commands.post import post_cmd


@click.group()
@click.version_option(package_name="prcourier", prog_name="prcourier")
@click.option(
    "--config",
    "config_path",
    default=".prcourier.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRCOURIER_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Post automated code-review findings onto GitHub pull requests."""
    from prcourier_cli.auth import resolve_github_token
    from prcourier_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config


main.add_command(post_cmd)
