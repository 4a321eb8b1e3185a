"""Command-line interface for people lookups."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click
from safir.click import display_help

from .config import DirectoryConfig
from .constants import CONFIG_PATH
from .directory import Directory
from .exceptions import DirectoryError

__all__ = [
    "auth",
    "help",
    "main",
    "people",
]

_config_path_option = click.option(
    "--config-path",
    envvar="LDAPDIRECTORY_CONFIG_PATH",
    type=click.Path(path_type=Path),
    default=CONFIG_PATH,
    help="Directory configuration file.",
)


def _load_config(config_path: Path) -> DirectoryConfig:
    config = DirectoryConfig.from_file(config_path)
    config.configure_logging()
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s")
def main() -> None:
    """Look up people and check passwords in an LDAP directory."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic)


@main.command()
@click.argument("usernames")
@click.option(
    "--attributes",
    "-a",
    default=None,
    help="Comma-separated attributes to show (default: all configured).",
)
@_config_path_option
def people(usernames: str, attributes: str | None, config_path: Path) -> None:
    """Show attributes of people given as comma-separated USERNAMES.

    The value is printed bare if one person and one attribute were
    requested, and as JSON otherwise.
    """
    config = _load_config(config_path)
    try:
        with Directory(config) as directory:
            result = directory.people(usernames).get(attributes)
    except DirectoryError as e:
        raise click.ClickException(str(e)) from e
    if isinstance(result, str):
        click.echo(result)
    else:
        click.echo(json.dumps(result, indent=2))


@main.command()
@click.argument("userid")
@click.password_option(
    "--password", confirmation_prompt=False, help="Password to check."
)
@_config_path_option
def auth(userid: str, password: str, config_path: Path) -> None:
    """Check the password of USERID.

    Exits with status 1 if the password is not valid.
    """
    config = _load_config(config_path)
    with Directory(config) as directory:
        valid = directory.auth(userid, password)
    click.echo("valid" if valid else "invalid")
    if not valid:
        sys.exit(1)
