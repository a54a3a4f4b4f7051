"""Sheetcache command-line interface."""

from importlib.metadata import version

import click

_PACKAGE_NAME = "sheetcache"


def _get_version() -> str:
    """Return the installed package version string."""
    return version(_PACKAGE_NAME)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(message="%(version)s", package_name=_PACKAGE_NAME)
def cli() -> None:
    """Spreadsheet cache and lookup tool."""


@cli.command("version")
def version_cmd() -> None:
    """Print the version number."""
    click.echo(_get_version())


# Register subcommands (must be after cli is defined)
from . import row as _row  # noqa: E402, F401
from . import search as _search  # noqa: E402, F401
from . import warm as _warm  # noqa: E402, F401
