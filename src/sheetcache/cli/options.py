"""Options and helpers shared by the sheetcache commands."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import click

from ..config import load_config
from ..decode import DecodeError
from ..lookup import LookupEngine
from ..source import SourceUnavailableError
from .logger import configure_logging


def engine_options(func: Callable) -> Callable:
    """Add the -c/--config and -v/--verbose options to a command."""
    func = click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")(func)
    func = click.option(
        "-c",
        "--config",
        "config_path",
        default=None,
        metavar="CONFIG",
        help="Path to YAML engine config (default: built-in defaults)",
    )(func)
    return func


def load_engine(config_path: str | None, verbose: bool) -> LookupEngine:
    """Load the config at config_path, set up logging and return the engine."""
    try:
        config = load_config(config_path)
    except FileNotFoundError as exc:
        raise click.ClickException(f"Engine config not found: {config_path}") from exc
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(config.log_level, verbose=verbose)
    return config.engine()


def source_error(exc: SourceUnavailableError | DecodeError) -> click.ClickException:
    """Convert a source or decoding failure into a ClickException."""
    if isinstance(exc, DecodeError):
        return click.ClickException(f"cannot decode source: {exc}")
    return click.ClickException(f"source unavailable: {exc}")


def echo_row(row: dict[str, Any] | None) -> None:
    """Print a row (or null) as a single JSON line."""
    click.echo(json.dumps(row, default=str))
