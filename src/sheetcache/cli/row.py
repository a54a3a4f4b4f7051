"""Row lookup command."""

import click

from ..decode import DecodeError
from ..lookup import RowNotFoundError
from ..source import SourceUnavailableError
from . import cli
from .options import echo_row, engine_options, load_engine, source_error


@cli.command()
@engine_options
@click.argument("source")
@click.argument("positions", nargs=-1, required=True, type=int)
def row(config_path: str | None, verbose: bool, source: str, positions: tuple[int, ...]) -> None:
    """Print rows of SOURCE by file row number.

    Row 1 is the header, so the first data row is row 2. Each row is
    printed as a JSON line. With a single POSITION a missing row is an
    error; with several, missing rows are printed as `null`.
    """
    engine = load_engine(config_path, verbose)
    try:
        if len(positions) == 1:
            echo_row(engine.get_row(source, positions[0]))
            return
        for record in engine.get_rows(source, list(positions)):
            echo_row(record)
    except RowNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    except (SourceUnavailableError, DecodeError) as exc:
        raise source_error(exc) from exc
