"""Key search command."""

import click

from ..decode import DecodeError
from ..keys import COMBINED_KEY_SEPARATOR, KeyQuery
from ..source import SourceUnavailableError
from . import cli
from .options import echo_row, engine_options, load_engine, source_error


def parse_query(value: str) -> KeyQuery:
    """Parse `PRIMARY`, `PRIMARY|SECONDARY` or `|SECONDARY` into a KeyQuery."""
    primary, _, secondary = value.partition(COMBINED_KEY_SEPARATOR)
    return KeyQuery(primary=primary or None, secondary=secondary or None)


@cli.command()
@engine_options
@click.argument("source")
@click.option(
    "-q",
    "--query",
    "queries",
    multiple=True,
    required=True,
    metavar="PRIMARY[|SECONDARY]",
    help="Key query; repeat for a batch. Use |SECONDARY for the secondary key only.",
)
def search(config_path: str | None, verbose: bool, source: str, queries: tuple[str, ...]) -> None:
    """Print the first row of SOURCE matching each query.

    One JSON line is printed per query, in order; `null` means no match.
    """
    engine = load_engine(config_path, verbose)
    try:
        results = engine.search_rows(source, [parse_query(query) for query in queries])
    except (SourceUnavailableError, DecodeError) as exc:
        raise source_error(exc) from exc
    for record in results:
        echo_row(record)
