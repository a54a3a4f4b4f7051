"""
Spreadsheet cache and lookup engine.

This library fetches tabular files (xlsx workbooks or Parquet files) from
a blob store, decodes them into row records, indexes the rows by two
business keys, and serves point and batch lookups from an in-memory
cache whose entries expire after a configurable TTL.

Example:

    engine = LookupEngine(source=LocalBlobSource(root="sheets"))
    row = engine.get_row("vehicles.xlsx", 2)
    rows = engine.get_rows("vehicles.xlsx", [2, 3, 999])
    found = engine.search_rows("vehicles.xlsx", [KeyQuery(primary="AB12")])
"""

from importlib.metadata import PackageNotFoundError, version

from .config import EngineConfig, load_config
from .decode import DecodedTable, DecodeError, RowRecord, decode_table
from .index import SheetIndex, build_index
from .keys import KeyColumns, KeyQuery, normalize
from .lookup import LookupEngine, RowNotFoundError
from .source import (
    BlobSource,
    DispatchingBlobSource,
    GCSBlobSource,
    HTTPBlobSource,
    LocalBlobSource,
    SourceNotFoundError,
    SourceUnavailableError,
)
from .store import CacheEntry, CacheFileStats, CacheStats, CacheStore, Sweeper
from .warm import Warmer, WarmOutcome, WarmReport

try:
    __version__ = version("sheetcache")
except PackageNotFoundError:  # pragma: no cover - running from a source tree
    __version__ = "0.0.0"

__all__ = [
    "BlobSource",
    "CacheEntry",
    "CacheFileStats",
    "CacheStats",
    "CacheStore",
    "DecodeError",
    "DecodedTable",
    "DispatchingBlobSource",
    "EngineConfig",
    "GCSBlobSource",
    "HTTPBlobSource",
    "KeyColumns",
    "KeyQuery",
    "LocalBlobSource",
    "LookupEngine",
    "RowNotFoundError",
    "RowRecord",
    "SheetIndex",
    "SourceNotFoundError",
    "SourceUnavailableError",
    "Sweeper",
    "WarmOutcome",
    "WarmReport",
    "Warmer",
    "build_index",
    "decode_table",
    "load_config",
    "normalize",
    "__version__",
]
