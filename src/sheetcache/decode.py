"""
Module decoding raw tabular files into row records.

Two containers are recognized by their magic bytes:

- xlsx workbooks (ZIP, `PK`), decoded with openpyxl in read-only mode
  using the cached cell values of the first worksheet
- Parquet files (`PAR1`), decoded with pyarrow

Workbook decoding walks the declared cell range of the first sheet. File
row 1 is the header; every following row up to the declared last row
becomes one record. Missing cells map to None and cells below a header
cell that is empty are dropped. Cell values are passed through unchanged.
"""

from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Final

import openpyxl
import pyarrow as pa
import pyarrow.parquet as pq
from openpyxl.utils.exceptions import InvalidFileException

XLSX_MAGIC: Final[bytes] = b"PK"
PARQUET_MAGIC: Final[bytes] = b"PAR1"

RowRecord = dict[str, Any]
"""Mapping from header field name to cell value, in column order."""

log = logging.getLogger("sheetcache/decode")

# ElementTree.ParseError and lxml's XMLSyntaxError both derive from SyntaxError
_WORKBOOK_ERRORS: Final = (
    zipfile.BadZipFile,
    InvalidFileException,
    KeyError,
    ValueError,
    OSError,
    SyntaxError,
)


class DecodeError(ValueError):
    """Error emitted when bytes are not a usable tabular container."""


@dataclass(frozen=True)
class DecodedTable:
    """
    Result of decoding a tabular file.

    Attributes:
        header: field names in column order (dropped columns excluded)
        rows: one record per data row; rows[0] is file row 2
    """

    header: tuple[str, ...]
    rows: list[RowRecord]


def decode_table(data: bytes) -> DecodedTable:
    """
    Decode raw bytes into a DecodedTable.

    Raises:
        DecodeError: if the container is not recognized, is corrupt, or
            declares no header row and no data row.
    """
    if data.startswith(PARQUET_MAGIC):
        return decode_parquet(data)
    if data.startswith(XLSX_MAGIC):
        return decode_xlsx(data)
    raise DecodeError("unrecognized tabular container")


def decode_xlsx(data: bytes) -> DecodedTable:
    """Decode the first worksheet of an xlsx workbook."""
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except _WORKBOOK_ERRORS as exc:
        raise DecodeError(f"invalid workbook: {exc}") from exc

    try:
        if not workbook.worksheets:
            raise DecodeError("workbook contains no worksheets")
        # Worksheet XML is parsed lazily, while sizing and reading rows
        try:
            values, first_col = _read_values(workbook.worksheets[0])
        except _WORKBOOK_ERRORS as exc:
            raise DecodeError(f"invalid worksheet: {exc}") from exc
    finally:
        workbook.close()

    log.debug("decoded worksheet: %d rows starting at column %d", len(values), first_col)
    return _table_from_values(values)


def _read_values(sheet: Any) -> tuple[list[tuple[Any, ...]], int]:
    # Unsized sheets lack a declared range: read everything instead
    if sheet.max_row is None or sheet.max_column is None:
        sheet.reset_dimensions()
        return list(sheet.iter_rows(values_only=True)), 1
    values = list(
        sheet.iter_rows(
            min_row=1,
            max_row=sheet.max_row,
            min_col=sheet.min_column,
            max_col=sheet.max_column,
            values_only=True,
        )
    )
    return values, sheet.min_column


def _table_from_values(values: Sequence[Sequence[Any]]) -> DecodedTable:
    if len(values) < 2:
        raise DecodeError(f"declared range has {len(values)} row(s), need a header and data")

    # 1. map column offsets to field names, skipping empty header cells
    columns: dict[int, str] = {}
    for offset, cell in enumerate(values[0]):
        if cell is None or cell == "":
            continue
        columns[offset] = str(cell)
    if not columns:
        raise DecodeError("header row has no named columns")

    # 2. build one record per data row, padding short rows with None
    rows = [_record(columns, row) for row in values[1:]]

    # 3. duplicate names keep the right-most column, header follows suit
    header = tuple(dict.fromkeys(columns.values()))
    return DecodedTable(header=header, rows=rows)


def _record(columns: dict[int, str], row: Sequence[Any]) -> RowRecord:
    record: RowRecord = {}
    width = len(row)
    for offset, name in columns.items():
        record[name] = row[offset] if offset < width else None
    return record


def decode_parquet(data: bytes) -> DecodedTable:
    """Decode a Parquet file, using the column names as the header."""
    try:
        table = pq.read_table(pa.BufferReader(data))
    except (pa.ArrowException, OSError) as exc:
        raise DecodeError(f"invalid parquet file: {exc}") from exc

    if table.num_columns == 0:
        raise DecodeError("parquet file has no columns")
    if table.num_rows == 0:
        raise DecodeError("parquet file has no data rows")

    return DecodedTable(header=tuple(table.column_names), rows=table.to_pylist())

