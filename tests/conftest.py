"""Shared pytest fixtures for sheetcache tests."""

import io
import zipfile
from collections.abc import Callable, Sequence
from typing import Any

import openpyxl
import pyarrow as pa
import pyarrow.parquet as pq
import pytest

from sheetcache.source import SourceNotFoundError

HEADER = ["registration_number", "chasis_number", "model"]

ROWS = [
    ["AB12", "CH1", "truck"],
    ["AB12", "CH2", "van"],
    ["CD34", "CH3", "car"],
]


def _xlsx_bytes(rows: Sequence[Sequence[Any]]) -> bytes:
    workbook = openpyxl.Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(list(row))
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _parquet_bytes(columns: dict[str, list[Any]]) -> bytes:
    sink = pa.BufferOutputStream()
    pq.write_table(pa.table(columns), sink)
    return sink.getvalue().to_pybytes()


@pytest.fixture
def make_xlsx() -> Callable[[Sequence[Sequence[Any]]], bytes]:
    """Return a function building an xlsx workbook from rows (header first)."""
    return _xlsx_bytes


@pytest.fixture
def make_parquet() -> Callable[[dict[str, list[Any]]], bytes]:
    """Return a function building a Parquet file from columns."""
    return _parquet_bytes


@pytest.fixture
def vehicles_xlsx() -> bytes:
    """Workbook with 3 data rows where AB12 appears twice."""
    return _xlsx_bytes([HEADER, *ROWS])


@pytest.fixture
def truncated_sheet_xlsx(vehicles_xlsx: bytes) -> bytes:
    """Valid workbook container whose first worksheet XML is cut short."""
    buffer = io.BytesIO()
    with (
        zipfile.ZipFile(io.BytesIO(vehicles_xlsx)) as src,
        zipfile.ZipFile(buffer, "w") as dst,
    ):
        for item in src.infolist():
            content = src.read(item.filename)
            if item.filename == "xl/worksheets/sheet1.xml":
                content = b"<worksheet><sheetData><row"
            dst.writestr(item, content)
    return buffer.getvalue()


class FakeClock:
    """Manually advanced clock returning UNIX timestamps."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class MemoryBlobSource:
    """Blob source serving bytes from a dict and counting fetches."""

    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self.blobs = dict(blobs or {})
        self.fetches: list[str] = []

    def fetch_bytes(self, source_key: str) -> bytes:
        self.fetches.append(source_key)
        try:
            return self.blobs[source_key]
        except KeyError as exc:
            raise SourceNotFoundError(f"no such source: {source_key}") from exc


@pytest.fixture
def memory_source(vehicles_xlsx: bytes) -> MemoryBlobSource:
    """Blob source holding the vehicles workbook under `vehicles.xlsx`."""
    return MemoryBlobSource({"vehicles.xlsx": vehicles_xlsx})
