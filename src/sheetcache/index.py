"""Module building the secondary indexes over decoded rows."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .decode import RowRecord
from .keys import KeyColumns, combined_key


@dataclass(frozen=True)
class SheetIndex:
    """
    Multimaps from normalized business key to rows, in file order.

    Attributes:
        primary: primary key -> rows having that key
        secondary: secondary key -> rows having that key
        combined: `primary|secondary` -> rows having both keys

    A key is either absent or maps to a non-empty list.
    """

    primary: dict[str, list[RowRecord]] = field(default_factory=dict)
    secondary: dict[str, list[RowRecord]] = field(default_factory=dict)
    combined: dict[str, list[RowRecord]] = field(default_factory=dict)


def build_index(rows: Sequence[RowRecord], key_columns: KeyColumns) -> SheetIndex:
    """
    Build the three indexes with a single pass over rows.

    Rows with an empty key are left out of the corresponding index and
    duplicates are all kept, in the order in which they appear.
    """
    index = SheetIndex()
    for row in rows:
        primary = key_columns.primary_key(row)
        secondary = key_columns.secondary_key(row)
        if primary:
            index.primary.setdefault(primary, []).append(row)
        if secondary:
            index.secondary.setdefault(secondary, []).append(row)
        if primary and secondary:
            index.combined.setdefault(combined_key(primary, secondary), []).append(row)
    return index
