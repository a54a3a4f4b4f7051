"""Module to normalize the business keys used for indexed lookups."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

DEFAULT_PRIMARY_COLUMNS: Final[tuple[str, ...]] = ("registration_number", "registrationNumber")
DEFAULT_SECONDARY_COLUMNS: Final[tuple[str, ...]] = ("chasis_number", "chassisNumber")

COMBINED_KEY_SEPARATOR: Final[str] = "|"


def normalize(value: Any) -> str:
    """
    Return the canonical form of a business key value.

    The value is converted to string, stripped, and upper-cased. None
    normalizes to the empty string, which callers treat as absent.
    Integral floats render without the trailing `.0` so that a number
    typed into a cell matches the same digits typed as text.
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip().upper()


def combined_key(primary: str, secondary: str) -> str:
    """Return the combined key for two already-normalized keys."""
    return f"{primary}{COMBINED_KEY_SEPARATOR}{secondary}"


def _first_present(row: Mapping[str, Any], columns: tuple[str, ...]) -> str:
    for column in columns:
        value = row.get(column)
        if value:
            return normalize(value)
    return ""


@dataclass(frozen=True, kw_only=True)
class KeyColumns:
    """
    Names of the row fields carrying the business keys.

    Each key is an ordered list of aliases: the first alias whose value
    is non-empty in a row supplies the key for that row.

    Attributes:
        primary: aliases of the primary key column
        secondary: aliases of the secondary key column
    """

    primary: tuple[str, ...] = DEFAULT_PRIMARY_COLUMNS
    secondary: tuple[str, ...] = DEFAULT_SECONDARY_COLUMNS

    def __post_init__(self):
        if not self.primary or not self.secondary:
            raise ValueError("both primary and secondary key columns are required")

    def primary_key(self, row: Mapping[str, Any]) -> str:
        """Return the normalized primary key of row ("" when absent)."""
        return _first_present(row, self.primary)

    def secondary_key(self, row: Mapping[str, Any]) -> str:
        """Return the normalized secondary key of row ("" when absent)."""
        return _first_present(row, self.secondary)


@dataclass(frozen=True)
class KeyQuery:
    """A lookup by primary and/or secondary business key."""

    primary: Any = None
    secondary: Any = None

    @classmethod
    def of(cls, value: KeyQuery | Mapping[str, Any]) -> KeyQuery:
        """Return value as a KeyQuery, accepting plain mappings as well."""
        if isinstance(value, KeyQuery):
            return value
        return cls(primary=value.get("primary"), secondary=value.get("secondary"))
