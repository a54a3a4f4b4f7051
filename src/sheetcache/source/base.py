"""Blob source protocol and errors."""

from typing import Protocol


class SourceUnavailableError(RuntimeError):
    """Error emitted when we cannot fetch the bytes of a source."""


class SourceNotFoundError(SourceUnavailableError, FileNotFoundError):
    """Error emitted when the source does not exist in the blob store."""


class BlobSource(Protocol):
    """
    Represent the possibility of fetching the raw bytes of a
    tabular file from a remote location or service.

    Methods:
        fetch_bytes: return the bytes for the given source key or
            raise SourceUnavailableError.
    """

    def fetch_bytes(self, source_key: str) -> bytes: ...
