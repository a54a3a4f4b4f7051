"""Module choosing the blob source by the shape of the source key."""

from __future__ import annotations

from urllib.parse import urlparse

from .base import BlobSource, SourceUnavailableError
from .gcs import GCS_PUBLIC_HOST


class DispatchingBlobSource:
    """
    Blob source delegating to other sources according to the key.

    Rules, in order:

    1. gs:// URLs go to gcs
    2. http(s) URLs whose host is storage.googleapis.com go to gcs when set
    3. other http(s):// URLs go to http
    4. anything else goes to local
    """

    def __init__(
        self,
        *,
        local: BlobSource | None = None,
        http: BlobSource | None = None,
        gcs: BlobSource | None = None,
    ) -> None:
        self.local = local
        self.http = http
        self.gcs = gcs

    def select(self, source_key: str) -> BlobSource:
        """
        Return the blob source responsible for source_key.

        Raises:
            SourceUnavailableError: if no configured source handles the key.
        """
        parsed = urlparse(source_key)
        if parsed.scheme == "gs":
            selected = self.gcs
        elif parsed.scheme in ("http", "https"):
            if self.gcs is not None and parsed.hostname == GCS_PUBLIC_HOST:
                selected = self.gcs
            else:
                selected = self.http
        else:
            selected = self.local
        if selected is None:
            raise SourceUnavailableError(f"no blob source configured for {source_key}")
        return selected

    def fetch_bytes(self, source_key: str) -> bytes:
        return self.select(source_key).fetch_bytes(source_key)
