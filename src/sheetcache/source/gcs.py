"""Module containing the Google Cloud Storage blob source."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from google.api_core import exceptions as gexc
from google.cloud import storage

from .base import SourceNotFoundError, SourceUnavailableError

log = logging.getLogger("sheetcache/source/gcs")

GCS_PUBLIC_HOST = "storage.googleapis.com"


def gcs_object_name(source_key: str, *, bucket: str) -> str:
    """
    Return the object name inside bucket for the given source key.

    Handles public and signed URLs (the query string is dropped), the
    gs://bucket/name form, and bare object names. When the URL path does
    not contain the bucket name, the last path segment is used.
    """
    if source_key.startswith("gs://"):
        parsed = urlparse(source_key)
        return parsed.path.lstrip("/")

    if GCS_PUBLIC_HOST in source_key:
        path_parts = source_key.split("?", 1)[0].split("/")
        if bucket in path_parts:
            index = path_parts.index(bucket)
            if index < len(path_parts) - 1:
                return "/".join(path_parts[index + 1 :])
        return path_parts[-1]

    if "/" in source_key:
        return source_key.split("?", 1)[0].rsplit("/", 1)[-1]

    return source_key


class GCSBlobSource:
    """
    Blob source downloading objects from a single GCS bucket.

    The storage client is created lazily on first fetch unless one is
    passed explicitly, so constructing the source does not require
    credentials.
    """

    def __init__(self, *, bucket: str, client: storage.Client | None = None) -> None:
        self.bucket_name = bucket
        self._client = client

    @property
    def client(self) -> storage.Client:
        if self._client is None:
            self._client = storage.Client()
        return self._client

    def fetch_bytes(self, source_key: str) -> bytes:
        name = gcs_object_name(source_key, bucket=self.bucket_name)
        try:
            log.info("downloading gs://%s/%s... start", self.bucket_name, name)
            blob = self.client.bucket(self.bucket_name).blob(name)
            data = blob.download_as_bytes()
            log.info("downloading gs://%s/%s... ok (%d bytes)", self.bucket_name, name, len(data))
            return data
        except gexc.NotFound as exc:
            log.warning("downloading gs://%s/%s... failure: %s", self.bucket_name, name, exc)
            raise SourceNotFoundError(f"no such source: {source_key}") from exc
        except gexc.GoogleAPIError as exc:
            log.warning("downloading gs://%s/%s... failure: %s", self.bucket_name, name, exc)
            raise SourceUnavailableError(f"cannot download {source_key}: {exc}") from exc
