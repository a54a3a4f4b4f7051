"""
Blob sources returning the raw bytes of a tabular file.

A blob source is any object with a `fetch_bytes(source_key)` method. The
source key is opaque to the rest of the package: usually a blob store URL
such as `https://storage.googleapis.com/<bucket>/<name>`, sometimes a local
path. Failures are reported as SourceUnavailableError (or its
SourceNotFoundError subclass) and never retried here.

Implementations:

- LocalBlobSource: files below a root directory
- HTTPBlobSource: plain http(s) downloads
- GCSBlobSource: Google Cloud Storage objects
- DispatchingBlobSource: picks one of the above by URL scheme
"""

from .base import BlobSource, SourceNotFoundError, SourceUnavailableError
from .dispatch import DispatchingBlobSource
from .gcs import GCSBlobSource, gcs_object_name
from .http import HTTPBlobSource
from .local import LocalBlobSource

__all__ = [
    "BlobSource",
    "DispatchingBlobSource",
    "GCSBlobSource",
    "HTTPBlobSource",
    "LocalBlobSource",
    "SourceNotFoundError",
    "SourceUnavailableError",
    "gcs_object_name",
]
