"""Module containing the local filesystem blob source."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

from .base import SourceNotFoundError, SourceUnavailableError

log = logging.getLogger("sheetcache/source/local")


def root_dir_or_default(root: str | Path | None) -> Path:
    """
    Return root as a Path if not empty. Otherwise return the
    current working directory.
    """
    return Path.cwd() if root is None else Path(root)


class LocalBlobSource:
    """
    Blob source reading files from a local directory.

    Source keys may be `file://` URLs or paths relative to the configured
    root directory. Keys resolving outside the root are rejected.
    """

    def __init__(self, *, root: str | Path | None = None) -> None:
        self.root = root_dir_or_default(root)

    def path_for(self, source_key: str) -> Path:
        """
        Return the resolved filesystem path corresponding to source_key.

        Raises:
            SourceUnavailableError: if the path lies outside the root.
        """
        if source_key.startswith("file://"):
            path = Path(unquote(urlparse(source_key).path))
        else:
            path = self.root / source_key
        resolved = path.resolve()
        if not resolved.is_relative_to(self.root.resolve()):
            raise SourceUnavailableError(f"{source_key} is outside {self.root}")
        return resolved

    def fetch_bytes(self, source_key: str) -> bytes:
        path = self.path_for(source_key)
        log.debug("reading %s... start", path)
        try:
            data = path.read_bytes()
        except FileNotFoundError as exc:
            raise SourceNotFoundError(f"no such source: {source_key}") from exc
        except OSError as exc:
            raise SourceUnavailableError(f"cannot read {source_key}: {exc}") from exc
        log.debug("reading %s... ok (%d bytes)", path, len(data))
        return data
