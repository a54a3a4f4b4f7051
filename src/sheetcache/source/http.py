"""Module containing the HTTP blob source."""

from __future__ import annotations

import io
import logging
from urllib.error import HTTPError, URLError
from urllib.request import urlopen

from tqdm import tqdm

from .base import SourceNotFoundError, SourceUnavailableError

log = logging.getLogger("sheetcache/source/http")


class HTTPBlobSource:
    """
    Blob source downloading public or signed http(s) URLs.

    Set progress=True to display a tqdm progress bar while downloading,
    which is useful when warming from the command line.
    """

    def __init__(self, *, timeout: float = 60.0, progress: bool = False) -> None:
        self.timeout = timeout
        self.progress = progress

    def fetch_bytes(self, source_key: str) -> bytes:
        try:
            log.info("fetching %s... start", source_key)
            data = self._fetch(source_key)
            log.info("fetching %s... ok (%d bytes)", source_key, len(data))
            return data
        except HTTPError as exc:
            log.warning("fetching %s... failure: %s", source_key, exc)
            if exc.code == 404:
                raise SourceNotFoundError(f"no such source: {source_key}") from exc
            raise SourceUnavailableError(f"cannot fetch {source_key}: {exc}") from exc
        except (URLError, OSError) as exc:
            log.warning("fetching %s... failure: %s", source_key, exc)
            raise SourceUnavailableError(f"cannot fetch {source_key}: {exc}") from exc

    def _fetch(self, source_key: str) -> bytes:
        buffer = io.BytesIO()
        with urlopen(source_key, timeout=self.timeout) as response:
            total = response.headers.get("Content-Length")
            total = int(total) if total is not None else None

            with tqdm(
                total=total,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                desc=source_key.rsplit("/", 1)[-1],
                leave=False,
                disable=not self.progress,
            ) as pbar:
                while True:
                    chunk = response.read(8192)
                    if not chunk:
                        break
                    buffer.write(chunk)
                    pbar.update(len(chunk))

        return buffer.getvalue()
