"""Module to populate the cache ahead of request traffic."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from .lookup import LookupEngine

STATUS_CACHED: Final[str] = "cached"
STATUS_SKIPPED: Final[str] = "skipped"
STATUS_ERROR: Final[str] = "error"

log = logging.getLogger("sheetcache/warm")


@dataclass(frozen=True, kw_only=True)
class WarmOutcome:
    """
    Result of warming a single source.

    Attributes:
        source_key: the warmed source
        status: one of "cached", "skipped" or "error"
        row_count: number of data rows (None on error or blank key)
        fetch_seconds: time spent fetching bytes (None unless cached)
        total_seconds: time spent on this source
        error: error message (None unless status is "error")
    """

    source_key: str
    status: str
    row_count: int | None = None
    fetch_seconds: float | None = None
    total_seconds: float = 0.0
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_key": self.source_key,
            "status": self.status,
            "row_count": self.row_count,
            "fetch_seconds": self.fetch_seconds,
            "total_seconds": self.total_seconds,
            "error": self.error,
        }


@dataclass(frozen=True, kw_only=True)
class WarmReport:
    """Aggregate result of warming a batch of sources."""

    outcomes: list[WarmOutcome] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def cached(self) -> int:
        return sum(1 for item in self.outcomes if item.status == STATUS_CACHED)

    @property
    def skipped(self) -> int:
        return sum(1 for item in self.outcomes if item.status == STATUS_SKIPPED)

    @property
    def errors(self) -> list[WarmOutcome]:
        return [item for item in self.outcomes if item.status == STATUS_ERROR]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total": self.total,
            "cached": self.cached,
            "skipped": self.skipped,
            "errors": len(self.errors),
            "elapsed_seconds": self.elapsed_seconds,
            "outcomes": [item.to_dict() for item in self.outcomes],
        }


class Warmer:
    """Fetches, decodes and indexes sources that are not validly cached."""

    def __init__(self, engine: LookupEngine) -> None:
        self.engine = engine

    def warm(self, source_keys: Sequence[str]) -> WarmReport:
        """
        Warm every source in order and return the report.

        A failing source is recorded as an error and does not stop the
        remaining ones from being warmed.
        """
        log.info("warming %d sources... start", len(source_keys))
        t0 = time.monotonic()
        outcomes = [self.warm_one(source_key) for source_key in source_keys]
        report = WarmReport(outcomes=outcomes, elapsed_seconds=time.monotonic() - t0)
        log.info(
            "warming %d sources... ok (%d cached, %d skipped, %d errors)",
            report.total,
            report.cached,
            report.skipped,
            len(report.errors),
        )
        return report

    def warm_one(self, source_key: str) -> WarmOutcome:
        """Warm a single source and return its outcome."""
        if not source_key or not source_key.strip():
            return WarmOutcome(source_key=source_key, status=STATUS_SKIPPED)

        t0 = time.monotonic()
        try:
            with self.engine.source_lock(source_key):
                entry = self.engine.store.get(source_key)
                if entry is not None:
                    log.info("%s already cached (%d rows)", source_key, len(entry.rows))
                    return WarmOutcome(
                        source_key=source_key,
                        status=STATUS_SKIPPED,
                        row_count=len(entry.rows),
                        total_seconds=time.monotonic() - t0,
                    )
                entry = self.engine.rebuild(source_key)
        except Exception as exc:
            log.warning("warming %s... failure: %s", source_key, exc)
            return WarmOutcome(
                source_key=source_key,
                status=STATUS_ERROR,
                total_seconds=time.monotonic() - t0,
                error=str(exc),
            )

        log.info("warming %s... ok (%d rows)", source_key, len(entry.rows))
        return WarmOutcome(
            source_key=source_key,
            status=STATUS_CACHED,
            row_count=len(entry.rows),
            fetch_seconds=entry.fetch_seconds,
            total_seconds=time.monotonic() - t0,
        )
