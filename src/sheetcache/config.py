"""
Engine configuration.

Settings come from an optional YAML file such as:

    version: 0
    ttl_seconds: 86400
    sweep_interval_seconds: 600
    primary_columns: [registration_number, registrationNumber]
    secondary_columns: [chasis_number, chassisNumber]
    local_root: ./sheets
    gcs_bucket: fleet-uploads
    progress: false
    log_level: WARNING

and from SHEETCACHE_* environment variables (e.g. SHEETCACHE_TTL_SECONDS),
with values from the file taking precedence. Every field is optional and
falls back to the defaults; version must be 0 when given.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .keys import DEFAULT_PRIMARY_COLUMNS, DEFAULT_SECONDARY_COLUMNS, KeyColumns
from .lookup import LookupEngine
from .source import DispatchingBlobSource, GCSBlobSource, HTTPBlobSource, LocalBlobSource
from .store import DEFAULT_SWEEP_INTERVAL_SECONDS, DEFAULT_TTL_SECONDS, CacheStore, Sweeper


class EngineConfig(BaseSettings):
    """
    Tunables of the lookup engine and of its blob sources.

    Attributes:
        version: configuration format version (only 0 is supported)
        ttl_seconds: maximum age of a cache entry
        sweep_interval_seconds: period of the expired entries sweep
        primary_columns: aliases of the primary key column
        secondary_columns: aliases of the secondary key column
        local_root: root directory for local source keys (default: cwd)
        gcs_bucket: bucket for GCS source keys (GCS disabled when None)
        progress: whether HTTP downloads show a progress bar
        log_level: CLI logging level name (-v forces DEBUG)
    """

    version: int = 0
    ttl_seconds: float = Field(default=DEFAULT_TTL_SECONDS, gt=0)
    sweep_interval_seconds: float = Field(default=DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)
    primary_columns: list[str] = Field(default=list(DEFAULT_PRIMARY_COLUMNS), min_length=1)
    secondary_columns: list[str] = Field(default=list(DEFAULT_SECONDARY_COLUMNS), min_length=1)
    local_root: str | None = None
    gcs_bucket: str | None = None
    progress: bool = False
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        env_prefix="SHEETCACHE_",
        extra="forbid",
        frozen=True,
    )

    @field_validator("version")
    @classmethod
    def validate_version(cls, v):
        if v != 0:
            raise ValueError(f"Unsupported config version: {v} (only 0 supported)")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    def key_columns(self) -> KeyColumns:
        return KeyColumns(
            primary=tuple(self.primary_columns),
            secondary=tuple(self.secondary_columns),
        )

    def blob_source(self) -> DispatchingBlobSource:
        """Return a blob source handling local, http(s) and GCS keys."""
        return DispatchingBlobSource(
            local=LocalBlobSource(root=self.local_root),
            http=HTTPBlobSource(progress=self.progress),
            gcs=GCSBlobSource(bucket=self.gcs_bucket) if self.gcs_bucket else None,
        )

    def engine(self) -> LookupEngine:
        """Return a LookupEngine with a fresh store."""
        return LookupEngine(
            source=self.blob_source(),
            store=CacheStore(ttl_seconds=self.ttl_seconds),
            key_columns=self.key_columns(),
        )

    def sweeper(self, store: CacheStore) -> Sweeper:
        """Return a (not yet started) Sweeper for store."""
        return Sweeper(store, interval_seconds=self.sweep_interval_seconds)


def load_config(config_path: str | Path | None = None) -> EngineConfig:
    """
    Load the configuration from a YAML file and the environment.

    Uses only the environment and the defaults when config_path is None.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file is not valid YAML or has invalid fields.
    """
    data = {}
    if config_path is not None:
        content = Path(config_path).read_text()
        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Engine config must be a mapping.")

    try:
        return EngineConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid engine config: {exc}") from exc
