"""Config models and loader.

This module defines Pydantic models for file- and environment-based cache
configuration. Out-of-range values are rejected by validation, so a cache
built from a loaded config never starts with a zero or negative capacity.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CAPACITY = 1024
DEFAULT_SWEEP_INTERVAL_SECONDS = 6.0


class CacheConfig(BaseModel):
    """Configuration for a single cache instance.

    Attributes
    ----------
    capacity: int
        Maximum number of live entries.
    ttl_seconds: Optional[float]
        Idle threshold for the background sweep. ``None`` or ``0`` disables
        the sweep.
    sweep_interval_seconds: float
        Period between two sweeps when a TTL is set.
    """

    capacity: int = Field(..., ge=1, description="Maximum number of entries")
    ttl_seconds: Optional[float] = Field(
        None, ge=0, description="Idle time after which entries are purged"
    )
    sweep_interval_seconds: float = Field(
        DEFAULT_SWEEP_INTERVAL_SECONDS,
        gt=0,
        description="Seconds between background sweeps",
    )

    @property
    def sweep_enabled(self) -> bool:
        return bool(self.ttl_seconds)

    @staticmethod
    def load(path: Path) -> "CacheConfig":
        """Load cache config from a JSON file."""
        return CacheConfig.model_validate_json(path.read_bytes())


class EnvSettings(BaseSettings):
    """Environment-driven settings and .env support.

    Attributes
    ----------
    log_level: str
        Logging level name (e.g., "DEBUG", "INFO"). Defaults to "INFO".
    capacity: int
        Cache capacity. Defaults to 1024.
    ttl_seconds: Optional[float]
        Idle threshold in seconds; unset disables the sweep.
    sweep_interval_seconds: float
        Period between two sweeps. Defaults to 6 seconds.
    """

    model_config = SettingsConfigDict(env_file=".env", env_prefix="MEMORY_CACHE_")

    log_level: str = Field("INFO")
    capacity: int = Field(DEFAULT_CAPACITY, ge=1)
    ttl_seconds: Optional[float] = Field(None, ge=0)
    sweep_interval_seconds: float = Field(DEFAULT_SWEEP_INTERVAL_SECONDS, gt=0)

    def to_cache_config(self) -> CacheConfig:
        return CacheConfig(
            capacity=self.capacity,
            ttl_seconds=self.ttl_seconds,
            sweep_interval_seconds=self.sweep_interval_seconds,
        )
