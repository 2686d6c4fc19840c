"""
memory-cache Python package.

A bounded, thread-safe in-memory key-value cache with least-recently-used
eviction and an optional idle-time sweep. See README.md for usage.
"""

from .__version__ import __version__
from .cache import Cache, CacheStats
from .config.models import CacheConfig, EnvSettings
from .utils.memoize import memoize

__all__ = [
    "__version__",
    "Cache",
    "CacheConfig",
    "CacheStats",
    "EnvSettings",
    "memoize",
]
