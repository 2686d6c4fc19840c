"""Command-line workload driver for the cache.

Builds a cache from a JSON config file (or ``MEMORY_CACHE_*`` environment
settings), runs a mixed read/write workload against it from several threads,
and prints the resulting statistics as JSON. Useful for eyeballing hit ratios
for a given capacity and key space.

Usage
-----
    python -m memory_cache.cli --capacity 100 --key-space 500 --threads 4
    python -m memory_cache.cli --config cache.json -v
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from .cache import Cache, CacheStats
from .config.models import CacheConfig, EnvSettings
from .observability import setup_logging

logger = logging.getLogger(__name__)


def build_config(
    config_path: Optional[Path] = None,
    capacity: Optional[int] = None,
    ttl_seconds: Optional[float] = None,
    settings: Optional[EnvSettings] = None,
) -> CacheConfig:
    """Resolve the cache config: file or environment, then CLI overrides.

    Raises
    ------
    pydantic.ValidationError
        If the resulting values are out of range.
    OSError
        If the config file cannot be read.
    """
    if config_path is not None:
        cfg = CacheConfig.load(config_path)
    else:
        cfg = (settings or EnvSettings()).to_cache_config()

    overrides = {}
    if capacity is not None:
        overrides["capacity"] = capacity
    if ttl_seconds is not None:
        overrides["ttl_seconds"] = ttl_seconds
    if overrides:
        cfg = CacheConfig.model_validate({**cfg.model_dump(), **overrides})
    return cfg


def run_workload(
    cache: Cache,
    threads: int = 4,
    operations: int = 10000,
    key_space: int = 1000,
    read_ratio: float = 0.8,
    seed: int = 0,
) -> CacheStats:
    """Hammer ``cache`` from ``threads`` threads and return its statistics.

    Each thread performs ``operations`` calls; a call is a lookup with
    probability ``read_ratio`` and an upsert otherwise. Keys are drawn
    uniformly from ``range(key_space)``.
    """

    def worker(worker_id: int) -> None:
        rng = random.Random(seed + worker_id)
        for _ in range(operations):
            key = rng.randrange(key_space)
            if rng.random() < read_ratio:
                cache.try_get_value(key)
            else:
                cache.add_or_update(key, f"value-{worker_id}-{key}")

    pool: List[threading.Thread] = [
        threading.Thread(target=worker, args=(i,), name=f"workload-{i}")
        for i in range(threads)
    ]
    for t in pool:
        t.start()
    for t in pool:
        t.join()

    stats = cache.stats()
    logger.info(
        "workload.finished",
        extra={
            "threads": threads,
            "operations": operations,
            "hit_ratio": round(stats.hit_ratio, 4),
        },
    )
    return stats


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint; returns the process exit code."""
    parser = argparse.ArgumentParser(description="memory-cache workload driver")
    parser.add_argument("--config", help="Path to JSON cache config")
    parser.add_argument("--capacity", type=int, help="Override cache capacity")
    parser.add_argument(
        "--ttl", type=float, help="Override idle threshold in seconds (0 disables)"
    )
    parser.add_argument("--threads", type=int, default=4, help="Worker threads")
    parser.add_argument(
        "--operations", type=int, default=10000, help="Operations per thread"
    )
    parser.add_argument(
        "--key-space", dest="key_space", type=int, default=1000, help="Distinct keys"
    )
    parser.add_argument(
        "--read-ratio",
        dest="read_ratio",
        type=float,
        default=0.8,
        help="Fraction of operations that are lookups",
    )
    parser.add_argument("--seed", type=int, default=0, help="Random seed")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    args = parser.parse_args(argv)

    try:
        settings = EnvSettings()
    except ValidationError as exc:
        parser.error(f"invalid environment settings: {exc}")

    env_level = settings.log_level.upper()
    effective_level = args.log_level or ("DEBUG" if args.verbose > 0 else env_level)
    setup_logging(effective_level)

    if args.threads < 1 or args.operations < 0 or args.key_space < 1:
        parser.error("--threads and --key-space must be >= 1, --operations >= 0")

    try:
        cfg = build_config(
            Path(args.config) if args.config else None,
            capacity=args.capacity,
            ttl_seconds=args.ttl,
            settings=settings,
        )
    except ValidationError as exc:
        parser.error(f"invalid cache configuration: {exc}")
    except OSError as exc:
        parser.error(f"cannot read config file: {exc}")

    with Cache.from_config(cfg) as cache:
        stats = run_workload(
            cache,
            threads=args.threads,
            operations=args.operations,
            key_space=args.key_space,
            read_ratio=args.read_ratio,
            seed=args.seed,
        )

    print(json.dumps(stats.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
