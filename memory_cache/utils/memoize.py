"""Memoize function calls through a :class:`~memory_cache.cache.Cache`.

Call arguments are turned into cache keys with :func:`cachetools.keys.hashkey`
by default, so positional and keyword arguments both participate in the key.
"""

from __future__ import annotations

import functools
from collections.abc import Hashable
from typing import Any, Callable, TypeVar

from cachetools.keys import hashkey

from ..cache import Cache

F = TypeVar("F", bound=Callable[..., Any])


def memoize(
    cache: Cache, key: Callable[..., Hashable] = hashkey
) -> Callable[[F], F]:
    """Decorator caching the results of a function in ``cache``.

    Parameters
    ----------
    cache : Cache
        Target cache. It may be shared between several functions as long as
        their keys do not collide.
    key : callable
        Builds the cache key from the call arguments.

    Notes
    -----
    A cached ``None`` counts as a hit. Two threads missing on the same key at
    the same time both call the wrapped function; the later result wins.

    Examples
    --------
    >>> squares = Cache(capacity=128)
    >>> @memoize(squares)
    ... def square(x):
    ...     return x * x
    >>> square(4)
    16
    >>> squares.count
    1
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            k = key(*args, **kwargs)
            found, value = cache.try_get_value(k)
            if found:
                return value
            value = func(*args, **kwargs)
            cache.add_or_update(k, value)
            return value

        wrapper.cache = cache  # type: ignore[attr-defined]
        wrapper.cache_key = key  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    return decorator
