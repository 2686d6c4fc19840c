"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like
``import memory_cache`` resolve correctly regardless of the working directory
pytest chooses, and provides shared fixtures for driving time and checking
the recency list structure.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


def _check_invariants(cache) -> None:
    """Walk the recency list both ways and compare it against the index."""
    forward = []
    node = cache._head
    while node is not None:
        forward.append(node)
        assert len(forward) <= cache.count, "cycle in forward links"
        node = node.next

    backward = []
    node = cache._tail
    while node is not None:
        backward.append(node)
        assert len(backward) <= cache.count, "cycle in backward links"
        node = node.previous

    assert len(forward) == cache.count
    assert backward == list(reversed(forward))
    assert len({id(n) for n in forward}) == cache.count
    assert len(cache._index) == cache.count
    for key, node in cache._index.items():
        assert node.key == key
        assert node in forward
    assert 0 <= cache.count <= cache.capacity
    if cache.count == 0:
        assert cache._head is None and cache._tail is None
    else:
        assert cache._head.previous is None
        assert cache._tail.next is None


@pytest.fixture
def check_invariants():
    """Return a callable asserting the cache's structural invariants."""
    return _check_invariants
