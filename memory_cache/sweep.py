"""Background driver for the idle-entry sweep.

The sweeper owns a daemon thread that calls a sweep function on a fixed
period until it is stopped. It knows nothing about the cache itself; the
cache hands it a bound :meth:`Cache.purge_idle`.

Bound methods are held through :class:`weakref.WeakMethod`, so a running
sweeper never keeps its owner alive. Once the owner is collected the thread
exits on its next tick.
"""

from __future__ import annotations

import inspect
import logging
import threading
import weakref
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IdleSweeper:
    """Periodically invoke ``sweep`` on a daemon thread.

    Parameters
    ----------
    sweep : callable
        Zero-argument function returning the number of entries it removed.
        A bound method is referenced weakly.
    interval : float
        Seconds between two ticks.
    initial_delay : float, optional
        Seconds before the first tick. Defaults to ``interval``.
    name : str
        Thread name, visible in ``threading.enumerate()``.
    """

    def __init__(
        self,
        sweep: Callable[[], int],
        interval: float,
        initial_delay: Optional[float] = None,
        name: str = "memory-cache-sweeper",
    ):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        if inspect.ismethod(sweep):
            self._sweep_ref: Callable[[], Optional[Callable[[], int]]] = (
                weakref.WeakMethod(sweep)
            )
        else:
            self._sweep_ref = lambda: sweep
        self.interval = interval
        self.initial_delay = interval if initial_delay is None else initial_delay
        self.ticks = 0
        self._stop_event = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    def start(self) -> None:
        """Start the sweeper thread. Raises RuntimeError if started twice."""
        self._thread.start()
        logger.debug(
            "sweeper.started",
            extra={"interval": self.interval, "initial_delay": self.initial_delay},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Signal the thread to exit and wait for it to finish."""
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        logger.debug("sweeper.stopped", extra={"ticks": self.ticks})

    def _run(self) -> None:
        delay = self.initial_delay
        while not self._stop_event.wait(delay):
            delay = self.interval
            if not self._tick():
                logger.debug("sweeper.owner_collected", extra={"ticks": self.ticks})
                return

    def _tick(self) -> bool:
        # No strong reference to the owner may outlive this call.
        sweep = self._sweep_ref()
        if sweep is None:
            return False
        self.ticks += 1
        try:
            sweep()
        except Exception:  # keep sweeping on the next tick
            logger.exception("sweeper.tick_failed", extra={"tick": self.ticks})
        return True
