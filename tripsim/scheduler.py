"""Deterministic timer used to replay simulations without waiting on a wall clock."""
from __future__ import annotations

import heapq
import itertools
import logging
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class TimerHandle:
    """A scheduled callback. Mirrors the ``cancel()`` surface of :class:`asyncio.TimerHandle`."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self._callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def _run(self) -> None:
        self._callback()


class VirtualClockScheduler:
    """Schedule-once-after-delay timer running on a virtual clock.

    ``call_later`` has the same contract as the asyncio event loop method, so a
    :class:`~tripsim.simulation.Simulation` can be driven by either. Time only
    advances when :meth:`run_next` or :meth:`run` fires a callback; callbacks
    due at the same instant fire in the order they were scheduled.
    """

    def __init__(self, start_time: float = 0.0) -> None:
        self._now = start_time
        self._queue: List[Tuple[float, int, TimerHandle]] = []
        self._counter = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[..., None], *args) -> TimerHandle:
        if delay < 0:
            delay = 0.0
        handle = TimerHandle(self._now + delay, lambda: callback(*args))
        heapq.heappush(self._queue, (handle.when, next(self._counter), handle))
        return handle

    def pending(self) -> int:
        """Number of scheduled callbacks that have not been cancelled."""

        return sum(1 for _, _, handle in self._queue if not handle.cancelled())

    def run_next(self) -> bool:
        """Advance to the next live callback and run it. Returns ``False`` when idle."""

        while self._queue:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = max(self._now, when)
            handle._run()
            return True
        return False

    def run(self, until: Optional[float] = None) -> int:
        """Run callbacks in time order until the queue drains or ``until`` is reached.

        Returns the number of callbacks executed.
        """

        executed = 0
        while self._queue:
            when, _, head = self._queue[0]
            if head.cancelled():
                heapq.heappop(self._queue)
                continue
            if until is not None and when > until:
                break
            if self.run_next():
                executed += 1
        if until is not None and until > self._now:
            self._now = until
        logger.debug("Virtual clock at %.3fs after %d callbacks", self._now, executed)
        return executed
