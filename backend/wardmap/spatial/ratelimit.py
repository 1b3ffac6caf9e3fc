"""
Rate limiter for viewport-driven work.

Map widgets report region changes in bursts while the user pans.
``RateLimiter`` lets the first call in a window through, remembers only
the most recent call made inside the window, and replays it on
``poll()`` once the window has elapsed or on ``flush()`` immediately.
The clock is injectable so tests stay deterministic.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Collapse bursts of calls to ``func`` into at most one invocation per
    ``interval`` seconds.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self._func = func
        self.interval = interval
        self._clock = clock
        self._last_call: float | None = None
        self._pending: tuple[tuple, dict] | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def _window_open(self) -> bool:
        return self._last_call is None or self._clock() - self._last_call >= self.interval

    def _invoke(self, args: tuple, kwargs: dict) -> Any:
        self._pending = None
        self._last_call = self._clock()
        return self._func(*args, **kwargs)

    def trigger(self, *args: Any, **kwargs: Any) -> bool:
        """
        Request an invocation.  Returns True when ``func`` ran now,
        False when the call was deferred.
        """
        if self._window_open():
            self._invoke(args, kwargs)
            return True
        self._pending = (args, kwargs)
        return False

    def poll(self) -> bool:
        """Run the deferred call if its window has elapsed."""
        if self._pending is not None and self._window_open():
            args, kwargs = self._pending
            self._invoke(args, kwargs)
            return True
        return False

    def flush(self) -> Any:
        """Run the deferred call now, ignoring the window."""
        if self._pending is None:
            return None
        args, kwargs = self._pending
        return self._invoke(args, kwargs)

    def cancel(self) -> None:
        """Drop the deferred call, if any."""
        if self._pending is not None:
            logger.debug("Dropping deferred %s call", getattr(self._func, "__name__", "rate-limited"))
        self._pending = None
