"""Per-client fixed-window rate limiting.

Counters live in a ``limits`` storage backend (the same engine slowapi
drives), addressed by client key. A window opens on a key's first hit and
resets when it elapses, so up to twice the budget can pass across a window
boundary.
"""

from __future__ import annotations

import logging
import math
import time

from limits import RateLimitItem, parse
from limits.storage import storage_from_string
from limits.strategies import FixedWindowRateLimiter

from personapass.exceptions import RateLimitError

logger = logging.getLogger("personapass.ratelimit")


class RateLimiter:
    """Fixed-window request counter keyed by client address."""

    def __init__(
        self,
        limit: str = "100/minute",
        storage_uri: str = "memory://",
        enabled: bool = True,
        key_prefix: str = "middleware",
    ) -> None:
        self.enabled = enabled
        self.key_prefix = key_prefix
        self._storage = storage_from_string(storage_uri)
        self._strategy = FixedWindowRateLimiter(self._storage)
        self._item: RateLimitItem = parse(limit)

    @property
    def limit(self) -> RateLimitItem:
        return self._item

    def set_limit(self, limit: str) -> None:
        """Replace the limit (counters already recorded are kept)."""
        self._item = parse(limit)

    def consume(self, key: str) -> None:
        """Record one request for ``key``.

        Raises:
            RateLimitError: more than ``limit.amount`` requests were made for
                ``key`` in the current window. ``retry_after`` holds the
                whole seconds until the window resets (at least 1).
        """
        if not self.enabled:
            return
        if self._strategy.hit(self._item, self.key_prefix, key):
            return
        reset_time, _ = self._strategy.get_window_stats(self._item, self.key_prefix, key)
        retry_after = max(1, math.ceil(reset_time - time.time()))
        logger.warning("Rate limit %s exceeded for %s", self._item, key)
        raise RateLimitError(retry_after=retry_after)

    def remaining(self, key: str) -> int:
        return self._strategy.get_window_stats(self._item, self.key_prefix, key).remaining

    def reset(self) -> None:
        """Drop every counter."""
        self._storage.reset()
