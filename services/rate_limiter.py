# services/rate_limiter.py
from __future__ import annotations
from abc import ABC, abstractmethod
from collections import deque
import time
from typing import Deque, Dict, Hashable, Optional


class RateLimiter(ABC):
    """Check-and-record in one call, so the caller never sees a half-applied limit."""

    @abstractmethod
    def acquire(self, key: Hashable, now: Optional[float] = None) -> Optional[float]:
        """Record a hit for `key` and return its stamp, or None if `key` is at its limit."""

    @abstractmethod
    def release(self, key: Hashable, stamp: float) -> None:
        """Give back a hit recorded by `acquire` (e.g. the request failed before it was accepted)."""

    def check(self, key: Hashable, now: Optional[float] = None) -> bool:
        return self.acquire(key, now) is not None


class SlidingWindowRateLimiter(RateLimiter):
    """
    Per-key sliding window kept in process memory.

    Not persisted and not shared between processes: each server instance
    enforces its own limit. Within one event loop `acquire` never awaits, so
    count-then-record cannot interleave. Keys with no hits left in the window
    are dropped.
    """

    def __init__(self, limit: int = 5, window_seconds: float = 60.0, clock=time.monotonic):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.limit = limit
        self.window = float(window_seconds)
        self.clock = clock
        self._hits: Dict[Hashable, Deque[float]] = {}

    def __len__(self) -> int:
        return len(self._hits)

    def _prune(self, key: Hashable, now: float) -> Deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        while hits and now - hits[0] >= self.window:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def acquire(self, key: Hashable, now: Optional[float] = None) -> Optional[float]:
        now = self.clock() if now is None else now
        hits = self._prune(key, now)
        if len(hits) >= self.limit:
            return None
        hits.append(now)
        self._hits[key] = hits
        return now

    def release(self, key: Hashable, stamp: float) -> None:
        hits = self._hits.get(key)
        if not hits:
            return
        try:
            hits.remove(stamp)
        except ValueError:
            pass
        if not hits:
            del self._hits[key]

    def hits(self, key: Hashable, now: Optional[float] = None) -> int:
        now = self.clock() if now is None else now
        return len(self._prune(key, now))
