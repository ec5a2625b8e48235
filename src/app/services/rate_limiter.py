"""In-memory sliding window rate limiter

Keyed by an arbitrary string (e.g. ``backup:<user_id>``). Entries whose
timestamps have all left the window are dropped on the next check.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List


@dataclass(frozen=True)
class RateLimitDecision:
    limited: bool
    retry_after_seconds: int = 0


class SlidingWindowRateLimiter:

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._hits: Dict[str, List[float]] = {}

    def hit(self, key: str) -> RateLimitDecision:
        """Record a request for ``key`` unless it is over the limit"""
        now = self._clock()
        self._evict(now)

        timestamps = self._hits.get(key, [])
        if len(timestamps) >= self.max_requests:
            retry_after = math.ceil(timestamps[0] + self.window_seconds - now)
            return RateLimitDecision(limited=True, retry_after_seconds=max(retry_after, 1))

        timestamps.append(now)
        self._hits[key] = timestamps
        return RateLimitDecision(limited=False)

    def reset(self, key: str) -> None:
        self._hits.pop(key, None)

    def _evict(self, now: float) -> None:
        for key in list(self._hits):
            fresh = [t for t in self._hits[key] if now - t < self.window_seconds]
            if fresh:
                self._hits[key] = fresh
            else:
                del self._hits[key]
