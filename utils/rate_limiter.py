# DEPENDENCIES
import math
import time
import threading
from typing import Dict
from typing import Tuple
from typing import Callable
from utils.logger import log_info
from services.errors import RateLimitExceeded


class FixedWindowRateLimiter:
    """
    One request per key per cooldown window

    Owned by the request-handling layer; the analysis core never sees it
    """
    def __init__(self, cooldown_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.cooldown_seconds = cooldown_seconds
        self.clock            = clock
        self._last_seen       : Dict[str, float] = dict()
        self._lock            = threading.Lock()


    def remaining(self, key: str) -> int:
        """
        Whole seconds until `key` may be used again (0 when allowed)
        """
        with self._lock:
            return self._remaining(key, self.clock())


    def check(self, key: str):
        """
        Record a hit for `key`; raises RateLimitExceeded while its window is open
        """
        with self._lock:
            now       = self.clock()
            remaining = self._remaining(key, now)

            if (remaining > 0):
                log_info("Rate limit hit", retry_after = remaining)
                raise RateLimitExceeded(retry_after = remaining)

            self._last_seen[key] = now
            self._evict(now)


    def _remaining(self, key: str, now: float) -> int:
        last = self._last_seen.get(key)

        if last is None:
            return 0

        return max(0, math.ceil(self.cooldown_seconds - (now - last)))


    def _evict(self, now: float):
        expired = [key for key, seen in self._last_seen.items() if (now - seen) >= self.cooldown_seconds]

        for key in expired:
            del self._last_seen[key]


class TokenBucketRateLimiter:
    """
    Per-key token bucket: `capacity` burst, refilled at `refill_rate` tokens per second
    """
    def __init__(self, capacity: float = 10, refill_rate: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.capacity    = capacity
        self.refill_rate = refill_rate
        self.clock       = clock
        self._buckets    : Dict[str, Tuple[float, float]] = dict()
        self._lock       = threading.Lock()


    def check(self, key: str):
        """
        Take one token for `key`; raises RateLimitExceeded when the bucket is empty
        """
        with self._lock:
            now               = self.clock()
            tokens, refilled  = self._buckets.get(key, (self.capacity, now))
            tokens            = min(self.capacity, tokens + (now - refilled) * self.refill_rate)

            if (tokens < 1):
                self._buckets[key] = (tokens, now)
                retry_after        = math.ceil((1 - tokens) / self.refill_rate)

                log_info("Rate limit hit", retry_after = retry_after)
                raise RateLimitExceeded(retry_after = retry_after)

            self._buckets[key] = (tokens - 1, now)
            self._evict(now)


    def _evict(self, now: float):
        """
        Drop buckets that have refilled to capacity; a missing bucket starts full
        """
        refilled = [key for key, (tokens, last) in self._buckets.items() if (tokens + (now - last) * self.refill_rate) >= self.capacity]

        for key in refilled:
            del self._buckets[key]
