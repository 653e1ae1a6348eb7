"""Token-bucket rate limiting for byte streams."""

from __future__ import annotations

import math
import threading
import time
from typing import Any, Callable


class RateLimiter:
    """Token bucket refilled at ``rate`` tokens per second, holding at most ``burst``.

    The bucket starts full.
    """

    def __init__(
        self,
        rate: float,
        burst: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.rate = float(rate)
        self.burst = burst
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._tokens = float(burst)
        self._last = clock()

    def wait(self, n: int) -> None:
        """Block until ``n`` tokens are available and take them."""
        if n <= 0 or math.isinf(self.rate):
            return
        if n > self.burst:
            raise ValueError(f"rate: Wait(n={n}) exceeds limiter's burst {self.burst}")
        with self._lock:
            if self.rate == 0:
                if self._tokens < n:
                    raise ValueError(f"rate: Wait(n={n}) can never be satisfied at rate zero")
                self._tokens -= n
                return
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            self._last = now
            self._tokens -= n
            delay = -self._tokens / self.rate if self._tokens < 0 else 0.0
        if delay > 0:
            self._sleep(delay)


class RateLimitedReader:
    """Reader that takes tokens for the requested size before each read."""

    def __init__(self, source: Any, limiter: RateLimiter) -> None:
        self.source = source
        self.limiter = limiter

    def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; the request must fit within the limiter's burst."""
        if size > 0:
            self.limiter.wait(size)
        return self.source.read(size)


class RateLimitedWriter:
    """Writer that takes tokens in burst-sized chunks before writing."""

    def __init__(self, target: Any, limiter: RateLimiter) -> None:
        self.target = target
        self.limiter = limiter

    def write(self, data: bytes) -> int:
        """Wait for enough tokens for ``data``, then write all of it."""
        data = bytes(data)
        remaining = len(data)
        if remaining and not math.isinf(self.limiter.rate):
            if self.limiter.burst <= 0:
                raise ValueError("limiter burst is zero; nothing can be written")
            while remaining > 0:
                step = min(self.limiter.burst, remaining)
                self.limiter.wait(step)
                remaining -= step
        written = self.target.write(data)
        return len(data) if written is None else written