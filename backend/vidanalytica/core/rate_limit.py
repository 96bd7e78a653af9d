from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable

from fastapi import Request

from vidanalytica.core.config import settings
from vidanalytica.core.errors import RateLimitError


@dataclass
class _Bucket:
    tokens: float
    updated_at: float
    limit: float
    rate: float

    def level(self, now: float) -> float:
        return min(self.limit, self.tokens + (now - self.updated_at) * self.rate)


class RateLimiter:
    """
    In-process token bucket limiter.
    Keys should include both scope and identity (e.g. "auth:login:1.2.3.4").

    A bucket that has refilled to its limit is indistinguishable from a
    missing one, so such buckets are swept out every `sweep_interval` seconds.
    """

    def __init__(self, *, sweep_interval: float = 60.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._buckets)

    def allow(self, key: str, *, limit: int, per_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._sweep_interval:
                self._sweep(now)
            b = self._buckets.get(key)
            if b is None:
                b = _Bucket(
                    tokens=float(limit),
                    updated_at=now,
                    limit=float(limit),
                    rate=float(limit) / float(per_seconds),
                )
                self._buckets[key] = b
            # refill
            b.tokens = b.level(now)
            b.updated_at = now
            if b.tokens < 1.0:
                return False
            b.tokens -= 1.0
            return True

    def _sweep(self, now: float) -> None:
        full = [key for key, b in self._buckets.items() if b.level(now) >= b.limit]
        for key in full:
            del self._buckets[key]
        self._last_sweep = now

    def reset(self) -> None:
        with self._lock:
            self._buckets.clear()


auth_rate_limiter = RateLimiter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def auth_rate_limit(request: Request) -> None:
    """FastAPI dependency guarding login/register against brute force"""
    key = f"auth:{request.url.path}:{_client_ip(request)}"
    if not auth_rate_limiter.allow(
        key,
        limit=settings.AUTH_RATE_LIMIT,
        per_seconds=settings.AUTH_RATE_WINDOW_SECONDS,
    ):
        raise RateLimitError()
