import asyncio
import logging
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict

from fastapi import HTTPException, Request, status

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window hit counter keyed by ``scope:client``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()

    async def hit(self, key: str, limit: int, window: int) -> float:
        """Record a hit and return 0, or the seconds to wait when the window is full."""
        now = self._clock()
        async with self._lock:
            bucket = self._hits[key]
            while bucket and now - bucket[0] >= window:
                bucket.popleft()
            if len(bucket) >= limit:
                return max(1.0, window - (now - bucket[0]))
            bucket.append(now)
            return 0.0

    def reset(self, scope: str = "") -> None:
        if not scope:
            self._hits.clear()
            return
        for key in [key for key in self._hits if key.startswith(f"{scope}:")]:
            del self._hits[key]


limiter = RateLimiter()


def client_address(request: Request) -> str:
    return request.client.host if request.client else "anonymous"


def rate_limit_dependency(scope: str, limit: int, window_seconds: int) -> Callable[[Request], None]:
    async def dependency(request: Request) -> None:
        address = client_address(request)
        retry_after = await limiter.hit(f"{scope}:{address}", limit, window_seconds)
        if retry_after:
            logger.warning("Rate limit hit for %s from %s", scope, address)
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many attempts. Try again later.",
                headers={"Retry-After": str(int(retry_after))},
            )

    return dependency
