import logging
import math
import time
from collections import defaultdict, deque
from threading import Lock
from typing import Tuple

from fastapi import Request, Response

from soundscore.core.config import settings
from soundscore.core.exceptions import RateLimitError

logger = logging.getLogger("soundscore.security")

# bucket -> (requests allowed, window in seconds)
RATE_LIMITS = {
    "general": (1000, 15 * 60),
    "auth": (5, 15 * 60),
    "create": (200, 60 * 60),
    "search": (30, 60),
    "import": (10, 60 * 60),
    "comments": (200, 60 * 60),
    "ratings": (300, 60 * 60),
    "reports": (10, 24 * 60 * 60),
}


class InMemoryRateLimiter:
    """Sliding-window limiter kept in process memory."""

    def __init__(self):
        self._events = defaultdict(deque)
        self._lock = Lock()

    def hit(self, key: str, limit: int, window_seconds: int) -> Tuple[bool, int, int]:
        """Record a request. Returns (allowed, remaining, seconds until a slot frees up)."""
        if limit <= 0 or window_seconds <= 0:
            return False, 0, window_seconds

        now = time.monotonic()
        cutoff = now - window_seconds

        with self._lock:
            events = self._events[key]
            while events and events[0] <= cutoff:
                events.popleft()

            if len(events) >= limit:
                reset = math.ceil(events[0] + window_seconds - now)
                return False, 0, max(reset, 1)

            events.append(now)
            reset = math.ceil(events[0] + window_seconds - now)
            return True, limit - len(events), reset

    def reset(self) -> None:
        with self._lock:
            self._events.clear()


limiter = InMemoryRateLimiter()


def get_client_identifier(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop."""
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    if forwarded_for:
        first_ip = forwarded_for.split(",", 1)[0].strip()
        if first_ip:
            return first_ip
    return request.client.host if request.client else "unknown"


def rate_limit(bucket: str):
    """Dependency factory: ``Depends(rate_limit("comments"))``."""
    limit, window = RATE_LIMITS[bucket]

    async def check_rate_limit(request: Request, response: Response) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        client = get_client_identifier(request)
        allowed, remaining, reset = limiter.hit(f"{bucket}:{client}", limit, window)
        headers = {
            "X-RateLimit-Limit": str(limit),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(reset),
        }
        if not allowed:
            logger.warning(f"Rate limit '{bucket}' exceeded by {client} on {request.url.path}")
            raise RateLimitError(headers={**headers, "Retry-After": str(reset)})
        response.headers.update(headers)

    return check_rate_limit
