"""
security/rate_limiter.py
-------------------------
Rate limiting middleware to prevent API abuse.
Limits the number of updates a user can send within a time window.
"""

import threading
import time
from collections import defaultdict
from functools import wraps
from typing import Callable

from utils.logger import get_logger

logger = get_logger(__name__)

RATE_LIMIT_TEXT = "⚠️ You're sending messages too quickly. Please wait a moment and try again."


class RateLimiter:
    """
    Sliding-window counter per user.

    Args:
        max_messages: Updates allowed per window (0 disables the limit).
        window_seconds: Window duration in seconds.
        clock: Monotonic time source (tests pass a fake one).
    """

    def __init__(self, max_messages: int = 30, window_seconds: float = 60,
                 clock: Callable[[], float] = time.monotonic):
        self.max_messages = max_messages
        self.window_seconds = window_seconds
        self._clock = clock
        self._timestamps: dict[int, list[float]] = defaultdict(list)
        self._lock = threading.Lock()

    def _cleanup(self, user_id: int, now: float) -> None:
        """Remove expired timestamps for a user."""
        cutoff = now - self.window_seconds
        self._timestamps[user_id] = [t for t in self._timestamps[user_id] if t > cutoff]

    def hit(self, user_id: int) -> bool:
        """
        Record one update from `user_id`.

        Returns:
            False if the user is over the limit (the update is not counted).
        """
        if self.max_messages <= 0:
            return True
        now = self._clock()
        with self._lock:
            self._cleanup(user_id, now)
            if len(self._timestamps[user_id]) >= self.max_messages:
                return False
            self._timestamps[user_id].append(now)
            return True


def rate_limited(func: Callable):
    """
    Decorator that enforces rate limiting per user.

    Usage:
        @rate_limited
        async def my_handler(ctx, update):
            ...

    Behavior:
        - Counts updates through `ctx.rate_limiter`.
        - If exceeded, replies with a warning and blocks the handler.
    """
    @wraps(func)
    async def wrapper(ctx, update, *args, **kwargs):
        if not ctx.rate_limiter.hit(update.user_id):
            logger.warning(f"⚠️ Rate limit hit for user {update.user_id}")
            await ctx.reply(update, RATE_LIMIT_TEXT)
            return
        return await func(ctx, update, *args, **kwargs)

    return wrapper
