"""
Simple in-memory fixed-window rate limiter for generation endpoints.

Windows are per user and live in the process only; they are not shared
across instances.
"""
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from studyforge.core.config import (
    RATE_LIMIT_MAX_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
    RATE_LIMIT_MAX_TRACKED_USERS,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int = RATE_LIMIT_MAX_REQUESTS
    window_seconds: float = RATE_LIMIT_WINDOW_SECONDS


@dataclass
class RateLimitWindow:
    count: int
    reset_time: float  # epoch seconds


@dataclass(frozen=True)
class RateLimitStatus:
    remaining: int
    reset_time: datetime


class RateLimiter:
    """
    Fixed-window limiter keyed by user id.

    The first request (or the first one after reset_time) opens a window with
    count=1. Further requests in the window are admitted until count reaches
    max_requests. Bursts at a window boundary are allowed; this limiter sits
    behind the quota gate and is not a billing mechanism.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        max_tracked_users: int = RATE_LIMIT_MAX_TRACKED_USERS,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or RateLimitConfig()
        self.max_tracked_users = max_tracked_users
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    def check_rate_limit(self, user_id: str, config: Optional[RateLimitConfig] = None) -> bool:
        """
        Consume one request slot for the user.

        Args:
            user_id: Authenticated user id
            config: Override for the limiter's default window settings

        Returns:
            True if the request is admitted, False if the window is full
        """
        config = config or self.config
        now = self._clock()

        with self._lock:
            window = self._windows.get(user_id)

            if window is None or now >= window.reset_time:
                if window is None:
                    self._sweep(now)
                self._windows[user_id] = RateLimitWindow(
                    count=1,
                    reset_time=now + config.window_seconds,
                )
                logger.debug(f"Rate limit window opened for user_id={user_id} (1/{config.max_requests})")
                return True

            if window.count >= config.max_requests:
                logger.warning(
                    f"Rate limit exceeded for user_id={user_id} "
                    f"({window.count} requests in {config.window_seconds}s window)"
                )
                return False

            window.count += 1
            logger.debug(f"Rate limit check passed for user_id={user_id} ({window.count}/{config.max_requests})")
            return True

    def get_rate_limit_status(self, user_id: str, config: Optional[RateLimitConfig] = None) -> RateLimitStatus:
        """Remaining slots and window reset time; does not consume a slot."""
        config = config or self.config
        now = self._clock()

        with self._lock:
            window = self._windows.get(user_id)
            if window is None or now >= window.reset_time:
                remaining = config.max_requests
                reset_time = now + config.window_seconds
            else:
                remaining = max(0, config.max_requests - window.count)
                reset_time = window.reset_time

        return RateLimitStatus(
            remaining=remaining,
            reset_time=datetime.fromtimestamp(reset_time, tz=timezone.utc),
        )

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def _sweep(self, now: float) -> None:
        # Caller holds the lock
        if len(self._windows) < self.max_tracked_users:
            return
        expired = [user_id for user_id, window in self._windows.items() if now >= window.reset_time]
        for user_id in expired:
            del self._windows[user_id]
        logger.info(f"Swept {len(expired)} expired rate limit windows ({len(self._windows)} active)")
