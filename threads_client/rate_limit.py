"""
Rate limiting utilities and retry/backoff configuration.

The limiter never throttles on quota headers alone; it only blocks callers
after the API has answered with HTTP 429.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping

from threads_client.cancellation import CancellationToken, Sleeper, cancellable_sleep
from threads_client.exceptions import ConfigurationError
from threads_client.utils import ReadWriteLock


DEFAULT_LIMIT = 100
DEFAULT_WINDOW = timedelta(hours=1)
RECURRENCE_WINDOW = timedelta(minutes=1)
BASE_BACKOFF = 1.0

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup."""

    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


def _parse_int(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return None


@dataclass(slots=True, frozen=True)
class RateLimitInfo:
    """Rate limit metadata parsed from a single response's headers."""

    limit: int | None = None
    remaining: int | None = None
    reset_at: datetime | None = None
    retry_after: float | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo | None":
        """Parse ``X-RateLimit-*`` and ``Retry-After``; ``None`` when none are present."""

        limit = _parse_int(get_header(headers, "X-RateLimit-Limit"))
        remaining = _parse_int(get_header(headers, "X-RateLimit-Remaining"))
        reset_epoch = _parse_int(get_header(headers, "X-RateLimit-Reset"))
        retry_after = _parse_int(get_header(headers, "Retry-After"))

        if limit is None and remaining is None and reset_epoch is None and retry_after is None:
            return None

        reset_at = (
            datetime.fromtimestamp(reset_epoch, tz=timezone.utc) if reset_epoch is not None else None
        )
        return cls(
            limit=limit,
            remaining=remaining,
            reset_at=reset_at,
            retry_after=float(retry_after) if retry_after is not None else None,
        )

    def is_exhausted(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    def seconds_until_reset(self, now: datetime | None = None) -> float | None:
        if self.reset_at is None:
            return None
        current = now or utc_now()
        return max((self.reset_at - current).total_seconds(), 0.0)


@dataclass(slots=True, frozen=True)
class RetryConfig:
    """Retry behaviour for failed requests with exponential backoff."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ConfigurationError("max_retries cannot be negative.")
        if self.initial_delay <= 0 or self.max_delay <= 0:
            raise ConfigurationError("Retry delays must be positive.")
        if self.initial_delay > self.max_delay:
            raise ConfigurationError("initial_delay cannot exceed max_delay.")
        if self.backoff_factor <= 0:
            raise ConfigurationError("backoff_factor must be positive.")

    def calculate_delay(self, retry: int) -> float:
        """Delay before retry number ``retry`` (0 for the first retry)."""

        try:
            delay = self.initial_delay * (self.backoff_factor ** retry)
        except OverflowError:
            return self.max_delay
        return min(delay, self.max_delay)


@dataclass(slots=True, frozen=True)
class RateLimitStatus:
    """Snapshot of the limiter's window."""

    limit: int
    remaining: int
    reset_time: datetime
    reset_in: timedelta


class RateLimiter:
    """Tracks the quota window and blocks callers after an explicit 429."""

    def __init__(
        self,
        *,
        initial_limit: int = DEFAULT_LIMIT,
        backoff_multiplier: float = 2.0,
        max_backoff: float = 300.0,
        clock: Clock = utc_now,
        sleep: Sleeper = cancellable_sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._lock = ReadWriteLock()
        self._clock = clock
        self._sleep = sleep
        self._logger = logger or logging.getLogger(__name__)
        self.backoff_multiplier = backoff_multiplier if backoff_multiplier > 0 else 2.0
        self.max_backoff = max_backoff if max_backoff > 0 else 300.0

        self._initial_limit = initial_limit if initial_limit > 0 else DEFAULT_LIMIT
        self._limit = self._initial_limit
        self._remaining = self._initial_limit
        self._reset_time = clock() + DEFAULT_WINDOW
        self._rate_limited = False
        self._last_rate_limit_time: datetime | None = None
        self._rate_limit_streak = 0

    def should_wait(self) -> bool:
        """True only while a 429-triggered window is still open."""

        now = self._clock()
        with self._lock.read():
            if not self._rate_limited:
                return False
            if now < self._reset_time:
                return True

        with self._lock.write():
            if self._rate_limited and self._clock() >= self._reset_time:
                self._rate_limited = False
            return self._rate_limited

    def wait(self, cancel: CancellationToken | None = None) -> None:
        """Block until the rate-limited window has reset."""

        with self._lock.write():
            now = self._clock()
            if now >= self._reset_time:
                self._remaining = self._limit
                self._reset_time = now + DEFAULT_WINDOW
                self._rate_limited = False
                self._logger.debug(
                    "Rate limit window reset limit=%s remaining=%s reset_time=%s",
                    self._limit,
                    self._remaining,
                    self._reset_time.isoformat(),
                )
                return

            if not self._rate_limited:
                return

            wait_seconds = (self._reset_time - now).total_seconds()
            if (
                self._last_rate_limit_time is not None
                and now - self._last_rate_limit_time < RECURRENCE_WINDOW
            ):
                wait_seconds += self._calculate_backoff()

            self._logger.info(
                "API rate limit enforced, waiting wait_seconds=%.3f remaining=%s reset_time=%s reason=received_429_from_api",
                wait_seconds,
                self._remaining,
                self._reset_time.isoformat(),
            )

        self._sleep(wait_seconds, cancel)

        with self._lock.write():
            self._rate_limited = False

    def update_from_headers(self, info: RateLimitInfo | None) -> None:
        """Record advisory quota headers; never starts a wait by itself."""

        if info is None:
            return

        with self._lock.write():
            if info.limit is not None and info.limit > 0:
                self._limit = info.limit
            if info.remaining is not None and info.remaining >= 0:
                self._remaining = info.remaining
            if info.reset_at is not None:
                self._reset_time = info.reset_at

        self._logger.debug(
            "Rate limit updated limit=%s remaining=%s reset_time=%s",
            info.limit,
            info.remaining,
            info.reset_at.isoformat() if info.reset_at else None,
        )

    def mark_rate_limited(self, reset_time: datetime | None = None) -> None:
        """Enter the rate-limited state after the API answered 429."""

        with self._lock.write():
            now = self._clock()
            if (
                self._last_rate_limit_time is not None
                and now - self._last_rate_limit_time < RECURRENCE_WINDOW
            ):
                self._rate_limit_streak += 1
            else:
                self._rate_limit_streak = 1
            self._rate_limited = True
            self._last_rate_limit_time = now
            if reset_time is not None:
                self._reset_time = reset_time
            reset_at = self._reset_time

        self._logger.info("Marked as rate limited by API reset_time=%s", reset_at.isoformat())

    def get_status(self) -> RateLimitStatus:
        with self._lock.read():
            return RateLimitStatus(
                limit=self._limit,
                remaining=self._remaining,
                reset_time=self._reset_time,
                reset_in=self._reset_time - self._clock(),
            )

    def is_rate_limited(self) -> bool:
        with self._lock.read():
            return self._rate_limited and self._clock() < self._reset_time

    def is_near_limit(self, threshold: float) -> bool:
        """Informational: fraction of the quota used is at least ``threshold``."""

        with self._lock.read():
            if self._limit <= 0:
                return False
            used = (self._limit - self._remaining) / self._limit
            return used >= threshold

    def reset(self) -> None:
        with self._lock.write():
            self._limit = self._initial_limit
            self._remaining = self._initial_limit
            self._reset_time = self._clock() + DEFAULT_WINDOW
            self._rate_limited = False
            self._last_rate_limit_time = None
            self._rate_limit_streak = 0

    def _calculate_backoff(self) -> float:
        try:
            backoff = BASE_BACKOFF * (self.backoff_multiplier ** self._rate_limit_streak)
        except OverflowError:
            return self.max_backoff
        return min(backoff, self.max_backoff)
