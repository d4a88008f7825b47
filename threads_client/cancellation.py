"""
Cooperative cancellation for the blocking waits performed by the client.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol

from threads_client.exceptions import OperationCancelled


class CancellationToken:
    """Caller-owned token that aborts rate-limit waits, backoff and polling sleeps.

    A token may carry a deadline (``timeout`` seconds from creation); once the
    deadline passes the token behaves as if ``cancel()`` had been called.
    """

    def __init__(self, *, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set() or self._deadline_passed()

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or ``None`` without one."""

        if self._deadline is None:
            return None
        return max(self._deadline - time.monotonic(), 0.0)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation cancelled.")
        if self._deadline_passed():
            raise OperationCancelled("Operation deadline exceeded.")

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds`` or until cancelled, whichever comes first."""

        self.raise_if_cancelled()
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            # Deadline expires before the requested sleep ends.
            self._event.wait(remaining)
            self.raise_if_cancelled()
            raise OperationCancelled("Operation deadline exceeded.")
        if self._event.wait(max(seconds, 0.0)):
            raise OperationCancelled("Operation cancelled.")

    def _deadline_passed(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline


class Sleeper(Protocol):
    """Strategy responsible for sleeping/backing off."""

    def __call__(self, seconds: float, cancel: CancellationToken | None = None) -> None:
        raise NotImplementedError


def cancellable_sleep(seconds: float, cancel: CancellationToken | None = None) -> None:
    if cancel is None:
        time.sleep(max(seconds, 0.0))
        return
    cancel.sleep(seconds)
