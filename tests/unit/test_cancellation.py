from __future__ import annotations

import threading
import time

import pytest

from threads_client.cancellation import CancellationToken, cancellable_sleep
from threads_client.exceptions import OperationCancelled


def test_cancel_during_sleep_returns_promptly() -> None:
    token = CancellationToken()
    timer = threading.Timer(0.05, token.cancel)
    timer.start()

    started = time.monotonic()
    with pytest.raises(OperationCancelled):
        cancellable_sleep(30.0, token)
    elapsed = time.monotonic() - started

    timer.join()
    assert elapsed < 2.0


def test_deadline_cuts_sleep_short() -> None:
    token = CancellationToken(timeout=0.05)

    started = time.monotonic()
    with pytest.raises(OperationCancelled, match="deadline"):
        token.sleep(30.0)

    assert time.monotonic() - started < 2.0
    assert token.cancelled is True


def test_already_cancelled_token_does_not_sleep() -> None:
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelled):
        cancellable_sleep(30.0, token)


def test_sleep_completes_without_cancellation() -> None:
    token = CancellationToken()

    token.sleep(0.01)

    assert token.cancelled is False
    assert token.remaining() is None


def test_remaining_counts_down() -> None:
    token = CancellationToken(timeout=10.0)

    remaining = token.remaining()

    assert remaining is not None and 0 < remaining <= 10.0
