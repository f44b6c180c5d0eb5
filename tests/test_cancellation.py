"""Tests for attempt cancellation and deadlines."""

import threading
import time

import pytest

from refsession.auth.cancellation import AttemptCancelled, AttemptTimedOut, CancellationToken


class TestCancellationToken:

    def test_fresh_token(self):
        cancel = CancellationToken()

        assert not cancel.cancelled
        assert not cancel.timed_out
        assert cancel.remaining() is None
        cancel.raise_if_cancelled()

    def test_cancel(self):
        cancel = CancellationToken()
        cancel.cancel()

        assert cancel.cancelled
        with pytest.raises(AttemptCancelled):
            cancel.raise_if_cancelled()

    def test_passed_deadline(self):
        cancel = CancellationToken(timeout=0)

        assert cancel.timed_out
        assert cancel.remaining() == 0.0
        with pytest.raises(AttemptTimedOut):
            cancel.raise_if_cancelled()

    def test_timed_out_is_a_cancellation(self):
        assert issubclass(AttemptTimedOut, AttemptCancelled)

    def test_clip_timeout(self):
        assert CancellationToken().clip_timeout(30) == 30
        assert CancellationToken(timeout=5).clip_timeout(30) <= 5
        assert CancellationToken(timeout=60).clip_timeout(30) == 30

    def test_sleep_ends_early_on_cancel_from_other_thread(self):
        cancel = CancellationToken()
        timer = threading.Timer(0.05, cancel.cancel)
        timer.start()

        started = time.monotonic()
        with pytest.raises(AttemptCancelled):
            cancel.sleep(10)
        elapsed = time.monotonic() - started

        timer.join()
        assert elapsed < 5

    def test_sleep_after_cancel_does_not_wait(self):
        cancel = CancellationToken()
        cancel.cancel()

        started = time.monotonic()
        with pytest.raises(AttemptCancelled):
            cancel.sleep(10)

        assert time.monotonic() - started < 1

    def test_short_sleep_completes(self):
        cancel = CancellationToken(timeout=10)

        cancel.sleep(0.01)

        assert not cancel.cancelled
