"""Cooperative cancellation and deadline for a single login attempt."""

import threading
import time
from typing import Optional


class AttemptCancelled(Exception):
    """Raised when the caller cancelled the login attempt."""


class AttemptTimedOut(AttemptCancelled):
    """Raised when the caller-imposed deadline for the attempt has passed."""


class CancellationToken:
    """Cancellation signal threaded through every network call of an attempt.

    The token is checked before and after each round-trip, and ``sleep`` waits
    on the underlying event so ``cancel()`` from another thread ends a pending
    delay immediately.
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize token.

        Args:
            timeout: Overall seconds allowed for the attempt (default: no deadline)
        """
        self._event = threading.Event()
        self._deadline: Optional[float] = None
        if timeout is not None:
            self._deadline = time.monotonic() + timeout

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def timed_out(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def clip_timeout(self, timeout: float) -> float:
        """Shorten a per-request timeout so it never outlives the deadline."""
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)

    def raise_if_cancelled(self) -> None:
        """Raise if the attempt was cancelled or its deadline passed.

        Raises:
            AttemptCancelled: If cancel() was called
            AttemptTimedOut: If the deadline has passed
        """
        if self.cancelled:
            raise AttemptCancelled("Login attempt cancelled")
        if self.timed_out:
            raise AttemptTimedOut("Login attempt exceeded its deadline")

    def sleep(self, seconds: float) -> None:
        """Wait for up to ``seconds``, returning early on cancel or deadline.

        Raises:
            AttemptCancelled: If cancelled while waiting
            AttemptTimedOut: If the deadline passes while waiting
        """
        self.raise_if_cancelled()
        self._event.wait(self.clip_timeout(seconds))
        self.raise_if_cancelled()
