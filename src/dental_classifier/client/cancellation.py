"""Cancellation token threaded through a submission."""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from dental_classifier.client.exceptions import SubmissionCancelledError

T = TypeVar("T")


class CancellationToken:
    """Signals that a submission was abandoned.

    Every suspension point of a submission goes through the token, so a
    cancelled submission stops at its next await and never applies a
    late result.
    """

    def __init__(self) -> None:
        """Initialize an active token."""
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Whether the token has been cancelled."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Cancel the token, waking every pending wait."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise SubmissionCancelledError if the token was cancelled."""
        if self.cancelled:
            raise SubmissionCancelledError

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds unless cancelled first.

        Raises:
            SubmissionCancelledError: If the token is cancelled before the
                delay elapses.

        """
        self.raise_if_cancelled()
        try:
            _ = await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise SubmissionCancelledError

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token is cancelled first.

        On cancellation the pending work is cancelled and any result it
        produced in the meantime is discarded.

        Raises:
            SubmissionCancelledError: If the token is cancelled before or
                while the awaitable runs.

        """
        self.raise_if_cancelled()
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            _ = waiter.cancel()
            if not task.done():
                _ = task.cancel()

        if self.cancelled:
            if task.done() and not task.cancelled():
                # Retrieve and drop the stale outcome
                _ = task.exception()
            raise SubmissionCancelledError
        return task.result()
