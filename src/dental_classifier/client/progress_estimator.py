"""Synthetic progress shown while waiting for the server.

The service gives no byte-level progress while it starts up, so the
displayed percentage is advanced on a fixed cadence towards a cap below
100. Only a successful response completes it.
"""

import asyncio
import logging
from collections.abc import Callable

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.consts import PROGRESS_COMPLETE
from dental_classifier.client.models import AttemptPhase

_WAITING_PHASES = frozenset(
    {AttemptPhase.AWAITING_SERVER, AttemptPhase.SERVER_WARMING}
)


class ProgressEstimator:
    """Produce a monotonic progress percentage for one submission."""

    def __init__(self, options: ClassifierOptions) -> None:
        """Initialize the estimator at 0%."""
        self.logger = logging.getLogger(__name__)
        self.cap = options.progress_cap
        self.step = options.progress_step
        self.interval = options.progress_interval
        self._value = 0

    @property
    def value(self) -> int:
        """The current progress percentage."""
        return self._value

    def tick(self, phase: AttemptPhase | None) -> int:
        """Advance progress by one step if the phase is waiting on the server.

        Args:
            phase: The phase of the in-flight attempt, or None when no
                attempt is in flight.

        Returns:
            The progress percentage, never above the cap.

        """
        if phase in _WAITING_PHASES:
            advanced = min(self._value + self.step, self.cap)
            self._value = max(self._value, advanced)
        return self._value

    def complete(self) -> int:
        """Snap progress to 100 once the request has succeeded."""
        self._value = PROGRESS_COMPLETE
        return self._value

    def reset(self) -> int:
        """Return progress to 0."""
        self._value = 0
        return self._value

    async def run(
        self,
        phase: Callable[[], AttemptPhase | None],
        on_progress: Callable[[int], None],
    ) -> None:
        """Tick on a fixed cadence until cancelled.

        Args:
            phase: Returns the phase of the in-flight attempt.
            on_progress: Receives the value after every tick.

        """
        while True:
            await asyncio.sleep(self.interval)
            previous = self._value
            current = self.tick(phase())
            if current != previous:
                on_progress(current)
