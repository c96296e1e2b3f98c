"""Retry decisions and backoff for submissions."""

from dataclasses import dataclass
from typing import Self

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.exceptions import (
    ClassifierError,
    RetriesExhaustedError,
    is_retryable,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Decide whether a failed attempt is retried and how long to wait.

    Only service warm-up (503), unreachable network and timeouts are
    retried. Decisions depend only on the error class and the attempt
    index, never on state kept between calls.

    Attributes:
        max_attempts: Attempts per submission, including the first one.
        initial_delay: Delay in seconds before the first retry.
        max_delay: Upper bound in seconds for any delay.

    """

    max_attempts: int
    initial_delay: float
    max_delay: float

    @classmethod
    def from_options(cls, options: ClassifierOptions) -> Self:
        """Build a policy from client options."""
        return cls(
            max_attempts=options.max_attempts,
            initial_delay=options.initial_delay,
            max_delay=options.max_delay,
        )

    def should_retry(self, error: BaseException, attempt_index: int) -> bool:
        """Return whether to make another attempt.

        Args:
            error: The failure of the latest attempt.
            attempt_index: Number of attempts made so far.

        """
        return is_retryable(error) and attempt_index < self.max_attempts

    def delay_for(self, attempt_index: int) -> float:
        """Return the delay in seconds before retry number ``attempt_index``.

        The delay doubles with every retry, starting at ``initial_delay``
        for index 0, and never exceeds ``max_delay``.
        """
        if attempt_index < 0:
            msg = "attempt_index cannot be negative"
            raise ValueError(msg)
        # Clamp the exponent so huge indices cannot overflow to inf
        exponent = min(attempt_index, 64)
        return min(self.initial_delay * 2**exponent, self.max_delay)

    def terminal_error(
        self, error: ClassifierError, attempt_index: int
    ) -> ClassifierError:
        """Return the error a submission ends with after giving up.

        Retryable failures that ran out of several attempts are wrapped in
        RetriesExhaustedError. A single attempt, or a failure that is
        terminal anyway, ends with the error unchanged.
        """
        if is_retryable(error) and attempt_index > 1:
            return RetriesExhaustedError(attempt_index, error)
        return error
