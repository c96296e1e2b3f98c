"""Tests for RetryPolicy."""

import httpx
import pytest

from dental_classifier.client.classifier_options import ClassifierOptions
from dental_classifier.client.exceptions import (
    ImageValidationError,
    NetworkUnreachableError,
    PayloadTooLargeError,
    RequestTimeoutError,
    ResponseParseError,
    RetriesExhaustedError,
    ServerError,
    ServiceWarmingError,
    ValidationReason,
)
from dental_classifier.client.retry_policy import RetryPolicy

MAX_ATTEMPTS = 3


@pytest.fixture
def policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=MAX_ATTEMPTS, initial_delay=10.0, max_delay=60.0
    )


def test_first_delay_is_initial_delay(policy: RetryPolicy) -> None:
    assert policy.delay_for(0) == 10.0


def test_delay_doubles_until_capped(policy: RetryPolicy) -> None:
    assert [policy.delay_for(i) for i in range(5)] == [
        10.0,
        20.0,
        40.0,
        60.0,
        60.0,
    ]


def test_delay_is_monotonic_and_bounded(policy: RetryPolicy) -> None:
    delays = [policy.delay_for(i) for i in range(200)]
    assert delays == sorted(delays)
    assert max(delays) == policy.max_delay


def test_negative_index_rejected(policy: RetryPolicy) -> None:
    with pytest.raises(ValueError, match="cannot be negative"):
        _ = policy.delay_for(-1)


@pytest.mark.parametrize(
    "error",
    [
        ServiceWarmingError(),
        NetworkUnreachableError(),
        RequestTimeoutError(),
    ],
)
def test_retryable_errors_retry_until_max_attempts(
    policy: RetryPolicy, error: Exception
) -> None:
    assert policy.should_retry(error, 1)
    assert policy.should_retry(error, MAX_ATTEMPTS - 1)
    assert not policy.should_retry(error, MAX_ATTEMPTS)


@pytest.mark.parametrize(
    "error",
    [
        ImageValidationError(ValidationReason.TOO_SMALL),
        PayloadTooLargeError(),
        ServerError(status_code=500),
        ServerError(status_code=404),
        ResponseParseError(),
        httpx.ConnectError("raw httpx errors are not classified"),
        RuntimeError("boom"),
    ],
)
def test_terminal_errors_never_retry(
    policy: RetryPolicy, error: Exception
) -> None:
    assert not policy.should_retry(error, 1)


def test_decisions_do_not_depend_on_history(policy: RetryPolicy) -> None:
    error = ServiceWarmingError()
    first = [policy.should_retry(error, i) for i in range(1, 5)]
    second = [policy.should_retry(error, i) for i in range(1, 5)]
    assert first == second == [True, True, False, False]


def test_terminal_error_wraps_retryable_failures(policy: RetryPolicy) -> None:
    last = ServiceWarmingError()
    final = policy.terminal_error(last, MAX_ATTEMPTS)

    assert isinstance(final, RetriesExhaustedError)
    assert final.attempts == MAX_ATTEMPTS
    assert final.last_error is last
    assert final.user_message != last.user_message
    assert "multiple attempts" in final.user_message


def test_terminal_error_passes_through_terminal_failures(
    policy: RetryPolicy,
) -> None:
    error = PayloadTooLargeError()
    assert policy.terminal_error(error, 1) is error


@pytest.mark.parametrize(
    "error", [ServiceWarmingError(), RequestTimeoutError()]
)
def test_single_attempt_keeps_original_error(
    error: ServiceWarmingError,
) -> None:
    policy = RetryPolicy(max_attempts=1, initial_delay=1.0, max_delay=1.0)

    assert not policy.should_retry(error, 1)
    assert policy.terminal_error(error, 1) is error


def test_from_options(options: ClassifierOptions) -> None:
    policy = RetryPolicy.from_options(options)
    assert policy.max_attempts == options.max_attempts
    assert policy.initial_delay == options.initial_delay
    assert policy.max_delay == options.max_delay
