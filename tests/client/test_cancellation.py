"""Tests for CancellationToken."""

import asyncio

import pytest

from dental_classifier.client.cancellation import CancellationToken
from dental_classifier.client.exceptions import SubmissionCancelledError


def test_raise_if_cancelled() -> None:
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()

    assert token.cancelled
    with pytest.raises(SubmissionCancelledError):
        token.raise_if_cancelled()


@pytest.mark.asyncio
async def test_sleep_elapses() -> None:
    token = CancellationToken()

    await token.sleep(0.01)

    assert not token.cancelled


@pytest.mark.asyncio
async def test_sleep_interrupted_by_cancel() -> None:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    _ = loop.call_later(0.01, token.cancel)
    start = loop.time()

    with pytest.raises(SubmissionCancelledError):
        await token.sleep(30)

    assert loop.time() - start < 1


@pytest.mark.asyncio
async def test_guard_returns_result() -> None:
    token = CancellationToken()

    async def work() -> str:
        await asyncio.sleep(0)
        return "done"

    assert await token.guard(work()) == "done"


@pytest.mark.asyncio
async def test_guard_propagates_errors() -> None:
    token = CancellationToken()

    async def work() -> None:
        msg = "boom"
        raise RuntimeError(msg)

    with pytest.raises(RuntimeError, match="boom"):
        await token.guard(work())


@pytest.mark.asyncio
async def test_guard_cancels_pending_work() -> None:
    token = CancellationToken()
    release = asyncio.Event()
    finished: list[str] = []

    async def work() -> str:
        _ = await release.wait()
        finished.append("late")
        return "late"

    guarded = asyncio.create_task(token.guard(work()))
    await asyncio.sleep(0.01)
    token.cancel()

    with pytest.raises(SubmissionCancelledError):
        await guarded

    release.set()
    await asyncio.sleep(0.01)
    assert finished == []


@pytest.mark.asyncio
async def test_guard_refuses_to_start_when_cancelled() -> None:
    token = CancellationToken()
    token.cancel()

    async def work() -> None:
        return None

    coro = work()
    with pytest.raises(SubmissionCancelledError):
        await token.guard(coro)
    coro.close()
