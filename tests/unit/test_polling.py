"""Unit tests for cloud_assist_lib/core/polling.py."""

from __future__ import annotations

import pytest

from cloud_assist_lib.config import PollingPolicy
from cloud_assist_lib.core.polling import OperationPoller, OperationStatus, PollState
from cloud_assist_lib.errors import ErrorKind, OperationError, PollingTimeoutError


class ScriptedStatus:
    """Reports not-done until the configured attempt, then a final status."""

    def __init__(self, done_on: int | None, error: dict | None = None):
        self.done_on = done_on
        self.error = error
        self.queries = 0

    async def __call__(self) -> OperationStatus:
        self.queries += 1
        if self.done_on is not None and self.queries >= self.done_on:
            return OperationStatus(done=True, error=self.error, result={"attempt": self.queries})
        return OperationStatus(done=False, result={"attempt": self.queries})


def make_poller(sleep, jitter=0.5, **policy) -> OperationPoller:
    return OperationPoller(PollingPolicy(**policy), sleep=sleep, jitter=lambda: jitter)


class TestOperationPoller:
    @pytest.mark.asyncio
    async def test_done_on_first_attempt(self, recording_sleep):
        poller = make_poller(recording_sleep)
        status = await poller.wait(ScriptedStatus(done_on=1))
        assert status.done
        assert poller.state == PollState.DONE
        assert recording_sleep.delays == [1.5]

    @pytest.mark.asyncio
    async def test_returns_after_exactly_k_queries(self, recording_sleep):
        check = ScriptedStatus(done_on=4)
        poller = make_poller(recording_sleep, jitter=0.25)
        status = await poller.wait(check)

        assert check.queries == 4
        assert poller.attempts == 4
        assert status.result == {"attempt": 4}
        assert recording_sleep.delays == [1.25, 2.25, 4.25, 8.25]

    @pytest.mark.asyncio
    async def test_sleep_capped_at_max_backoff(self, recording_sleep):
        poller = make_poller(recording_sleep, jitter=0.0, max_attempts=8)
        await poller.wait(ScriptedStatus(done_on=8))
        assert recording_sleep.delays == [1, 2, 4, 8, 16, 32, 32, 32]

    @pytest.mark.asyncio
    async def test_delays_respect_lower_bound_with_random_jitter(self, recording_sleep):
        poller = OperationPoller(
            PollingPolicy(max_attempts=10, initial_backoff_seconds=1, max_backoff_seconds=8, backoff_factor=3),
            sleep=recording_sleep,
        )
        await poller.wait(ScriptedStatus(done_on=6))
        for n, delay in enumerate(recording_sleep.delays, start=1):
            floor = min(1 * 3 ** (n - 1), 8)
            assert floor <= delay < floor + 1

    @pytest.mark.asyncio
    async def test_timeout_after_max_attempts(self, recording_sleep):
        check = ScriptedStatus(done_on=None)
        poller = make_poller(recording_sleep, max_attempts=5)

        with pytest.raises(PollingTimeoutError) as exc_info:
            await poller.wait(check)

        assert check.queries == 5
        assert len(recording_sleep.delays) == 5
        assert poller.state == PollState.TIMED_OUT
        assert exc_info.value.kind == ErrorKind.TIMEOUT
        assert exc_info.value.details.current_status == {"attempt": 5}

    @pytest.mark.asyncio
    async def test_operation_error_carries_payload(self, recording_sleep):
        error = {"code": 13, "message": "internal analysis failure"}
        poller = make_poller(recording_sleep)

        with pytest.raises(OperationError) as exc_info:
            await poller.wait(ScriptedStatus(done_on=2, error=error))

        assert poller.state == PollState.FAILED
        assert exc_info.value.details.payload == error
        assert exc_info.value.to_tool_result()["code"] == "OPERATION_ERROR"

    @pytest.mark.asyncio
    async def test_poller_is_reusable(self, recording_sleep):
        poller = make_poller(recording_sleep)
        await poller.wait(ScriptedStatus(done_on=3))
        await poller.wait(ScriptedStatus(done_on=1))
        assert poller.attempts == 1
        assert poller.delays == [1.5]

    def test_default_policy(self):
        poller = OperationPoller()
        assert poller.policy.max_attempts == 20
        assert poller.policy.initial_backoff_seconds == 1
        assert poller.policy.max_backoff_seconds == 32
        assert poller.policy.backoff_factor == 2
