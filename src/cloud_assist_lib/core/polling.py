"""Bounded exponential-backoff polling for long-running operations.

The poller only knows about a status callback returning an ``OperationStatus``;
it has no notion of investigations. Sleep and jitter sources are injectable so
tests can run without wall-clock waits.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from cloud_assist_lib.config import PollingPolicy
from cloud_assist_lib.errors import (
    BackendPayload,
    OperationError,
    PollingTimeoutError,
    StatusSnapshot,
)

logger = logging.getLogger(__name__)


class PollState(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class OperationStatus:
    """One observation of a remote operation."""

    done: bool
    error: Optional[Dict[str, Any]] = None
    result: Any = None


StatusCheck = Callable[[], Awaitable[OperationStatus]]


class OperationPoller:
    """Waits for a remote operation to reach a terminal state.

    Each attempt sleeps ``min(backoff, max_backoff) + jitter`` seconds and then
    queries the status once. The backoff grows by ``backoff_factor`` after every
    pending result; only the sleep is capped.

    Usage:
        poller = OperationPoller(PollingPolicy(max_attempts=5))
        status = await poller.wait(check_status)
    """

    def __init__(
        self,
        policy: Optional[PollingPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        jitter: Callable[[], float] = random.random,
    ):
        self.policy = policy or PollingPolicy()
        self._sleep = sleep
        self._jitter = jitter
        self.state = PollState.PENDING
        self.attempts = 0
        self.delays: List[float] = []

    def delay_for(self, backoff: float) -> float:
        return min(backoff, self.policy.max_backoff_seconds) + self._jitter()

    async def wait(self, check_status: StatusCheck) -> OperationStatus:
        """Poll until the operation completes or the attempt budget runs out.

        Returns:
            The final OperationStatus when it completes without error

        Raises:
            OperationError: The operation completed with an error
            PollingTimeoutError: ``max_attempts`` queries without completion
        """
        self.state = PollState.PENDING
        self.attempts = 0
        self.delays = []
        backoff = self.policy.initial_backoff_seconds
        last_status: Optional[OperationStatus] = None

        while self.attempts < self.policy.max_attempts:
            self.attempts += 1
            delay = self.delay_for(backoff)
            self.delays.append(delay)
            await self._sleep(delay)

            last_status = await check_status()
            if last_status.done:
                if last_status.error:
                    self.state = PollState.FAILED
                    logger.error(f"Operation failed after {self.attempts} attempts: {last_status.error}")
                    raise OperationError(
                        "Investigation operation failed",
                        details=BackendPayload(payload=last_status.error),
                    )
                self.state = PollState.DONE
                logger.debug(f"Operation completed after {self.attempts} attempts")
                return last_status

            logger.debug(f"Operation still pending (attempt {self.attempts}/{self.policy.max_attempts})")
            backoff *= self.policy.backoff_factor

        self.state = PollState.TIMED_OUT
        logger.warning(f"Operation did not complete within {self.policy.max_attempts} attempts")
        raise PollingTimeoutError(
            "Investigation did not complete within the timeout period.",
            details=StatusSnapshot(current_status=last_status.result if last_status else None),
        )
