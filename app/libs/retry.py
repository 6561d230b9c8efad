"""Bounded retry with backoff, driven by a per-call-site classifier."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RetryDecision(StrEnum):
    SUCCESS = "success"
    TERMINAL = "terminal"
    TRANSIENT = "transient"


class RetryStatus(StrEnum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


Operation = Callable[[int], Awaitable[T]]
Classifier = Callable[[Any, BaseException | None], RetryDecision]
Backoff = Callable[[int], float]
Sleep = Callable[[float], Awaitable[None]]


def linear_backoff(base: float = 1.0) -> Backoff:
    def backoff(attempt: int) -> float:
        return base * attempt

    return backoff


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    status: RetryStatus
    attempts: int
    value: T | None = None
    error: BaseException | None = None
    elapsed_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == RetryStatus.SUCCEEDED

    @property
    def exhausted(self) -> bool:
        return self.status == RetryStatus.EXHAUSTED


class RetryPolicy:
    """
    Runs an operation at most ``max_attempts`` times.

    ``operation(attempt)`` is awaited with the 1-based attempt number. Its result
    (or the exception it raised) goes through ``classify``:

    - SUCCESS ends the run with ``RetryStatus.SUCCEEDED``
    - TERMINAL ends the run with ``RetryStatus.FAILED``
    - TRANSIENT sleeps ``backoff(attempt)`` and tries again, or ends with
      ``RetryStatus.EXHAUSTED`` once the ceiling is reached

    When ``attempt_timeout`` is set every attempt runs under its own
    ``asyncio.timeout``; an expired attempt surfaces to ``classify`` as
    ``TimeoutError``. ``asyncio.CancelledError`` is never caught, so cancelling
    the caller abandons the run immediately.
    """

    def __init__(
        self,
        max_attempts: int,
        classify: Classifier,
        backoff: Backoff | None = None,
        attempt_timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
        name: str = "operation",
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.classify = classify
        self.backoff = backoff or linear_backoff()
        self.attempt_timeout = attempt_timeout
        self._sleep = sleep
        self.name = name

    async def _invoke(self, operation: Operation[T], attempt: int) -> T:
        if self.attempt_timeout is None:
            return await operation(attempt)
        async with asyncio.timeout(self.attempt_timeout):
            return await operation(attempt)

    async def run(self, operation: Operation[T]) -> RetryOutcome[T]:
        start_time = time.monotonic()
        value: T | None = None
        error: BaseException | None = None

        for attempt in range(1, self.max_attempts + 1):
            value, error = None, None
            try:
                value = await self._invoke(operation, attempt)
            except Exception as e:
                error = e

            decision = self.classify(value, error)
            elapsed_ms = int((time.monotonic() - start_time) * 1000)

            if decision == RetryDecision.SUCCESS:
                return RetryOutcome(RetryStatus.SUCCEEDED, attempt, value, error, elapsed_ms)

            if decision == RetryDecision.TERMINAL:
                logger.info(f"{self.name} attempt {attempt}/{self.max_attempts} failed terminally")
                return RetryOutcome(RetryStatus.FAILED, attempt, value, error, elapsed_ms)

            if attempt < self.max_attempts:
                delay = self.backoff(attempt)
                logger.info(
                    f"{self.name} attempt {attempt}/{self.max_attempts} failed, "
                    f"retrying in {delay:.1f}s"
                )
                await self._sleep(delay)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        logger.warning(f"{self.name} exhausted after {self.max_attempts} attempts")
        return RetryOutcome(RetryStatus.EXHAUSTED, self.max_attempts, value, error, elapsed_ms)
