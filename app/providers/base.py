"""Shared provider utilities: circuit breaking and retries."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Type, TypeVar

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_random_exponential

T = TypeVar("T")

RETRYABLE: Tuple[Type[BaseException], ...] = (httpx.TransportError, httpx.HTTPStatusError)


class CircuitBreakerOpen(RuntimeError):
    """Raised when the provider circuit is open and calls should be skipped."""


@dataclass
class CircuitBreaker:
    """Opens after ``max_failures`` consecutive failures.

    Once ``reset_after`` seconds have passed since opening, calls are let
    through again; the next success closes the circuit, the next failure
    restarts the cooldown.
    """

    max_failures: int = 3
    reset_after: float = 30.0
    failure_count: int = 0
    opened_at: Optional[float] = None
    clock: Callable[[], float] = field(default_factory=lambda: time.monotonic, repr=False)

    @property
    def is_open(self) -> bool:
        if self.failure_count < self.max_failures:
            return False
        if self.opened_at is None:
            return True
        return self.clock() - self.opened_at < self.reset_after

    def check(self) -> None:
        if self.is_open:
            raise CircuitBreakerOpen("provider circuit open; skip call")

    def success(self) -> None:
        self.failure_count = 0
        self.opened_at = None

    def failure(self) -> None:
        self.failure_count += 1
        if self.failure_count >= self.max_failures:
            self.opened_at = self.clock()


def execute_with_retry(
    callable_: Callable[[], T],
    max_attempts: int = 3,
    retry_on: Tuple[Type[BaseException], ...] = RETRYABLE,
) -> T:
    retry = Retrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        wait=wait_random_exponential(min=1, max=5),
        retry=retry_if_exception_type(retry_on),
        reraise=True,
    )
    for attempt in retry:
        with attempt:
            return callable_()
    raise RuntimeError("Retry loop exhausted")
