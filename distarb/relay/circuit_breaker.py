"""Simple async circuit breaker."""

from __future__ import annotations

import time
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from distarb.common import metrics
from distarb.common.errors import TransportError

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    def __init__(self, failure_threshold: int = 5, reset_timeout: float = 30.0, component: str = "rpc"):
        self.failure_threshold = failure_threshold
        self.reset_timeout = reset_timeout
        self.component = component
        self.failures = 0
        self.state = CircuitState.CLOSED
        self.last_failure = 0.0

    async def call(self, fn: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        if self.state == CircuitState.OPEN:
            if time.monotonic() - self.last_failure > self.reset_timeout:
                self.state = CircuitState.HALF_OPEN
            else:
                raise TransportError(f"circuit open for {self.component}")
        try:
            result = await fn(*args, **kwargs)
        except Exception:
            self._on_failure()
            raise
        self._on_success()
        return result

    def _on_success(self) -> None:
        self.failures = 0
        self.state = CircuitState.CLOSED
        metrics.CIRCUIT_STATE.labels(component=self.component).set(0)

    def _on_failure(self) -> None:
        self.failures += 1
        self.last_failure = time.monotonic()
        if self.state == CircuitState.HALF_OPEN or self.failures >= self.failure_threshold:
            self.state = CircuitState.OPEN
        state_val = 2 if self.state == CircuitState.OPEN else 1
        metrics.CIRCUIT_STATE.labels(component=self.component).set(state_val)


__all__ = ["CircuitBreaker", "CircuitState"]
