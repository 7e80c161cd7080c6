"""Deadline-bound wait for bundle inclusion."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Optional

from distarb.common import metrics
from distarb.common.errors import TransportError

log = logging.getLogger(__name__)


class InclusionState(str, Enum):
    WAITING = "waiting"
    INCLUDED = "included"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class InclusionResult:
    state: InclusionState
    elapsed_seconds: float = 0.0
    error: Optional[TransportError] = None

    @property
    def included(self) -> bool:
        return self.state is InclusionState.INCLUDED


class InclusionMonitor:
    """Single-use state machine around one relay wait.

    Expiry of the deadline and a relay that reports no inclusion both end in
    ``TIMED_OUT``, which is a normal result. A relay call that fails ends in
    ``TRANSPORT_ERROR`` with the error attached: the outcome is unknown.
    """

    def __init__(self, timeout_seconds: float) -> None:
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.timeout_seconds = timeout_seconds
        self.state = InclusionState.WAITING

    async def wait(self, relay_call: Awaitable[bool]) -> InclusionResult:
        if self.state is not InclusionState.WAITING:
            raise RuntimeError(f"monitor already finished in state {self.state.value}")
        loop = asyncio.get_running_loop()
        start = loop.time()
        error: Optional[TransportError] = None
        try:
            included = await asyncio.wait_for(relay_call, timeout=self.timeout_seconds)
            self.state = InclusionState.INCLUDED if included else InclusionState.TIMED_OUT
        except asyncio.TimeoutError:
            log.info("no inclusion observed within %.1fs", self.timeout_seconds)
            self.state = InclusionState.TIMED_OUT
        except TransportError as exc:
            log.warning("relay failed while waiting for inclusion: %s", exc)
            self.state = InclusionState.TRANSPORT_ERROR
            error = exc
        elapsed = loop.time() - start
        metrics.INCLUSION_WAIT_SECONDS.observe(elapsed)
        return InclusionResult(state=self.state, elapsed_seconds=elapsed, error=error)


__all__ = ["InclusionState", "InclusionResult", "InclusionMonitor"]
