"""Competitive broadcast of a simulated bundle."""

from __future__ import annotations

import logging
from typing import Optional

from distarb.common import metrics
from distarb.common.errors import TransportError
from distarb.common.models import Bundle, SimulationResult
from distarb.execution.inclusion import InclusionMonitor, InclusionResult
from distarb.execution.interface import ChainClient, RelayClient
from distarb.relay.builders import all_builders
from distarb.visibility.reporter import Reporter

log = logging.getLogger(__name__)


class BroadcastOrchestrator:
    """Routes the bundle to every known builder and waits for inclusion.

    The target block is pinned once per call (head + 1). The relay's
    multi-round submission runs under one deadline that cancels it no matter
    how many rounds are left.
    """

    def __init__(
        self,
        chain: ChainClient,
        relay: RelayClient,
        *,
        rounds: int = 3,
        timeout_seconds: float = 60.0,
        reporter: Optional[Reporter] = None,
    ) -> None:
        self.chain = chain
        self.relay = relay
        self.rounds = rounds
        self.timeout_seconds = timeout_seconds
        self.reporter = reporter

    async def broadcast(self, bundle: Bundle, simulation: SimulationResult) -> InclusionResult:
        try:
            network_id = await self.chain.network_id()
        except TransportError as exc:
            raise TransportError(f"failed to get network id: {exc.message}", stage="broadcast") from exc
        builders = all_builders(network_id)
        bundle.use_builders(builders)
        log.debug("network %d: routing to %d builders", network_id, len(builders))

        try:
            head = await self.chain.block_number()
        except TransportError as exc:
            raise TransportError(f"failed to get block number: {exc.message}", stage="broadcast") from exc
        bundle.set_target_block(head + 1)
        metrics.TARGET_BLOCK.set(head + 1)

        if self.reporter is not None:
            self.reporter.emit(
                "bundle_sent",
                bundle_hash=simulation.bundle_hash,
                target_block=head + 1,
                timeout_seconds=self.timeout_seconds,
            )
        monitor = InclusionMonitor(self.timeout_seconds)
        return await monitor.wait(self.relay.send_and_wait_for_inclusion(bundle, self.rounds))


__all__ = ["BroadcastOrchestrator"]
