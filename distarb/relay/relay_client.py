"""Flashbots relay client: refund recipient, bundle simulation and submission."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Tuple

from distarb.common import metrics
from distarb.common.errors import TransportError
from distarb.common.models import Bundle, SimulationResult, TxOutcome
from distarb.execution.interface import ChainClient, RelayClient
from distarb.relay.rpc_client import JsonRpcClient
from distarb.relay.signing import FlashbotsSigner

log = logging.getLogger(__name__)


def _parse_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    sv = str(value)
    return int(sv, 16) if sv.startswith("0x") else int(sv)


def parse_simulation(raw: Dict[str, Any], expected_len: int) -> SimulationResult:
    """Map an ``eth_callBundle`` result onto a SimulationResult."""
    if not isinstance(raw, dict) or not isinstance(raw.get("results"), list):
        raise TransportError(f"eth_callBundle: malformed result {raw!r}", stage="simulate")
    results: List[TxOutcome] = []
    try:
        for entry in raw["results"]:
            results.append(
                TxOutcome(
                    tx_hash=str(entry.get("txHash", "")),
                    gas_used=_parse_int(entry.get("gasUsed")),
                    error=entry.get("error") or None,
                    revert_reason=str(entry.get("revert") or ""),
                )
            )
        sim = SimulationResult(
            results=results,
            bundle_hash=str(raw.get("bundleHash", "")),
            total_gas_used=_parse_int(raw.get("totalGasUsed")),
            coinbase_diff=_parse_int(raw.get("coinbaseDiff")),
        )
    except (AttributeError, TypeError, ValueError) as exc:
        raise TransportError(f"eth_callBundle: cannot parse result: {exc}", stage="simulate") from exc
    if len(sim.results) != expected_len:
        raise TransportError(
            f"eth_callBundle: {len(sim.results)} results for {expected_len} transactions", stage="simulate"
        )
    return sim


class FlashbotsRelayClient(RelayClient):
    """Relay collaborator speaking the Flashbots JSON-RPC methods.

    Inclusion is detected by polling the chain for the receipt of the
    bundle's last transaction until the final targeted block has passed.
    """

    def __init__(
        self,
        rpc: JsonRpcClient,
        chain: ChainClient,
        signer: FlashbotsSigner,
        *,
        poll_interval_seconds: float = 1.0,
    ) -> None:
        self.rpc = rpc
        self.chain = chain
        self.signer = signer
        self.poll_interval_seconds = poll_interval_seconds

    async def update_fee_refund_recipient(self, address: str) -> None:
        await self.rpc.call("flashbots_setFeeRefundRecipient", [self.signer.address, address], stage="preflight")
        log.info("fee refund recipient for %s set to %s", self.signer.address, address)

    async def simulate_bundle(self, bundle: Bundle, block_offset: int = 0) -> Tuple[SimulationResult, bool]:
        head = await self.chain.block_number()
        params = {
            "txs": bundle.raw_transactions(),
            "blockNumber": hex(head + 1 + block_offset),
            "stateBlockNumber": "latest",
        }
        raw = await self.rpc.call("eth_callBundle", [params], stage="simulate")
        sim = parse_simulation(raw, len(bundle.transactions))
        success = sim.all_ok and not (isinstance(raw, dict) and raw.get("firstRevert"))
        log.debug("simulated bundle hash=%s success=%s gas=%d", sim.bundle_hash, success, sim.total_gas_used)
        return sim, success

    async def send_bundle(self, bundle: Bundle, block_number: int) -> str:
        params: Dict[str, Any] = {"txs": bundle.raw_transactions(), "blockNumber": hex(block_number)}
        if bundle.builders:
            params["builders"] = list(bundle.builders)
        result = await self.rpc.call("eth_sendBundle", [params], stage="broadcast")
        metrics.BROADCAST_ROUNDS.inc()
        bundle_hash = str(result.get("bundleHash", "")) if isinstance(result, dict) else ""
        log.info("sent bundle for block %d hash=%s", block_number, bundle_hash)
        return bundle_hash

    async def send_and_wait_for_inclusion(self, bundle: Bundle, rounds: int) -> bool:
        """Send for ``rounds`` consecutive blocks, then poll for the last tx receipt.

        Returns False as soon as the head reaches the last targeted block
        without a receipt, which for the default three rounds is about three
        slots. That can be well before the caller's inclusion deadline; the
        deadline only bounds a relay or node that stops answering.
        """
        if bundle.target_block is None:
            raise ValueError("bundle has no target block")
        first = bundle.target_block
        last = first + max(1, rounds) - 1
        bundle.seal()
        for block_number in range(first, last + 1):
            await self.send_bundle(bundle, block_number)

        last_hash = bundle.transactions[-1].tx_hash
        while True:
            head = await self.chain.block_number()
            receipt = await self.chain.transaction_receipt(last_hash)
            if receipt is not None:
                log.info("bundle included in block %s", receipt.get("blockNumber"))
                return True
            if head >= last:
                log.info("bundle not included in blocks %d..%d", first, last)
                return False
            await asyncio.sleep(self.poll_interval_seconds)


__all__ = ["FlashbotsRelayClient", "parse_simulation"]
