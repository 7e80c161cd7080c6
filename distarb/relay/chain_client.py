"""Execution-layer JSON-RPC reads used by the broadcast step."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from distarb.common.errors import TransportError
from distarb.execution.interface import ChainClient
from distarb.relay.rpc_client import JsonRpcClient

log = logging.getLogger(__name__)


def _hex_quantity(method: str, value: Any) -> int:
    if not isinstance(value, str) or not value.startswith("0x"):
        raise TransportError(f"{method}: expected hex quantity, got {value!r}")
    try:
        return int(value, 16)
    except ValueError as exc:
        raise TransportError(f"{method}: bad hex quantity {value!r}") from exc


class RpcChainClient(ChainClient):
    def __init__(self, rpc: JsonRpcClient) -> None:
        self.rpc = rpc

    async def network_id(self) -> int:
        return _hex_quantity("eth_chainId", await self.rpc.call("eth_chainId", []))

    async def block_number(self) -> int:
        return _hex_quantity("eth_blockNumber", await self.rpc.call("eth_blockNumber", []))

    async def transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        receipt = await self.rpc.call("eth_getTransactionReceipt", [tx_hash])
        if receipt is not None and not isinstance(receipt, dict):
            raise TransportError(f"eth_getTransactionReceipt: unexpected receipt {receipt!r}")
        return receipt


__all__ = ["RpcChainClient"]
