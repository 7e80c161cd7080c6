"""Collaborator contracts consumed by the execution pipeline."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from distarb.common.config import Settings
from distarb.common.models import Bundle, SimulationResult


@dataclass
class BuiltBundle:
    bundle: Bundle
    expected_profit: int


class InputVerifier(abc.ABC):
    @abc.abstractmethod
    def verify(self, settings: Settings) -> None:
        """Raise ``InputValidationError`` if the run must not start."""
        raise NotImplementedError


class BundleBuilder(abc.ABC):
    @abc.abstractmethod
    async def build(self, settings: Settings) -> BuiltBundle:
        """Construct the bundle and its construction-time expected profit (wei)."""
        raise NotImplementedError


class ChainClient(abc.ABC):
    @abc.abstractmethod
    async def network_id(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    async def block_number(self) -> int:
        raise NotImplementedError

    @abc.abstractmethod
    async def transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError


class RelayClient(abc.ABC):
    @abc.abstractmethod
    async def update_fee_refund_recipient(self, address: str) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def simulate_bundle(self, bundle: Bundle, block_offset: int = 0) -> Tuple[SimulationResult, bool]:
        """Simulate once; returns the per-tx results and the relay's overall verdict."""
        raise NotImplementedError

    @abc.abstractmethod
    async def send_and_wait_for_inclusion(self, bundle: Bundle, rounds: int) -> bool:
        """Submit for ``rounds`` consecutive blocks from the target; True once mined."""
        raise NotImplementedError


__all__ = ["BuiltBundle", "InputVerifier", "BundleBuilder", "ChainClient", "RelayClient"]
