"""Shared, strongly validated data models for the execution pipeline.

These Pydantic models define the contracts between the evaluator, the gates,
the relay clients and the pipeline. Amounts are integer base units (wei)
everywhere; display projections are derived, never stored.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple

from eth_utils import keccak
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from distarb.common import units


def is_hex_address(value: str) -> bool:
    """Return True if the string looks like a 20-byte hex address."""
    if not isinstance(value, str):
        return False
    if not value.startswith("0x") or len(value) != 42:
        return False
    try:
        int(value[2:], 16)
    except ValueError:
        return False
    return True


def _parse_int(value) -> int:
    """Accept ints, decimal strings and 0x-prefixed hex strings."""
    if isinstance(value, bool):
        raise ValueError("booleans are not amounts")
    if isinstance(value, int):
        return value
    sv = str(value).strip()
    if sv.startswith("0x"):
        return int(sv, 16)
    return int(sv)


def _is_hex_data(value: str) -> bool:
    if not isinstance(value, str) or not value.startswith("0x"):
        return False
    body = value[2:]
    if len(body) % 2:
        return False
    try:
        bytes.fromhex(body)
    except ValueError:
        return False
    return True


class ProfitCheckMode(str, Enum):
    DISABLED = "disabled"
    STRICT = "strict"
    IGNORE_DISTRIBUTE_COST = "ignore_distribute_cost"


class ExecutionOutcome(str, Enum):
    DRY_RUN_REPORTED = "dry_run_reported"
    SIMULATION_FAILED = "simulation_failed"
    PROFIT_TOO_LOW = "profit_too_low"
    USER_DECLINED = "user_declined"
    INCLUDED = "included"
    NOT_INCLUDED_WITHIN_DEADLINE = "not_included_within_deadline"
    TRANSPORT_ERROR = "transport_error"
    PREFLIGHT_FAILED = "preflight_failed"
    VALIDATION_FAILED = "validation_failed"


class Transaction(BaseModel):
    """One signed transaction of a bundle. Read-only once produced."""

    model_config = ConfigDict(frozen=True)

    sender: str = Field(..., description="EOA that signed the transaction")
    to: Optional[str] = Field(None, description="Recipient; None for contract creation")
    value: int = Field(0, ge=0)
    gas_limit: int = Field(..., gt=0)
    max_fee_per_gas: int = Field(..., ge=0, description="Fee cap in wei per gas")
    max_priority_fee_per_gas: int = Field(0, ge=0, description="Tip cap in wei per gas")
    nonce: int = Field(..., ge=0)
    data: str = Field("0x", description="Calldata, 0x-prefixed hex")
    raw: str = Field(..., description="Signed raw transaction, 0x-prefixed hex")

    @field_validator("sender", "to")
    @classmethod
    def _valid_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not is_hex_address(v):
            raise ValueError("address must be 0x-prefixed 40 hex chars")
        return v.lower()

    @field_validator("value", "gas_limit", "max_fee_per_gas", "max_priority_fee_per_gas", "nonce", mode="before")
    @classmethod
    def _int_like(cls, v):
        return _parse_int(v)

    @field_validator("data", "raw")
    @classmethod
    def _hex_payload(cls, v: str) -> str:
        if not _is_hex_data(v):
            raise ValueError("payload must be 0x-prefixed even-length hex")
        return v.lower()

    @property
    def tx_hash(self) -> str:
        return "0x" + keccak(hexstr=self.raw).hex()

    @property
    def payload(self) -> bytes:
        return bytes.fromhex(self.data[2:])

    def max_fee(self) -> int:
        """Worst-case gas fee: fee cap times gas limit (value excluded)."""
        return self.max_fee_per_gas * self.gas_limit

    def __repr__(self) -> str:  # pragma: no cover - convenience
        return f"Transaction(nonce={self.nonce}, to={self.to}, gas={self.gas_limit})"


class Bundle(BaseModel):
    """Ordered set of transactions submitted atomically to a relay.

    Transactions are fixed at construction. Only the broadcast step sets
    the target block and builder set, and only until the bundle is sealed
    by the first send.
    """

    transactions: Tuple[Transaction, ...]
    target_block: Optional[int] = Field(None, ge=0)
    builders: Tuple[str, ...] = ()

    _sealed: bool = PrivateAttr(default=False)

    @field_validator("transactions")
    @classmethod
    def _non_empty(cls, v: Tuple[Transaction, ...]) -> Tuple[Transaction, ...]:
        if not v:
            raise ValueError("bundle must contain at least one transaction")
        return v

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_mutable(self) -> None:
        if self._sealed:
            raise RuntimeError("bundle already sent; routing is frozen")

    def set_target_block(self, block_number: int) -> None:
        self._check_mutable()
        if block_number < 0:
            raise ValueError("block number must be non-negative")
        self.target_block = block_number

    def use_builders(self, builders: List[str]) -> None:
        self._check_mutable()
        self.builders = tuple(builders)

    def seal(self) -> None:
        self._sealed = True

    def raw_transactions(self) -> List[str]:
        return [tx.raw for tx in self.transactions]

    def maximum_gas_fee_paid(self) -> int:
        return sum(tx.max_fee() for tx in self.transactions)

    def __len__(self) -> int:
        return len(self.transactions)

    def __repr__(self) -> str:  # pragma: no cover
        return f"Bundle(txs={len(self.transactions)}, target={self.target_block})"


class BundleManifest(BaseModel):
    """Builder output: the signed bundle and the profit it was built for."""

    expected_profit: int = Field(..., description="Construction-time expected profit in wei; may be negative")
    transactions: Tuple[Transaction, ...]
    description: str = ""

    @field_validator("expected_profit", mode="before")
    @classmethod
    def _profit_int(cls, v):
        return _parse_int(v)

    def to_bundle(self) -> Bundle:
        return Bundle(transactions=self.transactions)


class TxOutcome(BaseModel):
    """Simulated result of one transaction in a bundle."""

    tx_hash: str = ""
    gas_used: int = Field(0, ge=0)
    error: Optional[str] = None
    revert_reason: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    @property
    def revert_hex(self) -> str:
        reason = self.revert_reason or ""
        if _is_hex_data(reason):
            return reason[2:]
        return reason.encode("utf-8").hex()


class SimulationResult(BaseModel):
    """Per-transaction outcomes of one bundle simulation, in bundle order."""

    results: List[TxOutcome] = Field(default_factory=list)
    bundle_hash: str = ""
    total_gas_used: int = Field(0, ge=0)
    coinbase_diff: int = 0

    @property
    def all_ok(self) -> bool:
        return all(r.ok for r in self.results)

    def __repr__(self) -> str:  # pragma: no cover
        return f"SimulationResult(hash={self.bundle_hash}, results={len(self.results)})"


class TxFailure(BaseModel):
    index: int = Field(..., ge=0)
    error: str
    revert_hex: str = ""


class ProfitEvaluation(BaseModel):
    """Fee obligations and expected profit of one bundle, in wei."""

    expected_profit: int
    max_bundle_fee: int = Field(..., ge=0)
    max_arbitrage_fee: int = Field(..., ge=0)
    simulation_ok: bool = True
    failures: List[TxFailure] = Field(default_factory=list)

    @property
    def profit_after_bundle_fee(self) -> int:
        return self.expected_profit - self.max_bundle_fee

    @property
    def profit_after_arbitrage_fee(self) -> int:
        return self.expected_profit - self.max_arbitrage_fee

    @property
    def expected_profit_eth(self) -> float:
        return units.wei_to_ether(self.expected_profit)

    @property
    def max_bundle_fee_eth(self) -> float:
        return units.wei_to_ether(self.max_bundle_fee)

    @property
    def max_arbitrage_fee_eth(self) -> float:
        return units.wei_to_ether(self.max_arbitrage_fee)


class PipelineReport(BaseModel):
    """Terminal result of one pipeline run."""

    outcome: ExecutionOutcome
    stage: str
    reason: str = ""
    evaluation: Optional[ProfitEvaluation] = None
    bundle_hash: Optional[str] = None
    explorer_link: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome in (ExecutionOutcome.INCLUDED, ExecutionOutcome.DRY_RUN_REPORTED)

    def __repr__(self) -> str:  # pragma: no cover
        return f"PipelineReport({self.outcome.value} at {self.stage})"


__all__ = [
    "is_hex_address",
    "ProfitCheckMode",
    "ExecutionOutcome",
    "Transaction",
    "Bundle",
    "BundleManifest",
    "TxOutcome",
    "SimulationResult",
    "TxFailure",
    "ProfitEvaluation",
    "PipelineReport",
]
