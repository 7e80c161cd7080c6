import pytest
from pydantic import ValidationError

from distarb.common.models import (
    Bundle,
    ExecutionOutcome,
    PipelineReport,
    SimulationResult,
    Transaction,
    TxOutcome,
)
from distarb.tests.fakes import GWEI, NODE, make_bundle, make_tx


def test_transaction_normalises_addresses_and_amounts():
    tx = Transaction(
        sender=NODE.upper().replace("0X", "0x"),
        to="0x" + "B" * 40,
        value="0x10",
        gas_limit="21000",
        max_fee_per_gas=30 * GWEI,
        nonce=7,
        data="0xABCD",
        raw="0x02ff",
    )
    assert tx.sender == NODE
    assert tx.to == "0x" + "b" * 40
    assert tx.value == 16
    assert tx.gas_limit == 21000
    assert tx.data == "0xabcd"
    assert tx.payload == b"\xab\xcd"


def test_transaction_rejects_bad_payload_and_address():
    with pytest.raises(ValidationError):
        make_tx(data="0xabc")
    with pytest.raises(ValidationError):
        Transaction(sender="0x123", gas_limit=1, max_fee_per_gas=1, nonce=0, raw="0x00")


def test_transaction_is_frozen():
    tx = make_tx()
    with pytest.raises(ValidationError):
        tx.nonce = 5


def test_tx_hash_is_keccak_of_raw():
    tx = make_tx()
    assert tx.tx_hash.startswith("0x")
    assert len(tx.tx_hash) == 66
    assert make_tx(1).tx_hash != tx.tx_hash


def test_max_fee_excludes_value():
    tx = make_tx(gas_limit=21_000, fee_cap=50 * GWEI)
    assert tx.max_fee() == 21_000 * 50 * GWEI


def test_bundle_requires_transactions():
    with pytest.raises(ValidationError):
        Bundle(transactions=())


def test_bundle_maximum_gas_fee_paid_sums_transactions():
    bundle = make_bundle(3, gas_limit=100_000, fee_cap=10 * GWEI)
    assert bundle.maximum_gas_fee_paid() == 3 * 100_000 * 10 * GWEI
    assert len(bundle) == 3


def test_bundle_routing_frozen_after_seal():
    bundle = make_bundle()
    bundle.set_target_block(10)
    bundle.use_builders(["flashbots"])
    bundle.seal()
    assert bundle.sealed
    with pytest.raises(RuntimeError):
        bundle.set_target_block(11)
    with pytest.raises(RuntimeError):
        bundle.use_builders([])
    assert bundle.target_block == 10


def test_tx_outcome_revert_hex():
    assert TxOutcome(error="execution reverted", revert_reason="no").revert_hex == "6e6f"
    assert TxOutcome(error="x", revert_reason="0x08c379a0").revert_hex == "08c379a0"
    assert TxOutcome().ok


def test_simulation_all_ok():
    sim = SimulationResult(results=[TxOutcome(), TxOutcome(error="boom")])
    assert not sim.all_ok


def test_report_succeeded_only_for_included_and_dry_run():
    ok = {ExecutionOutcome.INCLUDED, ExecutionOutcome.DRY_RUN_REPORTED}
    for outcome in ExecutionOutcome:
        report = PipelineReport(outcome=outcome, stage="x")
        assert report.succeeded is (outcome in ok)
