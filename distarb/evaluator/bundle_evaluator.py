"""Fee and profit evaluation of a simulated bundle."""

from __future__ import annotations

import logging
from typing import List, Optional

from distarb.common import metrics
from distarb.common.models import Bundle, ProfitEvaluation, SimulationResult, TxFailure
from distarb.visibility.reporter import Reporter

log = logging.getLogger(__name__)


def collect_failures(simulation: SimulationResult) -> List[TxFailure]:
    """Return every failing entry of a simulation, in bundle order."""
    failures: List[TxFailure] = []
    for index, outcome in enumerate(simulation.results):
        if outcome.ok:
            continue
        failures.append(TxFailure(index=index, error=str(outcome.error), revert_hex=outcome.revert_hex))
    return failures


def eval_gas_fees(bundle: Bundle) -> tuple[int, int]:
    """Return ``(max_bundle_fee, max_arbitrage_fee)`` in wei.

    The arbitrage fee is the last transaction's worst-case fee; everything
    before it is a distribute call whose cost is paid either way.
    """
    arb_tx = bundle.transactions[-1]
    return bundle.maximum_gas_fee_paid(), arb_tx.max_fee()


def evaluate(
    bundle: Bundle,
    simulation: SimulationResult,
    expected_profit: int,
    reporter: Optional[Reporter] = None,
) -> ProfitEvaluation:
    """Combine a bundle, its simulation and the expected profit into one evaluation."""
    if len(simulation.results) != len(bundle.transactions):
        raise ValueError(
            f"simulation returned {len(simulation.results)} results for {len(bundle.transactions)} transactions"
        )
    failures = collect_failures(simulation)
    for failure in failures:
        log.warning("tx failed index=%d error=%s revertReason=%s", failure.index, failure.error, failure.revert_hex)
        metrics.SIMULATED_TX_FAILURES.inc()
        if reporter is not None:
            reporter.emit("tx_failed", index=failure.index, error=failure.error, revert=failure.revert_hex)

    max_bundle_fee, max_arbitrage_fee = eval_gas_fees(bundle)
    return ProfitEvaluation(
        expected_profit=int(expected_profit),
        max_bundle_fee=max_bundle_fee,
        max_arbitrage_fee=max_arbitrage_fee,
        simulation_ok=not failures,
        failures=failures,
    )


__all__ = ["collect_failures", "eval_gas_fees", "evaluate"]
