"""End-to-end execution: simulate, evaluate, gate, broadcast, confirm inclusion."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Tuple

from distarb.common.config import Settings
from distarb.common.errors import InputValidationError, PreflightError, TransportError
from distarb.common.models import ExecutionOutcome, PipelineReport, ProfitEvaluation, SimulationResult
from distarb.evaluator.bundle_evaluator import evaluate
from distarb.evaluator.gates import ConfirmationGate, admit_profit, rejection_reason
from distarb.execution.broadcast import BroadcastOrchestrator
from distarb.execution.inclusion import InclusionState
from distarb.execution.interface import BundleBuilder, ChainClient, InputVerifier, RelayClient
from distarb.visibility import metrics_exporter
from distarb.visibility.reporter import LogReporter, Reporter

log = logging.getLogger(__name__)


def arbitrage_tx_hash(simulation: SimulationResult) -> str:
    """Hash of the settlement tx: the second of two, otherwise the last."""
    results = simulation.results
    if len(results) == 2:
        return results[1].tx_hash
    return results[-1].tx_hash


class ExecutionPipeline:
    """Runs one bundle through every stage and returns exactly one report.

    Stages short-circuit on the first terminal result. Errors raised by
    collaborators are caught at the stage that called them and turned into
    a report carrying that stage label; a broken confirmation prompt is the
    only error that escapes.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        verifier: InputVerifier,
        builder: BundleBuilder,
        relay: RelayClient,
        chain: ChainClient,
        confirmation: Optional[ConfirmationGate] = None,
        reporter: Optional[Reporter] = None,
        orchestrator: Optional[BroadcastOrchestrator] = None,
    ) -> None:
        self.settings = settings
        self.verifier = verifier
        self.builder = builder
        self.relay = relay
        self.chain = chain
        self.confirmation = confirmation or ConfirmationGate()
        self.reporter = reporter or LogReporter()
        self.orchestrator = orchestrator or BroadcastOrchestrator(
            chain,
            relay,
            rounds=settings.broadcast_rounds,
            timeout_seconds=settings.inclusion_timeout_seconds,
            reporter=self.reporter,
        )

    async def run(self) -> PipelineReport:
        report = await self._run()
        metrics_exporter.publish_outcome(report)
        if not report.succeeded:
            self.reporter.emit("aborted", outcome=report.outcome.value, stage=report.stage, reason=report.reason)
        log.info("pipeline finished outcome=%s stage=%s", report.outcome.value, report.stage)
        return report

    def _refund_target(self) -> Tuple[Optional[str], str]:
        if self.settings.refund_address:
            return self.settings.refund_address, "supplied recipient"
        if self.settings.random_signing_key:
            return self.settings.node_address, "node address"
        return None, ""

    async def _run(self) -> PipelineReport:
        settings = self.settings
        try:
            self.verifier.verify(settings)
        except InputValidationError as exc:
            return PipelineReport(outcome=ExecutionOutcome.VALIDATION_FAILED, stage=exc.stage, reason=str(exc))
        log.debug("verified input data")

        recipient, source = self._refund_target()
        if recipient:
            try:
                await self.relay.update_fee_refund_recipient(recipient)
            except TransportError as exc:
                err = PreflightError(f"failed to update flashbots fee refund recipient to {source}: {exc.message}")
                return PipelineReport(outcome=ExecutionOutcome.PREFLIGHT_FAILED, stage=err.stage, reason=str(err))
            self.reporter.emit("refund_recipient_updated", address=recipient, source=source)

        try:
            built = await self.builder.build(settings)
        except InputValidationError as exc:
            return PipelineReport(outcome=ExecutionOutcome.VALIDATION_FAILED, stage="build", reason=str(exc))
        except TransportError as exc:
            return PipelineReport(outcome=ExecutionOutcome.TRANSPORT_ERROR, stage="build", reason=str(exc))
        bundle, expected_profit = built.bundle, built.expected_profit

        try:
            simulation, success = await self.relay.simulate_bundle(bundle, 0)
        except TransportError as exc:
            return PipelineReport(
                outcome=ExecutionOutcome.TRANSPORT_ERROR, stage="simulate", reason=f"failed to simulate bundle: {exc}"
            )
        try:
            evaluation = evaluate(bundle, simulation, expected_profit, reporter=self.reporter)
        except ValueError as exc:
            return PipelineReport(outcome=ExecutionOutcome.TRANSPORT_ERROR, stage="simulate", reason=str(exc))
        success = success and evaluation.simulation_ok
        metrics_exporter.publish_evaluation(evaluation)
        self.reporter.emit("simulated", success=success, evaluation=evaluation)

        def _report(outcome: ExecutionOutcome, stage: str, reason: str = "", **extra) -> PipelineReport:
            return PipelineReport(
                outcome=outcome,
                stage=stage,
                reason=reason,
                evaluation=evaluation,
                bundle_hash=simulation.bundle_hash or None,
                **extra,
            )

        if settings.dry_run:
            self.reporter.emit("dry_run", transactions=list(bundle.transactions))
            return _report(ExecutionOutcome.DRY_RUN_REPORTED, "dry_run")

        # only after the dry-run printout, which operators want either way
        if not success:
            return _report(ExecutionOutcome.SIMULATION_FAILED, "simulate", "bundle simulation failed")

        if not self._admit(evaluation):
            return _report(ExecutionOutcome.PROFIT_TOO_LOW, "profit_check", rejection_reason(settings.profit_check_mode))

        if not settings.skip_confirmation:
            confirmed = await asyncio.to_thread(self.confirmation.confirm, False)
            if not confirmed:
                return _report(ExecutionOutcome.USER_DECLINED, "confirm", "user did not confirm to proceed")

        try:
            result = await self.orchestrator.broadcast(bundle, simulation)
        except TransportError as exc:
            return _report(ExecutionOutcome.TRANSPORT_ERROR, exc.stage, str(exc))

        if result.state is InclusionState.TRANSPORT_ERROR:
            return _report(
                ExecutionOutcome.TRANSPORT_ERROR, "inclusion", f"failed to wait for bundle inclusion: {result.error}"
            )
        if result.state is not InclusionState.INCLUDED:
            return _report(
                ExecutionOutcome.NOT_INCLUDED_WITHIN_DEADLINE,
                "inclusion",
                f"bundle was not included within {result.elapsed_seconds:.1f}s",
            )

        link = settings.tx_link(arbitrage_tx_hash(simulation))
        self.reporter.emit("included", link=link, tx_count=len(simulation.results))
        return _report(ExecutionOutcome.INCLUDED, "inclusion", explorer_link=link)

    def _admit(self, evaluation: ProfitEvaluation) -> bool:
        return admit_profit(
            evaluation.expected_profit,
            evaluation.max_bundle_fee,
            evaluation.max_arbitrage_fee,
            self.settings.profit_check_mode,
        )


__all__ = ["ExecutionPipeline", "arbitrage_tx_hash"]
