"""Metrics export helpers."""

from __future__ import annotations

import logging

from prometheus_client import push_to_gateway

from distarb.common import metrics
from distarb.common.models import PipelineReport, ProfitEvaluation

log = logging.getLogger(__name__)


def publish_evaluation(evaluation: ProfitEvaluation) -> None:
    metrics.EXPECTED_PROFIT_ETH.set(evaluation.expected_profit_eth)
    metrics.MAX_BUNDLE_FEE_ETH.set(evaluation.max_bundle_fee_eth)
    metrics.MAX_ARBITRAGE_FEE_ETH.set(evaluation.max_arbitrage_fee_eth)


def publish_outcome(report: PipelineReport) -> None:
    metrics.PIPELINE_OUTCOMES.labels(outcome=report.outcome.value).inc()


def push_metrics(gateway_url: str | None, job: str, pusher=push_to_gateway) -> bool:
    """Push the default registry to a Pushgateway; a one-shot run cannot be scraped."""
    if not gateway_url:
        return False
    try:
        pusher(gateway_url, job=job, registry=metrics.REGISTRY)
    except OSError as exc:
        log.warning("Metrics push to %s failed: %s", gateway_url, exc)
        return False
    return True


__all__ = ["publish_evaluation", "publish_outcome", "push_metrics"]
