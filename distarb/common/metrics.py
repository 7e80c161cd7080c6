"""Prometheus metrics helpers for the execution pipeline."""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Gauge, Histogram

# Counters
PIPELINE_OUTCOMES = Counter("distarb_pipeline_outcomes_total", "Pipeline runs by terminal outcome", ["outcome"])
RPC_CALLS = Counter("distarb_rpc_calls_total", "JSON-RPC calls", ["endpoint", "method"])
RPC_ERRORS = Counter("distarb_rpc_errors_total", "JSON-RPC errors", ["type"])
SIMULATED_TX_FAILURES = Counter("distarb_simulated_tx_failures_total", "Transactions that failed simulation")
BROADCAST_ROUNDS = Counter("distarb_broadcast_rounds_total", "eth_sendBundle rounds submitted")

# Gauges
EXPECTED_PROFIT_ETH = Gauge("distarb_expected_profit_eth", "Construction-time expected profit (ETH)")
MAX_BUNDLE_FEE_ETH = Gauge("distarb_max_bundle_fee_eth", "Worst-case fee of the whole bundle (ETH)")
MAX_ARBITRAGE_FEE_ETH = Gauge("distarb_max_arbitrage_fee_eth", "Worst-case fee of the arbitrage tx (ETH)")
TARGET_BLOCK = Gauge("distarb_target_block", "Block number targeted by the last broadcast")
CIRCUIT_STATE = Gauge("distarb_circuit_state", "Circuit breaker state (0=closed,1=half_open,2=open)", ["component"])

# Histograms
RPC_LATENCY_SECONDS = Histogram("distarb_rpc_latency_seconds", "RPC call latency", ["endpoint", "method"], buckets=(0.01, 0.05, 0.1, 0.2, 0.5, 1, 2, 5))
INCLUSION_WAIT_SECONDS = Histogram("distarb_inclusion_wait_seconds", "Time spent waiting for inclusion", buckets=(1, 5, 12, 24, 36, 48, 60, 120))


__all__ = [
    "REGISTRY",
    "PIPELINE_OUTCOMES",
    "RPC_CALLS",
    "RPC_ERRORS",
    "SIMULATED_TX_FAILURES",
    "BROADCAST_ROUNDS",
    "EXPECTED_PROFIT_ETH",
    "MAX_BUNDLE_FEE_ETH",
    "MAX_ARBITRAGE_FEE_ETH",
    "TARGET_BLOCK",
    "CIRCUIT_STATE",
    "RPC_LATENCY_SECONDS",
    "INCLUSION_WAIT_SECONDS",
]
