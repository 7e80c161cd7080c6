"""Command-line entry point: run one bundle through the execution pipeline."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from distarb.builder.manifest_builder import builder_for
from distarb.builder.verifier import SettingsVerifier
from distarb.common.config import Settings
from distarb.common.errors import ConfirmationInputError
from distarb.common.models import ProfitCheckMode
from distarb.execution.pipeline import ExecutionPipeline
from distarb.relay.chain_client import RpcChainClient
from distarb.relay.relay_client import FlashbotsRelayClient
from distarb.relay.rpc_client import JsonRpcClient
from distarb.relay.signing import FlashbotsSigner
from distarb.visibility.metrics_exporter import push_metrics
from distarb.visibility.reporter import ConsoleReporter

log = logging.getLogger(__name__)

_PROFIT_CHOICES = {
    "disabled": ProfitCheckMode.DISABLED,
    "strict": ProfitCheckMode.STRICT,
    "ignore-distribute-cost": ProfitCheckMode.IGNORE_DISTRIBUTE_COST,
}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Simulate, check and broadcast a distribute/arbitrage bundle")
    parser.add_argument("--refund-address", help="Flashbots fee refund recipient")
    parser.add_argument("--random-key", action="store_true", default=None, help="Sign relay requests with a throwaway key; refunds go to the node address")
    parser.add_argument("--node-address", help="Node wallet address that signed the bundle")
    parser.add_argument("--dry-run", action="store_true", default=None, help="Simulate and print the bundle without sending it")
    parser.add_argument("--skip-confirmation", action="store_true", default=None, help="Do not ask before broadcasting")
    parser.add_argument("--check-profit", choices=sorted(_PROFIT_CHOICES), help="Profit check mode (default strict)")
    parser.add_argument("--builder-command", help="Command printing a bundle manifest on stdout")
    parser.add_argument("--bundle-manifest", help="Path to a bundle manifest JSON file")
    parser.add_argument("--rpc", help="Execution-layer JSON-RPC url")
    parser.add_argument("--relay", help="Relay url (default Flashbots)")
    parser.add_argument("--timeout", type=float, help="Seconds to wait for inclusion (default 60)")
    parser.add_argument("--rounds", type=int, help="Consecutive blocks to target (default 3)")
    parser.add_argument("--log-level", help="Logging level")
    return parser


def settings_from_args(parsed: argparse.Namespace, base: Optional[Settings] = None) -> Settings:
    base = base or Settings()
    return base.with_overrides(
        refund_address=parsed.refund_address,
        random_signing_key=parsed.random_key,
        node_address=parsed.node_address,
        dry_run=parsed.dry_run,
        skip_confirmation=parsed.skip_confirmation,
        profit_check_mode=_PROFIT_CHOICES[parsed.check_profit] if parsed.check_profit else None,
        builder_command=parsed.builder_command,
        bundle_manifest_path=parsed.bundle_manifest,
        eth_rpc_url=parsed.rpc,
        relay_url=parsed.relay,
        inclusion_timeout_seconds=parsed.timeout,
        broadcast_rounds=parsed.rounds,
        log_level=parsed.log_level,
    )


def build_components(settings: Settings):
    """Wire collaborators for one run; the caller owns the RPC sessions."""
    signer = FlashbotsSigner(None if settings.random_signing_key else settings.relay_signing_key)
    chain_rpc = JsonRpcClient(
        settings.eth_rpc_url or "",
        endpoint="chain",
        max_retries=settings.rpc_max_retries,
        timeout_seconds=settings.rpc_timeout_seconds,
    )
    relay_rpc = JsonRpcClient(
        settings.relay_url,
        endpoint="relay",
        max_retries=settings.rpc_max_retries,
        timeout_seconds=settings.rpc_timeout_seconds,
        headers_fn=signer.headers,
    )
    chain = RpcChainClient(chain_rpc)
    relay = FlashbotsRelayClient(relay_rpc, chain, signer, poll_interval_seconds=settings.poll_interval_seconds)
    pipeline = ExecutionPipeline(
        settings,
        verifier=SettingsVerifier(),
        builder=builder_for(settings),
        relay=relay,
        chain=chain,
        reporter=ConsoleReporter(),
    )
    return {"signer": signer, "chain_rpc": chain_rpc, "relay_rpc": relay_rpc, "pipeline": pipeline}


async def run(args: Optional[list[str]] = None) -> int:
    parsed = build_parser().parse_args(args)
    settings = settings_from_args(parsed)
    _configure_logging(settings.log_level)

    comps = build_components(settings)
    try:
        report = await comps["pipeline"].run()
    except ConfirmationInputError as exc:
        log.error("%s", exc)
        return 1
    finally:
        await comps["relay_rpc"].close()
        await comps["chain_rpc"].close()
        push_metrics(settings.pushgateway_url, settings.service_name)

    if not report.succeeded:
        log.error("%s: %s", report.outcome.value, report.reason)
        return 1
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
