"""Structured status events and their presenters.

Pipeline code emits ``(event, fields)`` pairs; a presenter decides how they
look. ``ConsoleReporter`` renders colored operator output with rich,
``LogReporter`` turns events into log lines and ``RecordingReporter`` keeps
them in memory.
"""

from __future__ import annotations

import abc
import logging
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from distarb.common import units

log = logging.getLogger(__name__)


class Reporter(abc.ABC):
    @abc.abstractmethod
    def emit(self, event: str, **fields: Any) -> None:
        """Present one pipeline event."""
        raise NotImplementedError


class RecordingReporter(Reporter):
    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def emit(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def names(self) -> List[str]:
        return [name for name, _ in self.events]

    def of(self, event: str) -> List[Dict[str, Any]]:
        return [fields for name, fields in self.events if name == event]


class LogReporter(Reporter):
    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO) -> None:
        self._log = logger or log
        self._level = level

    def emit(self, event: str, **fields: Any) -> None:
        level = logging.WARNING if event in ("tx_failed", "aborted") else self._level
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        self._log.log(level, "%s %s", event.upper(), rendered)


class ConsoleReporter(Reporter):
    """Human-readable, colored status lines for the operator."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False)

    def emit(self, event: str, **fields: Any) -> None:
        handler = getattr(self, f"_on_{event}", None)
        if handler is None:
            self.console.print(f"{event}: " + ", ".join(f"{k}={v}" for k, v in fields.items()))
            return
        handler(**fields)

    def _on_refund_recipient_updated(self, address: str, source: str) -> None:
        self.console.print(f"Updated flashbots fee refund recipient to {source} ({address})")

    def _on_tx_failed(self, index: int, error: str, revert: str) -> None:
        self.console.print(f"[red]tx {index} failed[/]: {error} (revert 0x{revert})")

    def _on_simulated(self, success: bool, evaluation) -> None:
        status = "[green]success[/]" if success else "[red]failed[/]"
        self.console.print(f"Simulated bundle ({status}):")
        self.console.print(
            "    Expected profit after fees: %.6f, with a tx fee of %.6f"
            % (units.wei_to_ether(evaluation.profit_after_bundle_fee), evaluation.max_bundle_fee_eth)
        )
        self.console.print(
            "    Expected profit after arbitrage fees: %.6f, with a tx fee of %.6f "
            "(interesting if you want to distribute regardless)\n"
            % (units.wei_to_ether(evaluation.profit_after_arbitrage_fee), evaluation.max_arbitrage_fee_eth)
        )

    def _on_dry_run(self, transactions: list) -> None:
        self.console.print("Dry run. Would have sent the following bundle:")
        for i, tx in enumerate(transactions, start=1):
            table = Table(title=f"Transaction {i}", show_header=False, title_justify="left")
            table.add_column("field")
            table.add_column("value", overflow="fold")
            table.add_row("From", tx.sender)
            table.add_row("To", str(tx.to))
            table.add_row("Value", str(tx.value))
            table.add_row("Gas Limit", str(tx.gas_limit))
            table.add_row("Base Fee", f"{tx.max_fee_per_gas} ({units.wei_to_gwei(tx.max_fee_per_gas):.2f} Gwei)")
            table.add_row(
                "Priority Fee", f"{tx.max_priority_fee_per_gas} ({units.wei_to_gwei(tx.max_priority_fee_per_gas):.4f} Gwei)"
            )
            table.add_row("Nonce", str(tx.nonce))
            table.add_row("Data", tx.data[2:])
            self.console.print(table)

    def _on_bundle_sent(self, bundle_hash: str, target_block: int, timeout_seconds: float) -> None:
        self.console.print(
            f"\nSent bundle with hash: {bundle_hash} (target block {target_block}). "
            f"Waiting for up to {timeout_seconds:.0f} seconds to see if the transaction is included...\n"
        )

    def _on_included(self, link: str, tx_count: int) -> None:
        noun = "minipool" if tx_count <= 2 else "minipools"
        self.console.print(f"[green]Distributed {noun}![/] Arbitrage tx: {link}\n")

    def _on_aborted(self, outcome: str, stage: str, reason: str) -> None:
        self.console.print(f"[yellow]Stopped at {stage}[/] ({outcome}): {reason}")


__all__ = ["Reporter", "RecordingReporter", "LogReporter", "ConsoleReporter"]
