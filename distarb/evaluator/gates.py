"""Profit and operator-confirmation gates."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Optional, TextIO

from distarb.common.errors import ConfirmationInputError
from distarb.common.models import ProfitCheckMode

log = logging.getLogger(__name__)

PROMPT = "Do you want to proceed? (y/n): "
INVALID_INPUT = "Invalid input. Please type 'y' or 'n'."
_YES = ("y", "yes")
_NO = ("n", "no")


def admit_profit(expected_profit: int, max_bundle_fee: int, max_arbitrage_fee: int, mode: ProfitCheckMode) -> bool:
    """Decide whether expected profit clears the configured fee threshold.

    ``STRICT`` charges the whole bundle against the profit.
    ``IGNORE_DISTRIBUTE_COST`` only charges the arbitrage transaction, for
    operators who would pay for the distribute calls regardless. Plain int
    comparison; profit equal to the fee is admitted.
    """
    mode = ProfitCheckMode(mode)
    if mode is ProfitCheckMode.DISABLED:
        return True
    if mode is ProfitCheckMode.STRICT:
        return expected_profit >= max_bundle_fee
    return expected_profit >= max_arbitrage_fee


def rejection_reason(mode: ProfitCheckMode) -> str:
    if ProfitCheckMode(mode) is ProfitCheckMode.IGNORE_DISTRIBUTE_COST:
        return "expected profit is less than max arbitrage fees"
    return "expected profit is less than max bundle fees"


class ConfirmationGate:
    """Blocking y/n prompt on a text stream.

    Unrecognised answers re-prompt without limit; a closed or broken input
    stream raises ``ConfirmationInputError``.
    """

    def __init__(self, stream: Optional[TextIO] = None, write: Optional[Callable[[str], None]] = None) -> None:
        self._stream = stream
        self._write = write or self._stdout_write

    @staticmethod
    def _stdout_write(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    def confirm(self, bypass: bool) -> bool:
        if bypass:
            return True
        stream = self._stream or sys.stdin
        while True:
            self._write(PROMPT)
            try:
                line = stream.readline()
            except OSError as exc:
                raise ConfirmationInputError(f"failed to read confirmation: {exc}") from exc
            if line == "":
                raise ConfirmationInputError("input stream closed before a decision was made")
            answer = line.strip().lower()
            if answer in _YES:
                return True
            if answer in _NO:
                log.info("operator declined to proceed")
                return False
            self._write(INVALID_INPUT + "\n")


__all__ = ["admit_profit", "rejection_reason", "ConfirmationGate", "PROMPT", "INVALID_INPUT"]
