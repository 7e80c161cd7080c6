"""Base-unit to display-unit conversion.

Only used for human display. Gating decisions compare plain ints and never
pass through this module.
"""

from __future__ import annotations

from decimal import Decimal

ETHER_DECIMALS = 18
GWEI_DECIMALS = 9


def to_display_units(amount: int, decimals: int = ETHER_DECIMALS) -> float:
    """Scale an integer base-unit amount down by ``10**decimals``."""
    return float(Decimal(int(amount)).scaleb(-decimals))


def wei_to_ether(amount: int) -> float:
    return to_display_units(amount, ETHER_DECIMALS)


def wei_to_gwei(amount: int) -> float:
    return to_display_units(amount, GWEI_DECIMALS)


def format_ether(amount: int, places: int = 6) -> str:
    return f"{wei_to_ether(amount):.{places}f}"


__all__ = ["ETHER_DECIMALS", "GWEI_DECIMALS", "to_display_units", "wei_to_ether", "wei_to_gwei", "format_ether"]
