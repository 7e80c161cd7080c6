"""Block builders known to accept bundles through the Flashbots relay."""

from __future__ import annotations

from typing import Dict, List

MAINNET = 1
HOLESKY = 17000
SEPOLIA = 11155111

KNOWN_BUILDERS: Dict[int, List[str]] = {
    MAINNET: [
        "flashbots",
        "f1b.io",
        "rsync",
        "beaverbuild.org",
        "builder0x69",
        "Titan",
        "EigenPhi",
        "boba-builder",
        "Gambit Labs",
        "payload",
        "Loki",
        "BuildAI",
        "JetBuilder",
        "tbuilder",
        "penguinbuild",
        "bobthebuilder",
        "BTCS",
        "bloXroute",
    ],
    HOLESKY: ["flashbots"],
    SEPOLIA: ["flashbots"],
}


def all_builders(network_id: int) -> List[str]:
    """Builders for a chain id; empty leaves routing to the relay default."""
    return list(KNOWN_BUILDERS.get(int(network_id), []))


__all__ = ["KNOWN_BUILDERS", "all_builders", "MAINNET", "HOLESKY", "SEPOLIA"]
