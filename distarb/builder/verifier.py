"""Pre-flight checks on the run configuration."""

from __future__ import annotations

import logging
from pathlib import Path

from distarb.builder.manifest_builder import split_command
from distarb.common.config import Settings
from distarb.common.errors import InputValidationError
from distarb.common.models import is_hex_address
from distarb.execution.interface import InputVerifier

log = logging.getLogger(__name__)


def _is_private_key(value: str) -> bool:
    body = value[2:] if value.startswith("0x") else value
    if len(body) != 64:
        return False
    try:
        int(body, 16)
    except ValueError:
        return False
    return True


class SettingsVerifier(InputVerifier):
    """Rejects configurations that cannot run, before anything is sent."""

    def verify(self, settings: Settings) -> None:
        problems = []
        if not settings.eth_rpc_url:
            problems.append("an execution-layer RPC url is required")
        if not settings.relay_url:
            problems.append("a relay url is required")
        if not settings.bundle_manifest_path and not settings.builder_command:
            problems.append("either a bundle manifest or a builder command is required")
        if settings.bundle_manifest_path and settings.builder_command:
            problems.append("bundle manifest and builder command are mutually exclusive")
        if settings.builder_command and not settings.bundle_manifest_path:
            try:
                split_command(settings.builder_command)
            except ValueError as exc:
                problems.append(f"builder command cannot be parsed: {exc}")
        if settings.bundle_manifest_path and not Path(settings.bundle_manifest_path).expanduser().is_file():
            problems.append(f"bundle manifest {settings.bundle_manifest_path} does not exist")
        if settings.refund_address and not is_hex_address(settings.refund_address):
            problems.append(f"refund address {settings.refund_address!r} is not a valid address")
        if settings.node_address and not is_hex_address(settings.node_address):
            problems.append(f"node address {settings.node_address!r} is not a valid address")
        if settings.random_signing_key and settings.relay_signing_key:
            problems.append("random signing key mode cannot be combined with a relay signing key")
        if settings.random_signing_key and not settings.refund_address and not settings.node_address:
            problems.append("random signing key mode needs a node address to receive fee refunds")
        if settings.relay_signing_key and not _is_private_key(settings.relay_signing_key):
            problems.append("relay signing key must be 32 bytes of hex")
        if not settings.random_signing_key and not settings.relay_signing_key:
            problems.append("a relay signing key is required unless random signing key mode is enabled")
        if settings.broadcast_rounds < 1:
            problems.append("broadcast rounds must be at least 1")
        if settings.inclusion_timeout_seconds <= 0:
            problems.append("inclusion timeout must be positive")
        if problems:
            raise InputValidationError("; ".join(problems))
        log.debug("settings verified")


__all__ = ["SettingsVerifier"]
