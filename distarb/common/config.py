"""Configuration loading and bundle manifest parsing."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft7Validator
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from distarb.common.models import BundleManifest, ProfitCheckMode

DEFAULT_RELAY_URL = "https://relay.flashbots.net"
DEFAULT_EXPLORER_URL = "https://etherscan.io"
MANIFEST_SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "bundle_manifest.schema.json"


@lru_cache(maxsize=1)
def _manifest_validator() -> Draft7Validator:
    with MANIFEST_SCHEMA_PATH.open("r", encoding="utf-8") as fh:
        return Draft7Validator(json.load(fh))


def parse_bundle_manifest(payload: Any) -> BundleManifest:
    """Check a decoded manifest against the bundled schema and type it.

    Schema violations are reported together, ordered by location. Raises
    ``ValueError`` (pydantic's ``ValidationError`` included) on rejection.
    """
    errors = sorted(_manifest_validator().iter_errors(payload), key=lambda e: [str(p) for p in e.absolute_path])
    if errors:
        msgs = "; ".join(f"{'/'.join(map(str, e.absolute_path)) or '<root>'}: {e.message}" for e in errors)
        raise ValueError(f"bundle manifest rejected: {msgs}")
    return BundleManifest.model_validate(payload)


def read_bundle_manifest(path: str | Path) -> BundleManifest:
    with Path(path).expanduser().open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    return parse_bundle_manifest(payload)


class Settings(BaseSettings):
    """Environment-driven configuration for one execution run."""

    eth_rpc_url: str | None = Field(None, alias="ETH_RPC_URL")
    relay_url: str = Field(DEFAULT_RELAY_URL, alias="RELAY_URL")
    relay_signing_key: str | None = Field(None, alias="RELAY_SIGNING_KEY")
    random_signing_key: bool = Field(False, alias="RANDOM_SIGNING_KEY")

    node_address: str | None = Field(None, alias="NODE_ADDRESS")
    refund_address: str | None = Field(None, alias="REFUND_ADDRESS")

    # bundle source: a manifest file, or a command printing one on stdout
    bundle_manifest_path: str | None = Field(None, alias="BUNDLE_MANIFEST_PATH")
    builder_command: str | None = Field(None, alias="BUILDER_COMMAND")

    dry_run: bool = Field(False, alias="DRY_RUN")
    skip_confirmation: bool = Field(False, alias="SKIP_CONFIRMATION")
    profit_check_mode: ProfitCheckMode = Field(ProfitCheckMode.STRICT, alias="PROFIT_CHECK_MODE")

    inclusion_timeout_seconds: float = Field(60.0, alias="INCLUSION_TIMEOUT_SECONDS")
    broadcast_rounds: int = Field(3, alias="BROADCAST_ROUNDS")
    poll_interval_seconds: float = Field(1.0, alias="POLL_INTERVAL_SECONDS")

    rpc_max_retries: int = Field(3, alias="RPC_MAX_RETRIES")
    rpc_timeout_seconds: float = Field(10.0, alias="RPC_TIMEOUT_SECONDS")

    explorer_url: str = Field(DEFAULT_EXPLORER_URL, alias="EXPLORER_URL")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    pushgateway_url: str | None = Field(None, alias="PUSHGATEWAY_URL")
    service_name: str = Field("distarb", alias="SERVICE_NAME")

    # Load environment from standard dot-env files if present; ignore unrelated keys
    model_config = SettingsConfigDict(env_file=(".env",), case_sensitive=False, extra="ignore", populate_by_name=True)

    def with_overrides(self, **overrides: Any) -> "Settings":
        """Return a copy with CLI overrides applied; ``None`` values are skipped."""
        update = {k: v for k, v in overrides.items() if v is not None}
        return self.model_copy(update=update)

    def tx_link(self, tx_hash: str) -> str:
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


__all__ = [
    "Settings",
    "parse_bundle_manifest",
    "read_bundle_manifest",
    "DEFAULT_RELAY_URL",
    "DEFAULT_EXPLORER_URL",
]
