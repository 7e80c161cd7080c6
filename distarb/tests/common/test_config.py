import json

import pytest

from distarb.common.config import Settings, parse_bundle_manifest, read_bundle_manifest
from distarb.common.models import ProfitCheckMode
from distarb.tests.fakes import NODE


def _manifest():
    return {
        "expected_profit": "1000000000000000000",
        "transactions": [
            {
                "sender": NODE,
                "to": "0x" + "b" * 40,
                "value": 0,
                "gas_limit": 100000,
                "max_fee_per_gas": "0x174876e800",
                "max_priority_fee_per_gas": "2000000000",
                "nonce": 1,
                "data": "0x",
                "raw": "0x02ab",
            }
        ],
    }


def test_defaults(monkeypatch):
    monkeypatch.delenv("PROFIT_CHECK_MODE", raising=False)
    monkeypatch.delenv("INCLUSION_TIMEOUT_SECONDS", raising=False)
    settings = Settings()
    assert settings.inclusion_timeout_seconds == 60.0
    assert settings.broadcast_rounds == 3
    assert settings.profit_check_mode is ProfitCheckMode.STRICT


def test_env_aliases(monkeypatch):
    monkeypatch.setenv("PROFIT_CHECK_MODE", "ignore_distribute_cost")
    monkeypatch.setenv("DRY_RUN", "true")
    settings = Settings()
    assert settings.profit_check_mode is ProfitCheckMode.IGNORE_DISTRIBUTE_COST
    assert settings.dry_run is True


def test_with_overrides_skips_none():
    settings = Settings(relay_url="http://relay")
    updated = settings.with_overrides(relay_url=None, dry_run=True)
    assert updated.relay_url == "http://relay"
    assert updated.dry_run is True
    assert settings.dry_run is False


def test_tx_link():
    settings = Settings(explorer_url="https://etherscan.io/")
    assert settings.tx_link("0xabc") == "https://etherscan.io/tx/0xabc"


def test_read_bundle_manifest_types_the_payload(tmp_path):
    path = tmp_path / "bundle.json"
    path.write_text(json.dumps(_manifest()))
    manifest = read_bundle_manifest(path)
    assert manifest.expected_profit == 10**18
    assert manifest.transactions[0].nonce == 1
    assert manifest.transactions[0].max_fee_per_gas == 100 * 10**9
    assert len(manifest.to_bundle()) == 1


def test_negative_expected_profit_is_allowed():
    assert parse_bundle_manifest(dict(_manifest(), expected_profit="-42")).expected_profit == -42


def test_manifest_schema_rejects_empty_and_unknown_fields():
    bad = _manifest()
    bad["transactions"] = []
    with pytest.raises(ValueError, match="transactions"):
        parse_bundle_manifest(bad)
    bad = _manifest()
    bad["transactions"][0]["gasPrice"] = 1
    with pytest.raises(ValueError, match="bundle manifest rejected"):
        parse_bundle_manifest(bad)


def test_schema_errors_are_reported_together():
    bad = _manifest()
    del bad["expected_profit"]
    bad["transactions"][0]["sender"] = "0x1234"
    with pytest.raises(ValueError) as info:
        parse_bundle_manifest(bad)
    assert "<root>" in str(info.value)
    assert "transactions/0/sender" in str(info.value)
