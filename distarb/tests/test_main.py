import pytest

from distarb import main
from distarb.builder.manifest_builder import CommandBundleBuilder, ManifestBundleBuilder
from distarb.common.errors import ConfirmationInputError
from distarb.common.models import ExecutionOutcome, PipelineReport, ProfitCheckMode
from distarb.relay.signing import SIGNATURE_HEADER
from distarb.tests.fakes import make_settings


def test_parser_leaves_unset_flags_as_none():
    parsed = main.build_parser().parse_args([])
    assert parsed.dry_run is None
    assert parsed.skip_confirmation is None
    assert parsed.check_profit is None


def test_flags_override_settings():
    parsed = main.build_parser().parse_args(
        ["--dry-run", "--check-profit", "ignore-distribute-cost", "--timeout", "12", "--rounds", "5", "--rpc", "http://other"]
    )
    settings = main.settings_from_args(parsed, base=make_settings())
    assert settings.dry_run is True
    assert settings.profit_check_mode is ProfitCheckMode.IGNORE_DISTRIBUTE_COST
    assert settings.inclusion_timeout_seconds == 12
    assert settings.broadcast_rounds == 5
    assert settings.eth_rpc_url == "http://other"
    # untouched values keep their configured source
    assert settings.skip_confirmation is True


def test_unknown_profit_mode_is_rejected():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args(["--check-profit", "loose"])


def test_build_components_wires_signed_relay():
    comps = main.build_components(make_settings())
    assert isinstance(comps["pipeline"].builder, ManifestBundleBuilder)
    assert comps["relay_rpc"].endpoint == "relay"
    headers = comps["relay_rpc"]._headers_fn('{"x":1}')
    assert headers[SIGNATURE_HEADER].startswith(comps["signer"].address)


def test_build_components_picks_command_builder():
    comps = main.build_components(make_settings(bundle_manifest_path=None, builder_command="builder --json"))
    assert isinstance(comps["pipeline"].builder, CommandBundleBuilder)


class _Pipeline:
    def __init__(self, result):
        self.result = result
    async def run(self):
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class _Rpc:
    def __init__(self):
        self.closed = False
    async def close(self):
        self.closed = True


def _patch_components(monkeypatch, result):
    comps = {"pipeline": _Pipeline(result), "relay_rpc": _Rpc(), "chain_rpc": _Rpc()}
    monkeypatch.setattr(main, "build_components", lambda settings: comps)
    monkeypatch.setattr(main, "push_metrics", lambda url, job: False)
    monkeypatch.setattr(main, "Settings", lambda: make_settings())
    return comps


@pytest.mark.asyncio
async def test_run_exit_codes(monkeypatch):
    comps = _patch_components(monkeypatch, PipelineReport(outcome=ExecutionOutcome.INCLUDED, stage="inclusion"))
    assert await main.run([]) == 0
    assert comps["relay_rpc"].closed and comps["chain_rpc"].closed

    _patch_components(monkeypatch, PipelineReport(outcome=ExecutionOutcome.PROFIT_TOO_LOW, stage="profit_check"))
    assert await main.run([]) == 1


@pytest.mark.asyncio
async def test_broken_prompt_exits_non_zero(monkeypatch):
    comps = _patch_components(monkeypatch, ConfirmationInputError("stdin closed"))
    assert await main.run([]) == 1
    assert comps["relay_rpc"].closed
