# ===================================================
# 📁 tests/cli-unit/test_shutdown_cli.py
# ===================================================
import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from trh_shutdown.cli.main import app
from trh_shutdown.sdk import RpcClient

from conftest import BRIDGE_ADDRESS, L1_CHAIN_ID, L2_CHAIN_ID

runner = CliRunner()


@pytest.fixture
def patched_client(chain_client):
    with patch("trh_shutdown.cli.commands.shutdown_cmds.get_chain_client", return_value=chain_client):
        yield chain_client


def invoke(*args, **kwargs):
    return runner.invoke(app, ["shutdown", *args], **kwargs)


def test_status_without_deployment_exits_zero(tmp_path):
    result = invoke("status", "--deployment-root", str(tmp_path))

    assert result.exit_code == 0
    assert "⚠️  No active deployment found:" in result.output


def test_gen_without_deployment_exits_one(tmp_path, patched_client):
    result = invoke("gen", "--deployment-root", str(tmp_path))

    assert result.exit_code == 1
    assert patched_client.calls == []


def test_gen_happy_path(deployment_root, patched_client, isolated_env):
    result = invoke("gen", "--deployment-root", str(deployment_root), "--l2-end-block", "500")

    assert result.exit_code == 0, result.output
    assert "✅ Step [GEN] completed successfully" in result.output
    name, args = patched_client.calls[0]
    assert name == "generate"
    assert args[:2] == ("0", "500")
    state = json.loads((isolated_env / "thanos_shutdown_state.json").read_text())
    assert state["lastCommand"] == "gen"


def test_failed_phase_exits_one(deployment_root, patched_client):
    result = invoke("deploy-storage", "--deployment-root", str(deployment_root))

    assert result.exit_code == 1
    assert "❌ Step [DEPLOY-STORAGE] failed" in result.output
    assert patched_client.calls == []


def test_activate_asks_for_confirmation(deployment_root, patched_client):
    result = invoke("activate", "--deployment-root", str(deployment_root), input="n\n")

    assert result.exit_code == 1
    assert patched_client.calls == []


def test_activate_with_yes_skips_prompt(deployment_root, patched_client):
    result = invoke("activate", "--deployment-root", str(deployment_root), "--yes")

    assert result.exit_code == 0, result.output
    assert patched_client.call_names == ["activate"]


def test_run_selected_steps_with_dry_run(deployment_root, patched_client):
    result = invoke("run", "--deployment-root", str(deployment_root), "--send", "--gen", "--dry-run", "--skip-preflight")

    assert result.exit_code == 0, result.output
    assert patched_client.call_names == ["generate", "send"]
    assert patched_client.calls[1][1][3] is True


def test_run_dry_run_broadcasts_nothing(deployment_root, patched_client):
    result = invoke("run", "--deployment-root", str(deployment_root), "--dry-run", "--skip-preflight")

    assert result.exit_code == 0, result.output
    assert patched_client.call_names == ["generate", "deploy_storage", "register", "activate", "send"]
    for name, args in patched_client.calls[1:]:
        assert args[-1] is True, name
    assert "irreversible" not in result.output


def test_run_without_dry_run_confirms_irreversible_steps(deployment_root, patched_client):
    result = invoke("run", "--deployment-root", str(deployment_root), "--block", "--skip-preflight", input="n\n")

    assert result.exit_code == 1
    assert "block" in result.output
    assert patched_client.calls == []


def test_run_fetch_requires_explorer_url(deployment_root, patched_client):
    result = invoke("run", "--deployment-root", str(deployment_root), "--fetch", "--skip-preflight", "--yes")

    assert result.exit_code == 2
    assert patched_client.calls == []


def test_run_optional_steps_in_order(deployment_root, patched_client):
    result = invoke(
        "run", "--deployment-root", str(deployment_root),
        "--gen", "--fetch", "--block", "--explorer-url", "https://explorer.example",
        "--skip-preflight", "--yes",
    )

    assert result.exit_code == 0, result.output
    assert patched_client.call_names == ["block", "fetch", "generate"]
    assert "✅ Step [BLOCK] completed successfully" in result.output


def test_activate_dry_run_needs_no_confirmation(deployment_root, patched_client):
    result = invoke("activate", "--deployment-root", str(deployment_root), "--dry-run")

    assert result.exit_code == 0, result.output
    assert patched_client.calls == [("activate", (BRIDGE_ADDRESS, True, True))]


def test_run_preflight_mismatch_stops_before_any_phase(deployment_root, patched_client):
    rpc = MagicMock(spec=RpcClient)
    rpc.chain_id.side_effect = [L1_CHAIN_ID, 1]

    with patch("trh_shutdown.cli.commands.shutdown_cmds.get_rpc_client", return_value=rpc):
        result = invoke("run", "--deployment-root", str(deployment_root), "--gen")

    assert result.exit_code == 1
    assert patched_client.calls == []
    rpc.close.assert_called_once()


def test_run_with_preflight_passing(deployment_root, patched_client):
    rpc = MagicMock(spec=RpcClient)
    rpc.chain_id.side_effect = [L1_CHAIN_ID, L2_CHAIN_ID]

    with patch("trh_shutdown.cli.commands.shutdown_cmds.get_rpc_client", return_value=rpc):
        result = invoke("run", "--deployment-root", str(deployment_root), "--gen")

    assert result.exit_code == 0, result.output
    assert patched_client.call_names == ["generate"]


def test_run_use_script_delegates(deployment_root, patched_client, tmp_path):
    script = tmp_path / "shutdown.sh"
    script.write_text("#!/bin/bash\n")

    with patch("trh_shutdown.cli.commands.shutdown_cmds.run_external_script") as run_script:
        result = invoke("run", "--deployment-root", str(deployment_root), "--script-path", str(script), "--yes")

    assert result.exit_code == 0, result.output
    run_script.assert_called_once()
    assert run_script.call_args.kwargs["script_path"] == script
    assert patched_client.calls == []


def test_status_after_gen_shows_timestamp(deployment_root, patched_client):
    invoke("gen", "--deployment-root", str(deployment_root))

    result = invoke("status", "--deployment-root", str(deployment_root))

    assert result.exit_code == 0, result.output
    assert "Last Gen: (never)" not in result.output
    assert "Last Dry-Run: (never)" in result.output
    assert "✅ Assets snapshot" in result.output


def test_status_json_output(deployment_root):
    result = invoke("status", "--deployment-root", str(deployment_root), "--json")

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["l1_chain_id"] == L1_CHAIN_ID
    assert report["last_gen_at"] is None
