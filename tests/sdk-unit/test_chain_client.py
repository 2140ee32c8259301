# ===================================================
# 📁 tests/sdk-unit/test_chain_client.py
# ===================================================
import json
import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from trh_shutdown.sdk import (
    BedrockDeployConfig,
    ChainClientError,
    CommandResult,
    DeploymentConfig,
    DeploymentContracts,
    ForgeChainClient,
    extract_storage_addresses,
)

BRIDGE = "0x1111111111111111111111111111111111111111"
PORTAL = "0x5555555555555555555555555555555555555555"
OWNER = "0x9999999999999999999999999999999999999999"
NATIVE_TOKEN = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"


@pytest.fixture
def config():
    return DeploymentConfig(
        admin_private_key="abc123",
        l1_rpc_url="http://l1.example:8545",
        l2_rpc_url="http://l2.example:9545",
        l1_chain_id=11155111,
        l2_chain_id=111551119090,
        network="Testnet",
    )


@pytest.fixture
def runner():
    return MagicMock(return_value=CommandResult(exit_code=0, output="", duration=0.1))


@pytest.fixture
def client(tmp_path, config, runner):
    return ForgeChainClient(tmp_path / "contracts-bedrock", config, runner=runner)


def test_dry_run_does_not_broadcast(client, runner, tmp_path):
    client.send(BRIDGE, tmp_path / "assets.json", "0x0000000000000000000000000000000000000000", dry_run=True)

    command = runner.call_args.args[0]
    env = runner.call_args.kwargs["env"]
    assert "--broadcast" not in command
    assert command[:3] == ["forge", "script", "scripts/shutdown/ExecuteForceWithdraw.s.sol:ExecuteForceWithdraw"]
    assert env["DRY_RUN"] == "true"
    assert env["BRIDGE_PROXY"] == BRIDGE


def test_real_send_broadcasts_on_l1(client, runner, tmp_path):
    client.send(BRIDGE, tmp_path / "assets.json", "0x0000000000000000000000000000000000000000", dry_run=False)

    command = runner.call_args.args[0]
    assert "--broadcast" in command
    assert command[command.index("--rpc-url") + 1] == "http://l1.example:8545"
    assert runner.call_args.kwargs["env"]["DRY_RUN"] == "false"


def test_generate_reads_l2_without_broadcast(client, runner, tmp_path):
    output = tmp_path / "data" / "generate-assets3.json"

    client.generate("0", "latest", output, skip_verify=True)

    command = runner.call_args.args[0]
    env = runner.call_args.kwargs["env"]
    assert "--broadcast" not in command
    assert command[command.index("--rpc-url") + 1] == "http://l2.example:9545"
    assert env["L2_START_BLOCK"] == "0"
    assert env["L2_END_BLOCK"] == "latest"
    assert env["OUTPUT_PATH"] == str(output)
    assert env["SKIP_VERIFY"] == "true"
    assert env["L2_CHAIN_ID"] == "111551119090"


def test_scripts_run_in_bedrock_with_prefixed_key(client, runner, tmp_path):
    client.activate(BRIDGE, True)

    kwargs = runner.call_args.kwargs
    assert kwargs["cwd"] == tmp_path / "contracts-bedrock"
    assert kwargs["env"]["PRIVATE_KEY"] == "0xabc123"
    assert kwargs["env"]["ACTIVE"] == "true"
    assert kwargs["redact"] == ["http://l1.example:8545"]


def test_secrets_never_reach_the_log(client, caplog):
    with caplog.at_level(logging.DEBUG, logger="trh_shutdown.sdk.chain_client"):
        client.register(BRIDGE, Path("/data/genstorage-addresses.json"))

    assert "abc123" not in caplog.text
    assert "l1.example" not in caplog.text
    assert "BRIDGE_PROXY=" in caplog.text


def test_deploy_storage_records_reported_addresses(config, tmp_path):
    output = "\n".join([
        "Script ran successfully.",
        "Deployed GenFWStorage at: 0x2222222222222222222222222222222222222222",
        "Deployed GenFWStorage at: 0x3333333333333333333333333333333333333333",
    ])
    runner = MagicMock(return_value=CommandResult(exit_code=0, output=output, duration=1.0))
    client = ForgeChainClient(tmp_path, config, runner=runner)
    output_path = tmp_path / "data" / "genstorage-addresses.json"

    client.deploy_storage(tmp_path / "assets.json", output_path)

    assert json.loads(output_path.read_text()) == {
        "storages": [
            "0x2222222222222222222222222222222222222222",
            "0x3333333333333333333333333333333333333333",
        ]
    }
    assert "--broadcast" in runner.call_args.args[0]


def test_deploy_storage_without_addresses_fails(client, tmp_path):
    output_path = tmp_path / "data" / "genstorage-addresses.json"

    with pytest.raises(ChainClientError):
        client.deploy_storage(tmp_path / "assets.json", output_path)

    assert not output_path.exists()


def test_runner_errors_propagate(config, tmp_path):
    runner = MagicMock(side_effect=ChainClientError("Command failed: forge", exit_code=1))
    client = ForgeChainClient(tmp_path, config, runner=runner)

    with pytest.raises(ChainClientError):
        client.activate(BRIDGE, True)


def test_extract_storage_addresses_ignores_noise():
    assert extract_storage_addresses("nothing here\nDeployed GenFWStorage at: 0xabc") == []


@pytest.fixture
def contracts():
    return DeploymentContracts(
        L1StandardBridgeProxy=BRIDGE,
        OptimismPortalProxy=PORTAL,
        ProxyAdmin="0x3333333333333333333333333333333333333333",
        SuperchainConfigProxy="0x4444444444444444444444444444444444444444",
        SystemOwnerSafe="0x6666666666666666666666666666666666666666",
    )


@pytest.fixture
def bedrock_config():
    return BedrockDeployConfig(
        finalSystemOwner=OWNER,
        superchainConfigGuardian="0x7777777777777777777777777777777777777777",
        nativeTokenAddress=NATIVE_TOKEN,
    )


@pytest.fixture
def wired_client(tmp_path, config, runner, contracts, bedrock_config):
    return ForgeChainClient(
        tmp_path / "contracts-bedrock",
        config,
        runner=runner,
        contracts=contracts,
        bedrock_config=bedrock_config,
        impersonate_sender=OWNER,
    )


def test_generate_receives_deployment_addresses(wired_client, runner, tmp_path):
    wired_client.generate("0", "latest", tmp_path / "assets.json", skip_verify=False)

    env = runner.call_args.kwargs["env"]
    assert env["BRIDGE_PROXY"] == BRIDGE
    assert env["OPTIMISM_PORTAL_PROXY"] == PORTAL
    assert env["CONTRACTS_L1BRIDGE_ADDRESS"] == BRIDGE
    assert env["CONTRACTS_L2BRIDGE_ADDRESS"] == "0x4200000000000000000000000000000000000010"
    assert env["L2_WETH_ADDRESS"] == "0x4200000000000000000000000000000000000006"
    assert env["L1_NATIVE_TOKEN"] == NATIVE_TOKEN
    assert env["SKIP_FETCH"] == "true"
    # Reading L2 never impersonates anyone
    assert "--sender" not in runner.call_args.args[0]


def test_unknown_addresses_are_left_out_of_the_env(client, runner, tmp_path):
    client.generate("0", "latest", tmp_path / "assets.json", skip_verify=False)

    env = runner.call_args.kwargs["env"]
    assert "OPTIMISM_PORTAL_PROXY" not in env
    assert "L1_NATIVE_TOKEN" not in env
    assert env["CONTRACTS_L2BRIDGE_ADDRESS"] == "0x4200000000000000000000000000000000000010"


def test_dry_run_impersonates_the_owner(wired_client, runner):
    wired_client.activate(BRIDGE, True, dry_run=True)

    command = runner.call_args.args[0]
    assert "--broadcast" not in command
    assert command[command.index("--sender") + 1] == OWNER
    assert runner.call_args.kwargs["env"]["DRY_RUN"] == "true"


def test_broadcast_never_impersonates(wired_client, runner):
    wired_client.activate(BRIDGE, True, dry_run=False)

    command = runner.call_args.args[0]
    assert "--broadcast" in command
    assert "--sender" not in command


@pytest.mark.parametrize("call", [
    lambda c, p: c.deploy_storage(p / "assets.json", p / "out.json", dry_run=True),
    lambda c, p: c.register(BRIDGE, p / "storages.json", dry_run=True),
    lambda c, p: c.block(dry_run=True),
])
def test_dry_run_never_broadcasts(wired_client, runner, tmp_path, call):
    runner.return_value = CommandResult(0, "Deployed GenFWStorage at: 0x2222222222222222222222222222222222222222", 0.1)

    call(wired_client, tmp_path)

    command = runner.call_args.args[0]
    assert "--broadcast" not in command
    assert "--sender" in command


def test_block_passes_portal_and_guardian(wired_client, runner):
    wired_client.block(dry_run=False)

    command = runner.call_args.args[0]
    env = runner.call_args.kwargs["env"]
    assert command[2] == "scripts/shutdown/BlockDepositsWithdrawals.s.sol:BlockDepositsWithdrawals"
    assert "--broadcast" in command
    assert env["PROXY_ADMIN"] == "0x3333333333333333333333333333333333333333"
    assert env["OPTIMISM_PORTAL_PROXY"] == PORTAL
    assert env["SUPERCHAIN_CONFIG_PROXY"] == "0x4444444444444444444444444444444444444444"
    assert env["SYSTEM_OWNER_SAFE"] == "0x6666666666666666666666666666666666666666"
    assert env["GUARDIAN_SAFE"] == "0x7777777777777777777777777777777777777777"


def test_block_without_contracts_fails(client, runner):
    with pytest.raises(ChainClientError):
        client.block(dry_run=True)

    runner.assert_not_called()


def test_fetch_runs_the_three_collectors(wired_client, runner, tmp_path):
    data_dir = tmp_path / "data"

    wired_client.fetch(BRIDGE, "https://explorer.example/", data_dir, dry_run=False)

    commands = [call.args[0] for call in runner.call_args_list]
    assert [Path(cmd[1]).name for cmd in commands] == [
        "fetch_explorer_assets.py",
        "compute_l2_burns.py",
        "compute_finalized_native_withdrawals.py",
    ]
    assert all(cmd[0] == "python3" for cmd in commands)
    assert commands[0][2:] == ["111551119090"]
    assert commands[1][2:] == ["http://l2.example:9545", "111551119090"]
    assert commands[2][2:] == ["http://l1.example:8545", BRIDGE]
    env = runner.call_args.kwargs["env"]
    assert env["EXPLORER_URL"] == "https://explorer.example/api/v2"
    assert env["DATA_DIR"] == str(data_dir)
    assert env["BRIDGE_PROXY"] == BRIDGE
    assert data_dir.is_dir()


def test_fetch_dry_run_only_logs(wired_client, runner, tmp_path, caplog):
    with caplog.at_level(logging.INFO, logger="trh_shutdown.sdk.chain_client"):
        wired_client.fetch(BRIDGE, "https://explorer.example/api/v2", tmp_path / "data", dry_run=True)

    runner.assert_not_called()
    assert "[DryRun]" in caplog.text
    assert "l1.example" not in caplog.text
