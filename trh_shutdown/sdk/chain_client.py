# =====================
# 📁 trh_shutdown/sdk/chain_client.py
# =====================
import logging
import os
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol

from ..shared.utils import ensure_hex_prefix, redact_env, write_json_atomic
from .exceptions import ChainClientError
from .models import (
    L2_STANDARD_BRIDGE_ADDRESS,
    L2_WETH_ADDRESS,
    BedrockDeployConfig,
    DeploymentConfig,
    DeploymentContracts,
)
from .script_runner import CommandResult, run_command

logger = logging.getLogger(__name__)

SHUTDOWN_SCRIPTS_DIR = "scripts/shutdown"
BLOCK_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/BlockDepositsWithdrawals.s.sol"
GENERATE_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/GenerateAssetSnapshot.s.sol"
DEPLOY_STORAGE_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/DeployGenFWStorage.s.sol"
REGISTER_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/RegisterForceWithdraw.s.sol"
ACTIVATE_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/ActivateForceWithdraw.s.sol"
SEND_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/ExecuteForceWithdraw.s.sol"

FETCH_EXPLORER_ASSETS_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/fetch_explorer_assets.py"
COMPUTE_L2_BURNS_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/compute_l2_burns.py"
COMPUTE_FINALIZED_WITHDRAWALS_SCRIPT = f"{SHUTDOWN_SCRIPTS_DIR}/compute_finalized_native_withdrawals.py"
EXPLORER_API_SUFFIX = "/api/v2"

STORAGE_ADDRESS_PATTERN = re.compile(r"Deployed GenFWStorage at:\s*(0x[0-9a-fA-F]{40})")

Runner = Callable[..., CommandResult]


class ChainClient(Protocol):
    """
    The on-chain side of the shutdown flow. Every call is synchronous and all-or-nothing:
    it returns None on success and raises ChainClientError otherwise.
    With dry_run=True nothing is broadcast; the scripts only simulate against the RPC.
    """

    def block(self, dry_run: bool) -> None: ...

    def fetch(self, bridge_address: str, explorer_url: str, data_dir: Path, dry_run: bool) -> None: ...

    def generate(self, l2_start_block: str, l2_end_block: str, output_path: Path, skip_verify: bool) -> None: ...

    def deploy_storage(self, input_path: Path, output_path: Path, dry_run: bool) -> None: ...

    def register(self, bridge_address: str, input_path: Path, dry_run: bool) -> None: ...

    def activate(self, bridge_address: str, enable: bool, dry_run: bool) -> None: ...

    def send(self, bridge_address: str, input_path: Path, position_address: str, dry_run: bool) -> None: ...


def extract_storage_addresses(output: str) -> List[str]:
    """Pulls every `Deployed GenFWStorage at: 0x...` address out of forge output, in order."""
    return STORAGE_ADDRESS_PATTERN.findall(output)


def explorer_api_url(explorer_url: str) -> str:
    url = explorer_url.rstrip("/")
    return url if url.endswith(EXPLORER_API_SUFFIX) else url + EXPLORER_API_SUFFIX


class ForgeChainClient:
    """
    Runs the contracts-bedrock shutdown scripts: `forge script` for the on-chain steps
    and the python collectors for the fetch step.

    `contracts` and `bedrock_config` supply the deployment addresses the scripts read
    from their environment. `impersonate_sender` is passed as `--sender` whenever a
    script runs without broadcasting, so owner-only calls simulate as the owner.
    """

    def __init__(
        self,
        bedrock_root: Path,
        config: DeploymentConfig,
        log: Optional[logging.Logger] = None,
        forge_binary: str = "forge",
        runner: Runner = run_command,
        contracts: Optional[DeploymentContracts] = None,
        bedrock_config: Optional[BedrockDeployConfig] = None,
        impersonate_sender: Optional[str] = None,
        python_binary: str = "python3",
    ):
        self.bedrock_root = Path(bedrock_root)
        self.config = config
        self.logger = log or logger
        self.forge_binary = forge_binary
        self.python_binary = python_binary
        self.contracts = contracts
        self.bedrock_config = bedrock_config
        self.impersonate_sender = impersonate_sender or None
        self._runner = runner

    def _base_env(self) -> Dict[str, str]:
        return {
            "PRIVATE_KEY": ensure_hex_prefix(self.config.admin_private_key),
            "L1_RPC_URL": self.config.l1_rpc_url,
            "L2_RPC_URL": self.config.l2_rpc_url,
        }

    def _contract_env(self) -> Dict[str, str]:
        """Deployment addresses shared by the shutdown scripts. Unknown ones are left out."""
        contracts = self.contracts or DeploymentContracts()
        env = {
            "BRIDGE_PROXY": contracts.l1_standard_bridge_proxy,
            "PROXY_ADMIN": contracts.proxy_admin,
            "OPTIMISM_PORTAL_PROXY": contracts.optimism_portal_proxy,
            "SUPERCHAIN_CONFIG_PROXY": contracts.superchain_config_proxy,
            "SYSTEM_OWNER_SAFE": contracts.system_owner_safe,
            "CONTRACTS_L1BRIDGE_ADDRESS": contracts.l1_standard_bridge_proxy,
            "CONTRACTS_L2BRIDGE_ADDRESS": L2_STANDARD_BRIDGE_ADDRESS,
            "L2_WETH_ADDRESS": L2_WETH_ADDRESS,
        }
        if self.bedrock_config is not None:
            env["L1_NATIVE_TOKEN"] = self.bedrock_config.native_token_address
            env["GUARDIAN_SAFE"] = self.bedrock_config.superchain_config_guardian
        return {key: value for key, value in env.items() if value}

    def _run_script(
        self,
        script_path: str,
        extra_env: Dict[str, str],
        use_l2: bool = False,
        broadcast: bool = True,
        impersonate: bool = True,
    ) -> str:
        contract_name = Path(script_path).name[: -len(".s.sol")]
        rpc_url = self.config.l2_rpc_url if use_l2 else self.config.l1_rpc_url

        command = [
            self.forge_binary, "script", f"{script_path}:{contract_name}",
            "--rpc-url", rpc_url,
            "--sig", "run()",
        ]
        if broadcast:
            command.append("--broadcast")
        elif impersonate and self.impersonate_sender:
            command.extend(["--sender", self.impersonate_sender])

        script_env = {**self._base_env(), **self._contract_env(), **extra_env}
        self.logger.info(f"Bedrock Path: {self.bedrock_root}")
        self.logger.info(
            f"Running Forge Script: {script_path} (RPC: {'L2' if use_l2 else 'L1'}, Broadcast: {broadcast})"
        )
        self.logger.debug(f"Script env: {' '.join(redact_env(script_env))}")

        result = self._runner(
            command,
            cwd=self.bedrock_root,
            env={**os.environ, **script_env},
            log=self.logger,
            redact=[rpc_url],
        )
        return result.output

    def _run_python(self, script_path: str, args: List[str], script_env: Dict[str, str], dry_run: bool) -> None:
        command = [self.python_binary, str(self.bedrock_root / script_path), *args]
        secrets = [self.config.l1_rpc_url, self.config.l2_rpc_url]
        if dry_run:
            shown = " ".join("<redacted>" if part in secrets else part for part in command)
            self.logger.info(f"[DryRun] {shown}")
            return
        self._runner(
            command,
            cwd=self.bedrock_root,
            env={**os.environ, **script_env},
            log=self.logger,
            redact=secrets,
        )

    def block(self, dry_run: bool) -> None:
        if self.contracts is None:
            raise ChainClientError("Deployment contracts are required to block deposits and withdrawals")
        self._run_script(BLOCK_SCRIPT, {}, broadcast=not dry_run)

    def fetch(self, bridge_address: str, explorer_url: str, data_dir: Path, dry_run: bool) -> None:
        data_dir.mkdir(parents=True, exist_ok=True)
        l2_chain_id = str(self.config.l2_chain_id)
        script_env = {
            "L1_RPC_URL": self.config.l1_rpc_url,
            "L2_RPC_URL": self.config.l2_rpc_url,
            "L2_CHAIN_ID": l2_chain_id,
            "DATA_DIR": str(data_dir),
            "EXPLORER_URL": explorer_api_url(explorer_url),
            **self._contract_env(),
            "BRIDGE_PROXY": bridge_address,
        }
        self.logger.debug(f"Fetch env: {' '.join(redact_env(script_env))}")

        self.logger.info(" -> Running fetch_explorer_assets.py")
        self._run_python(FETCH_EXPLORER_ASSETS_SCRIPT, [l2_chain_id], script_env, dry_run)
        self.logger.info(" -> Running compute_l2_burns.py")
        self._run_python(COMPUTE_L2_BURNS_SCRIPT, [self.config.l2_rpc_url, l2_chain_id], script_env, dry_run)
        self.logger.info(" -> Running compute_finalized_native_withdrawals.py")
        self._run_python(
            COMPUTE_FINALIZED_WITHDRAWALS_SCRIPT, [self.config.l1_rpc_url, bridge_address], script_env, dry_run
        )

    def generate(self, l2_start_block: str, l2_end_block: str, output_path: Path, skip_verify: bool) -> None:
        self._run_script(
            GENERATE_SCRIPT,
            {
                "L2_CHAIN_ID": str(self.config.l2_chain_id),
                "L2_START_BLOCK": l2_start_block,
                "L2_END_BLOCK": l2_end_block,
                "OUTPUT_PATH": str(output_path),
                "SKIP_VERIFY": "true" if skip_verify else "false",
                # Explorer data is collected by the separate fetch step
                "SKIP_FETCH": "true",
            },
            use_l2=True,
            broadcast=False,
            impersonate=False,
        )

    def deploy_storage(self, input_path: Path, output_path: Path, dry_run: bool = False) -> None:
        output = self._run_script(
            DEPLOY_STORAGE_SCRIPT,
            {"DATA_PATH": str(input_path), "DRY_RUN": "true" if dry_run else "false"},
            broadcast=not dry_run,
        )
        addresses = extract_storage_addresses(output)
        if not addresses:
            raise ChainClientError("Storage deployment finished but no GenFWStorage address was reported", output=output)
        write_json_atomic(output_path, {"storages": addresses})
        self.logger.info(f"Recorded {len(addresses)} storage contract(s) in {output_path}")

    def register(self, bridge_address: str, input_path: Path, dry_run: bool = False) -> None:
        self._run_script(
            REGISTER_SCRIPT,
            {
                "BRIDGE_PROXY": bridge_address,
                "STORAGE_ADDRESSES_PATH": str(input_path),
                "DRY_RUN": "true" if dry_run else "false",
            },
            broadcast=not dry_run,
        )

    def activate(self, bridge_address: str, enable: bool, dry_run: bool = False) -> None:
        self._run_script(
            ACTIVATE_SCRIPT,
            {
                "BRIDGE_PROXY": bridge_address,
                "ACTIVE": "true" if enable else "false",
                "DRY_RUN": "true" if dry_run else "false",
            },
            broadcast=not dry_run,
        )

    def send(self, bridge_address: str, input_path: Path, position_address: str, dry_run: bool) -> None:
        self._run_script(
            SEND_SCRIPT,
            {
                "BRIDGE_PROXY": bridge_address,
                "DATA_PATH": str(input_path),
                "POSITION_ADDRESS": position_address,
                "DRY_RUN": "true" if dry_run else "false",
            },
            broadcast=not dry_run,
        )
