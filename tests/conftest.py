# ===================================================
# 📁 tests/conftest.py
# ===================================================
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from trh_shutdown.core.orchestrator import build_context
from trh_shutdown.sdk import ChainClientError

L1_CHAIN_ID = 11155111
L2_CHAIN_ID = 111551119090
BRIDGE_ADDRESS = "0x1111111111111111111111111111111111111111"
STORAGE_ADDRESS = "0x2222222222222222222222222222222222222222"
PORTAL_ADDRESS = "0x5555555555555555555555555555555555555555"

SETTINGS = {
    "admin_private_key": "abc123",
    "l1_rpc_url": "http://l1.example:8545",
    "l2_rpc_url": "http://l2.example:9545",
    "l1_chain_id": L1_CHAIN_ID,
    "l2_chain_id": L2_CHAIN_ID,
    "network": "Testnet",
    "stack": "thanos",
}

SDK_PARTS = ("tokamak-thanos", "packages", "tokamak", "sdk")


class FakeChainClient:
    """In-memory chain client. Records calls and writes the files real scripts would write."""

    def __init__(self, fail_on=(), write_outputs=True):
        self.calls = []
        self.fail_on = set(fail_on)
        self.write_outputs = write_outputs

    @property
    def call_names(self):
        return [name for name, _ in self.calls]

    def _record(self, name, *args):
        self.calls.append((name, args))
        if name in self.fail_on:
            raise ChainClientError(f"{name} script failed", exit_code=1, output="revert")

    def block(self, dry_run):
        self._record("block", dry_run)

    def fetch(self, bridge_address, explorer_url, data_dir, dry_run):
        self._record("fetch", bridge_address, explorer_url, data_dir, dry_run)

    def generate(self, l2_start_block, l2_end_block, output_path, skip_verify):
        self._record("generate", l2_start_block, l2_end_block, output_path, skip_verify)
        if self.write_outputs:
            Path(output_path).write_text(json.dumps({"assets": []}))

    def deploy_storage(self, input_path, output_path, dry_run):
        self._record("deploy_storage", input_path, output_path, dry_run)
        if self.write_outputs:
            Path(output_path).parent.mkdir(parents=True, exist_ok=True)
            Path(output_path).write_text(json.dumps({"storages": [STORAGE_ADDRESS]}))

    def register(self, bridge_address, input_path, dry_run):
        self._record("register", bridge_address, input_path, dry_run)

    def activate(self, bridge_address, enable, dry_run):
        self._record("activate", bridge_address, enable, dry_run)

    def send(self, bridge_address, input_path, position_address, dry_run):
        self._record("send", bridge_address, input_path, position_address, dry_run)


class FakeClock:
    def __init__(self, start=datetime(2026, 1, 1, tzinfo=timezone.utc), step=timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self):
        self.current = self.current + self.step
        return self.current


def write_settings(root: Path, **overrides) -> None:
    (root / "settings.json").write_text(json.dumps({**SETTINGS, **overrides}))


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keeps every test away from the operator's real ~/.trh and environment overrides."""
    trh_home = tmp_path / "trh-home"
    monkeypatch.setenv("TRH_HOME", str(trh_home))
    for var in (
        "TRH_SHUTDOWN_STATE_FILE",
        "TRH_SHUTDOWN_STATE_SCOPE",
        "TRH_SHUTDOWN_IMPERSONATE_SENDER",
        "TOKAMAK_THANOS_SDK_PATH",
        "FORGE_BIN",
    ):
        monkeypatch.delenv(var, raising=False)
    return trh_home


@pytest.fixture
def deployment_root(tmp_path) -> Path:
    root = tmp_path / "deployment"
    sdk = root.joinpath(*SDK_PARTS)
    sdk.mkdir(parents=True)
    (sdk / "hardhat.config.ts").write_text("export default {};\n")

    deployments = sdk.parent / "contracts-bedrock" / "deployments"
    deployments.mkdir(parents=True)
    (deployments / f"{L1_CHAIN_ID}-deploy.json").write_text(
        json.dumps({
            "L1StandardBridgeProxy": BRIDGE_ADDRESS,
            "ProxyAdmin": "0x3333333333333333333333333333333333333333",
            "OptimismPortalProxy": PORTAL_ADDRESS,
        })
    )

    write_settings(root)
    return root


@pytest.fixture
def context(deployment_root):
    return build_context(cwd=deployment_root)


@pytest.fixture
def chain_client():
    return FakeChainClient()


@pytest.fixture
def make_chain_client():
    return FakeChainClient


@pytest.fixture
def clock():
    return FakeClock()
