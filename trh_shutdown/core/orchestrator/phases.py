"""
phases.py

The shutdown phases as explicit objects. Each declares the artifacts it reads
(checked by the orchestrator before the chain client is called) and the
artifacts it writes (checked after), then performs one chain-client call and
records its own progress on the state.

Phases are independently runnable; ordering is carried by the artifacts, not
enforced here. `block` and `fetch` are optional preparation steps that only run
when selected; the other five make up the default sequence.
"""
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, field_validator

from ...sdk.chain_client import ChainClient
from ...sdk.models import ZERO_ADDRESS
from .artifacts import (
    ASSETS_SNAPSHOT,
    STORAGE_ADDRESSES,
    STORAGE_ADDRESSES_DRY_RUN,
    ArtifactDescriptor,
    load_deployment_contracts,
    resolve_bridge_address,
)
from .context import ShutdownContext
from .exceptions import ShutdownError

PHASE_BLOCK = "block"
PHASE_FETCH = "fetch"
PHASE_GENERATE = "gen"
PHASE_DEPLOY_STORAGE = "deploy-storage"
PHASE_REGISTER = "register"
PHASE_ACTIVATE = "activate"
PHASE_SEND = "send"

DEFAULT_L2_START_BLOCK = "0"
DEFAULT_L2_END_BLOCK = "latest"


class PhaseOptions(BaseModel):
    """Operator inputs for a phase. Empty strings mean 'use the default'."""

    l2_start_block: Optional[str] = None
    l2_end_block: Optional[str] = None
    output: Optional[str] = None
    skip_verify: bool = False
    input: Optional[str] = None
    storage_addresses: Optional[str] = None
    position_address: Optional[str] = None
    explorer_url: Optional[str] = None
    dry_run: bool = False

    @field_validator(
        "l2_start_block", "l2_end_block", "output", "input", "storage_addresses", "position_address", "explorer_url"
    )
    @classmethod
    def _blank_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not str(value).strip():
            return None
        return str(value).strip()


class PhaseResult(BaseModel):
    phase: str
    details: Dict[str, str] = {}


def _path_or_default(value: Optional[str], descriptor: ArtifactDescriptor, ctx: ShutdownContext) -> Path:
    # Operator paths are relative to the invoking shell, not to the script workspace
    return Path(value).expanduser().resolve() if value else descriptor.default_path(ctx)


def _mode(options: PhaseOptions) -> str:
    return "dry-run" if options.dry_run else "broadcast"


class Phase:
    name: str = ""
    title: str = ""
    banner: str = ""

    def requires(self, ctx: ShutdownContext, options: PhaseOptions) -> List[Tuple[Path, str]]:
        """(path, producing phase) pairs that must exist before execute()."""
        return []

    def produces(self, ctx: ShutdownContext, options: PhaseOptions) -> List[Path]:
        return []

    def execute(self, ctx: ShutdownContext, client: ChainClient, options: PhaseOptions, now: datetime) -> PhaseResult:
        raise NotImplementedError

    def __repr__(self):
        return f"<Phase {self.name}>"


class BlockPhase(Phase):
    name = PHASE_BLOCK
    title = "BLOCK"
    banner = "🚫 Blocking L1 Deposits and Withdrawals..."

    def execute(self, ctx, client, options, now):
        contracts = load_deployment_contracts(ctx)
        portal = contracts.optimism_portal_proxy or "(unknown portal)"
        ctx.logger.warning(f"Blocking deposits and withdrawals on {portal} ({_mode(options)})")
        client.block(options.dry_run)
        return PhaseResult(phase=self.name, details={"portal": portal, "mode": _mode(options)})


class FetchPhase(Phase):
    name = PHASE_FETCH
    title = "FETCH"
    banner = "🔍 Collecting L2 Asset Information..."

    def execute(self, ctx, client, options, now):
        if not options.explorer_url:
            raise ShutdownError("an explorer URL is required to collect L2 asset information", phase=self.name)
        bridge = resolve_bridge_address(ctx)
        ctx.logger.info(f"Collecting L2 assets from {options.explorer_url} into {ctx.data_dir}")
        client.fetch(bridge, options.explorer_url, ctx.data_dir, options.dry_run)
        return PhaseResult(phase=self.name, details={"explorer_url": options.explorer_url, "data_dir": str(ctx.data_dir)})


class GeneratePhase(Phase):
    name = PHASE_GENERATE
    title = "GEN"
    banner = "🚀 Generating L2 Asset Snapshot..."

    def resolve_inputs(self, ctx: ShutdownContext, options: PhaseOptions) -> Tuple[str, str, Path]:
        start = options.l2_start_block or DEFAULT_L2_START_BLOCK
        end = options.l2_end_block or DEFAULT_L2_END_BLOCK
        output = _path_or_default(options.output, ASSETS_SNAPSHOT, ctx)
        return start, end, output

    def produces(self, ctx, options):
        return [self.resolve_inputs(ctx, options)[2]]

    def execute(self, ctx, client, options, now):
        start, end, output = self.resolve_inputs(ctx, options)
        output.parent.mkdir(parents=True, exist_ok=True)
        ctx.logger.info(f"Generating snapshot for L2 blocks {start}..{end} into {output} (skip_verify={options.skip_verify})")
        client.generate(start, end, output, options.skip_verify)
        ctx.state.mark_generated(str(output), now=now)
        return PhaseResult(phase=self.name, details={"output": str(output), "l2_start_block": start, "l2_end_block": end})


class DeployStoragePhase(Phase):
    name = PHASE_DEPLOY_STORAGE
    title = "DEPLOY-STORAGE"
    banner = "🏗️ Deploying L1 Snapshot Storage Contracts..."

    def resolve_inputs(self, ctx: ShutdownContext, options: PhaseOptions) -> Tuple[Path, Path]:
        output = STORAGE_ADDRESSES_DRY_RUN if options.dry_run else STORAGE_ADDRESSES
        return _path_or_default(options.input, ASSETS_SNAPSHOT, ctx), output.default_path(ctx)

    def requires(self, ctx, options):
        return [(self.resolve_inputs(ctx, options)[0], PHASE_GENERATE)]

    def produces(self, ctx, options):
        return [self.resolve_inputs(ctx, options)[1]]

    def execute(self, ctx, client, options, now):
        input_path, output_path = self.resolve_inputs(ctx, options)
        ctx.logger.info(f"Deploying storage contracts from {input_path} ({_mode(options)})")
        client.deploy_storage(input_path, output_path, options.dry_run)
        # No state field tracks this phase; status reads the storage-addresses file instead.
        return PhaseResult(phase=self.name, details={"input": str(input_path), "output": str(output_path)})


class RegisterPhase(Phase):
    name = PHASE_REGISTER
    title = "REGISTER"
    banner = "📝 Registering Storage Positions with the Bridge..."

    def resolve_inputs(self, ctx: ShutdownContext, options: PhaseOptions) -> Path:
        if options.storage_addresses or not options.dry_run:
            return _path_or_default(options.storage_addresses, STORAGE_ADDRESSES, ctx)
        # A dry run prefers real addresses and falls back to simulated ones
        deployed = STORAGE_ADDRESSES.default_path(ctx)
        simulated = STORAGE_ADDRESSES_DRY_RUN.default_path(ctx)
        return simulated if not deployed.exists() and simulated.exists() else deployed

    def requires(self, ctx, options):
        return [(self.resolve_inputs(ctx, options), PHASE_DEPLOY_STORAGE)]

    def execute(self, ctx, client, options, now):
        input_path = self.resolve_inputs(ctx, options)
        bridge = resolve_bridge_address(ctx)
        ctx.logger.info(f"Registering storage positions from {input_path} with bridge {bridge} ({_mode(options)})")
        client.register(bridge, input_path, options.dry_run)
        return PhaseResult(phase=self.name, details={"bridge": bridge, "input": str(input_path), "mode": _mode(options)})


class ActivatePhase(Phase):
    name = PHASE_ACTIVATE
    title = "ACTIVATE"
    banner = "⚙️ Activating Bridge Force-Withdrawal Mode..."

    def execute(self, ctx, client, options, now):
        bridge = resolve_bridge_address(ctx)
        if options.dry_run:
            ctx.logger.info(f"Simulating shutdown flag flip on bridge {bridge}")
        else:
            ctx.logger.warning(f"Flipping shutdown flag on bridge {bridge}. This cannot be undone by this tool.")
        client.activate(bridge, True, options.dry_run)
        return PhaseResult(phase=self.name, details={"bridge": bridge, "mode": _mode(options)})


class SendPhase(Phase):
    name = PHASE_SEND
    title = "SEND"
    banner = "💰 Sending L1 Force-Withdrawal Transactions..."

    def resolve_inputs(self, ctx: ShutdownContext, options: PhaseOptions) -> Tuple[Path, str]:
        return _path_or_default(options.input, ASSETS_SNAPSHOT, ctx), options.position_address or ZERO_ADDRESS

    def requires(self, ctx, options):
        return [(self.resolve_inputs(ctx, options)[0], PHASE_GENERATE)]

    def execute(self, ctx, client, options, now):
        input_path, position = self.resolve_inputs(ctx, options)
        bridge = resolve_bridge_address(ctx)
        mode = "dry-run" if options.dry_run else "send"
        ctx.logger.info(f"Force withdrawal ({mode}) from {input_path} via bridge {bridge}, position {position}")
        client.send(bridge, input_path, position, options.dry_run)
        if options.dry_run:
            ctx.state.mark_dry_run(now=now)
        else:
            ctx.state.mark_sent(now=now)
        return PhaseResult(
            phase=self.name, details={"bridge": bridge, "input": str(input_path), "position": position, "mode": mode}
        )


PHASES: Tuple[Phase, ...] = (
    BlockPhase(),
    FetchPhase(),
    GeneratePhase(),
    DeployStoragePhase(),
    RegisterPhase(),
    ActivatePhase(),
    SendPhase(),
)
CANONICAL_ORDER: Tuple[str, ...] = tuple(p.name for p in PHASES)
OPTIONAL_PHASES: Tuple[str, ...] = (PHASE_BLOCK, PHASE_FETCH)
# What `run` executes when no step is selected
PHASE_ORDER: Tuple[str, ...] = tuple(name for name in CANONICAL_ORDER if name not in OPTIONAL_PHASES)
PHASES_BY_NAME: Dict[str, Phase] = {p.name: p for p in PHASES}


def get_phase(name: str) -> Phase:
    try:
        return PHASES_BY_NAME[name]
    except KeyError:
        raise ValueError(f"Unknown shutdown phase '{name}'. Expected one of: {', '.join(CANONICAL_ORDER)}") from None
