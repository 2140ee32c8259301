# ====================================================
# 📁 trh_shutdown/cli/commands/shutdown_cmds.py
# ====================================================
import logging
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from ...core.orchestrator import (
    ShutdownContext,
    ShutdownError,
    ShutdownOrchestrator,
    PhaseOptions,
    build_context,
    run_external_script,
)
from ...core.orchestrator.phases import (
    PHASE_ACTIVATE,
    PHASE_BLOCK,
    PHASE_DEPLOY_STORAGE,
    PHASE_FETCH,
    PHASE_GENERATE,
    PHASE_ORDER,
    PHASE_REGISTER,
    PHASE_SEND,
)
from ..client_factory import get_chain_client, get_rpc_client
from . import status_cmds

logger = logging.getLogger(__name__)
app = typer.Typer(name="shutdown", help="Force-withdrawal shutdown of a Thanos L2 bridge.", no_args_is_help=True)

app.command("status")(status_cmds.show_status)

# Phases that change on-chain state irreversibly
CONFIRMED_PHASES = (PHASE_BLOCK, PHASE_ACTIVATE, PHASE_SEND)

DeploymentRootOption = Annotated[
    Optional[Path],
    typer.Option("--deployment-root", help="Deployment directory containing settings.json (defaults to the current directory)."),
]
DataDirOption = Annotated[Optional[Path], typer.Option("--data-dir", help="Directory holding the shutdown artifacts.")]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Skip the confirmation prompt.")]
DryRunOption = Annotated[bool, typer.Option("--dry-run", help="Simulate the step without broadcasting.")]
ExplorerUrlOption = Annotated[str, typer.Option("--explorer-url", help="L2 block explorer URL (the /api/v2 suffix is added when missing).")]


def _load_context(deployment_root: Optional[Path], data_dir: Optional[Path]) -> ShutdownContext:
    try:
        return build_context(cwd=deployment_root, data_dir=data_dir)
    except ShutdownError as e:
        logger.error(f"Could not resolve shutdown context: {e}")
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


def _confirm(message: str, yes: bool) -> None:
    if not yes:
        typer.confirm(message, abort=True)


def _run_phases(ctx: ShutdownContext, phases: List[str], options: PhaseOptions, preflight: bool = False) -> None:
    """Runs phases through the orchestrator; any ShutdownError becomes exit code 1."""
    rpc_client = get_rpc_client() if preflight else None
    orchestrator = ShutdownOrchestrator(ctx, get_chain_client(ctx), echo=typer.echo, rpc_client=rpc_client)
    try:
        if preflight:
            try:
                orchestrator.preflight()
            except ShutdownError as e:
                typer.secho(f"❌ Preflight check failed: {e}", fg=typer.colors.RED, err=True)
                raise typer.Exit(code=1)
        try:
            orchestrator.run(phases, options)
        except ShutdownError as e:
            # The orchestrator already echoed the failing step.
            logger.debug(f"Shutdown run aborted: {e}")
            raise typer.Exit(code=1)
    finally:
        if rpc_client is not None:
            rpc_client.close()


@app.command("block")
def block_cmd(
    dry_run: DryRunOption = False,
    yes: YesOption = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Blocks L1 deposits and withdrawals through the portal before the shutdown."""
    ctx = _load_context(deployment_root, data_dir)
    if not dry_run:
        _confirm("Block all L1 deposits and withdrawals for this L2?", yes)
    _run_phases(ctx, [PHASE_BLOCK], PhaseOptions(dry_run=dry_run))


@app.command("fetch")
def fetch_cmd(
    explorer_url: ExplorerUrlOption,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Print the collector commands without running them.")] = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Collects L2 asset, burn and finalized-withdrawal data into the data directory."""
    ctx = _load_context(deployment_root, data_dir)
    _run_phases(ctx, [PHASE_FETCH], PhaseOptions(explorer_url=explorer_url, dry_run=dry_run))


@app.command("gen")
def generate_cmd(
    l2_start_block: Annotated[Optional[str], typer.Option("--l2-start-block", help="First L2 block of the snapshot (default 0).")] = None,
    l2_end_block: Annotated[Optional[str], typer.Option("--l2-end-block", help="Last L2 block of the snapshot (default latest).")] = None,
    output: Annotated[Optional[str], typer.Option("--output", "-o", help="Where to write the snapshot JSON.")] = None,
    skip_verify: Annotated[bool, typer.Option("--skip-verify", help="Skip verification of the generated snapshot.")] = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Generates the L2 asset snapshot of withdrawable positions."""
    ctx = _load_context(deployment_root, data_dir)
    options = PhaseOptions(l2_start_block=l2_start_block, l2_end_block=l2_end_block, output=output, skip_verify=skip_verify)
    _run_phases(ctx, [PHASE_GENERATE], options)


@app.command("deploy-storage")
def deploy_storage_cmd(
    input_path: Annotated[Optional[str], typer.Option("--input", "-i", help="Asset snapshot to publish.")] = None,
    dry_run: DryRunOption = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Deploys the L1 storage contracts holding the snapshot."""
    ctx = _load_context(deployment_root, data_dir)
    _run_phases(ctx, [PHASE_DEPLOY_STORAGE], PhaseOptions(input=input_path, dry_run=dry_run))


@app.command("register")
def register_cmd(
    storage_addresses: Annotated[Optional[str], typer.Option("--storage-addresses", help="JSON file listing deployed storage contracts.")] = None,
    dry_run: DryRunOption = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Registers the storage contracts with the L1 bridge."""
    ctx = _load_context(deployment_root, data_dir)
    _run_phases(ctx, [PHASE_REGISTER], PhaseOptions(storage_addresses=storage_addresses, dry_run=dry_run))


@app.command("activate")
def activate_cmd(
    dry_run: DryRunOption = False,
    yes: YesOption = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Switches the L1 bridge into force-withdrawal mode."""
    ctx = _load_context(deployment_root, data_dir)
    if not dry_run:
        _confirm("Activate force-withdrawal mode on the L1 bridge? This cannot be reverted with this tool.", yes)
    _run_phases(ctx, [PHASE_ACTIVATE], PhaseOptions(dry_run=dry_run))


@app.command("dry-run")
def dry_run_cmd(
    input_path: Annotated[Optional[str], typer.Option("--input", "-i", help="Asset snapshot to withdraw.")] = None,
    position_address: Annotated[Optional[str], typer.Option("--position-address", help="Position contract address.")] = None,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Simulates the force-withdrawal transactions without broadcasting."""
    ctx = _load_context(deployment_root, data_dir)
    options = PhaseOptions(input=input_path, position_address=position_address, dry_run=True)
    _run_phases(ctx, [PHASE_SEND], options)


@app.command("send")
def send_cmd(
    input_path: Annotated[Optional[str], typer.Option("--input", "-i", help="Asset snapshot to withdraw.")] = None,
    position_address: Annotated[Optional[str], typer.Option("--position-address", help="Position contract address.")] = None,
    yes: YesOption = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """Broadcasts the force-withdrawal transactions on L1."""
    ctx = _load_context(deployment_root, data_dir)
    _confirm("Broadcast force-withdrawal transactions on L1?", yes)
    options = PhaseOptions(input=input_path, position_address=position_address)
    _run_phases(ctx, [PHASE_SEND], options)


@app.command("run")
def run_cmd(
    block: Annotated[bool, typer.Option("--block", help="Block L1 deposits and withdrawals first (optional step).")] = False,
    fetch: Annotated[bool, typer.Option("--fetch", help="Collect L2 asset data before generating (optional step).")] = False,
    gen: Annotated[bool, typer.Option("--gen", help="Run the snapshot generation step.")] = False,
    deploy_storage: Annotated[bool, typer.Option("--deploy-storage", help="Run the storage deployment step.")] = False,
    register: Annotated[bool, typer.Option("--register", help="Run the registration step.")] = False,
    activate: Annotated[bool, typer.Option("--activate", help="Run the bridge activation step.")] = False,
    send: Annotated[bool, typer.Option("--send", help="Run the withdrawal step.")] = False,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Simulate every on-chain step; nothing is broadcast.")] = False,
    l2_start_block: Annotated[Optional[str], typer.Option("--l2-start-block", help="First L2 block of the snapshot.")] = None,
    l2_end_block: Annotated[Optional[str], typer.Option("--l2-end-block", help="Last L2 block of the snapshot.")] = None,
    skip_verify: Annotated[bool, typer.Option("--skip-verify", help="Skip verification of the generated snapshot.")] = False,
    position_address: Annotated[Optional[str], typer.Option("--position-address", help="Position contract address.")] = None,
    explorer_url: Annotated[Optional[str], typer.Option("--explorer-url", help="L2 block explorer URL (required with --fetch).")] = None,
    use_script: Annotated[bool, typer.Option("--use-script", help="Delegate the whole sequence to the external shutdown script.")] = False,
    script_path: Annotated[Optional[Path], typer.Option("--script-path", help="External shutdown script (implies --use-script).")] = None,
    skip_preflight: Annotated[bool, typer.Option("--skip-preflight", help="Do not check RPC chain IDs before running.")] = False,
    yes: YesOption = False,
    deployment_root: DeploymentRootOption = None,
    data_dir: DataDirOption = None,
):
    """
    Runs the selected steps in order (the five core steps when none is selected).
    Stops at the first failing step; completed steps stay recorded.
    """
    if fetch and not explorer_url:
        raise typer.BadParameter("--explorer-url is required with --fetch", param_hint="--explorer-url")

    ctx = _load_context(deployment_root, data_dir)

    if use_script or script_path:
        _confirm(f"Run the external shutdown script for network '{ctx.config.network}'?", yes)
        try:
            run_external_script(ctx, script_path=script_path, echo=typer.echo)
        except ShutdownError as e:
            typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        return

    flags = {
        PHASE_BLOCK: block,
        PHASE_FETCH: fetch,
        PHASE_GENERATE: gen,
        PHASE_DEPLOY_STORAGE: deploy_storage,
        PHASE_REGISTER: register,
        PHASE_ACTIVATE: activate,
        PHASE_SEND: send,
    }
    selection = [name for name, selected in flags.items() if selected]
    selected_or_default = selection or list(PHASE_ORDER)

    # A dry run broadcasts nothing, so there is nothing to confirm
    irreversible = [] if dry_run else [name for name in CONFIRMED_PHASES if name in selected_or_default]
    if irreversible:
        _confirm(f"This run includes irreversible step(s): {', '.join(irreversible)}. Continue?", yes)

    options = PhaseOptions(
        l2_start_block=l2_start_block,
        l2_end_block=l2_end_block,
        skip_verify=skip_verify,
        position_address=position_address,
        explorer_url=explorer_url,
        dry_run=dry_run,
    )
    _run_phases(ctx, selection, options, preflight=not skip_preflight)
