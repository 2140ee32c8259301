# ================================================
# 📁 trh_shutdown/cli/commands/status_cmds.py
# ================================================
import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from ...core.orchestrator import ShutdownContext, ShutdownError, build_context, build_status_report
from ...sdk import RpcError
from ...shared.utils import format_data_for_display
from ..client_factory import get_rpc_client

logger = logging.getLogger(__name__)


def _check_rpc_endpoints(ctx: ShutdownContext) -> None:
    config = ctx.config
    typer.echo("")
    typer.echo("🌐 RPC Endpoints:")
    with get_rpc_client() as rpc:
        for layer, url, expected in (
            ("L1", config.l1_rpc_url, config.l1_chain_id),
            ("L2", config.l2_rpc_url, config.l2_chain_id),
        ):
            try:
                actual = rpc.chain_id(url)
            except RpcError as e:
                logger.debug(f"{layer} RPC check failed: {e}")
                typer.echo(f"   ❌ {layer}: unreachable ({e})")
                continue
            marker = "✅" if actual == expected else "⚠️ "
            typer.echo(f"   {marker} {layer}: chain ID {actual} (expected {expected})")


def show_status(
    deployment_root: Annotated[Optional[Path], typer.Option("--deployment-root", help="Deployment directory containing settings.json (defaults to the current directory).")] = None,
    data_dir: Annotated[Optional[Path], typer.Option("--data-dir", help="Directory holding the shutdown artifacts.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the report as JSON.")] = False,
    check_rpc: Annotated[bool, typer.Option("--check-rpc", help="Also query both RPC endpoints for their chain IDs.")] = False,
):
    """Shows the shutdown progress of the current deployment. Never modifies anything."""
    try:
        ctx = build_context(cwd=deployment_root, data_dir=data_dir)
    except ShutdownError as e:
        logger.debug(f"Status requested without a usable deployment: {e}")
        typer.echo(f"⚠️  No active deployment found: {e}")
        return

    report = build_status_report(ctx)
    if as_json:
        typer.echo(format_data_for_display(report.model_dump()))
        return

    for line in report.render():
        typer.echo(line)
    if check_rpc:
        _check_rpc_endpoints(ctx)
