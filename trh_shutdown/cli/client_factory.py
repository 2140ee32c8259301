# ==============================================
# 📁 trh_shutdown/cli/client_factory.py
# ==============================================
import logging

from ..core.orchestrator.artifacts import find_deployment_contracts, load_bedrock_deploy_config
from ..core.orchestrator.context import ShutdownContext
from ..sdk import ChainClient, ForgeChainClient, RpcClient
from ..shared.app_config import AppConfig

logger = logging.getLogger(__name__)


def get_app_config() -> AppConfig:
    """Reads operator settings from the environment for the current command."""
    return AppConfig()


def get_chain_client(ctx: ShutdownContext) -> ChainClient:
    """
    Provides the chain client used by the shutdown phases: the Forge adapter,
    running scripts from the deployment's contracts-bedrock workspace with the
    deployment's contract addresses in their environment.
    """
    app_config = get_app_config()
    bedrock_config = load_bedrock_deploy_config(ctx)
    sender = app_config.impersonate_sender or (bedrock_config.final_system_owner if bedrock_config else None)
    client = ForgeChainClient(
        bedrock_root=ctx.bedrock_root,
        config=ctx.config,
        log=ctx.logger,
        forge_binary=app_config.forge_binary,
        contracts=find_deployment_contracts(ctx),
        bedrock_config=bedrock_config,
        impersonate_sender=sender,
        python_binary=app_config.python_binary,
    )
    logger.debug(
        f"ForgeChainClient initialized for {ctx.bedrock_root} (forge: {app_config.forge_binary}, dry-run sender: {sender})"
    )
    return client


def get_rpc_client() -> RpcClient:
    """JSON-RPC client for preflight checks. Callers close it when done."""
    return RpcClient(timeout=get_app_config().rpc_timeout_seconds)
