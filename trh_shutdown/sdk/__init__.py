import logging

from .chain_client import ChainClient, ForgeChainClient, extract_storage_addresses
from .exceptions import ChainClientError, CommandNotFoundError, RpcError
from .models import CONFIG_FILE_NAME, ZERO_ADDRESS, BedrockDeployConfig, DeploymentConfig, DeploymentContracts
from .rpc_client import RpcClient
from .script_runner import CommandResult, run_command

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ChainClient",
    "ForgeChainClient",
    "extract_storage_addresses",
    "ChainClientError",
    "CommandNotFoundError",
    "RpcError",
    "CONFIG_FILE_NAME",
    "ZERO_ADDRESS",
    "BedrockDeployConfig",
    "DeploymentConfig",
    "DeploymentContracts",
    "RpcClient",
    "CommandResult",
    "run_command",
]
