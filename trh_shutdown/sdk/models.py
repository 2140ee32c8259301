from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from ..shared.utils import read_json_file

CONFIG_FILE_NAME = "settings.json"
BEDROCK_DEPLOY_CONFIG_PATH = Path("scripts") / "deploy-config.json"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# L2 predeploys
L2_STANDARD_BRIDGE_ADDRESS = "0x4200000000000000000000000000000000000010"
L2_WETH_ADDRESS = "0x4200000000000000000000000000000000000006"


class DeploymentConfig(BaseModel):
    """The subset of a deployment's settings.json the shutdown flow reads."""
    model_config = ConfigDict(extra="allow")

    admin_private_key: str = ""
    l1_rpc_url: str = ""
    l2_rpc_url: str = ""
    l1_chain_id: int = 0
    l2_chain_id: int = 0
    network: str = ""
    stack: str = ""
    chain_name: str = ""

    @classmethod
    def from_deployment_root(cls, deployment_root: Union[str, Path]) -> Optional["DeploymentConfig"]:
        """Returns None when settings.json is absent. Raises ValueError on malformed content."""
        data = read_json_file(Path(deployment_root) / CONFIG_FILE_NAME)
        if data is None:
            return None
        return cls.model_validate(data)


class DeploymentContracts(BaseModel):
    """Contract name -> L1 address mapping written by the contract deployment step."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    l1_standard_bridge_proxy: str = Field(default="", alias="L1StandardBridgeProxy")
    proxy_admin: str = Field(default="", alias="ProxyAdmin")
    optimism_portal_proxy: str = Field(default="", alias="OptimismPortalProxy")
    superchain_config_proxy: str = Field(default="", alias="SuperchainConfigProxy")
    system_owner_safe: str = Field(default="", alias="SystemOwnerSafe")

    @property
    def bridge_proxy(self) -> str:
        return self.l1_standard_bridge_proxy

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "DeploymentContracts":
        data = read_json_file(path)
        if data is None:
            raise FileNotFoundError(str(path))
        return cls.model_validate(data)


class BedrockDeployConfig(BaseModel):
    """
    The contracts-bedrock deploy config (scripts/deploy-config.json) the L2 was
    deployed with. Only the owner and token fields the shutdown scripts need are typed.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    l1_chain_id: int = Field(default=0, alias="l1ChainID")
    final_system_owner: str = Field(default="", alias="finalSystemOwner")
    superchain_config_guardian: str = Field(default="", alias="superchainConfigGuardian")
    native_token_address: str = Field(default="", alias="nativeTokenAddress")

    @classmethod
    def from_bedrock_root(cls, bedrock_root: Union[str, Path]) -> Optional["BedrockDeployConfig"]:
        """Returns None when the deploy config is absent. Raises ValueError on malformed content."""
        data = read_json_file(Path(bedrock_root) / BEDROCK_DEPLOY_CONFIG_PATH)
        if data is None:
            return None
        return cls.model_validate(data)
