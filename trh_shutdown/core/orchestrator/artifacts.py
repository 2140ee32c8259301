import logging
from pathlib import Path
from typing import List, NamedTuple, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from ...sdk.models import BedrockDeployConfig, DeploymentContracts
from .context import SDK_RELATIVE_PATH, ShutdownContext
from .exceptions import ArtifactNotFound

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

BEDROCK_RELATIVE_PATH = SDK_RELATIVE_PATH.parent / "contracts-bedrock"


class ArtifactDescriptor(NamedTuple):
    key: str
    file_name: str

    def default_path(self, ctx: ShutdownContext) -> Path:
        return ctx.data_dir / self.file_name


ASSETS_SNAPSHOT = ArtifactDescriptor("assets_snapshot", "generate-assets3.json")
STORAGE_ADDRESSES = ArtifactDescriptor("storage_addresses", "genstorage-addresses.json")
# Simulated addresses from a dry-run deployment; never read by a broadcasting step
STORAGE_ADDRESSES_DRY_RUN = ArtifactDescriptor("storage_addresses_dry_run", "genstorage-addresses.dry-run.json")


def resolve_artifact(primary: PathLike, alternates: Sequence[PathLike] = ()) -> Path:
    """Returns the first of `primary`, then `alternates` in order, that exists on disk."""
    candidates = [Path(primary)] + [Path(p) for p in alternates]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    raise ArtifactNotFound(
        f"none of the candidate paths exist: {', '.join(str(c) for c in candidates)}",
        candidates=candidates,
    )


def deployment_contracts_candidates(ctx: ShutdownContext) -> Tuple[Path, List[Path]]:
    """
    Where `<l1_chain_id>-deploy.json` is looked for: the tokamak-thanos checkout inside the
    deployment, one two levels up, the deployment's own deployments/ directory, and
    finally the contracts-bedrock next to the resolved SDK.
    """
    file_name = f"{ctx.config.l1_chain_id}-deploy.json"
    root = ctx.deployment_root
    primary = root / BEDROCK_RELATIVE_PATH / "deployments" / file_name
    alternates = [
        root.parent.parent / BEDROCK_RELATIVE_PATH / "deployments" / file_name,
        root / "deployments" / file_name,
    ]
    sdk_candidate = ctx.bedrock_root / "deployments" / file_name
    if sdk_candidate not in [primary, *alternates]:
        alternates.append(sdk_candidate)
    return primary, alternates


def load_deployment_contracts(ctx: ShutdownContext) -> DeploymentContracts:
    primary, alternates = deployment_contracts_candidates(ctx)
    try:
        path = resolve_artifact(primary, alternates)
    except ArtifactNotFound as e:
        raise ArtifactNotFound(
            f"deployment file not found for chain {ctx.config.l1_chain_id}", candidates=e.candidates
        ) from e

    ctx.logger.debug(f"Reading deployment contracts from {path}")
    try:
        return DeploymentContracts.from_file(path)
    except (OSError, ValueError, ValidationError) as e:
        raise ArtifactNotFound(f"deployment file {path} is unreadable: {e}", candidates=[path]) from e


def find_deployment_contracts(ctx: ShutdownContext) -> Optional[DeploymentContracts]:
    """Like load_deployment_contracts, but a missing file is a warning instead of an error."""
    try:
        return load_deployment_contracts(ctx)
    except ArtifactNotFound as e:
        ctx.logger.warning(f"Deployment contracts unavailable, scripts run without their addresses: {e}")
        return None


def load_bedrock_deploy_config(ctx: ShutdownContext) -> Optional[BedrockDeployConfig]:
    try:
        bedrock_config = BedrockDeployConfig.from_bedrock_root(ctx.bedrock_root)
    except (OSError, ValueError) as e:
        ctx.logger.warning(f"Ignoring unreadable bedrock deploy config: {e}")
        return None
    if bedrock_config is None:
        ctx.logger.debug(f"No bedrock deploy config under {ctx.bedrock_root}")
    return bedrock_config


def resolve_bridge_address(ctx: ShutdownContext) -> str:
    contracts = load_deployment_contracts(ctx)
    if not contracts.bridge_proxy:
        raise ArtifactNotFound("L1StandardBridgeProxy is missing from the deployment file")
    return contracts.bridge_proxy
