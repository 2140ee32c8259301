import logging
import os
from pathlib import Path
from typing import List, Optional, Union

from ...sdk.models import CONFIG_FILE_NAME, DeploymentConfig
from ...shared.app_config import AppConfig
from ...shared.app_logger import get_shutdown_logger
from .exceptions import ConfigInvalid, ConfigNotFound, SdkNotFound
from .state import DerivedContext, ShutdownState
from .state_store import StateStore

logger = logging.getLogger(__name__)

SDK_RELATIVE_PATH = Path("tokamak-thanos") / "packages" / "tokamak" / "sdk"
SDK_MARKER_FILE = "hardhat.config.ts"
DEFAULT_DATA_DIR_NAME = "data"


class ShutdownContext:
    """Everything a shutdown phase needs, resolved once per invocation."""

    def __init__(
        self,
        deployment_root: Path,
        config: DeploymentConfig,
        sdk_root: Path,
        logger: logging.Logger,
        state: ShutdownState,
        derived: DerivedContext,
        state_store: StateStore,
    ):
        self.deployment_root = deployment_root
        self.config = config
        self.sdk_root = sdk_root
        self.logger = logger
        self.state = state
        self.derived = derived
        self.state_store = state_store

    @property
    def data_dir(self) -> Path:
        if self.state.data_dir:
            return Path(self.state.data_dir)
        return self.deployment_root / DEFAULT_DATA_DIR_NAME

    @property
    def bedrock_root(self) -> Path:
        return self.sdk_root.parent / "contracts-bedrock"

    def persist(self) -> None:
        self.state_store.save(self.state)


def validate_deployment_config(config: DeploymentConfig) -> None:
    if not config.l1_rpc_url:
        raise ConfigInvalid("l1_rpc_url", "cannot be empty")
    if not config.l2_rpc_url:
        raise ConfigInvalid("l2_rpc_url", "cannot be empty")
    if config.l1_chain_id == 0:
        raise ConfigInvalid("l1_chain_id", "must be greater than 0")
    if config.l2_chain_id == 0:
        raise ConfigInvalid("l2_chain_id", "must be greater than 0")


def sdk_candidate_paths(deployment_root: Path) -> List[Path]:
    return [
        deployment_root / SDK_RELATIVE_PATH,
        deployment_root / ".." / SDK_RELATIVE_PATH,
        deployment_root / ".." / ".." / SDK_RELATIVE_PATH,
    ]


def find_sdk_path(deployment_root: Path, override: Optional[str] = None) -> Path:
    # The override is trusted as-is, no marker check
    if override:
        return Path(override).expanduser().resolve()

    for candidate in sdk_candidate_paths(deployment_root):
        if (candidate / SDK_MARKER_FILE).is_file():
            return candidate.resolve()

    raise SdkNotFound(
        "could not find tokamak-thanos SDK directory "
        "(set TOKAMAK_THANOS_SDK_PATH or check out tokamak-thanos next to the deployment)"
    )


def derive_context(config: DeploymentConfig, sdk_root: Path) -> DerivedContext:
    return DerivedContext(
        chain_id=config.l1_chain_id,
        l2_chain_id=config.l2_chain_id,
        thanos_root=str(sdk_root.parent.parent),
        deployments_path=f"{config.l1_chain_id}-deploy.json",
    )


def build_context(
    cwd: Optional[Union[str, Path]] = None,
    app_config: Optional[AppConfig] = None,
    state_store: Optional[StateStore] = None,
    data_dir: Optional[Union[str, Path]] = None,
) -> ShutdownContext:
    """
    Resolves the shutdown context for the deployment in `cwd` (default: the process CWD).

    Each step is a hard precondition; the first failure raises and no context is returned.
    """
    app_config = app_config or AppConfig()
    deployment_root = (Path(cwd).expanduser() if cwd is not None else Path(os.getcwd())).resolve()

    try:
        config = DeploymentConfig.from_deployment_root(deployment_root)
    except (OSError, ValueError) as e:
        raise ConfigNotFound(f"failed to read {CONFIG_FILE_NAME}: {e}") from e
    if config is None:
        raise ConfigNotFound(f"{CONFIG_FILE_NAME} not found in {deployment_root}")

    validate_deployment_config(config)

    sdk_root = find_sdk_path(deployment_root, app_config.sdk_path_override)

    session_logger = get_shutdown_logger(deployment_root, config.l2_chain_id)

    store = state_store or StateStore.for_scope(app_config, deployment_root)
    state = store.load()
    derived = derive_context(config, sdk_root)
    state.apply_derived(derived)
    if data_dir:
        state.data_dir = str(Path(data_dir).expanduser().resolve())

    logger.debug(f"Shutdown context resolved: root={deployment_root}, sdk={sdk_root}, state={store.path}")
    return ShutdownContext(
        deployment_root=deployment_root,
        config=config,
        sdk_root=sdk_root,
        logger=session_logger,
        state=state,
        derived=derived,
        state_store=store,
    )
