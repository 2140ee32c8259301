import hashlib
import json
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from ...shared.app_config import STATE_SCOPE_DEPLOYMENT, AppConfig
from ...shared.utils import read_json_file, write_json_atomic
from .exceptions import StateIOError
from .state import ShutdownState

logger = logging.getLogger(__name__)

STATE_FILE_NAME = "thanos_shutdown_state.json"
DEPLOYMENT_STATE_DIR = "shutdown"


class StateStore:
    """
    Reads and writes one ShutdownState file.

    There is no locking: two processes saving concurrently each rename a complete
    file into place and the last rename wins.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self):
        return f"StateStore(path={str(self.path)!r})"

    @classmethod
    def for_scope(cls, app_config: AppConfig, deployment_root: Union[str, Path]) -> "StateStore":
        if app_config.state_file_override:
            return cls(Path(app_config.state_file_override).expanduser())

        if app_config.state_scope == STATE_SCOPE_DEPLOYMENT:
            root_key = hashlib.sha256(str(Path(deployment_root).resolve()).encode()).hexdigest()[:16]
            return cls(app_config.state_dir / DEPLOYMENT_STATE_DIR / f"{root_key}.json")

        return cls(app_config.state_dir / STATE_FILE_NAME)

    def load(self) -> ShutdownState:
        try:
            data = read_json_file(self.path)
        except (OSError, ValueError) as e:
            raise StateIOError(f"failed to read state file {self.path}: {e}") from e

        if data is None:
            logger.debug(f"No shutdown state at {self.path}, starting fresh.")
            return ShutdownState()

        try:
            return ShutdownState.model_validate(data)
        except ValidationError as e:
            raise StateIOError(f"failed to parse state file {self.path}: {e}") from e

    def save(self, state: ShutdownState) -> None:
        try:
            write_json_atomic(self.path, state.to_file_dict())
        except (OSError, TypeError, ValueError) as e:
            raise StateIOError(f"failed to write state file {self.path}: {e}") from e
        logger.debug(f"Shutdown state saved to {self.path}: {json.dumps(state.to_file_dict())}")
