# ============================
# 📁 trh_shutdown/shared/app_config.py
# ============================
import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

STATE_SCOPE_GLOBAL = "global"
STATE_SCOPE_DEPLOYMENT = "deployment"
_VALID_STATE_SCOPES = (STATE_SCOPE_GLOBAL, STATE_SCOPE_DEPLOYMENT)


class AppConfig:
    """Operator-level settings, read from the environment at construction time."""

    def __init__(self):
        # Where the shutdown state lives (per operator machine by default)
        self.state_dir: Path = Path(os.getenv("TRH_HOME") or Path.home() / ".trh")
        self.state_file_override: Optional[str] = os.getenv("TRH_SHUTDOWN_STATE_FILE") or None
        self.state_scope: str = (os.getenv("TRH_SHUTDOWN_STATE_SCOPE") or STATE_SCOPE_GLOBAL).lower()

        # Workspace discovery
        self.sdk_path_override: Optional[str] = os.getenv("TOKAMAK_THANOS_SDK_PATH") or None

        # Tooling
        self.forge_binary: str = os.getenv("FORGE_BIN", "forge")
        self.python_binary: str = os.getenv("TRH_SHUTDOWN_PYTHON", "python3")
        self.rpc_timeout_seconds: float = self._get_float_env("TRH_RPC_TIMEOUT_SECONDS", 10.0)

        # Sender for simulated (non-broadcast) scripts; defaults to the deploy config's finalSystemOwner
        self.impersonate_sender: Optional[str] = os.getenv("TRH_SHUTDOWN_IMPERSONATE_SENDER") or None

        # General Application Settings
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        self._validate_critical_configs()

    def _get_float_env(self, var_name: str, default: float) -> float:
        val = os.getenv(var_name)
        if val is None or not val.strip():
            return default
        try:
            return float(val)
        except ValueError:
            logger.warning(f"{var_name}={val!r} is not a number, using default {default}.")
            return default

    def _validate_critical_configs(self):
        if self.state_scope not in _VALID_STATE_SCOPES:
            logger.warning(
                f"TRH_SHUTDOWN_STATE_SCOPE={self.state_scope!r} is not one of {_VALID_STATE_SCOPES}. "
                f"Falling back to '{STATE_SCOPE_GLOBAL}'."
            )
            self.state_scope = STATE_SCOPE_GLOBAL
