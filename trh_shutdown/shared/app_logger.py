# ============================
# 📁 trh_shutdown/shared/app_logger.py
# ============================
import hashlib
import logging
from pathlib import Path
from typing import Dict, Optional, Union

APP_LOGGER_NAMESPACE = "trh_shutdown"
FILE_LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"

_loggers: Dict[str, logging.Logger] = {}  # Cache for logger instances


def get_app_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Retrieves or creates a logger under the application namespace.
    Without `level` the logger defers to the root logger the CLI entry point configured.
    """
    logger_full_name = name if name.startswith(APP_LOGGER_NAMESPACE) else f"{APP_LOGGER_NAMESPACE}.{name}"

    if logger_full_name in _loggers:
        return _loggers[logger_full_name]

    logger_instance = logging.getLogger(logger_full_name)
    if level is not None:
        logger_instance.setLevel(level)

    _loggers[logger_full_name] = logger_instance
    return logger_instance


def shutdown_log_path(deployment_root: Union[str, Path], l2_chain_id: int) -> Path:
    return Path(deployment_root) / "logs" / f"shutdown_{l2_chain_id}.log"


def _audit_level() -> int:
    # At least INFO for the audit file, lower when the root logger asks for more
    return min(logging.INFO, logging.getLogger().getEffectiveLevel())


def get_shutdown_logger(deployment_root: Union[str, Path], l2_chain_id: int) -> logging.Logger:
    """
    Returns the audit logger for one deployment's shutdown run.

    Records go to <deployment_root>/logs/shutdown_<l2_chain_id>.log and still
    propagate to the root logger, so the CLI's stderr handler shows them too.
    One logger (and one file handler) is kept per log file. The file always
    receives INFO and above, and DEBUG too once the root logger is at DEBUG
    (e.g. under --verbose).
    """
    log_path = shutdown_log_path(deployment_root, l2_chain_id).resolve()
    path_digest = hashlib.sha1(str(log_path).encode()).hexdigest()[:8]
    logger_name = f"{APP_LOGGER_NAMESPACE}.shutdown.{l2_chain_id}.{path_digest}"
    if logger_name in _loggers:
        logger_instance = _loggers[logger_name]
        logger_instance.setLevel(_audit_level())
        return logger_instance

    log_path.parent.mkdir(parents=True, exist_ok=True)
    logger_instance = get_app_logger(logger_name, level=_audit_level())

    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT))
    logger_instance.addHandler(handler)
    return logger_instance
