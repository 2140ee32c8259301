import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Environment keys whose values never reach a log line
REDACTED_ENV_KEYS = frozenset({"PRIVATE_KEY", "L1_RPC_URL", "L2_RPC_URL"})


def format_data_for_display(data: Any) -> str:
    """Formats data as a pretty JSON string or falls back to `str()`."""
    if isinstance(data, (dict, list, tuple)):
        try:
            return json.dumps(data, indent=2, sort_keys=True)
        except TypeError:
            logger.warning(f"Could not JSON serialize data of type {type(data)}, falling back to str().")
            return str(data)
    return str(data)


def read_json_file(filepath: PathLike) -> Optional[Dict[str, Any]]:
    """
    Reads a JSON object from disk.
    Returns None when the file does not exist; raises ValueError when it exists but is not a JSON object.
    OSError from reading a present file propagates.
    """
    path = Path(filepath)
    if not path.exists():
        return None
    with path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON format in file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {path}, got {type(data).__name__}")
    return data


def write_json_atomic(filepath: PathLike, data: Any) -> None:
    """
    Writes `data` as JSON to a unique temp file next to `filepath`, then renames it into place.
    Readers see either the old file or the new one, never a partial write.
    """
    path = Path(filepath)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except OSError:
            logger.debug(f"Temp file {tmp_name} already gone during cleanup.")
        raise


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with microseconds and a Z suffix, so string order matches time order."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def ensure_hex_prefix(value: str) -> str:
    if not value:
        return value
    return value if value.startswith("0x") else f"0x{value}"


def redact_env(env: Dict[str, str], keys: Iterable[str] = REDACTED_ENV_KEYS) -> List[str]:
    """Renders KEY=value pairs for logging, masking sensitive values."""
    hidden = set(keys)
    return [f"{key}={'<redacted>' if key in hidden else value}" for key, value in env.items()]
