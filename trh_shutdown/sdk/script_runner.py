# ==========================
# 📁 trh_shutdown/sdk/script_runner.py
# ==========================
import logging
import subprocess
import time
from pathlib import Path
from typing import Dict, Iterable, List, NamedTuple, Optional, Union

from .exceptions import ChainClientError, CommandNotFoundError

logger = logging.getLogger(__name__)


class CommandResult(NamedTuple):
    exit_code: int
    output: str
    duration: float


def run_command(
    command: List[str],
    cwd: Optional[Union[str, Path]] = None,
    env: Optional[Dict[str, str]] = None,
    log: Optional[logging.Logger] = None,
    check: bool = True,
    redact: Iterable[str] = (),
) -> CommandResult:
    """
    Runs `command` to completion, streaming each output line to `log` as it arrives.

    stdout and stderr are merged. With check=True a non-zero exit raises ChainClientError
    carrying the exit code and the captured output. Values listed in `redact` are masked
    in the command echo.
    """
    log = log or logger
    hidden = {value for value in redact if value}
    shown = " ".join("<redacted>" if part in hidden else part for part in command)
    log.info(f"Running: \"{shown}\" in CWD: \"{cwd or Path.cwd()}\"")
    start_time = time.monotonic()
    lines: List[str] = []
    try:
        process = subprocess.Popen(
            command,
            cwd=str(cwd) if cwd else None,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except FileNotFoundError as e:
        log.error(f"Command not found: {command[0]}")
        raise CommandNotFoundError(command[0]) from e

    with process:
        for line in process.stdout:
            stripped = line.rstrip("\n")
            lines.append(stripped)
            if stripped.strip():
                log.info(stripped)
        exit_code = process.wait()

    duration = time.monotonic() - start_time
    output = "\n".join(lines)
    log.debug(f"Command finished. RC: {exit_code}, Duration: {duration:.2f}s.")

    if check and exit_code != 0:
        raise ChainClientError(f"Command failed: {Path(command[0]).name}", exit_code=exit_code, output=output)
    return CommandResult(exit_code=exit_code, output=output, duration=duration)
