# ====================================
# 📁 trh_shutdown/cli/main.py
# ====================================
import logging
import sys

import typer

from ..shared.app_config import AppConfig
from .commands import shutdown_cmds

# --- Configure Root Logger for CLI ---
# Logs go to stderr so stdout only carries command output.
CLI_LOG_LEVEL_STR = AppConfig().log_level
numeric_log_level = getattr(logging, CLI_LOG_LEVEL_STR, logging.INFO)

logging.basicConfig(
    level=numeric_log_level,
    format='%(asctime)s [%(levelname)-8s] %(name)-25s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    stream=sys.stderr,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="trh-shutdown",
    help="Thanos rollup operator CLI: decommission an L2 by forcing withdrawals through the L1 bridge.",
    no_args_is_help=True,
    add_completion=False,
)

app.add_typer(shutdown_cmds.app, name="shutdown")


@app.callback(invoke_without_command=True)
def main_cli_setup(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose DEBUG logging for all loggers."),
):
    """
    trh-shutdown entry point.
    Global options like --verbose are handled here.
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        for handler in logging.getLogger().handlers:
            handler.setLevel(logging.DEBUG)
        logger.debug("Verbose (DEBUG) logging enabled.")


if __name__ == "__main__":
    app()
