import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from ...sdk.chain_client import ChainClient
from ...sdk.exceptions import ChainClientError, RpcError
from ...sdk.rpc_client import RpcClient
from ...sdk.script_runner import CommandResult, run_command
from ...shared.utils import ensure_hex_prefix, utc_now
from .context import ShutdownContext
from .exceptions import (
    ArtifactNotFound,
    ChainIdMismatch,
    ExternalCallFailed,
    MissingPrerequisite,
    ShutdownError,
)
from .phases import CANONICAL_ORDER, PHASE_ORDER, Phase, PhaseOptions, PhaseResult, get_phase
from .utils import phase_failure_message, phase_success_message

logger = logging.getLogger(__name__)

EXTERNAL_SCRIPT_PHASE = "script"
DEFAULT_EXTERNAL_SCRIPT = Path("scripts") / "shutdown" / "shutdown.sh"

Clock = Callable[[], datetime]
Echo = Callable[[str], None]


class ShutdownOrchestrator:
    """
    Runs shutdown phases against one resolved context.

    Phases run strictly one after another. State is persisted after every successful
    phase; the first failure stops the run and nothing is rolled back.
    """

    def __init__(
        self,
        context: ShutdownContext,
        chain_client: ChainClient,
        clock: Optional[Clock] = None,
        echo: Echo = print,
        rpc_client: Optional[RpcClient] = None,
    ):
        self.context = context
        self.chain_client = chain_client
        self.clock = clock or utc_now
        self.echo = echo
        self.rpc_client = rpc_client

    def _check_prerequisites(self, phase: Phase, options: PhaseOptions) -> None:
        for path, produced_by in phase.requires(self.context, options):
            if not path.exists():
                raise MissingPrerequisite(phase.name, path, produced_by=produced_by)

    def _check_outputs(self, phase: Phase, options: PhaseOptions) -> None:
        for path in phase.produces(self.context, options):
            if not path.exists():
                raise ExternalCallFailed(phase.name, f"chain client reported success but {path} was not written")

    def run_phase(self, name: str, options: Optional[PhaseOptions] = None) -> PhaseResult:
        phase = get_phase(name)
        options = options or PhaseOptions()
        session_logger = self.context.logger

        self.echo(phase.banner)
        session_logger.info(f"Phase '{phase.name}' started")
        state_before = self.context.state.model_copy()
        try:
            self._check_prerequisites(phase, options)
            try:
                result = phase.execute(self.context, self.chain_client, options, self.clock())
            except ChainClientError as e:
                raise ExternalCallFailed(phase.name, str(e)) from e
            self._check_outputs(phase, options)
            self.context.persist()
        except ShutdownError as e:
            self.context.state = state_before
            if not e.phase:
                e.phase = phase.name
            session_logger.error(f"Phase '{phase.name}' failed: {e}")
            self.echo(phase_failure_message(phase.title, e))
            raise

        session_logger.info(f"Phase '{phase.name}' completed: {result.details}")
        self.echo(phase_success_message(phase.title, result.details))
        return result

    def run(self, selection: Iterable[str] = (), options: Optional[PhaseOptions] = None) -> List[PhaseResult]:
        """
        Runs the selected phases in canonical order. An empty selection runs the default
        five; the optional block and fetch steps only run when selected.
        """
        selected = set(selection)
        unknown = selected.difference(CANONICAL_ORDER)
        if unknown:
            raise ValueError(f"Unknown shutdown phase(s): {', '.join(sorted(unknown))}")

        to_run = [name for name in CANONICAL_ORDER if name in selected] if selected else list(PHASE_ORDER)
        self.context.logger.info(f"Shutdown run started: {' -> '.join(to_run)}")

        results: List[PhaseResult] = []
        for name in to_run:
            results.append(self.run_phase(name, options))

        self.context.logger.info("Shutdown run finished")
        return results

    def preflight(self) -> None:
        """Confirms both RPC endpoints serve the chains named in settings.json."""
        if self.rpc_client is None:
            return
        config = self.context.config
        for layer, url, expected in (
            ("L1", config.l1_rpc_url, config.l1_chain_id),
            ("L2", config.l2_rpc_url, config.l2_chain_id),
        ):
            try:
                actual = self.rpc_client.chain_id(url)
            except RpcError as e:
                raise ExternalCallFailed("preflight", f"{layer} RPC check failed: {e}") from e
            if actual != expected:
                raise ChainIdMismatch(layer, expected, actual)
            self.context.logger.info(f"{layer} RPC reports chain ID {actual} as expected")


def run_external_script(
    context: ShutdownContext,
    script_path: Optional[Union[str, Path]] = None,
    runner: Callable[..., CommandResult] = run_command,
    echo: Echo = print,
) -> None:
    """
    Hands the whole shutdown sequence to a single external script.
    The script receives the network as its argument and RPC/key settings via the environment.
    The persisted state is left untouched.
    """
    script = Path(script_path) if script_path else context.bedrock_root / DEFAULT_EXTERNAL_SCRIPT
    if not script.is_file():
        raise ArtifactNotFound(f"shutdown script not found: {script}", candidates=[script], phase=EXTERNAL_SCRIPT_PHASE)

    config = context.config
    script_env = {
        "L1_RPC_URL": config.l1_rpc_url,
        "L2_RPC_URL": config.l2_rpc_url,
        "PRIVATE_KEY": ensure_hex_prefix(config.admin_private_key),
        "NETWORK": config.network,
    }

    echo(f"🏁 Running external shutdown script {script} for network '{config.network}'...")
    context.logger.info(f"Delegating shutdown to {script} (network: {config.network})")
    try:
        runner(
            ["bash", str(script), config.network],
            cwd=script.parent,
            env={**os.environ, **script_env},
            log=context.logger,
        )
    except ChainClientError as e:
        context.logger.error(f"External shutdown script failed: {e}")
        echo(phase_failure_message(EXTERNAL_SCRIPT_PHASE.upper(), e))
        raise ExternalCallFailed(EXTERNAL_SCRIPT_PHASE, str(e)) from e

    echo(phase_success_message(EXTERNAL_SCRIPT_PHASE.upper()))
