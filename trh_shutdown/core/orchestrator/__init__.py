from .artifacts import (
    ASSETS_SNAPSHOT,
    STORAGE_ADDRESSES,
    STORAGE_ADDRESSES_DRY_RUN,
    ArtifactDescriptor,
    resolve_artifact,
    resolve_bridge_address,
)
from .context import ShutdownContext, build_context
from .exceptions import (
    ArtifactNotFound,
    ChainIdMismatch,
    ConfigInvalid,
    ConfigNotFound,
    ExternalCallFailed,
    MissingPrerequisite,
    SdkNotFound,
    ShutdownError,
    StateIOError,
)
from .main_orchestrator import ShutdownOrchestrator, run_external_script
from .phases import CANONICAL_ORDER, PHASE_ORDER, PhaseOptions, PhaseResult
from .state import DerivedContext, ShutdownState
from .state_store import StateStore
from .status import StatusReport, build_status_report

__all__ = [
    "ASSETS_SNAPSHOT",
    "STORAGE_ADDRESSES",
    "STORAGE_ADDRESSES_DRY_RUN",
    "ArtifactDescriptor",
    "resolve_artifact",
    "resolve_bridge_address",
    "ShutdownContext",
    "build_context",
    "ArtifactNotFound",
    "ChainIdMismatch",
    "ConfigInvalid",
    "ConfigNotFound",
    "ExternalCallFailed",
    "MissingPrerequisite",
    "SdkNotFound",
    "ShutdownError",
    "StateIOError",
    "ShutdownOrchestrator",
    "run_external_script",
    "CANONICAL_ORDER",
    "PHASE_ORDER",
    "PhaseOptions",
    "PhaseResult",
    "DerivedContext",
    "ShutdownState",
    "StateStore",
    "StatusReport",
    "build_status_report",
]
