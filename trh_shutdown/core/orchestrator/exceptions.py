from pathlib import Path
from typing import Iterable, List, Union


class ShutdownError(Exception):
    def __init__(self, message: str, phase: str = ""):
        super().__init__(message)
        self.phase = phase

    def __str__(self):
        context = f" [Phase: {self.phase}]" if self.phase else ""
        return f"{self.args[0]}{context}"


class ConfigNotFound(ShutdownError):
    pass


class ConfigInvalid(ShutdownError):
    def __init__(self, field: str, reason: str):
        super().__init__(f"settings.json validation failed: {field} {reason}")
        self.field = field


class SdkNotFound(ShutdownError):
    pass


class ArtifactNotFound(ShutdownError):
    def __init__(self, message: str, candidates: Iterable[Union[str, Path]] = (), phase: str = ""):
        super().__init__(message, phase=phase)
        self.candidates: List[Path] = [Path(c) for c in candidates]


class MissingPrerequisite(ArtifactNotFound):
    """A phase input produced by an earlier phase is not on disk yet."""
    def __init__(self, phase: str, path: Union[str, Path], produced_by: str = ""):
        hint = f" Run '{produced_by}' first." if produced_by else ""
        super().__init__(f"Required input not found: {path}.{hint}", candidates=[path], phase=phase)
        self.path = Path(path)
        self.produced_by = produced_by


class StateIOError(ShutdownError):
    pass


class ExternalCallFailed(ShutdownError):
    def __init__(self, phase: str, message: str):
        super().__init__(message, phase=phase)


class ChainIdMismatch(ShutdownError):
    def __init__(self, layer: str, expected: int, actual: int):
        super().__init__(f"{layer} RPC reports chain ID {actual}, settings.json expects {expected}")
        self.layer = layer
        self.expected = expected
        self.actual = actual
