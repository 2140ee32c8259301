# ==========================
# 📁 trh_shutdown/sdk/exceptions.py
# ==========================
from typing import Optional


class ChainClientError(Exception):
    """Base exception for chain-client failures (forge scripts, RPC calls)."""
    def __init__(self, message: str, exit_code: Optional[int] = None, output: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code
        self.output = output

    def __str__(self):
        if self.exit_code is None:
            return self.message
        return f"{self.message} (exit code: {self.exit_code})"


class CommandNotFoundError(ChainClientError):
    """Raised when the executable for a script or tool is not on PATH."""
    def __init__(self, command: str):
        super().__init__(f"Command not found: {command}")
        self.command = command


class RpcError(ChainClientError):
    """Raised for JSON-RPC transport failures and error responses."""
    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url
