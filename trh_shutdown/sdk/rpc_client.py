# =====================
# 📁 trh_shutdown/sdk/rpc_client.py
# =====================
import logging
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from .exceptions import RpcError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_ATTEMPTS = 3


class RpcClient:
    """
    Minimal JSON-RPC client used for preflight checks (eth_chainId).
    Transport errors are retried with exponential backoff; HTTP and JSON-RPC errors are not.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        wait: Optional[wait_base] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.http_client = http_client or httpx.Client(timeout=timeout, headers={"Content-Type": "application/json"})
        self._retrying = Retrying(
            stop=stop_after_attempt(max_attempts),
            wait=wait if wait is not None else wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(httpx.TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def close(self) -> None:
        self.http_client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _post(self, url: str, payload: Dict[str, Any]) -> httpx.Response:
        response = self.http_client.post(url, json=payload)
        response.raise_for_status()
        return response

    def call(self, url: str, method: str, params: Optional[list] = None) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or []}
        logger.debug(f"RPC Request: {method}")
        try:
            response = self._retrying(self._post, url, payload)
        except httpx.HTTPStatusError as e:
            raise RpcError(f"RPC {method} failed with HTTP {e.response.status_code}", url=url) from e
        except httpx.TransportError as e:
            raise RpcError(f"RPC {method} failed: {e}", url=url) from e

        try:
            body = response.json()
        except ValueError as e:
            raise RpcError(f"RPC {method} returned a non-JSON body", url=url) from e

        if not isinstance(body, dict):
            raise RpcError(f"RPC {method} returned an unexpected payload", url=url)
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise RpcError(f"RPC {method} error: {message}", url=url)
        return body.get("result")

    def chain_id(self, url: str) -> int:
        result = self.call(url, "eth_chainId")
        if not isinstance(result, str):
            raise RpcError(f"eth_chainId returned {result!r}", url=url)
        try:
            return int(result, 16)
        except ValueError as e:
            raise RpcError(f"eth_chainId returned a non-hex value {result!r}", url=url) from e
