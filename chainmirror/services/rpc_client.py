"""
JSON-RPC Client.

Minimal JSON-RPC 2.0 over HTTP POST client shared by the EVM and Solana
pollers. Every call uses a fresh request id. Failures are mapped to
TransportError (network / HTTP) or ProtocolError (JSON-RPC level).
No retries at this level: the poller retries on its next tick.
"""

import itertools
from typing import Any

import aiohttp
from loguru import logger

from chainmirror.config.settings import settings
from chainmirror.utils.exceptions import ProtocolError, TransportError


class JsonRpcClient:
    """
    Async JSON-RPC client bound to one endpoint.

    The aiohttp session is created lazily on the first call and must be
    released with close().
    """

    def __init__(
        self,
        endpoint: str,
        timeout_seconds: float | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            endpoint: HTTP(S) URL of the JSON-RPC node
            timeout_seconds: Total per-call timeout (default: RPC_TIMEOUT_SECONDS)
        """
        self.endpoint = endpoint
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.rpc_timeout_seconds
        )
        self._ids = itertools.count(1)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def call(self, method: str, params: list | None = None) -> Any:
        """
        Invoke a JSON-RPC method.

        Args:
            method: RPC method name (e.g. eth_blockNumber, getSlot)
            params: Positional parameters

        Returns:
            The `result` member of the response (None for an explicit null)

        Raises:
            TransportError: Network failure, timeout or non-2xx HTTP status
            ProtocolError: Non-JSON body, error object or missing result
        """
        request_id = next(self._ids)
        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params if params is not None else [],
        }

        session = await self._get_session()
        try:
            async with session.post(self.endpoint, json=payload) as response:
                if response.status < 200 or response.status >= 300:
                    raise TransportError(
                        f"{method}: HTTP {response.status} from {self.endpoint}",
                        method=method,
                    )
                try:
                    body = await response.json(content_type=None)
                except ValueError as e:
                    raise ProtocolError(
                        f"{method}: response is not valid JSON", method=method
                    ) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method}: {e}", method=method) from e
        except TimeoutError as e:
            raise TransportError(
                f"{method}: timed out after {self.timeout.total}s", method=method
            ) from e

        if not isinstance(body, dict):
            raise ProtocolError(
                f"{method}: response is not a JSON object", method=method
            )

        error = body.get("error")
        if error is not None:
            if isinstance(error, dict):
                code = error.get("code")
                message = error.get("message", "unknown error")
            else:
                code, message = None, str(error)
            raise ProtocolError(
                f"{method}: RPC error {code}: {message}",
                method=method,
                code=code if isinstance(code, int) else None,
            )

        if "result" not in body:
            raise ProtocolError(f"{method}: response has no result", method=method)

        return body["result"]

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug(f"[RPC] Session closed for {self.endpoint}")
        self._session = None
