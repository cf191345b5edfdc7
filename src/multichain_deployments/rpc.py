"""JSON-RPC clients (EVM nodes, Soroban RPC) for multichain-deployments library."""

import asyncio
import itertools
import logging
from typing import Any, Dict, List, Optional, Union

import requests

from .constants import DEFAULT_HTTP_TIMEOUT
from .exceptions import RpcError, TransportError

logger = logging.getLogger(__name__)

_request_ids = itertools.count(1)


def parse_quantity(value: Any) -> Optional[int]:
    """Parse a JSON-RPC quantity ("0x1a", 26 or None)."""
    if value is None:
        return None
    if isinstance(value, int):
        return value
    return int(value, 16)


class JsonRpcClient:
    """
    Minimal JSON-RPC 2.0 client.

    Requests are blocking ``requests`` calls; the async methods run them in a
    worker thread so callers can deploy to many networks concurrently.
    """

    def __init__(self, rpc_url: str, timeout: float = DEFAULT_HTTP_TIMEOUT):
        self.rpc_url = rpc_url
        self.timeout = timeout

    def call(self, method: str, params: Union[List[Any], Dict[str, Any]]) -> Any:
        """
        Perform a JSON-RPC call.

        Args:
            method: RPC method name (e.g. "eth_estimateGas")
            params: Positional (list) or named (dict) RPC params

        Returns:
            The "result" member of the response (may be None)

        Raises:
            RpcError: If the node returns an error object
            TransportError: If the request fails or the response is not JSON-RPC
        """
        logger.debug("RPC call", extra={"event": "rpc.call", "method": method, "rpc_url": self.rpc_url})

        try:
            response = requests.post(
                self.rpc_url,
                json={
                    "jsonrpc": "2.0",
                    "method": method,
                    "params": params,
                    "id": next(_request_ids),
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Network error during RPC call {method}", details=str(e)) from e

        # Check for HTTP errors
        if response.status_code != 200:
            raise TransportError(
                f"RPC request {method} failed with status {response.status_code}",
                details=response.text or response.reason,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError(f"Malformed RPC response for {method}", details=str(e)) from e

        # Check for RPC errors
        if "error" in body:
            error = body["error"]
            if isinstance(error, dict):
                message = error.get("message") or str(error)
                code = error.get("code")
            else:
                message, code = str(error), None
            raise RpcError(f"RPC error from {method}", details=message, code=code)

        if "result" not in body:
            raise TransportError(f"Malformed RPC response for {method}", details=str(body))

        return body["result"]

    async def call_async(self, method: str, params: Union[List[Any], Dict[str, Any]]) -> Any:
        return await asyncio.to_thread(self.call, method, params)


class EVMRpcClient(JsonRpcClient):
    """Calls an EVM node makes available for contract deployment."""

    async def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        result = await self.call_async("eth_estimateGas", [transaction])
        gas = parse_quantity(result)
        if gas is None:
            raise TransportError("Malformed RPC response for eth_estimateGas", details="null result")
        return gas

    async def send_raw_transaction(self, signed_tx: str) -> str:
        return await self.call_async("eth_sendRawTransaction", [signed_tx])

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self.call_async("eth_getTransactionReceipt", [tx_hash])


class SorobanRpcClient(JsonRpcClient):
    """Soroban RPC calls used to read transaction metadata."""

    async def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        """
        Fetch a transaction by hash.

        Returns:
            The RPC result; "status" is "SUCCESS", "FAILED" or "NOT_FOUND"
        """
        return await self.call_async("getTransaction", {"hash": tx_hash})
