"""Stellar Horizon client for multichain-deployments library."""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from stellar_sdk import Address, Server, TransactionEnvelope, scval
from stellar_sdk import xdr as stellar_xdr
from stellar_sdk.client.requests_client import RequestsClient
from stellar_sdk.exceptions import BaseHorizonError, NotFoundError
from stellar_sdk.exceptions import ConnectionError as StellarConnectionError

from .constants import DEFAULT_HTTP_TIMEOUT
from .exceptions import HorizonError, HorizonNotFoundError, TransportError

logger = logging.getLogger(__name__)


def problem_message(error: BaseHorizonError) -> str:
    """
    Extract the upstream message from a Horizon error.

    Horizon answers errors with an RFC 7807 problem document. Submission
    failures carry result codes under extras.result_codes; those are
    preferred over the generic detail text.
    """
    title = error.title or f"HTTP {error.status}"
    result_codes = (error.extras or {}).get("result_codes")
    if result_codes:
        codes = [result_codes.get("transaction")] + list(result_codes.get("operations") or [])
        return f"{title}: {', '.join(c for c in codes if c)}"

    if error.detail:
        return error.detail
    if error.title:
        return error.title
    return error.message or f"HTTP {error.status}"


class HorizonClient:
    """
    Horizon calls used for Stellar deployments, on top of ``stellar_sdk.Server``.

    The SDK's requests-based client is used with retries disabled, so the
    confirmation poller alone decides when to try again. Like the JSON-RPC
    clients, each method is blocking and has an ``_async`` twin that runs it
    in a worker thread.
    """

    def __init__(self, horizon_url: str, timeout: float = DEFAULT_HTTP_TIMEOUT):
        self.horizon_url = horizon_url.rstrip("/")
        self.timeout = timeout
        self.server = Server(
            self.horizon_url,
            client=RequestsClient(num_retries=0, request_timeout=timeout, post_timeout=timeout),
        )

    def _call(self, path: str, request: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        try:
            return request()
        except NotFoundError as e:
            raise HorizonNotFoundError(
                f"Horizon resource not found: {path}", details=problem_message(e), status=e.status
            ) from e
        except BaseHorizonError as e:
            raise HorizonError(
                f"Horizon request {path} failed with status {e.status}",
                details=problem_message(e),
                status=e.status,
            ) from e
        except StellarConnectionError as e:
            raise TransportError(f"Network error during Horizon request {path}", details=str(e)) from e
        except ValueError as e:
            # Success status with a body that is not JSON
            raise TransportError(f"Malformed Horizon response for {path}", details=str(e)) from e

    def load_account_sequence(self, account_id: str) -> int:
        """
        Load an account's current sequence number.

        Raises:
            HorizonNotFoundError: If the account does not exist
            HorizonError: If Horizon rejects the request
            TransportError: If Horizon cannot be reached or answers without
                a usable sequence
        """
        path = f"/accounts/{account_id}"
        account = self._call(path, self.server.accounts().account_id(account_id).call)
        try:
            return int(account["sequence"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransportError(
                f"Malformed Horizon response for {path}", details=str(account)
            ) from e

    def submit_transaction(self, envelope: TransactionEnvelope) -> Dict[str, Any]:
        """Submit a signed envelope; returns Horizon's transaction resource."""
        return self._call(
            "/transactions",
            lambda: self.server.submit_transaction(envelope, skip_memo_required_check=True),
        )

    def get_transaction(self, tx_hash: str) -> Dict[str, Any]:
        """
        Fetch a transaction by hash.

        Raises:
            HorizonNotFoundError: If the transaction is not (yet) ingested
        """
        return self._call(
            f"/transactions/{tx_hash}", self.server.transactions().transaction(tx_hash).call
        )

    async def load_account_sequence_async(self, account_id: str) -> int:
        return await asyncio.to_thread(self.load_account_sequence, account_id)

    async def submit_transaction_async(self, envelope: TransactionEnvelope) -> Dict[str, Any]:
        return await asyncio.to_thread(self.submit_transaction, envelope)

    async def get_transaction_async(self, tx_hash: str) -> Dict[str, Any]:
        return await asyncio.to_thread(self.get_transaction, tx_hash)


def contract_id_from_return_value(value: stellar_xdr.SCVal) -> str:
    """
    Render a Soroban host-function return value as an identifier.

    Contract creation returns an address (rendered as its C... strkey);
    a WASM upload returns the 32-byte WASM hash (rendered as hex).
    """
    native = scval.to_native(value)
    if isinstance(native, Address):
        return native.address
    if isinstance(native, bytes):
        return native.hex()
    return value.to_xdr()


def extract_contract_id(result_meta_xdr: Optional[str]) -> Optional[str]:
    """
    Pull the Soroban return value out of a base64 TransactionMeta.

    Returns:
        The rendered return value, or None when the meta is missing,
        undecodable, or carries no Soroban return value
    """
    if not result_meta_xdr:
        return None

    try:
        meta = stellar_xdr.TransactionMeta.from_xdr(result_meta_xdr)
    except Exception as e:
        logger.warning(
            "Could not decode transaction meta",
            extra={"event": "stellar.meta_decode_failed", "error": str(e)},
        )
        return None

    soroban_meta = None
    if meta.v == 3 and meta.v3 is not None:
        soroban_meta = meta.v3.soroban_meta
    elif meta.v == 4 and getattr(meta, "v4", None) is not None:
        soroban_meta = meta.v4.soroban_meta

    if soroban_meta is None or soroban_meta.return_value is None:
        return None

    return contract_id_from_return_value(soroban_meta.return_value)
