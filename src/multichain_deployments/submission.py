"""Broadcasting of signed transactions for multichain-deployments library."""

import logging

from eth_utils import keccak

from .artifacts import ensure_hex_prefix, strip_hex_prefix
from .exceptions import (
    HorizonError,
    RpcError,
    TransactionSubmissionFailedError,
    TransportError,
    ValidationError,
)
from .horizon import HorizonClient
from .rpc import EVMRpcClient
from .stellar import parse_signed_envelope
from .types import StellarNetworkConfig

logger = logging.getLogger(__name__)

# Horizon answers 504 when a submitted transaction did not make it into a
# ledger within its wait window; the transaction may still be applied.
HORIZON_SUBMISSION_TIMEOUT = 504


def evm_transaction_hash(signed_tx: str) -> str:
    """
    Compute the hash of a signed raw EVM transaction (keccak-256 of its bytes).

    Raises:
        ValidationError: If signed_tx is empty or not hex
    """
    if not isinstance(signed_tx, str) or not strip_hex_prefix(signed_tx):
        raise ValidationError("Signed transaction is required")
    try:
        raw = bytes.fromhex(strip_hex_prefix(signed_tx))
    except ValueError as e:
        raise ValidationError("Signed transaction is not valid hex", details=str(e)) from e
    return "0x" + keccak(raw).hex()


async def broadcast_evm_transaction(rpc: EVMRpcClient, signed_tx: str) -> str:
    """
    Broadcast a signed raw transaction.

    Returns:
        The transaction hash assigned by the node

    Raises:
        ValidationError: If signed_tx is malformed
        TransactionSubmissionFailedError: If the node rejects the transaction;
            details carry the provider message
    """
    local_hash = evm_transaction_hash(signed_tx)

    try:
        tx_hash = await rpc.send_raw_transaction(ensure_hex_prefix(signed_tx))
    except (RpcError, TransportError) as e:
        logger.error(
            "EVM transaction rejected",
            extra={
                "event": "evm.submission_failed",
                "rpc_url": rpc.rpc_url,
                "tx_hash": local_hash,
                "error": e.details,
            },
        )
        raise TransactionSubmissionFailedError(
            "Transaction submission failed", details=e.details or str(e)
        ) from e

    tx_hash = tx_hash or local_hash
    logger.info(
        "EVM transaction submitted",
        extra={"event": "evm.submitted", "rpc_url": rpc.rpc_url, "tx_hash": tx_hash},
    )
    return tx_hash


async def broadcast_stellar_envelope(
    horizon: HorizonClient, network_config: StellarNetworkConfig, signed_xdr: str
) -> str:
    """
    Submit a signed envelope to Horizon.

    A Horizon submission timeout is not a rejection: the envelope hash is
    returned so the caller can keep polling for it.

    Returns:
        The transaction hash

    Raises:
        ValidationError: If signed_xdr does not decode
        TransactionSubmissionFailedError: If Horizon rejects the envelope;
            details carry Horizon's message
    """
    envelope = parse_signed_envelope(signed_xdr, network_config)
    local_hash = envelope.hash_hex()

    try:
        response = await horizon.submit_transaction_async(envelope)
    except HorizonError as e:
        if e.status == HORIZON_SUBMISSION_TIMEOUT:
            logger.warning(
                "Horizon submission timed out, transaction may still apply",
                extra={"event": "stellar.submission_timeout", "tx_hash": local_hash},
            )
            return local_hash
        logger.error(
            "Stellar transaction rejected",
            extra={"event": "stellar.submission_failed", "tx_hash": local_hash, "error": e.details},
        )
        raise TransactionSubmissionFailedError(
            "Transaction submission failed", details=e.details or str(e)
        ) from e
    except TransportError as e:
        logger.error(
            "Stellar transaction rejected",
            extra={"event": "stellar.submission_failed", "tx_hash": local_hash, "error": e.details},
        )
        raise TransactionSubmissionFailedError(
            "Transaction submission failed", details=e.details or str(e)
        ) from e

    tx_hash = response.get("hash") or local_hash
    logger.info(
        "Stellar transaction submitted",
        extra={"event": "stellar.submitted", "network": network_config.label, "tx_hash": tx_hash},
    )
    return tx_hash
