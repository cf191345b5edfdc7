"""Stellar deployment envelope building for multichain-deployments library."""

import logging

from stellar_sdk import Account, TransactionBuilder, TransactionEnvelope
from stellar_sdk.exceptions import SdkError

from .constants import STELLAR_BASE_FEE, STELLAR_FEE_PER_BYTE, STELLAR_TX_TIMEOUT_SECONDS
from .exceptions import AccountLoadFailedError, HorizonError, TransportError, ValidationError
from .horizon import HorizonClient
from .types import StellarNetworkConfig, UnsignedEnvelope

logger = logging.getLogger(__name__)


def estimate_stellar_fee(wasm_size: int) -> int:
    """Rough upload fee in stroops: base fee plus 10 stroops per WASM byte."""
    return STELLAR_BASE_FEE + wasm_size * STELLAR_FEE_PER_BYTE


async def load_sequence(horizon: HorizonClient, source_account: str) -> int:
    """
    Load the source account's sequence number.

    Raises:
        AccountLoadFailedError: If Horizon cannot return the account; details
            carry Horizon's message verbatim
    """
    try:
        return await horizon.load_account_sequence_async(source_account)
    except (HorizonError, TransportError) as e:
        logger.error(
            "Could not load Stellar account",
            extra={
                "event": "stellar.account_load_failed",
                "source_account": source_account,
                "horizon_url": horizon.horizon_url,
                "error": e.details,
            },
        )
        raise AccountLoadFailedError(
            f"Failed to load account {source_account}", details=e.details or str(e)
        ) from e


def build_upload_envelope(
    network_config: StellarNetworkConfig, wasm: bytes, source_account: str, sequence: int
) -> UnsignedEnvelope:
    """
    Build an unsigned envelope with one WASM-upload host-function operation.

    Raises:
        ValidationError: If the source account or WASM cannot go into an envelope
    """
    try:
        envelope = (
            TransactionBuilder(
                source_account=Account(source_account, sequence),
                network_passphrase=network_config.network_passphrase,
                base_fee=STELLAR_BASE_FEE,
            )
            .append_upload_contract_wasm_op(contract=wasm)
            .set_timeout(STELLAR_TX_TIMEOUT_SECONDS)
            .build()
        )
    except (SdkError, ValueError, TypeError) as e:
        raise ValidationError("Could not build Stellar deployment envelope", details=str(e)) from e

    return UnsignedEnvelope(envelope_xdr=envelope.to_xdr(), network=network_config.label)


async def create_deployment_envelope(
    horizon: HorizonClient,
    network_config: StellarNetworkConfig,
    wasm: bytes,
    source_account: str,
) -> UnsignedEnvelope:
    """
    Load the account sequence and build the upload envelope.

    Raises:
        AccountLoadFailedError: If the account cannot be loaded
        ValidationError: If the envelope cannot be built
    """
    sequence = await load_sequence(horizon, source_account)
    envelope = build_upload_envelope(network_config, wasm, source_account, sequence)

    logger.info(
        "Built unsigned Stellar deployment",
        extra={
            "event": "stellar.envelope_built",
            "network": envelope.network,
            "source_account": source_account,
            "wasm_bytes": len(wasm),
        },
    )
    return envelope


def parse_signed_envelope(envelope_xdr: str, network_config: StellarNetworkConfig) -> TransactionEnvelope:
    """
    Decode a signed base64 envelope.

    Raises:
        ValidationError: If the XDR does not decode to a transaction envelope
    """
    if not isinstance(envelope_xdr, str) or not envelope_xdr:
        raise ValidationError("Signed envelope XDR is required")
    try:
        return TransactionEnvelope.from_xdr(envelope_xdr, network_config.network_passphrase)
    except Exception as e:
        raise ValidationError("Signed envelope is not valid XDR", details=str(e) or repr(e)) from e
