"""EVM deployment transaction building for multichain-deployments library."""

import logging
from typing import Any, Optional, Sequence

from .abi import encode_constructor_args
from .artifacts import ensure_hex_prefix, payload_bytes
from .constants import EVM_BASE_GAS, EVM_GAS_PER_BYTE
from .exceptions import GasEstimationFailedError, RpcError, TransportError, ValidationError
from .rpc import EVMRpcClient
from .types import EVMNetworkConfig, UnsignedTransaction

logger = logging.getLogger(__name__)


def estimate_evm_gas(bytecode: str) -> int:
    """
    Heuristic gas estimate for deploying bytecode.

    21000 intrinsic gas plus 200 gas per byte of code.
    """
    return EVM_BASE_GAS + len(payload_bytes(bytecode)) * EVM_GAS_PER_BYTE


def build_deployment_data(bytecode: str, abi: Any, constructor_args: Sequence[Any]) -> str:
    """
    Concatenate bytecode and ABI-encoded constructor arguments.

    Args:
        bytecode: Contract creation bytecode (hex, 0x prefix optional)
        abi: Contract ABI
        constructor_args: Constructor arguments

    Returns:
        0x-prefixed hex; equal to the bytecode when there are no arguments
    """
    # Fail early on non-hex bytecode
    payload_bytes(bytecode)
    encoded = encode_constructor_args(abi, constructor_args)
    return ensure_hex_prefix(bytecode) + encoded.hex()


async def resolve_gas_limit(
    rpc: EVMRpcClient, data: str, gas_limit: Optional[int] = None
) -> int:
    """
    Pick the gas limit for a deployment.

    An explicit gas_limit wins. Otherwise the node is asked for an estimate;
    if the node cannot be reached the bytecode heuristic is used.

    Raises:
        ValidationError: If an explicit gas_limit is not a positive integer
        GasEstimationFailedError: If the node rejects the estimate (e.g. the
            constructor reverts)
    """
    if gas_limit is not None:
        if isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit <= 0:
            raise ValidationError("gasLimit must be a positive integer", details=repr(gas_limit))
        return gas_limit

    try:
        return await rpc.estimate_gas({"data": data})
    except RpcError as e:
        raise GasEstimationFailedError("Gas estimation failed", details=e.details) from e
    except TransportError as e:
        fallback = estimate_evm_gas(data)
        logger.warning(
            "Gas estimate unavailable, using heuristic",
            extra={
                "event": "evm.gas_estimate_fallback",
                "rpc_url": rpc.rpc_url,
                "gas_limit": fallback,
                "error": e.details,
            },
        )
        return fallback


async def build_unsigned_transaction(
    rpc: EVMRpcClient,
    network_config: EVMNetworkConfig,
    bytecode: str,
    abi: Any,
    constructor_args: Sequence[Any],
    gas_limit: Optional[int] = None,
) -> UnsignedTransaction:
    """
    Build an unsigned contract-creation transaction.

    ``data`` and ``chainId`` depend only on the bytecode, arguments and
    network, so identical inputs always produce identical payloads.

    Raises:
        ValidationError: If bytecode, arguments or gas_limit are malformed
        GasEstimationFailedError: If the node rejects the gas estimate
    """
    data = build_deployment_data(bytecode, abi, constructor_args)
    resolved_gas = await resolve_gas_limit(rpc, data, gas_limit)

    logger.info(
        "Built unsigned EVM deployment",
        extra={
            "event": "evm.transaction_built",
            "network": network_config.network,
            "chain_id": network_config.chain_id,
            "data_bytes": len(data) // 2 - 1,
            "gas_limit": resolved_gas,
        },
    )

    return UnsignedTransaction(
        data=data,
        chain_id=network_config.chain_id,
        gas_limit=str(resolved_gas),
    )
