"""Network configuration lookup for multichain-deployments library."""

import os
from typing import List

from .constants import EVM_NETWORK_CONFIG, STELLAR_NETWORK_CONFIG, STELLAR_NETWORK_LABEL_PREFIX
from .exceptions import UnknownNetworkError
from .types import EVMNetworkConfig, StellarNetworkConfig


def evm_networks() -> List[str]:
    """Return the supported EVM network ids."""
    return list(EVM_NETWORK_CONFIG.keys())


def stellar_networks() -> List[str]:
    """Return the supported Stellar network names."""
    return list(STELLAR_NETWORK_CONFIG.keys())


def get_evm_network_config(network: str) -> EVMNetworkConfig:
    """
    Resolve an EVM network id to its connection details.

    Lookup is exact and case-sensitive: "CELO_MAINNET" resolves,
    "celo_mainnet" does not.

    Args:
        network: Symbolic network id (e.g. "CELO_MAINNET")

    Returns:
        A fresh EVMNetworkConfig snapshot

    Raises:
        UnknownNetworkError: If network is not in the EVM network table
    """
    if not isinstance(network, str) or network not in EVM_NETWORK_CONFIG:
        raise UnknownNetworkError(
            f"Unknown EVM network: {network}",
            details=f"Supported EVM networks: {', '.join(evm_networks())}",
        )

    entry = EVM_NETWORK_CONFIG[network]
    return EVMNetworkConfig(
        network=network,
        name=entry["name"],
        rpc_url=entry["rpc_url"],
        chain_id=entry["chain_id"],
        rpc_url_env=entry.get("rpc_url_env"),
    )


def get_stellar_network_config(network: str) -> StellarNetworkConfig:
    """
    Resolve a Stellar network name to its connection details.

    Args:
        network: "testnet" or "mainnet" (exact, lower-case)

    Returns:
        A fresh StellarNetworkConfig snapshot

    Raises:
        UnknownNetworkError: If network is not in the Stellar network table
    """
    if not isinstance(network, str) or network not in STELLAR_NETWORK_CONFIG:
        raise UnknownNetworkError(
            f"Unknown Stellar network: {network}",
            details=f"Supported Stellar networks: {', '.join(stellar_networks())}",
        )

    entry = STELLAR_NETWORK_CONFIG[network]
    return StellarNetworkConfig(
        network=network,
        horizon_url=entry["horizon_url"],
        soroban_rpc_url=entry["soroban_rpc_url"],
        network_passphrase=entry["network_passphrase"],
        horizon_url_env=entry.get("horizon_url_env"),
    )


def stellar_network_label(network: str) -> str:
    """Compose the reported label for a Stellar network ("stellar-testnet")."""
    return f"{STELLAR_NETWORK_LABEL_PREFIX}{network}"


def parse_stellar_network_label(label: str) -> str:
    """
    Strip the "stellar-" prefix from a network label.

    Raises:
        UnknownNetworkError: If label lacks the prefix or names an unknown network
    """
    if not label.startswith(STELLAR_NETWORK_LABEL_PREFIX):
        raise UnknownNetworkError(f"Unknown Stellar network label: {label}")
    network = label[len(STELLAR_NETWORK_LABEL_PREFIX):]
    # Validates the remainder
    get_stellar_network_config(network)
    return network


def resolve_rpc_url(config: EVMNetworkConfig) -> str:
    """Return the RPC endpoint, preferring the network's environment override."""
    if config.rpc_url_env:
        override = os.environ.get(config.rpc_url_env)
        if override:
            return override
    return config.rpc_url


def resolve_horizon_url(config: StellarNetworkConfig) -> str:
    """Return the Horizon endpoint, preferring the network's environment override."""
    if config.horizon_url_env:
        override = os.environ.get(config.horizon_url_env)
        if override:
            return override
    return config.horizon_url
