"""Configuration constants for multichain-deployments library."""

# EVM networks keyed by their exact, case-sensitive symbolic id
# rpc_url_env names the environment variable that overrides the public endpoint
EVM_NETWORK_CONFIG = {
    "CELO_MAINNET": {
        "chain_id": 42220,
        "name": "Celo Mainnet",
        "rpc_url": "https://forno.celo.org",
        "rpc_url_env": "CELO_MAINNET_RPC_URL",
    },
    "CELO_ALFAJORES": {
        "chain_id": 44787,
        "name": "Celo Alfajores Testnet",
        "rpc_url": "https://alfajores-forno.celo-testnet.org",
        "rpc_url_env": "CELO_ALFAJORES_RPC_URL",
    },
}

STELLAR_NETWORK_CONFIG = {
    "testnet": {
        "horizon_url": "https://horizon-testnet.stellar.org",
        "soroban_rpc_url": "https://soroban-testnet.stellar.org",
        "network_passphrase": "Test SDF Network ; September 2015",
        "horizon_url_env": "STELLAR_TESTNET_HORIZON_URL",
    },
    "mainnet": {
        "horizon_url": "https://horizon.stellar.org",
        "soroban_rpc_url": "https://soroban-mainnet.stellar.org",
        "network_passphrase": "Public Global Stellar Network ; September 2015",
        "horizon_url_env": "STELLAR_MAINNET_HORIZON_URL",
    },
}

# Prefix used to label Stellar deployments ("stellar-testnet", "stellar-mainnet")
STELLAR_NETWORK_LABEL_PREFIX = "stellar-"

# Gas heuristics (intrinsic transaction gas + per-byte creation cost)
EVM_BASE_GAS = 21000
EVM_GAS_PER_BYTE = 200

# Stellar fees, in stroops
STELLAR_BASE_FEE = 100
STELLAR_FEE_PER_BYTE = 10
STELLAR_TX_TIMEOUT_SECONDS = 300

# Confirmation polling defaults
DEFAULT_POLL_INITIAL_DELAY = 2.0
DEFAULT_POLL_MULTIPLIER = 1.5
DEFAULT_POLL_MAX_DELAY = 10.0
DEFAULT_POLL_MAX_ATTEMPTS = 30

# Timeout for a single HTTP request, in seconds
DEFAULT_HTTP_TIMEOUT = 30
