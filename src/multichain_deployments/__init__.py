"""
multichain-deployments: deploy compiled smart contracts to EVM and Stellar/Soroban networks
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import ArtifactStore, FileArtifactStore, InMemoryArtifactStore, compute_artifact_id
from .classifier import ErrorCode
from .config import DeploymentSettings
from .deployments import DeploymentService
from .exceptions import (
    AccountLoadFailedError,
    ArtifactNotFoundError,
    DeploymentError,
    GasEstimationFailedError,
    TransactionNotFoundError,
    TransactionSubmissionFailedError,
    UnknownNetworkError,
    ValidationError,
)
from .networks import get_evm_network_config, get_stellar_network_config
from .polling import ConfirmationPoller
from .types import (
    Artifact,
    BackoffPolicy,
    Chain,
    ConfirmationResult,
    DeploymentFailure,
    DeploymentRecord,
    DeploymentSuccess,
    EVMDeploymentRequest,
    EVMNetworkConfig,
    EVMPreparation,
    StellarDeploymentRequest,
    StellarNetworkConfig,
    StellarPreparation,
    TransactionOutcome,
    UnsignedEnvelope,
    UnsignedTransaction,
)

try:
    __version__ = version("multichain-deployments")
except PackageNotFoundError:
    __version__ = None

__all__ = [
    "DeploymentService",
    "DeploymentSettings",
    "ConfirmationPoller",
    "BackoffPolicy",
    "ArtifactStore",
    "InMemoryArtifactStore",
    "FileArtifactStore",
    "compute_artifact_id",
    "get_evm_network_config",
    "get_stellar_network_config",
    "ErrorCode",
    "Artifact",
    "Chain",
    "ConfirmationResult",
    "DeploymentFailure",
    "DeploymentRecord",
    "DeploymentSuccess",
    "EVMDeploymentRequest",
    "EVMNetworkConfig",
    "EVMPreparation",
    "StellarDeploymentRequest",
    "StellarNetworkConfig",
    "StellarPreparation",
    "TransactionOutcome",
    "UnsignedEnvelope",
    "UnsignedTransaction",
    "DeploymentError",
    "ValidationError",
    "UnknownNetworkError",
    "ArtifactNotFoundError",
    "AccountLoadFailedError",
    "GasEstimationFailedError",
    "TransactionSubmissionFailedError",
    "TransactionNotFoundError",
]
