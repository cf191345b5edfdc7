"""Custom exception classes for multichain-deployments library."""

from typing import Optional


class DeploymentError(Exception):
    """Base exception for deployment-related errors.

    ``details`` carries the raw upstream diagnostic (provider message,
    Horizon problem detail, offending value) when there is one.
    """

    def __init__(self, message: str = "", details: Optional[str] = None):
        super().__init__(message)
        self.details = details


class ValidationError(DeploymentError, ValueError):
    """Raised when a deployment request is malformed."""

    pass


class UnknownNetworkError(DeploymentError, ValueError):
    """Raised when a network id is not in the network table."""

    pass


class ArtifactNotFoundError(DeploymentError, LookupError):
    """Raised when an artifact id does not resolve in the artifact store."""

    pass


class AccountLoadFailedError(DeploymentError):
    """Raised when a Stellar source account cannot be loaded from Horizon."""

    pass


class GasEstimationFailedError(DeploymentError):
    """Raised when the EVM node rejects a gas estimate."""

    pass


class TransactionSubmissionFailedError(DeploymentError):
    """Raised when a network rejects a signed transaction or envelope."""

    pass


class TransactionNotFoundError(DeploymentError):
    """Raised when a transaction never reaches a terminal state while polled."""

    pass


class RpcError(DeploymentError):
    """Raised when an EVM node answers with a JSON-RPC error object."""

    def __init__(self, message: str = "", details: Optional[str] = None, code: Optional[int] = None):
        super().__init__(message, details)
        self.code = code


class TransportError(DeploymentError, ConnectionError):
    """Raised when an HTTP request cannot be completed."""

    pass


class HorizonError(DeploymentError):
    """Raised when Horizon answers with a non-success status."""

    def __init__(self, message: str = "", details: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message, details)
        self.status = status


class HorizonNotFoundError(HorizonError, LookupError):
    """Raised when Horizon answers 404 for a resource."""

    pass
