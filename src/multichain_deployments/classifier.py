"""Mapping of failures to user-facing errors for multichain-deployments library."""

import logging
from enum import Enum
from typing import Optional

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
from .types import DeploymentFailure

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """
    Closed set of failures a public operation can report.

    Values are the stable, user-facing error strings.
    """

    ARTIFACT_NOT_FOUND = "Artifact not found"
    ACCOUNT_LOAD_FAILED = "Deployment preparation failed: source account could not be loaded"
    DEPLOYMENT_PREPARATION_FAILED = "Deployment preparation failed"
    GAS_ESTIMATION_FAILED = "Gas estimation failed for deployment transaction"
    TRANSACTION_SUBMISSION_FAILED = "Transaction submission failed"
    TRANSACTION_NOT_FOUND = "Transaction not confirmed before polling timed out"
    TRANSACTION_REVERTED = "Transaction failed on-chain"
    CONTRACT_ADDRESS_MISSING = "Contract address not found in confirmed transaction"
    UNKNOWN_NETWORK = "Unknown network"
    VALIDATION_ERROR = "Invalid deployment request"


class Stage(Enum):
    """Where in a deployment a failure happened."""

    PREPARE = "prepare"
    SUBMIT = "submit"
    CONFIRM = "confirm"


_EXCEPTION_CODES = [
    (ValidationError, ErrorCode.VALIDATION_ERROR),
    (UnknownNetworkError, ErrorCode.UNKNOWN_NETWORK),
    (ArtifactNotFoundError, ErrorCode.ARTIFACT_NOT_FOUND),
    (AccountLoadFailedError, ErrorCode.ACCOUNT_LOAD_FAILED),
    (GasEstimationFailedError, ErrorCode.GAS_ESTIMATION_FAILED),
    (TransactionSubmissionFailedError, ErrorCode.TRANSACTION_SUBMISSION_FAILED),
    (TransactionNotFoundError, ErrorCode.TRANSACTION_NOT_FOUND),
]

_STAGE_CODES = {
    Stage.PREPARE: ErrorCode.DEPLOYMENT_PREPARATION_FAILED,
    Stage.SUBMIT: ErrorCode.TRANSACTION_SUBMISSION_FAILED,
    Stage.CONFIRM: ErrorCode.TRANSACTION_NOT_FOUND,
}

# Codes whose message alone is the diagnostic; the upstream text is not enough
_MESSAGE_BEARING = (ErrorCode.VALIDATION_ERROR, ErrorCode.UNKNOWN_NETWORK)


def make_failure(
    code: ErrorCode, details: Optional[str] = None, tx_hash: Optional[str] = None
) -> DeploymentFailure:
    """Build a DeploymentFailure for a code."""
    return DeploymentFailure(error=code.value, code=code.name, details=details, tx_hash=tx_hash)


def code_for(exc: BaseException, stage: Stage) -> ErrorCode:
    """Return the error code for an exception raised during stage."""
    for exc_type, code in _EXCEPTION_CODES:
        if isinstance(exc, exc_type):
            return code
    return _STAGE_CODES[stage]


def _diagnostic(exc: BaseException, code: ErrorCode) -> Optional[str]:
    message = str(exc) or None
    details = getattr(exc, "details", None)

    if code in _MESSAGE_BEARING:
        if message and details:
            return f"{message} ({details})"
        return message or details

    if isinstance(exc, DeploymentError):
        return details or message
    # Unexpected exceptions: keep the type name, the message may be empty
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def classify(
    exc: BaseException, stage: Stage, tx_hash: Optional[str] = None
) -> DeploymentFailure:
    """
    Map an exception to a DeploymentFailure.

    Library exceptions map to their own code; anything else maps to the
    code of the stage it escaped from.

    Args:
        exc: The exception
        stage: Stage of the deployment that raised it
        tx_hash: Hash of an already broadcast transaction, if any

    Returns:
        DeploymentFailure with a stable error string and raw details
    """
    code = code_for(exc, stage)
    if not isinstance(exc, DeploymentError):
        logger.error(
            "Unexpected error during deployment",
            exc_info=exc,
            extra={"event": "deployment.unexpected_error", "stage": stage.value},
        )
    return make_failure(code, details=_diagnostic(exc, code), tx_hash=tx_hash)
