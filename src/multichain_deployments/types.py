"""Data types and dataclasses for multichain-deployments library."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .constants import (
    DEFAULT_POLL_INITIAL_DELAY,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_POLL_MAX_DELAY,
    DEFAULT_POLL_MULTIPLIER,
)


class Chain(Enum):
    """
    Blockchain backend a deployment targets.

    Value strings are the ``contract_type`` written to deployment records.
    """

    EVM = "evm"
    STELLAR = "stellar"


class TransactionOutcome(Enum):
    """State of a polled transaction."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class EVMNetworkConfig:
    """Connection details for an EVM network."""

    network: str  # Symbolic id, e.g. "CELO_MAINNET"
    name: str  # Human readable, e.g. "Celo Mainnet"
    rpc_url: str
    chain_id: int
    rpc_url_env: Optional[str] = None


@dataclass(frozen=True)
class StellarNetworkConfig:
    """Connection details for a Stellar network."""

    network: str  # "testnet" or "mainnet"
    horizon_url: str
    soroban_rpc_url: str
    network_passphrase: str
    horizon_url_env: Optional[str] = None

    @property
    def label(self) -> str:
        return f"stellar-{self.network}"


@dataclass(frozen=True)
class Artifact:
    """A compiled contract, addressed by the SHA-256 of its payload."""

    artifact_id: str
    payload: Union[str, bytes]  # 0x-hex bytecode (EVM) or raw WASM bytes (Stellar)
    abi: Any = None

    @property
    def chain(self) -> Chain:
        return Chain.STELLAR if isinstance(self.payload, bytes) else Chain.EVM


@dataclass
class EVMDeploymentRequest:
    artifact_id: str
    network: str
    constructor_args: List[Any] = field(default_factory=list)
    gas_limit: Optional[int] = None


@dataclass
class StellarDeploymentRequest:
    artifact_id: str
    network: str
    source_account: str


DeploymentRequest = Union[EVMDeploymentRequest, StellarDeploymentRequest]


@dataclass(frozen=True)
class UnsignedTransaction:
    """Unsigned EVM contract-creation transaction, ready for external signing."""

    data: str  # 0x-hex bytecode + encoded constructor args
    chain_id: int
    gas_limit: str  # Decimal string

    def to_dict(self) -> Dict[str, Any]:
        return {"data": self.data, "chainId": self.chain_id, "gasLimit": self.gas_limit}


@dataclass(frozen=True)
class UnsignedEnvelope:
    """Unsigned Stellar transaction envelope, ready for external signing."""

    envelope_xdr: str  # Base64 TransactionEnvelope
    network: str  # "stellar-<network>"

    def to_dict(self) -> Dict[str, Any]:
        return {"envelopeXDR": self.envelope_xdr, "network": self.network}


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Delay schedule for confirmation polling.

    The n-th wait (0-based) is ``min(initial_delay * multiplier**n, max_delay)``.
    Polling gives up after ``max_attempts`` ticks.
    """

    initial_delay: float = DEFAULT_POLL_INITIAL_DELAY
    multiplier: float = DEFAULT_POLL_MULTIPLIER
    max_delay: float = DEFAULT_POLL_MAX_DELAY
    max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS

    def __post_init__(self) -> None:
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("Backoff delays must be non-negative")
        if self.multiplier < 1:
            raise ValueError("Backoff multiplier must be >= 1")
        if self.max_attempts < 1:
            raise ValueError("Backoff max_attempts must be >= 1")

    def next_delay(self, delay: float) -> float:
        return min(delay * self.multiplier, self.max_delay)


@dataclass(frozen=True)
class PollTick:
    """Result of a single confirmation poll."""

    outcome: TransactionOutcome
    contract_address: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None


@dataclass(frozen=True)
class PollResult:
    """Terminal result of polling one transaction hash."""

    outcome: TransactionOutcome
    tx_hash: str
    attempts: int
    contract_address: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None


@dataclass(frozen=True)
class DeploymentRecord:
    """Row the persistence collaborator stores after a successful deployment."""

    artifact_id: str
    network: str
    contract_type: str
    deployer: str
    contract_address: str
    tx_hash: str

    def to_row(self) -> Dict[str, str]:
        return {
            "artifact_id": self.artifact_id,
            "network": self.network,
            "contract_type": self.contract_type,
            "deployer": self.deployer,
            "contract_address": self.contract_address,
            "tx_hash": self.tx_hash,
        }


@dataclass(frozen=True)
class DeploymentFailure:
    """Failure variant of every public operation."""

    error: str  # Stable, user-facing message
    code: str  # ErrorCode name
    details: Optional[str] = None  # Raw diagnostic
    tx_hash: Optional[str] = None

    success = False

    def __post_init__(self) -> None:
        if self.details is not None and (not self.details or self.details == self.error):
            object.__setattr__(self, "details", None)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"success": False, "error": self.error}
        if self.details is not None:
            result["details"] = self.details
        if self.tx_hash is not None:
            result["txHash"] = self.tx_hash
        return result


@dataclass(frozen=True)
class EVMPreparation:
    """Unsigned EVM deployment transaction for an artifact."""

    artifact_id: str
    network: str  # Network display name, e.g. "Celo Mainnet"
    unsigned_transaction: UnsignedTransaction

    success = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "network": self.network,
            "unsignedTransaction": self.unsigned_transaction.to_dict(),
        }


@dataclass(frozen=True)
class StellarPreparation:
    """Unsigned Stellar upload envelope for an artifact."""

    artifact_id: str
    envelope: UnsignedEnvelope

    success = True

    @property
    def network(self) -> str:
        return self.envelope.network

    @property
    def envelope_xdr(self) -> str:
        return self.envelope.envelope_xdr

    def to_dict(self) -> Dict[str, Any]:
        return {"success": True, "network": self.network, "envelopeXDR": self.envelope_xdr}


@dataclass(frozen=True)
class DeploymentSuccess:
    """Success variant of a submitted and confirmed deployment."""

    chain: Chain
    artifact_id: str
    network: str
    deployer: str
    contract_address: str  # 0x address (EVM) or contract id (Stellar)
    tx_hash: str
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    success = True

    @property
    def contract_id(self) -> Optional[str]:
        return self.contract_address if self.chain is Chain.STELLAR else None

    def deployment_record(self) -> DeploymentRecord:
        return DeploymentRecord(
            artifact_id=self.artifact_id,
            network=self.network,
            contract_type=self.chain.value,
            deployer=self.deployer,
            contract_address=self.contract_address,
            tx_hash=self.tx_hash,
        )

    def to_dict(self) -> Dict[str, Any]:
        address_key = "contractId" if self.chain is Chain.STELLAR else "contractAddress"
        result: Dict[str, Any] = {
            "success": True,
            address_key: self.contract_address,
            "txHash": self.tx_hash,
            "network": self.network,
        }
        if self.block_number is not None:
            result["blockNumber"] = self.block_number
        if self.gas_used is not None:
            result["gasUsed"] = self.gas_used
        return result


@dataclass(frozen=True)
class ConfirmationResult:
    """Outcome of tracking a previously submitted transaction hash."""

    outcome: TransactionOutcome
    tx_hash: str
    network: str
    attempts: int
    contract_address: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.outcome is TransactionOutcome.CONFIRMED


EVMPrepareResult = Union[EVMPreparation, DeploymentFailure]
StellarPrepareResult = Union[StellarPreparation, DeploymentFailure]
DeploymentResult = Union[DeploymentSuccess, DeploymentFailure]
