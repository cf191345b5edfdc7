"""Main API for multichain-deployments library."""

import asyncio
import logging
from typing import Any, Optional, Union

from .artifacts import ArtifactStore, FileArtifactStore, retrieve_artifact
from .classifier import ErrorCode, Stage, classify, make_failure
from .config import DeploymentSettings
from .evm import build_unsigned_transaction, estimate_evm_gas
from .exceptions import (
    DeploymentError,
    TransactionNotFoundError,
    UnknownNetworkError,
    ValidationError,
)
from .horizon import HorizonClient
from .networks import (
    get_evm_network_config,
    get_stellar_network_config,
    parse_stellar_network_label,
    resolve_horizon_url,
    resolve_rpc_url,
)
from .polling import ConfirmationPoller, Sleep, Tick, evm_receipt_tick, stellar_transaction_tick
from .rpc import EVMRpcClient, SorobanRpcClient
from .stellar import create_deployment_envelope, estimate_stellar_fee
from .submission import broadcast_evm_transaction, broadcast_stellar_envelope
from .types import (
    Chain,
    ConfirmationResult,
    DeploymentFailure,
    DeploymentRequest,
    DeploymentResult,
    DeploymentSuccess,
    EVMDeploymentRequest,
    EVMNetworkConfig,
    EVMPreparation,
    EVMPrepareResult,
    PollResult,
    StellarDeploymentRequest,
    StellarNetworkConfig,
    StellarPreparation,
    StellarPrepareResult,
    TransactionOutcome,
)

logger = logging.getLogger(__name__)

NetworkConfig = Union[EVMNetworkConfig, StellarNetworkConfig]


def resolve_network(network: str) -> NetworkConfig:
    """
    Resolve either an EVM network id or a "stellar-<network>" label.

    Raises:
        UnknownNetworkError: If network matches neither
    """
    if not isinstance(network, str) or not network:
        raise UnknownNetworkError(f"Unknown network: {network!r}")
    try:
        return get_evm_network_config(network)
    except UnknownNetworkError:
        pass
    try:
        return get_stellar_network_config(parse_stellar_network_label(network))
    except UnknownNetworkError as e:
        raise UnknownNetworkError(f"Unknown network: {network}") from e


class DeploymentService:
    """
    Prepares, submits and confirms contract deployments on EVM and Stellar networks.

    Every deployment operation returns either a success value or a
    DeploymentFailure; none of them raise. The service keeps no state between
    calls apart from its settings, so independent deployments may run
    concurrently on one instance.
    """

    def __init__(
        self,
        artifact_store: Optional[ArtifactStore] = None,
        settings: Optional[DeploymentSettings] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        """
        Initialize the deployment service.

        Args:
            artifact_store: Where compiled artifacts are read from
                            If None, uses a FileArtifactStore under settings.artifact_dir
            settings: Backoff, timeout and storage settings
                      If None, loads DeploymentSettings.from_env()
            sleep: Awaitable used between confirmation polls
        """
        self.settings = settings if settings is not None else DeploymentSettings.from_env()
        if artifact_store is None:
            artifact_store = FileArtifactStore(self.settings.artifact_dir)
        self.artifact_store = artifact_store
        self.poller = ConfirmationPoller(self.settings.backoff, sleep)

    # Network configuration

    def get_evm_network_config(self, network: str) -> EVMNetworkConfig:
        """
        Get connection details for an EVM network.

        Raises:
            UnknownNetworkError: If network is not a supported EVM network id
        """
        return get_evm_network_config(network)

    def get_stellar_network_config(self, network: str) -> StellarNetworkConfig:
        """
        Get connection details for a Stellar network.

        Raises:
            UnknownNetworkError: If network is not "testnet" or "mainnet"
        """
        return get_stellar_network_config(network)

    def get_horizon_url(self, network: str) -> str:
        return resolve_horizon_url(get_stellar_network_config(network))

    def get_soroban_rpc_url(self, network: str) -> str:
        return get_stellar_network_config(network).soroban_rpc_url

    def get_network_passphrase(self, network: str) -> str:
        return get_stellar_network_config(network).network_passphrase

    # Estimates

    def estimate_evm_gas(self, bytecode: str) -> int:
        """Heuristic gas for deploying bytecode (21000 + 200 per byte)."""
        return estimate_evm_gas(bytecode)

    def estimate_stellar_fee(self, wasm_size: int) -> int:
        """Heuristic upload fee in stroops (100 + 10 per WASM byte)."""
        return estimate_stellar_fee(wasm_size)

    # Validation

    def validate_deployment_request(self, request: DeploymentRequest) -> Optional[DeploymentFailure]:
        """
        Check a deployment request without doing any I/O.

        Returns:
            None if the request is well-formed, otherwise a DeploymentFailure
            (VALIDATION_ERROR or UNKNOWN_NETWORK)
        """
        try:
            self._validate(request)
        except DeploymentError as e:
            return classify(e, Stage.PREPARE)
        return None

    def _validate(self, request: DeploymentRequest) -> None:
        artifact_id = getattr(request, "artifact_id", None)
        if not isinstance(artifact_id, str) or not artifact_id.strip():
            raise ValidationError("Artifact ID is required")

        network = getattr(request, "network", None)
        if not isinstance(network, str) or not network:
            raise ValidationError("Network is required")

        match request:
            case EVMDeploymentRequest():
                get_evm_network_config(network)
                if not isinstance(request.constructor_args, (list, tuple)):
                    raise ValidationError(
                        "constructorArgs must be an array", details=repr(request.constructor_args)
                    )
                gas_limit = request.gas_limit
                if gas_limit is not None and (
                    isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit <= 0
                ):
                    raise ValidationError("gasLimit must be a positive integer", details=repr(gas_limit))
            case StellarDeploymentRequest():
                if not isinstance(request.source_account, str) or not request.source_account:
                    raise ValidationError("Source account is required for Stellar deployment")
                get_stellar_network_config(network)
            case _:
                raise ValidationError(f"Unsupported deployment request: {type(request).__name__}")

    # Preparation

    async def prepare_evm_deployment(self, request: EVMDeploymentRequest) -> EVMPrepareResult:
        """
        Build the unsigned transaction that deploys an EVM artifact.

        Args:
            request: Artifact id, network id, constructor args, optional gas limit

        Returns:
            EVMPreparation with the unsigned transaction, or DeploymentFailure
            (VALIDATION_ERROR, UNKNOWN_NETWORK, ARTIFACT_NOT_FOUND, GAS_ESTIMATION_FAILED)
        """
        try:
            self._validate(request)
            config = get_evm_network_config(request.network)
            artifact = await retrieve_artifact(self.artifact_store, request.artifact_id, Chain.EVM)
            unsigned_transaction = await build_unsigned_transaction(
                self._evm_rpc(config),
                config,
                artifact.payload,
                artifact.abi,
                list(request.constructor_args),
                request.gas_limit,
            )
        except Exception as e:
            return self._failure(
                e, Stage.PREPARE, getattr(request, "artifact_id", None), getattr(request, "network", None)
            )

        return EVMPreparation(
            artifact_id=request.artifact_id,
            network=config.name,
            unsigned_transaction=unsigned_transaction,
        )

    async def prepare_stellar_deployment(
        self, request: StellarDeploymentRequest
    ) -> StellarPrepareResult:
        """
        Build the unsigned envelope that uploads a Stellar artifact.

        Args:
            request: Artifact id, "testnet"/"mainnet", source account public key

        Returns:
            StellarPreparation with the base64 envelope, or DeploymentFailure
            (VALIDATION_ERROR, UNKNOWN_NETWORK, ARTIFACT_NOT_FOUND, ACCOUNT_LOAD_FAILED)
        """
        try:
            self._validate(request)
            config = get_stellar_network_config(request.network)
            artifact = await retrieve_artifact(self.artifact_store, request.artifact_id, Chain.STELLAR)
            envelope = await create_deployment_envelope(
                self._horizon(config), config, artifact.payload, request.source_account
            )
        except Exception as e:
            return self._failure(
                e, Stage.PREPARE, getattr(request, "artifact_id", None), getattr(request, "network", None)
            )

        return StellarPreparation(artifact_id=request.artifact_id, envelope=envelope)

    # Submission

    async def submit_signed_evm_transaction(
        self, signed_tx: str, network: str, artifact_id: str, deployer: str
    ) -> DeploymentResult:
        """
        Broadcast a signed EVM deployment and wait for its receipt.

        Args:
            signed_tx: 0x-hex signed raw transaction
            network: EVM network id
            artifact_id: Artifact the transaction deploys
            deployer: Address that signed the transaction

        Returns:
            DeploymentSuccess, or DeploymentFailure; failures after broadcast
            carry tx_hash so the caller can keep tracking it
        """
        try:
            if not isinstance(deployer, str) or not deployer:
                raise ValidationError("Deployer address is required")
            config = get_evm_network_config(network)
            await retrieve_artifact(self.artifact_store, artifact_id, Chain.EVM)
            rpc = self._evm_rpc(config)
            tx_hash = await broadcast_evm_transaction(rpc, signed_tx)
        except Exception as e:
            return self._failure(e, Stage.SUBMIT, artifact_id, network)

        return await self._await_deployment(
            Chain.EVM, evm_receipt_tick(rpc, tx_hash), tx_hash, artifact_id, config.network, deployer
        )

    async def submit_signed_stellar_transaction(
        self, signed_envelope_xdr: str, network: str, artifact_id: str, source_account: str
    ) -> DeploymentResult:
        """
        Submit a signed Stellar envelope and wait for Horizon to report it.

        Args:
            signed_envelope_xdr: Base64 signed TransactionEnvelope
            network: "testnet" or "mainnet"
            artifact_id: Artifact the envelope uploads
            source_account: Account that signed the envelope

        Returns:
            DeploymentSuccess (contract_id set), or DeploymentFailure
        """
        try:
            if not isinstance(source_account, str) or not source_account:
                raise ValidationError("Source account is required for Stellar deployment")
            config = get_stellar_network_config(network)
            await retrieve_artifact(self.artifact_store, artifact_id, Chain.STELLAR)
            horizon = self._horizon(config)
            tx_hash = await broadcast_stellar_envelope(horizon, config, signed_envelope_xdr)
        except Exception as e:
            return self._failure(e, Stage.SUBMIT, artifact_id, network)

        tick = stellar_transaction_tick(horizon, tx_hash, self._soroban(config))
        return await self._await_deployment(
            Chain.STELLAR, tick, tx_hash, artifact_id, config.label, source_account
        )

    # Confirmation

    async def confirm_transaction(
        self, tx_hash: str, network: str
    ) -> Union[ConfirmationResult, DeploymentFailure]:
        """
        Resume tracking a previously submitted transaction.

        Args:
            tx_hash: Hash returned by a submit call
            network: EVM network id (e.g. "CELO_MAINNET") or Stellar label
                     (e.g. "stellar-testnet")

        Returns:
            ConfirmationResult whose outcome is CONFIRMED, REVERTED or
            TIMED_OUT, or DeploymentFailure if the input is invalid
        """
        try:
            if not isinstance(tx_hash, str) or not tx_hash:
                raise ValidationError("Transaction hash is required")
            config = resolve_network(network)
            match config:
                case EVMNetworkConfig():
                    label = config.network
                    tick = evm_receipt_tick(self._evm_rpc(config), tx_hash)
                case StellarNetworkConfig():
                    label = config.label
                    tick = stellar_transaction_tick(
                        self._horizon(config), tx_hash, self._soroban(config)
                    )
                case _:
                    raise UnknownNetworkError(f"Unknown network: {network}")
            result = await self.poller.poll(tx_hash, tick)
        except Exception as e:
            return self._failure(e, Stage.CONFIRM, None, network)

        return ConfirmationResult(
            outcome=result.outcome,
            tx_hash=tx_hash,
            network=label,
            attempts=result.attempts,
            contract_address=result.contract_address,
            block_number=result.block_number,
            gas_used=result.gas_used,
        )

    # Internals

    def _evm_rpc(self, config: EVMNetworkConfig) -> EVMRpcClient:
        return EVMRpcClient(resolve_rpc_url(config), timeout=self.settings.http_timeout)

    def _horizon(self, config: StellarNetworkConfig) -> HorizonClient:
        return HorizonClient(resolve_horizon_url(config), timeout=self.settings.http_timeout)

    def _soroban(self, config: StellarNetworkConfig) -> SorobanRpcClient:
        return SorobanRpcClient(config.soroban_rpc_url, timeout=self.settings.http_timeout)

    async def _await_deployment(
        self,
        chain: Chain,
        tick: Tick,
        tx_hash: str,
        artifact_id: str,
        network: str,
        deployer: str,
    ) -> DeploymentResult:
        try:
            result = await self.poller.poll(tx_hash, tick)
        except Exception as e:
            return self._failure(e, Stage.CONFIRM, artifact_id, network, tx_hash)
        return self._deployment_result(chain, result, artifact_id, network, deployer)

    def _deployment_result(
        self, chain: Chain, result: PollResult, artifact_id: str, network: str, deployer: str
    ) -> DeploymentResult:
        tx_hash = result.tx_hash

        match result.outcome:
            case TransactionOutcome.CONFIRMED if result.contract_address:
                logger.info(
                    "Contract deployed",
                    extra={
                        "event": "deployment.confirmed",
                        "chain": chain.value,
                        "network": network,
                        "artifact_id": artifact_id,
                        "contract_address": result.contract_address,
                        "tx_hash": tx_hash,
                    },
                )
                return DeploymentSuccess(
                    chain=chain,
                    artifact_id=artifact_id,
                    network=network,
                    deployer=deployer,
                    contract_address=result.contract_address,
                    tx_hash=tx_hash,
                    block_number=result.block_number,
                    gas_used=result.gas_used,
                )
            case TransactionOutcome.CONFIRMED:
                failure = make_failure(
                    ErrorCode.CONTRACT_ADDRESS_MISSING,
                    details=f"Transaction {tx_hash} succeeded but no contract address could be extracted",
                    tx_hash=tx_hash,
                )
            case TransactionOutcome.REVERTED:
                failure = make_failure(
                    ErrorCode.TRANSACTION_REVERTED,
                    details=f"Transaction {tx_hash} was included at height {result.block_number} but did not succeed",
                    tx_hash=tx_hash,
                )
            case _:
                timeout = TransactionNotFoundError(
                    f"Transaction {tx_hash} not confirmed",
                    details=(
                        f"Transaction {tx_hash} was not confirmed after {result.attempts} "
                        "polling attempts; it may still be confirmed later"
                    ),
                )
                failure = classify(timeout, Stage.CONFIRM, tx_hash=tx_hash)

        self._log_failure(failure, Stage.CONFIRM, artifact_id, network)
        return failure

    def _failure(
        self,
        exc: BaseException,
        stage: Stage,
        artifact_id: Optional[str],
        network: Any,
        tx_hash: Optional[str] = None,
    ) -> DeploymentFailure:
        failure = classify(exc, stage, tx_hash=tx_hash)
        self._log_failure(failure, stage, artifact_id, network)
        return failure

    def _log_failure(
        self, failure: DeploymentFailure, stage: Stage, artifact_id: Optional[str], network: Any
    ) -> None:
        logger.warning(
            "Deployment failed",
            extra={
                "event": "deployment.failed",
                "stage": stage.value,
                "code": failure.code,
                "artifact_id": artifact_id,
                "network": network,
                "tx_hash": failure.tx_hash,
                "details": failure.details,
            },
        )
