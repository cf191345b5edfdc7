"""Shared pytest fixtures for multichain-deployments tests."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
import responses
from stellar_sdk import Keypair, TransactionEnvelope

from multichain_deployments import (
    BackoffPolicy,
    DeploymentService,
    DeploymentSettings,
    InMemoryArtifactStore,
)
from multichain_deployments.constants import EVM_NETWORK_CONFIG, STELLAR_NETWORK_CONFIG
from multichain_deployments.exceptions import RpcError
from multichain_deployments.networks import get_stellar_network_config
from multichain_deployments.stellar import build_upload_envelope

CELO_MAINNET_RPC = EVM_NETWORK_CONFIG["CELO_MAINNET"]["rpc_url"]

# Minimal creation bytecode (constructor that returns empty runtime code)
SAMPLE_BYTECODE = "0x6080604052348015600f57600080fd5b50603f80601d6000396000f3fe"
SAMPLE_WASM = b"\x00asm\x01\x00\x00\x00" + bytes(range(64))
SAMPLE_DEPLOYER = "0x" + "ab" * 20


def rpc_callback(handlers: Dict[str, Any]) -> Callable:
    """
    Build a responses callback that dispatches on the JSON-RPC method.

    Handler values are either a literal result, an RpcError (answered as a
    JSON-RPC error object built from its details and code), or a callable
    taking the params and returning one of those.
    """

    def callback(request):
        body = json.loads(request.body)
        handler = handlers[body["method"]]
        result = handler(body["params"]) if callable(handler) else handler

        payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": body["id"]}
        if isinstance(result, RpcError):
            payload["error"] = {"code": result.code or -32000, "message": result.details}
        else:
            payload["result"] = result
        return (200, {}, json.dumps(payload))

    return callback


@pytest.fixture(autouse=True)
def clear_endpoint_overrides(monkeypatch):
    """Keep endpoint override variables from leaking into tests."""
    for entry in EVM_NETWORK_CONFIG.values():
        monkeypatch.delenv(entry["rpc_url_env"], raising=False)
    for entry in STELLAR_NETWORK_CONFIG.values():
        monkeypatch.delenv(entry["horizon_url_env"], raising=False)


@pytest.fixture
def mocked_responses():
    """Intercept every HTTP request made through requests."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def evm_node(mocked_responses) -> Callable[..., None]:
    """Register JSON-RPC handlers for an EVM endpoint (Celo mainnet by default)."""

    def register(handlers: Dict[str, Any], url: str = CELO_MAINNET_RPC) -> None:
        mocked_responses.add_callback(
            responses.POST,
            url,
            callback=rpc_callback(handlers),
            content_type="application/json",
        )

    return register


@pytest.fixture
def sleeps() -> List[float]:
    """Delays requested by the poller, in order."""
    return []


@pytest.fixture
def fake_sleep(sleeps: List[float]):
    """Sleep replacement that records the delay and returns immediately."""

    async def sleep(delay: float) -> None:
        sleeps.append(delay)

    return sleep


@pytest.fixture
def sample_bytecode() -> str:
    return SAMPLE_BYTECODE


@pytest.fixture
def sample_wasm() -> bytes:
    return SAMPLE_WASM


@pytest.fixture
def sample_deployer() -> str:
    return SAMPLE_DEPLOYER


@pytest.fixture
def artifact_store() -> InMemoryArtifactStore:
    return InMemoryArtifactStore()


@pytest.fixture
def settings(tmp_path: Path) -> DeploymentSettings:
    """Settings with a short polling budget."""
    return DeploymentSettings(
        backoff=BackoffPolicy(initial_delay=0.01, multiplier=1.5, max_delay=0.05, max_attempts=5),
        http_timeout=5,
        artifact_dir=tmp_path / "artifacts",
    )


@pytest.fixture
def service(artifact_store, settings, fake_sleep) -> DeploymentService:
    return DeploymentService(artifact_store=artifact_store, settings=settings, sleep=fake_sleep)


@pytest.fixture
def source_keypair() -> Keypair:
    return Keypair.random()


@pytest.fixture
def signed_envelope(source_keypair: Keypair) -> Callable[..., str]:
    """Build and sign a WASM-upload envelope the way an external wallet would."""

    def make(wasm: bytes = SAMPLE_WASM, sequence: int = 1, network: str = "testnet") -> str:
        config = get_stellar_network_config(network)
        unsigned = build_upload_envelope(config, wasm, source_keypair.public_key, sequence)
        envelope = TransactionEnvelope.from_xdr(unsigned.envelope_xdr, config.network_passphrase)
        envelope.sign(source_keypair)
        return envelope.to_xdr()

    return make
