"""Content-addressed artifact storage for multichain-deployments library."""

import asyncio
import copy
import gzip
import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from .exceptions import ArtifactNotFoundError, ValidationError
from .paths import get_artifact_paths, get_default_artifact_dir
from .types import Artifact, Chain

logger = logging.getLogger(__name__)

_ARTIFACT_ID_RE = re.compile(r"[0-9a-f]{64}")


def strip_hex_prefix(value: str) -> str:
    return value[2:] if value[:2] in ("0x", "0X") else value


def ensure_hex_prefix(value: str) -> str:
    return value if value[:2] in ("0x", "0X") else f"0x{value}"


def payload_bytes(payload: Union[str, bytes]) -> bytes:
    """
    Decode an artifact payload to the bytes that get hashed.

    EVM bytecode is hashed as the decoded hex, so "0xABCD" and "abcd"
    address the same artifact.

    Raises:
        ValidationError: If a string payload is not valid hex
    """
    if isinstance(payload, (bytes, bytearray)):
        return bytes(payload)
    try:
        return bytes.fromhex(strip_hex_prefix(payload))
    except ValueError as e:
        raise ValidationError("Bytecode is not valid hex", details=str(e)) from e


def compute_artifact_id(payload: Union[str, bytes]) -> str:
    """Return hex(SHA-256(payload bytes))."""
    return hashlib.sha256(payload_bytes(payload)).hexdigest()


@runtime_checkable
class ArtifactStore(Protocol):
    """Storage backend for compiled artifacts."""

    async def store(self, payload: Union[str, bytes], abi: Any = None) -> str:
        """Store a payload and return its artifact id."""
        ...

    async def retrieve(self, artifact_id: str) -> Optional[Artifact]:
        """Return the artifact, or None when the id is unknown."""
        ...


async def retrieve_artifact(store: ArtifactStore, artifact_id: str, chain: Chain) -> Artifact:
    """
    Fetch an artifact of the given kind.

    An id that resolves to an artifact of the other kind counts as missing.

    Raises:
        ArtifactNotFoundError: If the artifact does not exist for this chain
    """
    artifact = await store.retrieve(artifact_id)
    if artifact is None or artifact.chain is not chain:
        raise ArtifactNotFoundError(
            "Artifact not found", details=f"No artifact found with ID: {artifact_id}"
        )
    return artifact


def _kind_conflict(artifact_id: str, stored: Chain, incoming: Chain) -> ValidationError:
    return ValidationError(
        "Artifact id already holds a payload of another kind",
        details=f"{artifact_id} is stored as {stored.value}, not {incoming.value}",
    )


class InMemoryArtifactStore:
    """Process-local artifact store, mostly useful for tests and tooling."""

    def __init__(self) -> None:
        self._artifacts: Dict[str, Artifact] = {}

    async def store(self, payload: Union[str, bytes], abi: Any = None) -> str:
        """
        Store a payload under its content id.

        Raises:
            ValidationError: If the payload is malformed, or its bytes are
                already stored as the other kind of artifact
        """
        artifact_id = compute_artifact_id(payload)
        if isinstance(payload, bytearray):
            payload = bytes(payload)
        artifact = Artifact(artifact_id=artifact_id, payload=payload, abi=copy.deepcopy(abi))

        existing = self._artifacts.get(artifact_id)
        if existing is None:
            self._artifacts[artifact_id] = artifact
        elif existing.chain is not artifact.chain:
            raise _kind_conflict(artifact_id, existing.chain, artifact.chain)
        return artifact_id

    async def retrieve(self, artifact_id: str) -> Optional[Artifact]:
        artifact = self._artifacts.get(artifact_id)
        if artifact is None:
            return None
        return Artifact(
            artifact_id=artifact.artifact_id,
            payload=artifact.payload,
            abi=copy.deepcopy(artifact.abi),
        )

    def __len__(self) -> int:
        return len(self._artifacts)


def _atomic_write(path: Path, data: bytes) -> None:
    with tempfile.NamedTemporaryFile(dir=path.parent, prefix=f".{path.name}.", delete=False) as f:
        f.write(data)
        f.flush()
        os.fsync(f.fileno())
    os.replace(f.name, path)


class FileArtifactStore:
    """
    Artifact store on the local filesystem.

    EVM bytecode is kept gzip-compressed, WASM is kept raw, and the ABI sits
    next to them as JSON (see paths.get_artifact_paths). The ABI is written
    before the payload and each file is swapped into place whole, so an
    artifact counts as stored only once both files exist. Re-storing a
    complete artifact is a no-op.
    """

    def __init__(self, artifact_root: Optional[Union[Path, str]] = None):
        if artifact_root is None:
            artifact_root = get_default_artifact_dir()
        self.artifact_root = Path(artifact_root).absolute()

    async def store(self, payload: Union[str, bytes], abi: Any = None) -> str:
        return await asyncio.to_thread(self._store_sync, payload, abi)

    async def retrieve(self, artifact_id: str) -> Optional[Artifact]:
        return await asyncio.to_thread(self._retrieve_sync, artifact_id)

    def _store_sync(self, payload: Union[str, bytes], abi: Any) -> str:
        raw = payload_bytes(payload)
        artifact_id = hashlib.sha256(raw).hexdigest()
        chain = Chain.EVM if isinstance(payload, str) else Chain.STELLAR
        other = Chain.STELLAR if chain is Chain.EVM else Chain.EVM
        payload_path, abi_path = get_artifact_paths(artifact_id, chain, self.artifact_root)

        if get_artifact_paths(artifact_id, other, self.artifact_root)[0].exists():
            raise _kind_conflict(artifact_id, other, chain)

        if payload_path.exists() and abi_path.exists():
            return artifact_id

        try:
            abi_json = json.dumps(abi, indent=2)
        except (TypeError, ValueError) as e:
            raise ValidationError("ABI is not JSON serializable", details=str(e)) from e

        payload_path.parent.mkdir(parents=True, exist_ok=True)
        abi_path.parent.mkdir(parents=True, exist_ok=True)

        _atomic_write(abi_path, abi_json.encode("utf-8"))
        match chain:
            case Chain.EVM:
                _atomic_write(payload_path, gzip.compress(raw))
            case Chain.STELLAR:
                _atomic_write(payload_path, raw)

        logger.info(
            "Stored artifact",
            extra={
                "event": "artifact.stored",
                "artifact_id": artifact_id,
                "chain": chain.value,
                "size": len(raw),
            },
        )
        return artifact_id

    def _retrieve_sync(self, artifact_id: str) -> Optional[Artifact]:
        # Ids are SHA-256 hex digests; anything else cannot name a stored file
        if not _ARTIFACT_ID_RE.fullmatch(artifact_id):
            return None

        for chain in (Chain.EVM, Chain.STELLAR):
            payload_path, abi_path = get_artifact_paths(artifact_id, chain, self.artifact_root)
            if not payload_path.exists():
                continue

            try:
                with open(abi_path) as f:
                    abi = json.load(f)
            except FileNotFoundError:
                # Payload from an interrupted store; the next store completes it
                return None

            if chain is Chain.EVM:
                payload: Union[str, bytes] = "0x" + gzip.decompress(payload_path.read_bytes()).hex()
            else:
                payload = payload_path.read_bytes()
            return Artifact(artifact_id=artifact_id, payload=payload, abi=abi)

        return None
