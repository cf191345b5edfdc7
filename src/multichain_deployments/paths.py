"""Path management utilities for multichain-deployments library."""

from pathlib import Path
from typing import Optional, Union

from .types import Chain


def get_default_artifact_dir() -> Path:
    """
    Get default artifact directory.

    Returns:
        Path to ./.multichain-deployments/artifacts
    """
    return Path.cwd() / ".multichain-deployments" / "artifacts"


def get_artifact_paths(
    artifact_id: str, chain: Chain, artifact_root: Optional[Union[Path, str]] = None
) -> tuple[Path, Path]:
    """
    Get artifact file paths.

    Layout under the artifact root:
    - evm/<id>.bytecode.gz (gzip-compressed bytecode bytes)
    - stellar/<id>.wasm (raw WASM)
    - metadata/<id>.abi.json

    Args:
        artifact_id: Hex SHA-256 of the artifact payload
        chain: Which backend the artifact targets
        artifact_root: Custom artifact directory (defaults to ./.multichain-deployments/artifacts)

    Returns:
        Tuple of (payload_path, abi_path)
    """
    if artifact_root is None:
        artifact_root = get_default_artifact_dir()
    else:
        artifact_root = Path(artifact_root).absolute()

    match chain:
        case Chain.EVM:
            payload_path = artifact_root / "evm" / f"{artifact_id}.bytecode.gz"
        case Chain.STELLAR:
            payload_path = artifact_root / "stellar" / f"{artifact_id}.wasm"
        case _:
            raise ValueError(f"Unsupported chain: {chain}")

    abi_path = artifact_root / "metadata" / f"{artifact_id}.abi.json"

    return (payload_path, abi_path)
