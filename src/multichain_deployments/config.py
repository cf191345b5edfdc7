"""Runtime settings for multichain-deployments library."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from .constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_POLL_INITIAL_DELAY,
    DEFAULT_POLL_MAX_ATTEMPTS,
    DEFAULT_POLL_MAX_DELAY,
    DEFAULT_POLL_MULTIPLIER,
)
from .types import BackoffPolicy

ENV_POLL_INITIAL_DELAY = "MULTICHAIN_POLL_INITIAL_DELAY"
ENV_POLL_MULTIPLIER = "MULTICHAIN_POLL_MULTIPLIER"
ENV_POLL_MAX_DELAY = "MULTICHAIN_POLL_MAX_DELAY"
ENV_POLL_MAX_ATTEMPTS = "MULTICHAIN_POLL_MAX_ATTEMPTS"
ENV_HTTP_TIMEOUT = "MULTICHAIN_HTTP_TIMEOUT"
ENV_ARTIFACT_DIR = "MULTICHAIN_ARTIFACT_DIR"


def _env_number(environ: Mapping[str, str], name: str, default: float, cast: type = float):
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for ${name}: {raw!r}") from e


@dataclass(frozen=True)
class DeploymentSettings:
    """Settings shared by every deployment a DeploymentService runs."""

    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    artifact_dir: Optional[Path] = None  # None = ./.multichain-deployments/artifacts

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        backoff: Optional[BackoffPolicy] = None,
        http_timeout: Optional[float] = None,
        artifact_dir: Optional[Union[Path, str]] = None,
    ) -> "DeploymentSettings":
        """
        Load settings from the environment.

        Explicit arguments win over environment variables, which win over
        library defaults.

        Args:
            environ: Mapping to read instead of os.environ
            backoff: Polling backoff policy
            http_timeout: Per-request HTTP timeout in seconds
            artifact_dir: Root of the on-disk artifact store

        Raises:
            ValueError: If an environment variable holds an invalid number
        """
        if environ is None:
            environ = os.environ

        if backoff is None:
            backoff = BackoffPolicy(
                initial_delay=_env_number(environ, ENV_POLL_INITIAL_DELAY, DEFAULT_POLL_INITIAL_DELAY),
                multiplier=_env_number(environ, ENV_POLL_MULTIPLIER, DEFAULT_POLL_MULTIPLIER),
                max_delay=_env_number(environ, ENV_POLL_MAX_DELAY, DEFAULT_POLL_MAX_DELAY),
                max_attempts=_env_number(environ, ENV_POLL_MAX_ATTEMPTS, DEFAULT_POLL_MAX_ATTEMPTS, int),
            )

        if http_timeout is None:
            http_timeout = _env_number(environ, ENV_HTTP_TIMEOUT, DEFAULT_HTTP_TIMEOUT)

        if artifact_dir is None:
            artifact_dir = environ.get(ENV_ARTIFACT_DIR) or None

        return cls(
            backoff=backoff,
            http_timeout=http_timeout,
            artifact_dir=Path(artifact_dir) if artifact_dir is not None else None,
        )
