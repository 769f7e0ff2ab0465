"""Runtime policy for claim resolution: per-layer retries and the overall deadline.

Retries are opt-in. The default policy performs exactly one attempt per layer so a
failing store surfaces in the logs instead of being masked by silent retries.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .env import optional_env_float, optional_env_int
from .errors import ConfigurationError

FETCH_ATTEMPTS_ENV = "CLAIMSTACK_FETCH_ATTEMPTS"
FETCH_BACKOFF_ENV = "CLAIMSTACK_FETCH_BACKOFF"
RESOLUTION_TIMEOUT_ENV = "CLAIMSTACK_RESOLUTION_TIMEOUT"


@dataclass(slots=True, frozen=True)
class LayerRetryPolicy:
    attempts: int = 1
    backoff_seconds: float = 0.1
    backoff_factor: float = 2.0
    max_backoff_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ConfigurationError("Retry policy needs at least one attempt")
        if self.backoff_seconds < 0 or self.max_backoff_seconds < 0:
            raise ConfigurationError("Retry backoff must be non-negative")
        if self.backoff_factor < 1:
            raise ConfigurationError("Retry backoff factor must be >= 1")

    def delay_before(self, attempt: int) -> float:
        """Return the sleep before ``attempt`` (1-based; the first attempt never waits)."""

        if attempt <= 1:
            return 0.0
        delay = self.backoff_seconds * self.backoff_factor ** (attempt - 2)
        return min(delay, self.max_backoff_seconds)


@dataclass(slots=True, frozen=True)
class ResolutionConfig:
    retry: LayerRetryPolicy = field(default_factory=LayerRetryPolicy)
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ConfigurationError("Resolution timeout must be positive")


def get_resolution_config() -> ResolutionConfig:
    attempts = optional_env_int(FETCH_ATTEMPTS_ENV)
    backoff = optional_env_float(FETCH_BACKOFF_ENV)
    timeout = optional_env_float(RESOLUTION_TIMEOUT_ENV)

    retry = LayerRetryPolicy()
    if attempts is not None or backoff is not None:
        retry = LayerRetryPolicy(
            attempts=attempts if attempts is not None else retry.attempts,
            backoff_seconds=backoff if backoff is not None else retry.backoff_seconds,
        )
    return ResolutionConfig(retry=retry, timeout_seconds=timeout)
