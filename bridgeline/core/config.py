from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

TIMEOUT_ENV_VAR = "BRIDGELINE_REQUEST_TIMEOUT_MS"


@dataclass(frozen=True)
class BridgeSettings:
    """
    Configuration for a MessageBridge.

    Attributes:
        request_timeout_ms: Budget used by send_request() when the caller
            does not pass one.
    """

    request_timeout_ms: int = 5000

    def __post_init__(self):
        if self.request_timeout_ms <= 0:
            raise ValueError(
                f"request_timeout_ms must be positive, got {self.request_timeout_ms}"
            )

    @classmethod
    def default(cls) -> "BridgeSettings":
        return cls()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BridgeSettings":
        """Build settings from BRIDGELINE_* environment variables."""
        env = os.environ if environ is None else environ
        raw = env.get(TIMEOUT_ENV_VAR)
        if raw is None or not raw.strip():
            return cls.default()
        try:
            timeout_ms = int(raw)
        except ValueError:
            raise ValueError(f"{TIMEOUT_ENV_VAR} must be an integer, got {raw!r}")
        return cls(request_timeout_ms=timeout_ms)
