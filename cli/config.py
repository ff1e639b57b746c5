from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8000"

_BASE_URL_ENV = "API_BASE_URL"
_POLL_INTERVAL_ENV = "CLI_POLL_INTERVAL"
_TIMEOUT_ENV = "CLI_POLL_TIMEOUT"


@dataclass(frozen=True)
class CLIConfig:
    """Where the API lives and how ``watch`` waits for the next sensor reading.

    Field devices report every few seconds, so the poll interval defaults to
    5s; ``poll_timeout`` bounds a single ``watch`` to five minutes.
    """

    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = 5.0
    poll_timeout: float = 300.0

    @classmethod
    def from_env(cls) -> "CLIConfig":
        defaults = cls()
        return cls(
            base_url=os.getenv(_BASE_URL_ENV) or defaults.base_url,
            poll_interval=_positive_seconds(os.getenv(_POLL_INTERVAL_ENV), defaults.poll_interval),
            poll_timeout=_positive_seconds(os.getenv(_TIMEOUT_ENV), defaults.poll_timeout),
        )


def _positive_seconds(raw: Optional[str], fallback: float) -> float:
    try:
        seconds = float((raw or "").strip())
    except ValueError:
        return fallback
    return seconds if seconds > 0 else fallback


def load_config(
    base_url: Optional[str] = None,
    poll_interval: Optional[float] = None,
    poll_timeout: Optional[float] = None,
) -> CLIConfig:
    """Command line options win over ``API_BASE_URL`` / ``CLI_POLL_*``."""
    env = CLIConfig.from_env()
    return CLIConfig(
        base_url=(base_url or env.base_url).rstrip("/"),
        poll_interval=poll_interval if poll_interval is not None else env.poll_interval,
        poll_timeout=poll_timeout if poll_timeout is not None else env.poll_timeout,
    )
