"""
Shared configuration for erwin_guesser.

Defines engine defaults, stats service settings, and the read-only
credential lookup. Credentials come from the process environment, which
``__main__`` populates from a ``.env`` file via python-dotenv. Nothing here
writes credentials anywhere.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from erwin_guesser.engine.models import Credential
from erwin_guesser.engine.submission import DEFAULT_ORACLE_URL, DEFAULT_TIMEOUT_S

# Environment variables.
API_KEY_ENV = "ERWIN_API_KEY"
WALLET_ADDRESS_ENV = "ERWIN_WALLET_ADDRESS"
ORACLE_URL_ENV = "ERWIN_ORACLE_URL"
STATS_URL_ENV = "ERWIN_STATS_URL"

# Engine cadence.
DEFAULT_BATCH_SIZE = 50
DEFAULT_CYCLE_DELAY_S = 10.0
DEFAULT_LOG_WINDOW_S = 3600.0

# Stats service (display only).
DEFAULT_STATS_URL = "https://ewnscan.hexato.io"
STATS_POLL_INTERVAL_S = 900.0  # 15 minutes
STATS_TIMEOUT_S = 30.0
STATS_PAGE_SIZE = 10


@dataclass(frozen=True)
class EngineConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    cycle_delay_s: float = DEFAULT_CYCLE_DELAY_S
    request_timeout_s: float = DEFAULT_TIMEOUT_S
    oracle_url: str = DEFAULT_ORACLE_URL
    log_window_s: float = DEFAULT_LOG_WINDOW_S

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.cycle_delay_s < 0:
            raise ValueError(f"cycle_delay_s must be >= 0, got {self.cycle_delay_s}")
        if self.request_timeout_s <= 0:
            raise ValueError(
                f"request_timeout_s must be positive, got {self.request_timeout_s}"
            )
        if self.log_window_s <= 0:
            raise ValueError(f"log_window_s must be positive, got {self.log_window_s}")


def load_credential(environ: dict[str, str] | None = None) -> Credential | None:
    """Read the API key and wallet address from the environment.

    Returns None when no API key is set. The returned Credential is an
    immutable snapshot, so a later settings change cannot be seen half-applied.
    """
    env = os.environ if environ is None else environ
    api_key = env.get(API_KEY_ENV, "").strip()
    wallet_address = env.get(WALLET_ADDRESS_ENV, "").strip()
    if not api_key:
        return None
    return Credential(api_key=api_key, wallet_address=wallet_address)


def oracle_url_from_env(environ: dict[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return env.get(ORACLE_URL_ENV) or DEFAULT_ORACLE_URL


def stats_url_from_env(environ: dict[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return (env.get(STATS_URL_ENV) or DEFAULT_STATS_URL).rstrip("/")
