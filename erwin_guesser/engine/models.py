"""
Data models for the guessing engine.

Defines the values that flow through one cycle:
  Generator → GuessBatch → Submission Client → SubmissionOutcome → LogBuffer

All models are frozen dataclasses. A candidate phrase is a plain ``str``;
it has no identity beyond its text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union


class EngineState(Enum):
    """Run state of the loop controller."""

    STOPPED = "stopped"
    RUNNING = "running"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Credential:
    """API key and wallet address read from the credential store.

    The engine only uses ``api_key``. The wallet address is carried for the
    stats screens.
    """
    api_key: str
    wallet_address: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def __repr__(self) -> str:
        # Never print the key itself.
        return f"Credential(api_key=<{len(self.api_key)} chars>, wallet_address={self.wallet_address!r})"


@dataclass(frozen=True)
class GuessBatch:
    """An ordered group of candidate phrases generated as one unit."""
    phrases: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.phrases)

    def to_payload(self) -> list[str]:
        """JSON request body: an array of phrase strings."""
        return list(self.phrases)


# ---------------------------------------------------------------------------
# Submission outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Accepted:
    """HTTP 202: the oracle queued the batch."""
    fatal: bool = field(default=False, init=False)


@dataclass(frozen=True)
class Rejected:
    """Any status other than 202 and 401."""
    status: int
    body: str
    fatal: bool = field(default=False, init=False)


@dataclass(frozen=True)
class AuthFailed:
    """HTTP 401: the API key is not accepted. Stops the engine."""
    body: str = ""
    fatal: bool = field(default=True, init=False)


@dataclass(frozen=True)
class TransportError:
    """No response was obtained (connection failure or timeout)."""
    cause: str
    fatal: bool = field(default=False, init=False)


SubmissionOutcome = Union[Accepted, Rejected, AuthFailed, TransportError]


# ---------------------------------------------------------------------------
# Log
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    message: str

    def format(self) -> str:
        return f"{self.timestamp.isoformat(timespec='milliseconds')} {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "message": self.message,
        }
