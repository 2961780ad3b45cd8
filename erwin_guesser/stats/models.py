"""Data models for stats service responses.

Frozen dataclasses for boxes, contributors, leaderboard rows and wallet
statistics. Each one is built from the service's JSON via ``from_dict()``,
which tolerates missing optional fields, and can be dumped back with
``to_dict()`` for ``--json`` output.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    """Parse the service's ISO-8601 timestamps; naive values are taken as UTC."""
    if not raw:
        return None
    text = str(raw).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_elapsed(spawned_at: datetime, now: datetime | None = None) -> str:
    """Time since ``spawned_at`` as HH:MM:SS (hours may exceed 99)."""
    current = now or datetime.now(timezone.utc)
    seconds = max(0, int((current - spawned_at).total_seconds()))
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass(frozen=True)
class BoxInfo:
    """The latest box, as shown on the home screen."""
    box_id: str
    state: bool
    state_str: str
    spawned_at: Optional[datetime]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoxInfo":
        return cls(
            box_id=str(data["box_id"]),
            state=bool(data.get("state", False)),
            state_str=str(data.get("state_str", "")),
            spawned_at=parse_timestamp(data.get("spawned_at")),
        )

    def elapsed(self, now: datetime | None = None) -> str:
        if self.spawned_at is None:
            return "--:--:--"
        return format_elapsed(self.spawned_at, now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "box_id": self.box_id,
            "state": self.state,
            "state_str": self.state_str,
            "spawned_at": self.spawned_at.isoformat() if self.spawned_at else None,
        }


@dataclass(frozen=True)
class BoxContributor:
    wallet_id: str
    guess_count: int
    reward: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoxContributor":
        return cls(
            wallet_id=str(data["wallet_id"]),
            guess_count=int(data.get("guess_count", 0)),
            reward=float(data.get("reward") or 0),
        )


@dataclass(frozen=True)
class BoxDetail:
    box_id: str
    state: bool
    state_str: str
    spawned_at: Optional[datetime]
    opened_at: Optional[datetime]
    is_burned: bool
    contents: Optional[float]
    password: Optional[str]
    decay_number: Optional[int]
    opener_wallet: Optional[str]
    contributor_count: int
    contributors: tuple[BoxContributor, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoxDetail":
        contributors = tuple(
            BoxContributor.from_dict(item) for item in data.get("contributors") or []
        )
        return cls(
            box_id=str(data["box_id"]),
            state=bool(data.get("state", False)),
            state_str=str(data.get("state_str", "")),
            spawned_at=parse_timestamp(data.get("spawned_at")),
            opened_at=parse_timestamp(data.get("opened_at")),
            is_burned=bool(data.get("is_burned", False)),
            contents=data.get("contents"),
            password=data.get("password"),
            decay_number=data.get("decay_number"),
            opener_wallet=data.get("opener_wallet"),
            contributor_count=int(data.get("contributor_count", len(contributors))),
            contributors=contributors,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["spawned_at"] = self.spawned_at.isoformat() if self.spawned_at else None
        data["opened_at"] = self.opened_at.isoformat() if self.opened_at else None
        data["contributors"] = [asdict(c) for c in self.contributors]
        return data


@dataclass(frozen=True)
class BoxPage:
    total: int
    boxes: tuple[BoxDetail, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoxPage":
        return cls(
            total=int(data.get("total", 0)),
            boxes=tuple(BoxDetail.from_dict(item) for item in data.get("boxes") or []),
        )


@dataclass(frozen=True)
class ContributorStats:
    """Per-wallet totals. Used for leaderboard rows and the wallet screen."""
    wallet_id: str
    guess_count: int
    open_count: int
    burn_count: int
    contribution_count: int
    tokens_earned: float

    @classmethod
    def from_dict(cls, data: dict[str, Any], wallet_id: str = "") -> "ContributorStats":
        return cls(
            wallet_id=str(data.get("wallet_id") or wallet_id),
            guess_count=int(data.get("guess_count", 0)),
            open_count=int(data.get("open_count", 0)),
            burn_count=int(data.get("burn_count", 0)),
            contribution_count=int(data.get("contribution_count", 0)),
            tokens_earned=float(data.get("tokens_earned") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class LeaderboardPage:
    total: int
    contributors: tuple[ContributorStats, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LeaderboardPage":
        return cls(
            total=int(data.get("total", 0)),
            contributors=tuple(
                ContributorStats.from_dict(item) for item in data.get("contributors") or []
            ),
        )


@dataclass(frozen=True)
class WalletBox:
    """A box the wallet contributed guesses to."""
    box_id: str
    state_str: str
    is_burned: bool
    opener_wallet: Optional[str]
    rewards: float
    guesses: int
    spawned_at: Optional[datetime]
    opened_at: Optional[datetime]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WalletBox":
        return cls(
            box_id=str(data["box_id"]),
            state_str=str(data.get("state_str", "")),
            is_burned=bool(data.get("is_burned", False)),
            opener_wallet=data.get("opener_wallet"),
            rewards=float(data.get("rewards") or 0),
            guesses=int(data.get("guesses", 0)),
            spawned_at=parse_timestamp(data.get("spawned_at")),
            opened_at=parse_timestamp(data.get("opened_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["spawned_at"] = self.spawned_at.isoformat() if self.spawned_at else None
        data["opened_at"] = self.opened_at.isoformat() if self.opened_at else None
        return data


@dataclass(frozen=True)
class WalletBoxPage:
    total: int
    boxes: tuple[WalletBox, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WalletBoxPage":
        return cls(
            total=int(data.get("total", 0)),
            boxes=tuple(WalletBox.from_dict(item) for item in data.get("boxes") or []),
        )
