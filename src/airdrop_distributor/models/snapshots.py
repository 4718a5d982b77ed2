"""JSON-serializable snapshot models returned by the status reader."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


def _to_dict(obj: Any) -> dict:
    """Recursively convert a dataclass to a plain dict."""
    return asdict(obj)


@dataclass
class ParticipantStatus:
    participant_id: str
    state: str  # "reserved" | "settled" | "failed"
    pending: bool
    transfer_reference: str | None = None
    failure_cause: str | None = None

    def to_dict(self) -> dict:
        return _to_dict(self)


@dataclass
class WinnerEntry:
    username: str  # "Anonymous" when no display name was given
    wallet_address: str
    join_date: str  # YYYY-MM-DD
    transfer_reference: str


@dataclass
class WinnersList:
    total: int
    winners: list[WinnerEntry] = field(default_factory=list)

    def to_dict(self) -> dict:
        return _to_dict(self)


@dataclass
class DistributionSummary:
    max_participants: int
    airdrop_amount: int
    total: int
    reserved: int
    settled: int
    failed: int
    remaining: int
    distributed_amount: int  # settled * airdrop_amount

    def to_dict(self) -> dict:
        return _to_dict(self)


@dataclass
class HealthSnapshot:
    ledger_reachable: bool
    participants: int | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return _to_dict(self)
