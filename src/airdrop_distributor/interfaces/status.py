"""StatusReader protocol - read-only projections over the ledger."""

from __future__ import annotations

from typing import Protocol

from airdrop_distributor.models.records import ActivityRecord
from airdrop_distributor.models.snapshots import (
    DistributionSummary,
    HealthSnapshot,
    ParticipantStatus,
    WinnersList,
)


class StatusReader(Protocol):
    """Read-only views for callers outside the core. Holds no invariants."""

    async def status_of(self, participant_id: str) -> ParticipantStatus | None:
        """Current state of one participant, or None if they never claimed."""
        ...

    async def winners_list(self) -> WinnersList:
        """All settled participants, ascending by reservation time."""
        ...

    async def summary(self) -> DistributionSummary:
        ...

    async def health(self) -> HealthSnapshot:
        ...

    async def recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
