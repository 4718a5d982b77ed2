"""Ledger protocol - durable participant records and admission invariants."""

from __future__ import annotations

from typing import Protocol

from airdrop_distributor.models.records import (
    ActivityRecord,
    LedgerUpdate,
    ParticipantRecord,
    ReservationResult,
)


class Ledger(Protocol):
    """Sole owner of participant storage and its uniqueness/cap invariants.

    Backend failures surface as LedgerUnavailableError.
    """

    # ── Lifecycle ──────────────────────────────────────────

    async def initialize(self) -> None:
        """Create tables if they don't exist."""
        ...

    async def close(self) -> None:
        ...

    # ── Admission ──────────────────────────────────────────

    async def reserve(
        self,
        participant_id: str,
        wallet_address: str,
        display_name: str | None = None,
    ) -> ReservationResult:
        """Atomically insert a reserved record if id, wallet and cap allow it."""
        ...

    # ── Terminal transitions ───────────────────────────────

    async def mark_settled(
        self, participant_id: str, transfer_reference: str
    ) -> LedgerUpdate:
        """Reserved -> settled. Repeating with the same reference is a no-op success.

        Raises LedgerConsistencyError if the record is already settled with a
        different reference.
        """
        ...

    async def mark_failed(
        self, participant_id: str, cause: str | None = None
    ) -> LedgerUpdate:
        """Reserved -> failed."""
        ...

    # ── Queries ────────────────────────────────────────────

    async def find_by_participant(self, participant_id: str) -> ParticipantRecord | None:
        ...

    async def list_settled(self) -> list[ParticipantRecord]:
        """Settled records, oldest reservation first."""
        ...

    async def count_by_state(self) -> dict[str, int]:
        ...

    # ── Activity log ───────────────────────────────────────

    async def log_activity(
        self,
        event_type: str,
        message: str,
        participant_id: str | None = None,
        wallet_address: str | None = None,
        transfer_reference: str | None = None,
    ) -> None:
        ...

    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        ...
