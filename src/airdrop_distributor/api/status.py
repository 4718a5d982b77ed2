"""Status reader - read-only projections over the ledger for outside callers."""

from __future__ import annotations

import logging

from airdrop_distributor.interfaces.ledger import Ledger
from airdrop_distributor.models.records import (
    ActivityRecord,
    LedgerUnavailableError,
    ParticipantRecord,
    ParticipantState,
)
from airdrop_distributor.models.snapshots import (
    DistributionSummary,
    HealthSnapshot,
    ParticipantStatus,
    WinnerEntry,
    WinnersList,
)

log = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


def _join_date(created_at: str) -> str:
    """Calendar date part of an ISO 8601 timestamp."""
    return created_at[:10]


def _record_to_winner(record: ParticipantRecord) -> WinnerEntry:
    return WinnerEntry(
        username=record.display_name or ANONYMOUS,
        wallet_address=record.wallet_address,
        join_date=_join_date(record.created_at),
        transfer_reference=record.transfer_reference or "",
    )


class LedgerStatusReader:
    """Builds JSON-serializable snapshots from ledger state.

    Pure pass-through: nothing here writes to the ledger.
    """

    def __init__(self, ledger: Ledger, max_participants: int, airdrop_amount: int) -> None:
        self._ledger = ledger
        self._max_participants = max_participants
        self._airdrop_amount = airdrop_amount

    async def status_of(self, participant_id: str) -> ParticipantStatus | None:
        record = await self._ledger.find_by_participant(participant_id)
        if record is None:
            return None
        return ParticipantStatus(
            participant_id=record.participant_id,
            state=record.state.value,
            pending=not record.state.is_terminal,
            transfer_reference=record.transfer_reference,
            failure_cause=record.failure_cause,
        )

    async def winners_list(self) -> WinnersList:
        settled = await self._ledger.list_settled()
        return WinnersList(
            total=len(settled),
            winners=[_record_to_winner(r) for r in settled],
        )

    async def summary(self) -> DistributionSummary:
        counts = await self._ledger.count_by_state()
        total = sum(counts.values())
        settled = counts.get(ParticipantState.SETTLED.value, 0)
        return DistributionSummary(
            max_participants=self._max_participants,
            airdrop_amount=self._airdrop_amount,
            total=total,
            reserved=counts.get(ParticipantState.RESERVED.value, 0),
            settled=settled,
            failed=counts.get(ParticipantState.FAILED.value, 0),
            remaining=max(self._max_participants - total, 0),
            distributed_amount=settled * self._airdrop_amount,
        )

    async def health(self) -> HealthSnapshot:
        try:
            counts = await self._ledger.count_by_state()
        except LedgerUnavailableError as exc:
            log.warning("Health check: ledger unreachable: %s", exc)
            return HealthSnapshot(ledger_reachable=False, error=str(exc))
        return HealthSnapshot(ledger_reachable=True, participants=sum(counts.values()))

    async def recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        return await self._ledger.get_recent_activity(limit)
