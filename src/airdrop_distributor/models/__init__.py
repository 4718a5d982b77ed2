"""Data models for the airdrop distributor."""

from airdrop_distributor.models.records import (
    ActivityRecord,
    ClaimResult,
    ClaimStatus,
    FailureCause,
    LedgerConsistencyError,
    LedgerUnavailableError,
    LedgerUpdate,
    ParticipantRecord,
    ParticipantState,
    RejectReason,
    ReservationResult,
    TransferResult,
)
from airdrop_distributor.models.config import AirdropConfig
from airdrop_distributor.models.snapshots import (
    DistributionSummary,
    HealthSnapshot,
    ParticipantStatus,
    WinnerEntry,
    WinnersList,
)

__all__ = [
    "ActivityRecord", "ClaimResult", "ClaimStatus", "FailureCause",
    "LedgerConsistencyError", "LedgerUnavailableError", "LedgerUpdate",
    "ParticipantRecord", "ParticipantState", "RejectReason", "ReservationResult",
    "TransferResult",
    "AirdropConfig",
    "DistributionSummary", "HealthSnapshot", "ParticipantStatus",
    "WinnerEntry", "WinnersList",
]
