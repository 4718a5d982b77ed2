"""Internal record types for ledger persistence and operation results."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class ParticipantState(str, Enum):
    """Lifecycle state of a participant record."""

    RESERVED = "reserved"  # slot taken, transfer in flight
    SETTLED = "settled"  # terminal: transfer confirmed
    FAILED = "failed"  # terminal: transfer did not go through

    @property
    def is_terminal(self) -> bool:
        return self is not ParticipantState.RESERVED


class RejectReason(str, Enum):
    """Why a claim or ledger operation was refused."""

    INVALID_ADDRESS = "invalid_address"
    ALREADY_CLAIMED = "already_claimed"
    ADDRESS_IN_USE = "address_in_use"
    CAPACITY_REACHED = "capacity_reached"
    NOT_FOUND = "not_found"
    ALREADY_FINAL = "already_final"


class FailureCause(str, Enum):
    """Why a claim could not be processed after input validation."""

    REJECTED_BY_SIGNER = "rejected_by_signer"
    NETWORK_UNAVAILABLE = "network_unavailable"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"
    STORAGE_UNAVAILABLE = "storage_unavailable"


class ClaimStatus(str, Enum):
    """Top-level outcome of a claim as seen by the caller."""

    ACCEPTED = "accepted"
    REJECTED = "rejected"
    PROCESSING_FAILED = "processing_failed"
    RECONCILIATION_FAILED = "reconciliation_failed"


class LedgerConsistencyError(Exception):
    """The ledger was asked to record something contradicting its contents.

    Raised when a settled record would be re-settled with a different
    transfer reference, or a reference is already held by another record.
    """

    def __init__(self, participant_id: str, message: str) -> None:
        super().__init__(f"{participant_id}: {message}")
        self.participant_id = participant_id


class LedgerUnavailableError(Exception):
    """The ledger backend could not be reached or failed mid-operation."""


@dataclass
class ParticipantRecord:
    """A participant as persisted in the ledger."""

    participant_id: str
    wallet_address: str
    state: ParticipantState = ParticipantState.RESERVED
    display_name: str | None = None
    transfer_reference: str | None = None  # tx hash, settled only
    failure_cause: str | None = None
    created_at: str = ""  # ISO 8601
    updated_at: str = ""


@dataclass
class ReservationResult:
    """Result of an atomic admission attempt."""

    success: bool
    participant_id: str
    record: ParticipantRecord | None = None
    reason: RejectReason | None = None


@dataclass
class LedgerUpdate:
    """Result of a terminal state transition."""

    success: bool
    participant_id: str
    reason: RejectReason | None = None


@dataclass
class TransferResult:
    """Result of a single token transfer submission."""

    success: bool
    destination: str
    amount: int
    transfer_reference: str | None = None  # tx hash
    cause: FailureCause | None = None
    error: str | None = None
    duration_ms: int = 0


@dataclass
class ClaimResult:
    """Structured outcome of ClaimCoordinator.submit_claim()."""

    status: ClaimStatus
    participant_id: str
    wallet_address: str
    transfer_reference: str | None = None
    reason: RejectReason | None = None
    cause: FailureCause | None = None
    detail: str | None = None

    @property
    def accepted(self) -> bool:
        return self.status is ClaimStatus.ACCEPTED

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("status", "reason", "cause"):
            if data[key] is not None:
                data[key] = data[key].value
        return data


@dataclass
class ActivityRecord:
    """A single activity log entry."""

    id: int
    event_type: str
    participant_id: str | None
    wallet_address: str | None
    transfer_reference: str | None
    message: str
    created_at: str
