"""SQLite implementation of the Ledger protocol."""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from airdrop_distributor.models.records import (
    ActivityRecord,
    LedgerConsistencyError,
    LedgerUnavailableError,
    LedgerUpdate,
    ParticipantRecord,
    ParticipantState,
    RejectReason,
    ReservationResult,
)

log = logging.getLogger(__name__)

SCHEMA = """
-- One row per admitted participant. Rows are never deleted.
CREATE TABLE IF NOT EXISTS participants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    participant_id TEXT NOT NULL,
    wallet_address TEXT NOT NULL,
    display_name TEXT,
    state TEXT NOT NULL DEFAULT 'reserved'
        CHECK (state IN ('reserved', 'settled', 'failed')),
    transfer_reference TEXT,
    failure_cause TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    CHECK ((state = 'settled') = (transfer_reference IS NOT NULL))
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_participants_participant
    ON participants(participant_id);
CREATE UNIQUE INDEX IF NOT EXISTS idx_participants_wallet
    ON participants(wallet_address);
CREATE UNIQUE INDEX IF NOT EXISTS idx_participants_transfer
    ON participants(transfer_reference);
CREATE INDEX IF NOT EXISTS idx_participants_state ON participants(state, created_at);

-- Activity log
CREATE TABLE IF NOT EXISTS activity_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    participant_id TEXT,
    wallet_address TEXT,
    transfer_reference TEXT,
    message TEXT NOT NULL,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_activity_created ON activity_log(created_at);
"""

# The count check and the insert are one statement: SQLite takes the write
# lock before evaluating it, so no other connection can insert in between.
_RESERVE_SQL = (
    "INSERT INTO participants"
    " (participant_id, wallet_address, display_name, state, created_at, updated_at)"
    " SELECT ?, ?, ?, 'reserved', ?, ?"
    " WHERE (SELECT COUNT(*) FROM participants) < ?"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _is_duplicate_key(exc: aiosqlite.IntegrityError) -> bool:
    msg = str(exc)
    return "participants.participant_id" in msg or "participants.wallet_address" in msg


def _storage_errors(method):
    """Surface driver failures as LedgerUnavailableError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except aiosqlite.Error as exc:
            raise LedgerUnavailableError(str(exc)) from exc

    return wrapper


class SQLiteLedger:
    """SQLite-backed implementation of the Ledger protocol.

    The connection runs in autocommit mode, so every statement is its own
    transaction. Several processes may open the same database file; WAL
    mode plus a busy timeout lets their writes queue instead of failing.
    """

    def __init__(
        self,
        db_path: str,
        max_participants: int,
        busy_timeout: float = 10.0,
    ) -> None:
        if max_participants < 1:
            raise ValueError("max_participants must be >= 1")
        self._db_path = db_path
        self._max_participants = max_participants
        self._busy_timeout = busy_timeout
        self._db: aiosqlite.Connection | None = None

    @property
    def max_participants(self) -> int:
        return self._max_participants

    async def initialize(self) -> None:
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(
            self._db_path, timeout=self._busy_timeout, isolation_level=None,
        )
        self._db.row_factory = aiosqlite.Row
        if self._db_path != ":memory:":
            await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Ledger not initialized. Call initialize() first."
        return self._db

    # ── Admission ──────────────────────────────────────────

    @_storage_errors
    async def reserve(
        self,
        participant_id: str,
        wallet_address: str,
        display_name: str | None = None,
    ) -> ReservationResult:
        now = _now()
        try:
            async with self.db.execute(
                _RESERVE_SQL,
                (participant_id, wallet_address, display_name, now, now,
                 self._max_participants),
            ) as cur:
                inserted = cur.rowcount == 1
        except aiosqlite.IntegrityError as exc:
            if not _is_duplicate_key(exc):
                raise
            inserted = False

        if not inserted:
            reason = await self._rejection_reason(participant_id, wallet_address)
            log.info("Reservation rejected for %s: %s", participant_id, reason.value)
            return ReservationResult(
                success=False, participant_id=participant_id, reason=reason,
            )

        # The row is committed; report it from the inserted values.
        record = ParticipantRecord(
            participant_id=participant_id,
            wallet_address=wallet_address,
            state=ParticipantState.RESERVED,
            display_name=display_name,
            created_at=now,
            updated_at=now,
        )
        log.info("Reserved slot for %s -> %s", participant_id, wallet_address)
        return ReservationResult(success=True, participant_id=participant_id, record=record)

    async def _rejection_reason(
        self, participant_id: str, wallet_address: str
    ) -> RejectReason:
        """Why the insert did not happen: participant, then wallet, then cap.

        Rows are never deleted, so a duplicate that blocked the insert is
        still visible here.
        """
        async with self.db.execute(
            "SELECT 1 FROM participants WHERE participant_id=?", (participant_id,)
        ) as cur:
            if await cur.fetchone() is not None:
                return RejectReason.ALREADY_CLAIMED
        async with self.db.execute(
            "SELECT 1 FROM participants WHERE wallet_address=?", (wallet_address,)
        ) as cur:
            if await cur.fetchone() is not None:
                return RejectReason.ADDRESS_IN_USE
        return RejectReason.CAPACITY_REACHED

    # ── Terminal transitions ───────────────────────────────

    @_storage_errors
    async def mark_settled(
        self, participant_id: str, transfer_reference: str
    ) -> LedgerUpdate:
        try:
            async with self.db.execute(
                "UPDATE participants SET state='settled', transfer_reference=?, updated_at=?"
                " WHERE participant_id=? AND state='reserved'",
                (transfer_reference, _now(), participant_id),
            ) as cur:
                updated = cur.rowcount == 1
        except aiosqlite.IntegrityError as exc:
            raise LedgerConsistencyError(
                participant_id,
                f"transfer reference {transfer_reference} already recorded: {exc}",
            ) from exc

        if updated:
            return LedgerUpdate(success=True, participant_id=participant_id)

        record = await self.find_by_participant(participant_id)
        if record is None:
            return LedgerUpdate(
                success=False, participant_id=participant_id,
                reason=RejectReason.NOT_FOUND,
            )
        if record.state is ParticipantState.SETTLED:
            if record.transfer_reference == transfer_reference:
                return LedgerUpdate(success=True, participant_id=participant_id)
            raise LedgerConsistencyError(
                participant_id,
                f"already settled with {record.transfer_reference},"
                f" refusing {transfer_reference}",
            )
        return LedgerUpdate(
            success=False, participant_id=participant_id,
            reason=RejectReason.ALREADY_FINAL,
        )

    @_storage_errors
    async def mark_failed(
        self, participant_id: str, cause: str | None = None
    ) -> LedgerUpdate:
        async with self.db.execute(
            "UPDATE participants SET state='failed', failure_cause=?, updated_at=?"
            " WHERE participant_id=? AND state='reserved'",
            (cause, _now(), participant_id),
        ) as cur:
            updated = cur.rowcount == 1

        if updated:
            return LedgerUpdate(success=True, participant_id=participant_id)

        record = await self.find_by_participant(participant_id)
        return LedgerUpdate(
            success=False,
            participant_id=participant_id,
            reason=RejectReason.NOT_FOUND if record is None else RejectReason.ALREADY_FINAL,
        )

    # ── Queries ────────────────────────────────────────────

    @_storage_errors
    async def find_by_participant(self, participant_id: str) -> ParticipantRecord | None:
        async with self.db.execute(
            "SELECT * FROM participants WHERE participant_id=?", (participant_id,)
        ) as cur:
            row = await cur.fetchone()
            return _row_to_participant(row) if row else None

    @_storage_errors
    async def list_settled(self) -> list[ParticipantRecord]:
        async with self.db.execute(
            "SELECT * FROM participants WHERE state='settled' ORDER BY created_at, id"
        ) as cur:
            return [_row_to_participant(row) async for row in cur]

    @_storage_errors
    async def count_by_state(self) -> dict[str, int]:
        counts = {state.value: 0 for state in ParticipantState}
        async with self.db.execute(
            "SELECT state, COUNT(*) as c FROM participants GROUP BY state"
        ) as cur:
            async for row in cur:
                counts[row["state"]] = row["c"]
        return counts

    # ── Activity log ───────────────────────────────────────

    @_storage_errors
    async def log_activity(
        self,
        event_type: str,
        message: str,
        participant_id: str | None = None,
        wallet_address: str | None = None,
        transfer_reference: str | None = None,
    ) -> None:
        await self.db.execute(
            "INSERT INTO activity_log"
            " (event_type, participant_id, wallet_address, transfer_reference,"
            "  message, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (event_type, participant_id, wallet_address, transfer_reference,
             message, _now()),
        )

    @_storage_errors
    async def get_recent_activity(self, limit: int = 50) -> list[ActivityRecord]:
        async with self.db.execute(
            "SELECT * FROM activity_log ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        ) as cur:
            return [
                ActivityRecord(
                    id=row["id"],
                    event_type=row["event_type"],
                    participant_id=row["participant_id"],
                    wallet_address=row["wallet_address"],
                    transfer_reference=row["transfer_reference"],
                    message=row["message"],
                    created_at=row["created_at"],
                )
                async for row in cur
            ]


# ── Row converters ─────────────────────────────────────────


def _row_to_participant(row: aiosqlite.Row) -> ParticipantRecord:
    return ParticipantRecord(
        participant_id=row["participant_id"],
        wallet_address=row["wallet_address"],
        state=ParticipantState(row["state"]),
        display_name=row["display_name"],
        transfer_reference=row["transfer_reference"],
        failure_cause=row["failure_cause"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )
