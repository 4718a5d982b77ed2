"""Claim coordinator - drives one claim from admission to a terminal state."""

from __future__ import annotations

import logging
from typing import Callable

from airdrop_distributor.interfaces.ledger import Ledger
from airdrop_distributor.interfaces.transfer import TransferExecutor
from airdrop_distributor.models.records import (
    ClaimResult,
    ClaimStatus,
    FailureCause,
    LedgerConsistencyError,
    LedgerUnavailableError,
    RejectReason,
    TransferResult,
)
from airdrop_distributor.stellar.transfer import is_valid_account_address

log = logging.getLogger(__name__)


def _outcome(
    status: ClaimStatus, participant_id: str, wallet: str, **kwargs
) -> ClaimResult:
    return ClaimResult(
        status=status, participant_id=participant_id, wallet_address=wallet, **kwargs,
    )


class ClaimCoordinator:
    """Validates, reserves, transfers and reconciles a single claim.

    A participant gets exactly one transfer attempt. The reservation is
    never released, so a failed transfer permanently consumes the slot and
    any later claim for the same participant or wallet is rejected.
    """

    def __init__(
        self,
        ledger: Ledger,
        executor: TransferExecutor,
        airdrop_amount: int,
        address_validator: Callable[[str], bool] = is_valid_account_address,
    ) -> None:
        if airdrop_amount <= 0:
            raise ValueError("airdrop_amount must be > 0")
        self._ledger = ledger
        self._executor = executor
        self._amount = airdrop_amount
        self._is_valid_address = address_validator

    @property
    def airdrop_amount(self) -> int:
        return self._amount

    async def submit_claim(
        self,
        participant_id: str,
        wallet_address: str,
        display_name: str | None = None,
    ) -> ClaimResult:
        """Run one claim end-to-end and return its structured outcome."""
        if not participant_id:
            raise ValueError("participant_id must be non-empty")
        wallet = wallet_address.strip()

        # 1. Syntactic validation, no state touched
        if not self._is_valid_address(wallet):
            log.info(
                "Claim from %s rejected: invalid address %r", participant_id, wallet[:60],
            )
            return _outcome(
                ClaimStatus.REJECTED, participant_id, wallet,
                reason=RejectReason.INVALID_ADDRESS,
            )

        # 2. Atomic admission
        try:
            reservation = await self._ledger.reserve(participant_id, wallet, display_name)
        except LedgerUnavailableError as exc:
            log.error("Ledger unavailable during admission for %s: %s", participant_id, exc)
            return _outcome(
                ClaimStatus.PROCESSING_FAILED, participant_id, wallet,
                cause=FailureCause.STORAGE_UNAVAILABLE, detail=str(exc),
            )

        if not reservation.success:
            await self._record_activity(
                "claim_rejected",
                f"Rejected: {reservation.reason.value}",
                participant_id, wallet,
            )
            return _outcome(
                ClaimStatus.REJECTED, participant_id, wallet, reason=reservation.reason,
            )

        await self._record_activity(
            "claim_reserved", f"Reserved slot for {wallet[:16]}", participant_id, wallet,
        )

        # 3. Exactly one transfer attempt
        transfer = await self._transfer(wallet)

        # 4/5. Reconcile the outcome into the ledger
        if transfer.success:
            return await self._settle(participant_id, wallet, transfer)
        return await self._fail(participant_id, wallet, transfer)

    async def _transfer(self, wallet: str) -> TransferResult:
        try:
            return await self._executor.transfer(wallet, self._amount)
        except Exception as exc:
            log.error("Transfer executor raised for %s: %s", wallet[:16], exc, exc_info=True)
            return TransferResult(
                success=False, destination=wallet, amount=self._amount,
                cause=FailureCause.UNKNOWN, error=str(exc),
            )

    async def _settle(
        self, participant_id: str, wallet: str, transfer: TransferResult
    ) -> ClaimResult:
        ref = transfer.transfer_reference
        if transfer.destination != wallet or transfer.amount != self._amount or not ref:
            log.critical(
                "RECONCILIATION FAILED for %s: transfer reported success for"
                " %s/%d (ref=%s), expected %s/%d; record left reserved",
                participant_id, transfer.destination, transfer.amount, ref,
                wallet, self._amount,
            )
            return _outcome(
                ClaimStatus.RECONCILIATION_FAILED, participant_id, wallet,
                transfer_reference=ref,
                detail="transfer does not match the reserved wallet and amount",
            )

        try:
            update = await self._ledger.mark_settled(participant_id, ref)
        except (LedgerUnavailableError, LedgerConsistencyError) as exc:
            log.critical(
                "RECONCILIATION FAILED for %s: transfer %s confirmed but not recorded: %s",
                participant_id, ref, exc,
            )
            return _outcome(
                ClaimStatus.RECONCILIATION_FAILED, participant_id, wallet,
                transfer_reference=ref, detail=str(exc),
            )

        if not update.success:
            log.critical(
                "RECONCILIATION FAILED for %s: transfer %s confirmed, ledger said %s",
                participant_id, ref, update.reason.value,
            )
            return _outcome(
                ClaimStatus.RECONCILIATION_FAILED, participant_id, wallet,
                transfer_reference=ref,
                detail=update.reason.value,
            )

        log.info("Claim settled for %s (tx=%s)", participant_id, ref[:16])
        await self._record_activity(
            "claim_settled", f"Sent {self._amount} to {wallet[:16]}",
            participant_id, wallet, ref,
        )
        return _outcome(ClaimStatus.ACCEPTED, participant_id, wallet, transfer_reference=ref)

    async def _fail(
        self, participant_id: str, wallet: str, transfer: TransferResult
    ) -> ClaimResult:
        cause = transfer.cause or FailureCause.UNKNOWN
        try:
            update = await self._ledger.mark_failed(participant_id, cause.value)
        except LedgerUnavailableError as exc:
            log.critical(
                "RECONCILIATION FAILED for %s: transfer failed (%s) but ledger"
                " could not record it: %s",
                participant_id, cause.value, exc,
            )
            return _outcome(
                ClaimStatus.RECONCILIATION_FAILED, participant_id, wallet, cause=cause,
                transfer_reference=transfer.transfer_reference, detail=str(exc),
            )

        if not update.success:
            log.critical(
                "RECONCILIATION FAILED for %s: transfer failed (%s), ledger said %s",
                participant_id, cause.value, update.reason.value,
            )
            return _outcome(
                ClaimStatus.RECONCILIATION_FAILED, participant_id, wallet, cause=cause,
                transfer_reference=transfer.transfer_reference,
                detail=update.reason.value,
            )

        log.warning(
            "Claim failed for %s: %s (%s); slot consumed, operator follow-up needed",
            participant_id, cause.value, transfer.error,
        )
        await self._record_activity(
            "claim_failed", f"Transfer failed: {cause.value} ({transfer.error})",
            participant_id, wallet, transfer.transfer_reference,
        )
        return _outcome(
            ClaimStatus.PROCESSING_FAILED, participant_id, wallet, cause=cause,
            transfer_reference=transfer.transfer_reference, detail=transfer.error,
        )

    async def _record_activity(
        self,
        event_type: str,
        message: str,
        participant_id: str,
        wallet: str,
        transfer_reference: str | None = None,
    ) -> None:
        """Append to the activity log; a logging failure never changes the outcome."""
        try:
            await self._ledger.log_activity(
                event_type, message,
                participant_id=participant_id,
                wallet_address=wallet,
                transfer_reference=transfer_reference,
            )
        except LedgerUnavailableError as exc:
            log.warning("Could not log %s for %s: %s", event_type, participant_id, exc)
