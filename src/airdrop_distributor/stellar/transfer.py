"""Soroban token transfer executor - one SEP-41 transfer() per call."""

from __future__ import annotations

import logging
import time

from stellar_sdk import Keypair, StrKey, scval
from stellar_sdk.contract import ContractClientAsync
from stellar_sdk.contract.exceptions import (
    SendTransactionFailedError,
    SimulationFailedError,
    TransactionFailedError,
    TransactionStillPendingError,
)
from stellar_sdk.exceptions import ConnectionError as StellarConnectionError

from airdrop_distributor.models.records import FailureCause, TransferResult

log = logging.getLogger(__name__)

# Substrings seen in simulation / result diagnostics
_INSUFFICIENT_FUNDS_MARKERS = (
    "Error(Contract, #10)",  # stellar asset contract: BalanceError
    "balance is not sufficient",
    "txInsufficientBalance",
    "txInsufficientFee",
)
_SIGNER_REJECTION_MARKERS = (
    "Error(Auth",
    "txBadAuth",
    "txNoAccount",
    "Account not found",
)


def is_valid_account_address(address: str) -> bool:
    """True if address is a well-formed Stellar account ID (G..., checksum ok)."""
    return StrKey.is_valid_ed25519_public_key(address)


def _classify_error(exc: Exception, default: FailureCause) -> FailureCause:
    """Map an SDK error message onto a transfer failure cause."""
    msg = str(exc)
    if any(m in msg for m in _INSUFFICIENT_FUNDS_MARKERS):
        return FailureCause.INSUFFICIENT_FUNDS
    if any(m in msg for m in _SIGNER_REJECTION_MARKERS):
        return FailureCause.REJECTED_BY_SIGNER
    return default


def _tx_hash(assembled) -> str:
    if assembled is not None and assembled.send_transaction_response:
        return assembled.send_transaction_response.hash
    return ""


class SorobanTokenTransfer:
    """Transfers a SEP-41 token from the distributor account to a recipient.

    Each call builds, simulates, signs and submits exactly one
    ``transfer(from, to, amount)`` invocation, then waits up to
    ``submit_timeout`` seconds for the network to confirm it. Nothing is
    retried. A transaction still pending at the deadline is reported as
    ``timeout``; it cannot be included after ``transaction_timeout``
    seconds from signing.
    """

    def __init__(
        self,
        token_contract_id: str,
        rpc_url: str,
        network_passphrase: str,
        keypair: Keypair,
        transaction_timeout: int = 300,
        submit_timeout: int = 60,
    ) -> None:
        self._keypair = keypair
        self._public_key = keypair.public_key
        self._transaction_timeout = transaction_timeout
        self._submit_timeout = submit_timeout
        self._client = ContractClientAsync(
            contract_id=token_contract_id,
            rpc_url=rpc_url,
            network_passphrase=network_passphrase,
        )

    @property
    def source_address(self) -> str:
        return self._public_key

    async def close(self) -> None:
        """Close the underlying aiohttp session."""
        await self._client.server.close()

    async def transfer(self, destination: str, amount: int) -> TransferResult:
        """Send ``amount`` token units to ``destination``."""
        log.info("Submitting token transfer of %d to %s", amount, destination[:16])
        start = time.monotonic()

        def _failed(cause: FailureCause, error: str, tx_hash: str = "") -> TransferResult:
            return TransferResult(
                success=False,
                destination=destination,
                amount=amount,
                transfer_reference=tx_hash or None,
                cause=cause,
                error=error,
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        tx = None
        try:
            tx = await self._client.invoke(
                "transfer",
                [
                    scval.to_address(self._public_key),
                    scval.to_address(destination),
                    scval.to_int128(amount),
                ],
                source=self._public_key,
                signer=self._keypair,
                transaction_timeout=self._transaction_timeout,
                submit_timeout=self._submit_timeout,
                simulate=False,
            )
            await tx.simulate()
            await tx.sign_and_submit()

        except SimulationFailedError as exc:
            cause = _classify_error(exc, FailureCause.UNKNOWN)
            log.warning(
                "transfer simulation failed for %s: %s (%s)",
                destination[:16], cause.value, exc,
            )
            return _failed(cause, f"simulation_failed:{cause.value}")

        except SendTransactionFailedError as exc:
            cause = _classify_error(exc, FailureCause.REJECTED_BY_SIGNER)
            log.error("transfer rejected on submission for %s: %s", destination[:16], exc)
            return _failed(cause, f"send_failed:{cause.value}")

        except TransactionStillPendingError as exc:
            tx_hash = _tx_hash(exc.assembled_transaction)
            log.error(
                "transfer to %s not confirmed within %ds (tx=%s)",
                destination[:16], self._submit_timeout, tx_hash or "?",
            )
            return _failed(FailureCause.TIMEOUT, "confirmation_timeout", tx_hash)

        except TransactionFailedError as exc:
            tx_hash = _tx_hash(exc.assembled_transaction)
            cause = _classify_error(exc, FailureCause.UNKNOWN)
            log.error(
                "transfer tx failed for %s: %s (tx=%s)",
                destination[:16], cause.value, tx_hash[:16] if tx_hash else "?",
            )
            return _failed(cause, f"tx_failed:{cause.value}", tx_hash)

        except StellarConnectionError as exc:
            log.error("transfer to %s: RPC unreachable: %s", destination[:16], exc)
            return _failed(FailureCause.NETWORK_UNAVAILABLE, str(exc), _tx_hash(tx))

        except TimeoutError as exc:
            log.error("transfer to %s timed out: %s", destination[:16], exc)
            return _failed(FailureCause.TIMEOUT, str(exc) or "timeout", _tx_hash(tx))

        except Exception as exc:
            cause = _classify_error(exc, FailureCause.UNKNOWN)
            log.error("transfer unexpected error for %s: %s", destination[:16], exc)
            return _failed(cause, str(exc), _tx_hash(tx))

        tx_hash = _tx_hash(tx)
        duration = int((time.monotonic() - start) * 1000)
        if not tx_hash:
            # sign_and_submit returned without a send response; nothing to settle on
            log.error("transfer to %s returned no transaction hash", destination[:16])
            return _failed(FailureCause.UNKNOWN, "missing transaction hash")

        log.info(
            "transfer succeeded: %d to %s (tx=%s, %dms)",
            amount, destination[:16], tx_hash[:16], duration,
        )
        return TransferResult(
            success=True,
            destination=destination,
            amount=amount,
            transfer_reference=tx_hash,
            duration_ms=duration,
        )
