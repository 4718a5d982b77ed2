"""SorobanTokenTransfer: address validation and error classification."""

from __future__ import annotations

from types import SimpleNamespace

import pytest
from stellar_sdk import Keypair
from stellar_sdk.contract.exceptions import (
    SendTransactionFailedError,
    SimulationFailedError,
    TransactionFailedError,
    TransactionStillPendingError,
)
from stellar_sdk.exceptions import ConnectionError as StellarConnectionError

from airdrop_distributor.models.records import FailureCause
from airdrop_distributor.stellar.transfer import (
    SorobanTokenTransfer,
    _classify_error,
    is_valid_account_address,
)
from tests.conftest import AIRDROP_AMOUNT, TOKEN_CONTRACT_ID
from tests.factories import make_wallet


class FakeAssembledTx:
    """Stands in for AssembledTransactionAsync; scripted to fail at one step."""

    def __init__(self, tx_hash: str | None = "abc123def456", fail_on: str | None = None,
                 exc_factory=None) -> None:
        self.send_transaction_response = (
            SimpleNamespace(hash=tx_hash) if tx_hash else None
        )
        self._fail_on = fail_on
        self._exc_factory = exc_factory
        self.simulated = 0
        self.submitted = 0

    async def simulate(self):
        self.simulated += 1
        if self._fail_on == "simulate":
            raise self._exc_factory(self)
        return self

    async def sign_and_submit(self, force: bool = False):
        self.submitted += 1
        if self._fail_on == "submit":
            raise self._exc_factory(self)
        return None


class FakeClient:
    def __init__(self, tx: FakeAssembledTx | None = None, invoke_exc: Exception | None = None):
        self.tx = tx
        self.invoke_exc = invoke_exc
        self.invocations: list[tuple] = []

    async def invoke(self, function_name, parameters=None, **kwargs):
        self.invocations.append((function_name, parameters, kwargs))
        if self.invoke_exc is not None:
            raise self.invoke_exc
        return self.tx


@pytest.fixture
def executor():
    return SorobanTokenTransfer(
        TOKEN_CONTRACT_ID,
        "https://soroban-testnet.stellar.org",
        "Test SDF Network ; September 2015",
        Keypair.random(),
        transaction_timeout=120,
        submit_timeout=30,
    )


# ── Address validation ────────────────────────────────────────────


def test_valid_account_address():
    assert is_valid_account_address(make_wallet())


@pytest.mark.parametrize("address", [
    "0xAAA",
    "",
    "0x742d35Cc6634C0532925a3b844Bc454e4438f44e",
    Keypair.random().secret,
    TOKEN_CONTRACT_ID,  # contract, not an account
])
def test_invalid_account_address(address):
    assert not is_valid_account_address(address)


# ── Error classification ──────────────────────────────────────────


@pytest.mark.parametrize("message,expected", [
    ("HostError: Error(Contract, #10)", FailureCause.INSUFFICIENT_FUNDS),
    ("balance is not sufficient to spend", FailureCause.INSUFFICIENT_FUNDS),
    ("HostError: Error(Auth, InvalidAction)", FailureCause.REJECTED_BY_SIGNER),
    ("something else entirely", FailureCause.UNKNOWN),
])
def test_classify_error(message, expected):
    assert _classify_error(Exception(message), FailureCause.UNKNOWN) is expected


# ── transfer() outcomes ───────────────────────────────────────────


async def test_successful_transfer_submits_once(executor):
    tx = FakeAssembledTx(tx_hash="abc123def456")
    executor._client = FakeClient(tx)
    destination = make_wallet()

    result = await executor.transfer(destination, AIRDROP_AMOUNT)

    assert result.success
    assert result.transfer_reference == "abc123def456"
    assert result.destination == destination
    assert result.amount == AIRDROP_AMOUNT
    assert tx.simulated == 1
    assert tx.submitted == 1
    name, params, kwargs = executor._client.invocations[0]
    assert name == "transfer"
    assert len(params) == 3
    assert kwargs["transaction_timeout"] == 120
    assert kwargs["submit_timeout"] == 30


async def test_simulation_failure_insufficient_funds(executor):
    tx = FakeAssembledTx(
        fail_on="simulate",
        exc_factory=lambda t: SimulationFailedError("HostError: Error(Contract, #10)", t),
    )
    executor._client = FakeClient(tx)

    result = await executor.transfer(make_wallet(), AIRDROP_AMOUNT)

    assert not result.success
    assert result.cause is FailureCause.INSUFFICIENT_FUNDS
    assert tx.submitted == 0


async def test_send_rejection_defaults_to_signer(executor):
    tx = FakeAssembledTx(
        tx_hash=None,
        fail_on="submit",
        exc_factory=lambda t: SendTransactionFailedError("txBadSeq", t),
    )
    executor._client = FakeClient(tx)

    result = await executor.transfer(make_wallet(), AIRDROP_AMOUNT)

    assert result.cause is FailureCause.REJECTED_BY_SIGNER
    assert tx.submitted == 1


async def test_unconfirmed_transaction_is_timeout_with_hash(executor):
    tx = FakeAssembledTx(
        tx_hash="pending_hash",
        fail_on="submit",
        exc_factory=lambda t: TransactionStillPendingError("still pending", t),
    )
    executor._client = FakeClient(tx)

    result = await executor.transfer(make_wallet(), AIRDROP_AMOUNT)

    assert not result.success
    assert result.cause is FailureCause.TIMEOUT
    assert result.transfer_reference == "pending_hash"
    assert tx.submitted == 1


async def test_failed_transaction_keeps_hash(executor):
    tx = FakeAssembledTx(
        tx_hash="failed_hash",
        fail_on="submit",
        exc_factory=lambda t: TransactionFailedError("tx failed", t),
    )
    executor._client = FakeClient(tx)

    result = await executor.transfer(make_wallet(), AIRDROP_AMOUNT)

    assert not result.success
    assert result.cause is FailureCause.UNKNOWN
    assert result.transfer_reference == "failed_hash"


async def test_rpc_unreachable_is_network_unavailable(executor):
    executor._client = FakeClient(invoke_exc=StellarConnectionError("connection refused"))

    result = await executor.transfer(make_wallet(), AIRDROP_AMOUNT)

    assert result.cause is FailureCause.NETWORK_UNAVAILABLE
    assert result.transfer_reference is None


async def test_missing_hash_is_not_success(executor):
    executor._client = FakeClient(FakeAssembledTx(tx_hash=None))

    result = await executor.transfer(make_wallet(), AIRDROP_AMOUNT)

    assert not result.success
    assert result.cause is FailureCause.UNKNOWN
