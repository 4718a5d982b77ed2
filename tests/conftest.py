"""Shared fixtures for airdrop_distributor tests."""

from __future__ import annotations

import pytest

from airdrop_distributor.api.status import LedgerStatusReader
from airdrop_distributor.coordinator import ClaimCoordinator
from airdrop_distributor.models.config import AirdropConfig
from airdrop_distributor.storage.sqlite import SQLiteLedger

from tests.mocks import MockTransfer

AIRDROP_AMOUNT = 10_000_000
MAX_PARTICIPANTS = 1000

TOKEN_CONTRACT_ID = "CCEDYFIHUCJFITWEOT7BWUO2HBQQ72L244ZXQ4YNOC6FYRDN3MKDQFK7"


def make_test_config(**overrides) -> AirdropConfig:
    """Build an AirdropConfig suitable for testing."""
    defaults = dict(
        max_participants=MAX_PARTICIPANTS,
        airdrop_amount=AIRDROP_AMOUNT,
        rpc_url="https://soroban-testnet.stellar.org",
        network_passphrase="Test SDF Network ; September 2015",
        token_contract_id=TOKEN_CONTRACT_ID,
        keypair_secret="",
        db_path=":memory:",
        busy_timeout=5.0,
    )
    defaults.update(overrides)
    return AirdropConfig(**defaults)


async def open_ledger(db_path: str = ":memory:", max_participants: int = MAX_PARTICIPANTS,
                      cls: type[SQLiteLedger] = SQLiteLedger) -> SQLiteLedger:
    ledger = cls(db_path, max_participants, busy_timeout=5.0)
    await ledger.initialize()
    return ledger


@pytest.fixture
async def ledger():
    """Initialized in-memory SQLiteLedger with the default cap."""
    lg = await open_ledger()
    yield lg
    await lg.close()


@pytest.fixture
async def single_slot_ledger():
    """In-memory ledger with MAX_PARTICIPANTS=1."""
    lg = await open_ledger(max_participants=1)
    yield lg
    await lg.close()


@pytest.fixture
def mock_transfer():
    return MockTransfer(succeed=True)


@pytest.fixture
def coordinator(ledger, mock_transfer):
    """ClaimCoordinator over the in-memory ledger and a scripted executor."""
    return ClaimCoordinator(ledger, mock_transfer, AIRDROP_AMOUNT)


@pytest.fixture
def reader(ledger):
    return LedgerStatusReader(ledger, MAX_PARTICIPANTS, AIRDROP_AMOUNT)
