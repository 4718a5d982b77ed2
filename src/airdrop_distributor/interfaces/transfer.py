"""TransferExecutor protocol - a single token transfer with a definitive outcome."""

from __future__ import annotations

from typing import Protocol

from airdrop_distributor.models.records import TransferResult


class TransferExecutor(Protocol):
    """Submits exactly one token transfer per call. Never retries."""

    async def transfer(self, destination: str, amount: int) -> TransferResult:
        """Build, sign, submit and confirm one transfer."""
        ...
