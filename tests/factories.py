"""Synthetic participant factories for testing."""

from __future__ import annotations

from stellar_sdk import Keypair


def make_wallet() -> str:
    """A fresh, checksum-valid Stellar account ID."""
    return Keypair.random().public_key


def make_wallets(n: int) -> list[str]:
    return [make_wallet() for _ in range(n)]


def make_participant_ids(n: int, prefix: str = "tg") -> list[str]:
    return [f"{prefix}{i}" for i in range(n)]
