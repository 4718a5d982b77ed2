"""Stellar/Soroban integration components."""

from airdrop_distributor.stellar.transfer import (
    SorobanTokenTransfer,
    is_valid_account_address,
)

__all__ = ["SorobanTokenTransfer", "is_valid_account_address"]
