"""Read-only API surface for callers outside the claim core."""

from airdrop_distributor.api.status import LedgerStatusReader

__all__ = ["LedgerStatusReader"]
