"""Configuration model for the airdrop distributor."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class AirdropConfig:
    """Complete distributor configuration."""

    # Distribution
    max_participants: int = 1000
    airdrop_amount: int = 10_000_000  # smallest token unit (7 decimals = 1 token)

    # Stellar
    network: str = "testnet"
    rpc_url: str = "https://soroban-testnet.stellar.org"
    network_passphrase: str = "Test SDF Network ; September 2015"
    token_contract_id: str = ""  # SEP-41 token contract ID
    keypair_secret: str = ""  # loaded from env var AIRDROP_SECRET
    transaction_timeout: int = 300  # seconds the signed tx stays valid
    submit_timeout: int = 60  # seconds to wait for confirmation

    # Storage
    db_path: str = "~/.airdrop_distributor/ledger.db"
    busy_timeout: float = 10.0  # seconds to wait on a locked database

    # Logging
    log_level: str = "info"

    def validate(self) -> None:
        """Raise ValueError if the distribution parameters are unusable."""
        if self.max_participants < 1:
            raise ValueError(
                f"max_participants must be >= 1, got {self.max_participants}"
            )
        if self.airdrop_amount <= 0:
            raise ValueError(f"airdrop_amount must be > 0, got {self.airdrop_amount}")
