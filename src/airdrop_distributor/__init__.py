"""airdrop_distributor - one-time token airdrop admission and distribution."""

__version__ = "0.1.0"
