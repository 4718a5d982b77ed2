"""Protocol interfaces for all airdrop_distributor components."""

from airdrop_distributor.interfaces.ledger import Ledger
from airdrop_distributor.interfaces.status import StatusReader
from airdrop_distributor.interfaces.transfer import TransferExecutor

__all__ = ["Ledger", "StatusReader", "TransferExecutor"]
