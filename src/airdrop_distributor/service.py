"""Service wiring - builds the claim core from configuration."""

from __future__ import annotations

import logging

from stellar_sdk import Keypair

from airdrop_distributor.api.status import LedgerStatusReader
from airdrop_distributor.coordinator import ClaimCoordinator
from airdrop_distributor.models.config import AirdropConfig
from airdrop_distributor.stellar.transfer import SorobanTokenTransfer
from airdrop_distributor.storage.sqlite import SQLiteLedger

log = logging.getLogger(__name__)


class AirdropService:
    """Owns the ledger, transfer executor, coordinator and status reader.

    The signer keypair is built once here and handed to the executor;
    callers (chat bots, HTTP handlers, the CLI) only talk to
    ``coordinator`` and ``status``.
    """

    def __init__(self, cfg: AirdropConfig) -> None:
        cfg.validate()
        self._cfg = cfg

        keypair = Keypair.from_secret(cfg.keypair_secret)
        self._public_key = keypair.public_key

        self.ledger = SQLiteLedger(cfg.db_path, cfg.max_participants, cfg.busy_timeout)
        self.executor = SorobanTokenTransfer(
            cfg.token_contract_id,
            cfg.rpc_url,
            cfg.network_passphrase,
            keypair,
            transaction_timeout=cfg.transaction_timeout,
            submit_timeout=cfg.submit_timeout,
        )
        self.coordinator = ClaimCoordinator(self.ledger, self.executor, cfg.airdrop_amount)
        self.status = LedgerStatusReader(
            self.ledger, cfg.max_participants, cfg.airdrop_amount,
        )

    async def start(self) -> None:
        log.info("Starting airdrop distributor")
        log.info("  Distributor: %s", self._public_key)
        log.info("  Token:       %s", self._cfg.token_contract_id)
        log.info("  RPC:         %s", self._cfg.rpc_url)
        log.info("  Amount:      %d", self._cfg.airdrop_amount)
        log.info("  Cap:         %d", self._cfg.max_participants)
        await self.ledger.initialize()

    async def close(self) -> None:
        try:
            await self.executor.close()
        finally:
            await self.ledger.close()
        log.info("Airdrop distributor shut down cleanly")

    async def __aenter__(self) -> AirdropService:
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
