"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path

from airdrop_distributor.models.config import AirdropConfig

NETWORK_PASSPHRASES = {
    "testnet": "Test SDF Network ; September 2015",
    "mainnet": "Public Global Stellar Network ; September 2015",
}


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "AIRDROP_",
) -> AirdropConfig:
    """Load distributor configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (AIRDROP_SECRET, etc.)
        2. TOML config file
        3. Defaults from AirdropConfig

    Raises ValueError if the resulting distribution parameters are invalid.
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    cfg = AirdropConfig()

    # ── Distribution section ───────────────────────────────
    distribution = raw.get("distribution", {})
    if (v := distribution.get("max_participants")) is not None:
        cfg.max_participants = int(v)
    if (v := distribution.get("airdrop_amount")) is not None:
        cfg.airdrop_amount = int(v)

    # ── Stellar section ────────────────────────────────────
    stellar = raw.get("stellar", {})
    if v := stellar.get("network"):
        cfg.network = str(v)
        cfg.network_passphrase = NETWORK_PASSPHRASES.get(cfg.network, cfg.network_passphrase)
    if v := stellar.get("rpc_url"):
        cfg.rpc_url = str(v)
    if v := stellar.get("network_passphrase"):
        cfg.network_passphrase = str(v)
    if v := stellar.get("token_contract_id"):
        cfg.token_contract_id = str(v)
    if v := stellar.get("keypair_secret"):
        cfg.keypair_secret = str(v)
    if v := stellar.get("transaction_timeout"):
        cfg.transaction_timeout = int(v)
    if v := stellar.get("submit_timeout"):
        cfg.submit_timeout = int(v)

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("db_path"):
        cfg.db_path = str(v)
    if v := storage.get("busy_timeout"):
        cfg.busy_timeout = float(v)

    # ── Logging section ────────────────────────────────────
    logging_raw = raw.get("logging", {})
    if v := logging_raw.get("level"):
        cfg.log_level = str(v)

    # ── Environment variable overrides (highest priority) ──
    if secret := os.environ.get(f"{env_prefix}SECRET"):
        cfg.keypair_secret = secret
    if net := os.environ.get(f"{env_prefix}NETWORK"):
        cfg.network = net
        cfg.network_passphrase = NETWORK_PASSPHRASES.get(net, cfg.network_passphrase)
    if rpc := os.environ.get(f"{env_prefix}RPC_URL"):
        cfg.rpc_url = rpc
    if token := os.environ.get(f"{env_prefix}TOKEN_CONTRACT_ID"):
        cfg.token_contract_id = token
    if cap := os.environ.get(f"{env_prefix}MAX_PARTICIPANTS"):
        cfg.max_participants = int(cap)
    if amount := os.environ.get(f"{env_prefix}AMOUNT"):
        cfg.airdrop_amount = int(amount)
    if db_path := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.db_path = db_path

    # Expand ~ in paths
    if cfg.db_path != ":memory:":
        cfg.db_path = str(Path(cfg.db_path).expanduser())

    cfg.validate()
    return cfg
