"""Configuration loading from TOML and environment."""

from __future__ import annotations

import pytest

from airdrop_distributor.config import load_config
from airdrop_distributor.models.config import AirdropConfig

ENV_VARS = [
    "AIRDROP_SECRET", "AIRDROP_NETWORK", "AIRDROP_RPC_URL",
    "AIRDROP_TOKEN_CONTRACT_ID", "AIRDROP_MAX_PARTICIPANTS", "AIRDROP_AMOUNT",
    "AIRDROP_DB_PATH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(tmp_path, text: str):
    path = tmp_path / "airdrop.toml"
    path.write_text(text)
    return path


def test_defaults_without_file():
    cfg = load_config(None)

    assert cfg.max_participants == 1000
    assert cfg.airdrop_amount == 10_000_000
    assert cfg.network == "testnet"
    assert not cfg.db_path.startswith("~")


def test_missing_file_falls_back_to_defaults(tmp_path):
    cfg = load_config(tmp_path / "nope.toml")

    assert cfg.max_participants == AirdropConfig().max_participants


def test_toml_sections(tmp_path):
    path = _write(tmp_path, """
[distribution]
max_participants = 250
airdrop_amount = 5000

[stellar]
network = "mainnet"
rpc_url = "https://rpc.example.org"
token_contract_id = "CTOKEN"
submit_timeout = 45

[storage]
db_path = "/var/lib/airdrop/ledger.db"
busy_timeout = 2.5

[logging]
level = "debug"
""")

    cfg = load_config(path)

    assert cfg.max_participants == 250
    assert cfg.airdrop_amount == 5000
    assert cfg.network == "mainnet"
    assert cfg.network_passphrase == "Public Global Stellar Network ; September 2015"
    assert cfg.rpc_url == "https://rpc.example.org"
    assert cfg.token_contract_id == "CTOKEN"
    assert cfg.submit_timeout == 45
    assert cfg.db_path == "/var/lib/airdrop/ledger.db"
    assert cfg.busy_timeout == 2.5
    assert cfg.log_level == "debug"


def test_env_overrides_file(tmp_path, monkeypatch):
    path = _write(tmp_path, """
[distribution]
max_participants = 250

[stellar]
token_contract_id = "CFILE"
""")
    monkeypatch.setenv("AIRDROP_MAX_PARTICIPANTS", "3")
    monkeypatch.setenv("AIRDROP_TOKEN_CONTRACT_ID", "CENV")
    monkeypatch.setenv("AIRDROP_SECRET", "SSECRET")
    monkeypatch.setenv("AIRDROP_DB_PATH", ":memory:")

    cfg = load_config(path)

    assert cfg.max_participants == 3
    assert cfg.token_contract_id == "CENV"
    assert cfg.keypair_secret == "SSECRET"
    assert cfg.db_path == ":memory:"


@pytest.mark.parametrize("section", [
    "[distribution]\nmax_participants = 0\n",
    "[distribution]\nairdrop_amount = 0\n",
    "[distribution]\nairdrop_amount = -5\n",
])
def test_invalid_distribution_rejected(tmp_path, section):
    with pytest.raises(ValueError):
        load_config(_write(tmp_path, section))
