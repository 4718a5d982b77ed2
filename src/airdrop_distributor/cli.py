"""CLI entry point for the airdrop distributor."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click

from airdrop_distributor.api.status import LedgerStatusReader
from airdrop_distributor.config import load_config
from airdrop_distributor.models.config import AirdropConfig
from airdrop_distributor.models.records import ClaimStatus
from airdrop_distributor.service import AirdropService
from airdrop_distributor.storage.sqlite import SQLiteLedger


def _require_secret(cfg: AirdropConfig) -> None:
    """Exit with error if no keypair secret is configured."""
    if not cfg.keypair_secret:
        click.echo("Error: No keypair secret configured.", err=True)
        click.echo("Set AIRDROP_SECRET env var or keypair_secret in config.", err=True)
        sys.exit(1)


def _require_token(cfg: AirdropConfig) -> None:
    """Exit with error if no token contract ID is configured."""
    if not cfg.token_contract_id:
        click.echo("Error: No token contract ID configured.", err=True)
        click.echo("Set AIRDROP_TOKEN_CONTRACT_ID or token_contract_id in config.", err=True)
        sys.exit(1)


def _load(ctx: click.Context) -> AirdropConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except ValueError as exc:
        click.echo(f"Error: invalid configuration: {exc}", err=True)
        sys.exit(1)


async def _with_reader(cfg: AirdropConfig, fn):
    """Open the ledger read-only-style, run fn(reader), close the ledger."""
    ledger = SQLiteLedger(cfg.db_path, cfg.max_participants, cfg.busy_timeout)
    await ledger.initialize()
    try:
        reader = LedgerStatusReader(ledger, cfg.max_participants, cfg.airdrop_amount)
        return await fn(reader)
    finally:
        await ledger.close()


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """airdrop-distributor - one-time token airdrop on Stellar."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Info ───────────────────────────────────────────────


@cli.command("config")
@click.pass_context
def show_config(ctx: click.Context) -> None:
    """Show effective configuration."""
    cfg = _load(ctx)
    click.echo(f"Network:      {cfg.network}")
    click.echo(f"RPC URL:      {cfg.rpc_url}")
    click.echo(f"Token:        {cfg.token_contract_id or '(not set)'}")
    click.echo(f"Amount:       {cfg.airdrop_amount}")
    click.echo(f"Cap:          {cfg.max_participants}")
    click.echo(f"DB path:      {cfg.db_path}")
    click.echo(f"Secret:       {'***configured***' if cfg.keypair_secret else '(not set)'}")


@cli.command()
@click.pass_context
def summary(ctx: click.Context) -> None:
    """Show participant counts and remaining slots."""
    cfg = _load(ctx)
    s = asyncio.run(_with_reader(cfg, lambda r: r.summary()))
    click.echo(f"Participants: {s.total}/{s.max_participants} ({s.remaining} remaining)")
    click.echo(f"  Settled:    {s.settled}")
    click.echo(f"  Failed:     {s.failed}")
    click.echo(f"  Pending:    {s.reserved}")
    click.echo(f"Distributed:  {s.distributed_amount} ({s.airdrop_amount} each)")


# ── Claims ─────────────────────────────────────────────


@cli.command()
@click.argument("participant_id")
@click.argument("wallet_address")
@click.option("--name", "display_name", default=None, help="Display name for the winners list")
@click.pass_context
def claim(ctx: click.Context, participant_id: str, wallet_address: str,
          display_name: str | None) -> None:
    """Submit a claim for PARTICIPANT_ID to WALLET_ADDRESS."""
    cfg = _load(ctx)
    _require_secret(cfg)
    _require_token(cfg)

    async def _claim():
        async with AirdropService(cfg) as service:
            return await service.coordinator.submit_claim(
                participant_id, wallet_address, display_name,
            )

    result = asyncio.run(_claim())
    click.echo(json.dumps(result.to_dict(), indent=2))
    if result.status is ClaimStatus.RECONCILIATION_FAILED:
        sys.exit(2)
    if not result.accepted:
        sys.exit(1)


@cli.command()
@click.argument("participant_id")
@click.pass_context
def status(ctx: click.Context, participant_id: str) -> None:
    """Show the claim status of PARTICIPANT_ID."""
    cfg = _load(ctx)
    st = asyncio.run(_with_reader(cfg, lambda r: r.status_of(participant_id)))
    if st is None:
        click.echo(f"{participant_id} has not claimed.")
        sys.exit(1)
    if st.pending:
        click.echo("Status: pending")
    elif st.transfer_reference:
        click.echo(f"Status: {st.state}")
        click.echo(f"Transaction: {st.transfer_reference}")
    else:
        click.echo(f"Status: {st.state} ({st.failure_cause or 'unknown'})")


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Emit JSON")
@click.pass_context
def winners(ctx: click.Context, as_json: bool) -> None:
    """List settled participants in claim order."""
    cfg = _load(ctx)
    wl = asyncio.run(_with_reader(cfg, lambda r: r.winners_list()))
    if as_json:
        click.echo(json.dumps(wl.to_dict(), indent=2))
        return
    click.echo(f"Total: {wl.total}")
    for w in wl.winners:
        click.echo(f"  {w.join_date}  {w.username:<20} {w.wallet_address}  {w.transfer_reference}")


@cli.command()
@click.option("--limit", type=int, default=20, help="Number of entries")
@click.pass_context
def activity(ctx: click.Context, limit: int) -> None:
    """Show recent claim activity."""
    cfg = _load(ctx)
    entries = asyncio.run(_with_reader(cfg, lambda r: r.recent_activity(limit)))
    for a in entries:
        who = a.participant_id or "-"
        click.echo(f"{a.created_at}  {a.event_type:<15} {who:<20} {a.message}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
