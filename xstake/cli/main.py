"""
xstake CLI - Command Line Interface for the liquid staking ledger

Main entry point for all CLI commands.
"""

import json
import click
from pathlib import Path

from xstake.utils.logger import setup_logging


def format_units(amount: int, decimals: int = 18) -> str:
    """Render base units as a decimal token amount."""
    whole, frac = divmod(amount, 10**decimals)
    frac_str = str(frac).rjust(decimals, "0").rstrip("0")
    return f"{whole}.{frac_str}" if frac_str else str(whole)


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default=None, help="Data directory (default: configured data_dir)")
@click.option("--config", "config_path", default=None, help="JSON config file")
@click.option("--log-file", is_flag=True, help="Also write logs to <log_dir>/xstake.log")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, config_path, log_file):
    """xstake - Liquid staking ledger"""
    import logging
    from xstake.core.config import load_config

    config = load_config(config_path)

    level = logging.DEBUG if debug else logging.INFO
    log_dir = config.log_dir.expanduser() if log_file else None
    setup_logging(level=level, log_dir=log_dir, force=True)

    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["data_dir"] = Path(data_dir).expanduser() if data_dir else config.data_dir.expanduser()
    ctx.obj["data_dir"].mkdir(parents=True, exist_ok=True)


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--symbol", default="XAUDIO", help="Share token symbol")
@click.option("--persist/--no-persist", default=True, help="Journal to the data directory")
@click.pass_context
def demo(ctx, symbol, persist):
    """Run deposit -> reward -> cooldown -> unstake on a simulated network"""
    from xstake.crypto import generate_keypair, bytes_to_hex
    from xstake.core.config import TOKEN_UNIT
    from xstake.core.external import create_network
    from xstake.core.staking import StakingLedger
    from xstake.core.storage import StorageManager

    config = ctx.obj["config"]

    click.echo("=" * 60)
    click.echo("  XSTAKE - LIQUID STAKING DEMO")
    click.echo("=" * 60)
    click.echo()

    # Setup
    click.echo("📦 Initializing simulated network...")
    owner = generate_keypair().address
    alice = generate_keypair().address
    bob = generate_keypair().address
    provider = generate_keypair().address

    network = create_network(config)
    storage = StorageManager(ctx.obj["data_dir"]) if persist else None
    ledger = StakingLedger(owner, network.clock, config=config, storage_manager=storage)
    ledger.initialize(owner, network.token, provider, network.delegation_manager, symbol)

    for holder in (alice, bob):
        network.token.mint(holder, 10_000 * TOKEN_UNIT)
        network.token.approve(holder, ledger.address, 1_000 * TOKEN_UNIT)

    click.echo(f"  ✓ Ledger {symbol} at {bytes_to_hex(ledger.address)}")
    click.echo(f"  ✓ Service provider {bytes_to_hex(provider)}")
    click.echo()

    # Deposits
    click.echo("💸 Deposits...")
    alice_shares = ledger.mint_with_token(alice, 110 * TOKEN_UNIT)
    click.echo(f"  ✓ Alice deposited 110 for {format_units(alice_shares)} {symbol}")
    bob_shares = ledger.mint_with_token(bob, 10 * TOKEN_UNIT)
    click.echo(f"  ✓ Bob deposited 10 for {format_units(bob_shares)} {symbol}")
    click.echo(f"  ✓ Buffer {format_units(ledger.get_buffer_balance())}, staked {format_units(ledger.get_staked_balance())}")
    click.echo()

    # Rewards
    click.echo("🎁 Funding round and reward claim...")
    network.fund_round()
    claimed = ledger.claim_rewards(owner)
    click.echo(f"  ✓ Round funded at block {network.clock.now()}")
    click.echo(f"  ✓ Claimed {format_units(claimed)}, staked now {format_units(ledger.get_staked_balance())}")
    click.echo()

    # Cooldown / unstake
    click.echo("⏳ Cooldown and unstake...")
    entry = ledger.cooldown(owner, 10 * TOKEN_UNIT)
    click.echo(f"  ✓ Cooldown of 10 until block {entry.unlock_at}")
    network.clock.mine_until(entry.unlock_at)
    unstaked = ledger.unstake(owner)
    click.echo(f"  ✓ Unstaked {format_units(unstaked)} into the buffer")
    click.echo()

    # Redemption
    click.echo("🔁 Bob redeems half his shares...")
    payout = ledger.burn(bob, bob_shares // 2)
    click.echo(f"  ✓ Paid out {format_units(payout)}")
    click.echo()

    # Stats
    stats = ledger.stats()
    click.echo("📊 Final Statistics:")
    click.echo(f"  Shares: {format_units(stats['total_shares'])} across {stats['holders']} holders")
    click.echo(f"  Buffer: {format_units(stats['buffer_balance'])}")
    click.echo(f"  Staked: {format_units(stats['staked_balance'])}")
    click.echo(f"  Price per share: {format_units(stats['price_per_share'])}")
    if storage:
        click.echo(f"  Journal: {storage.event_count()} events in {storage.db_path}")
        storage.close()
    click.echo()
    click.echo("✅ Demo complete!")


# =============================================================================
# Journal Commands
# =============================================================================


@cli.command("status")
@click.pass_context
def status(ctx):
    """Show the latest journalled ledger snapshot"""
    from xstake.core.storage import StorageManager

    db_path = ctx.obj["data_dir"] / "xstake.db"
    if not db_path.exists():
        click.echo("No ledger journal found.")
        click.echo("   Create one with: xstake demo")
        return

    storage = StorageManager(ctx.obj["data_dir"])
    snapshot = storage.latest_snapshot()
    symbol = storage.get_meta("symbol") or "-"

    click.echo(f"Ledger {symbol}")
    click.echo("-" * 40)
    if snapshot is None:
        click.echo("  No operations recorded.")
    else:
        click.echo(f"  Block: {snapshot.block}")
        click.echo(f"  Shares: {format_units(snapshot.total_shares)}")
        click.echo(f"  Holders: {snapshot.holder_count}")
        click.echo(f"  Buffer: {format_units(snapshot.buffer_balance)}")
        click.echo(f"  Staked: {format_units(snapshot.staked_balance)}")
        click.echo(f"  NAV: {format_units(snapshot.total_underlying)}")
    storage.close()


@cli.command("history")
@click.option("--limit", default=20, help="Max events to show")
@click.pass_context
def history(ctx, limit):
    """List journalled ledger operations"""
    from xstake.crypto import short_address
    from xstake.core.storage import StorageManager

    db_path = ctx.obj["data_dir"] / "xstake.db"
    if not db_path.exists():
        click.echo("No ledger journal found.")
        return

    storage = StorageManager(ctx.obj["data_dir"])
    for entry in storage.load_history(limit):
        click.echo(
            f"  #{entry.seq:<4} block {entry.block:<8} {entry.kind:<10} "
            f"{short_address(entry.caller)} amount={format_units(entry.amount)} shares={format_units(entry.shares)}"
        )
    storage.close()


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Print the effective configuration"""
    config = ctx.obj["config"]
    click.echo(json.dumps(config.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    cli()
