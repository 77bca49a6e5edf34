"""
crossauction CLI - Command line interface for the periodic auction.

Main entry point for all CLI commands.
"""

from pathlib import Path

import click

from crossauction.core.errors import ConfigError
from crossauction.utils.logger import setup_logging


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--data-dir", default="~/.crossauction", help="Data directory")
@click.option("--env-file", default=None, help=".env file with AUCTION_* settings")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, data_dir, env_file):
    """Periodic dual-asset auction"""
    import logging

    level = logging.DEBUG if debug else logging.INFO
    setup_logging(level=level)

    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = Path(data_dir).expanduser()
    ctx.obj["env_file"] = env_file


def _load(ctx):
    from crossauction.core.config import load_config

    try:
        return load_config(ctx.obj["env_file"])
    except ConfigError as e:
        raise click.ClickException(str(e))


# =============================================================================
# Config Command
# =============================================================================


@cli.command("config")
@click.pass_context
def show_config(ctx):
    """Show the auction configuration read from the environment"""
    config = _load(ctx)

    click.echo("Auction Configuration")
    click.echo("-" * 40)
    click.echo(f"  Genesis time:   {config.genesis_time}")
    click.echo(f"  Period length:  {config.period_length}s")
    click.echo(f"  Fee:            {config.fee_percent:g}% ({config.fee_numerator})")
    click.echo(f"  Owner:          {config.owner}")
    click.echo(f"  Address:        {config.address}")


# =============================================================================
# Status Command
# =============================================================================


@cli.command("status")
@click.option("--periods", "show_periods", is_flag=True, help="List every stored period")
@click.pass_context
def status(ctx, show_periods):
    """Show the state of the auction persisted in the data directory"""
    from crossauction.core import Auction, InMemoryNative, InMemoryToken
    from crossauction.core.storage import StorageManager

    config = _load(ctx)
    storage = StorageManager(ctx.obj["data_dir"])

    # Read-only: queries never touch the asset ledgers
    auction = Auction(
        config,
        InMemoryToken().as_account(config.address),
        InMemoryNative().as_account(config.address),
        storage_manager=storage,
    )

    try:
        stats = auction.stats()
        click.echo(f"Auction at {storage.db_path}")
        click.echo("-" * 40)
        for key, value in stats.items():
            click.echo(f"  {key}: {value}")

        if show_periods:
            click.echo("")
            click.echo("  Periods:")
            for period in auction.ledger:
                click.echo(
                    f"    #{period.period_id}: native={period.total_native} "
                    f"token={period.total_token}"
                )
    finally:
        storage.close()


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--fee", default=12, type=int, help="Owner fee in whole percent")
def demo(fee):
    """Run one settled period in memory"""
    from crossauction.core import (
        Auction,
        AuctionConfig,
        InMemoryNative,
        InMemoryToken,
        ManualClock,
        fee_from_percent,
    )

    try:
        config = AuctionConfig(genesis_time=0, period_length=3600, fee_numerator=fee_from_percent(fee))
    except ConfigError as e:
        raise click.ClickException(str(e))

    clock = ManualClock(start=0)
    token = InMemoryToken()
    native = InMemoryNative()
    auction = Auction(
        config,
        token.as_account(config.address),
        native.as_account(config.address),
        clock=clock,
    )

    token_deposits = {"alice": 20, "bob": 30, "charlie": 20}
    native_deposits = {"bob": 24, "charlie": 6}

    click.echo("Depositing into period 0...")
    for user, amount in token_deposits.items():
        token.mint(user, amount)
        token.approve(user, config.address, amount)
        auction.deposit_token_current(user, amount)
        click.echo(f"  {user}: {amount} token")
    for user, amount in native_deposits.items():
        native.fund(user, amount)
        auction.deposit_native_current(user, amount)
        click.echo(f"  {user}: {amount} native")

    clock.advance(config.period_length)

    click.echo("")
    click.echo("Claiming rewards for period 0...")
    for user in token_deposits:
        quote = auction.claim_native_reward(user, 0)
        click.echo(f"  {user}: {quote.net} native (fee {quote.fee})")
    for user in native_deposits:
        quote = auction.claim_token_reward(user, 0)
        click.echo(f"  {user}: {quote.net} token (fee {quote.fee})")

    click.echo("")
    click.echo(f"Owner fees: {auction.owner_native_reward} native, {auction.owner_token_reward} token")
    click.echo(
        f"Left in pools: {native.balance_of(config.address) - auction.owner_native_reward} native, "
        f"{token.balance_of(config.address) - auction.owner_token_reward} token"
    )


if __name__ == "__main__":
    cli()
