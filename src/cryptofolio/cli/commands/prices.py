"""Market price command."""

import sys
from datetime import datetime

import click
from rich.console import Console

from cryptofolio.cli.ui import create_prices_table
from cryptofolio.cli.wiring import build_price_source
from cryptofolio.exceptions import PriceSourceError
from cryptofolio.services.ledger import InMemoryLedgerStore, LedgerService
from cryptofolio.services.tracker import PortfolioTracker
from cryptofolio.system.config import SystemConfig


@click.command("prices")
@click.option(
    "--asset",
    "assets",
    multiple=True,
    help="Coin id to quote (repeatable). Defaults to the built-in catalog.",
)
@click.pass_obj
def prices_command(config: SystemConfig, assets: tuple[str, ...]):
    """
    Show current prices and 24h change.

    Example:
        cryptofolio prices
        cryptofolio prices --asset bitcoin --asset ethereum
    """
    console = Console()

    # Quotes only: no ledger access needed
    with PortfolioTracker(LedgerService(InMemoryLedgerStore()), build_price_source(config)) as tracker:
        try:
            quotes = tracker.market_snapshot(list(assets) or None)
        except PriceSourceError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

    console.print(create_prices_table(quotes))
    console.print(f"[dim]Last updated: {datetime.now().strftime('%H:%M:%S')}[/dim]")
