"""Portfolio commands - thin CLI orchestration layer."""

import sys

import click
from rich.console import Console

from cryptofolio.cli.ui import create_history_table, create_portfolio_table
from cryptofolio.cli.ui.formatters import format_money, format_net_pnl
from cryptofolio.cli.wiring import build_tracker
from cryptofolio.exceptions import InvalidTransactionError, LedgerError, OversellError
from cryptofolio.system.config import SystemConfig

user_option = click.option("--user", "user_id", default=None, help="User identity (defaults to tracker.default_user)")
ledger_option = click.option(
    "--ledger-path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Ledger JSON file (overrides ledger.path)",
)


@click.group("portfolio")
def portfolio_group():
    """Portfolio commands - record buys/sells and show profit/loss"""
    pass


@portfolio_group.command("show")
@user_option
@ledger_option
@click.pass_obj
def show_portfolio(config: SystemConfig, user_id: str | None, ledger_path: str | None):
    """
    Show open positions and net profit/loss.

    Example:
        cryptofolio portfolio show --user alice
    """
    console = Console()
    user_id = user_id or config.tracker.default_user
    with build_tracker(config, ledger_path) as tracker:
        try:
            report = tracker.refresh(user_id)
        except LedgerError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

    for error in report.errors:
        console.print(f"[yellow]Warning: {error}[/yellow]")

    if not report.has_transactions:
        console.print("[dim]No transactions yet.[/dim]")
        return

    console.print(f"\n[bold]Net Profit/Loss:[/bold] {format_net_pnl(report)}\n")
    if report.positions:
        console.print(create_portfolio_table(report))
    else:
        console.print("[dim]No open positions.[/dim]")


@portfolio_group.command("buy")
@click.argument("asset_id")
@click.argument("quantity")
@click.argument("price")
@user_option
@ledger_option
@click.pass_obj
def buy(config: SystemConfig, asset_id: str, quantity: str, price: str, user_id: str | None, ledger_path: str | None):
    """
    Record a buy of QUANTITY units of ASSET_ID at PRICE per unit.

    Example:
        cryptofolio portfolio buy bitcoin 0.5 45000 --user alice
    """
    console = Console()
    user_id = user_id or config.tracker.default_user
    with build_tracker(config, ledger_path) as tracker:
        try:
            transaction = tracker.record_buy(user_id, asset_id, quantity, price)
        except InvalidTransactionError as e:
            console.print(f"[red]Invalid transaction: {e}[/red]")
            sys.exit(2)
        except LedgerError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

    console.print(
        f"[green]✓ Bought[/green] {transaction.quantity:f} {asset_id} @ {format_money(transaction.price)}"
    )


@portfolio_group.command("sell")
@click.argument("asset_id")
@click.argument("quantity")
@click.argument("price")
@user_option
@ledger_option
@click.option(
    "--allow-oversell",
    is_flag=True,
    default=False,
    help="Record the sell even if it exceeds the open quantity (excess is ignored)",
)
@click.pass_obj
def sell(
    config: SystemConfig,
    asset_id: str,
    quantity: str,
    price: str,
    user_id: str | None,
    ledger_path: str | None,
    allow_oversell: bool,
):
    """
    Record a sell of QUANTITY units of ASSET_ID at PRICE per unit.

    Prints the realized profit/loss against the average cost before the sale.

    Example:
        cryptofolio portfolio sell bitcoin 0.25 50000 --user alice
    """
    console = Console()
    user_id = user_id or config.tracker.default_user
    with build_tracker(config, ledger_path) as tracker:
        try:
            report = tracker.record_sell(
                user_id,
                asset_id,
                quantity,
                price,
                allow_oversell=allow_oversell or None,
            )
        except OversellError as e:
            console.print(f"[yellow]Warning: {e}. Use --allow-oversell to record it anyway.[/yellow]")
            sys.exit(2)
        except InvalidTransactionError as e:
            console.print(f"[red]Invalid transaction: {e}[/red]")
            sys.exit(2)
        except LedgerError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

    color = "green" if report.realized_pnl >= 0 else "red"
    console.print(f"[green]✓ Sold[/green] {report.quantity:f} {asset_id} @ {format_money(report.price)}")
    console.print(f"Realized P/L: [{color}]{format_money(report.realized_pnl)}[/{color}]")
    if report.exceeds_position:
        console.print(
            f"[yellow]Sell exceeded open quantity {report.open_quantity_before:f}; excess ignored.[/yellow]"
        )


@portfolio_group.command("history")
@click.argument("asset_id")
@user_option
@ledger_option
@click.pass_obj
def history(config: SystemConfig, asset_id: str, user_id: str | None, ledger_path: str | None):
    """
    List recorded transactions of ASSET_ID in FIFO order.

    Example:
        cryptofolio portfolio history bitcoin --user alice
    """
    console = Console()
    user_id = user_id or config.tracker.default_user
    with build_tracker(config, ledger_path) as tracker:
        try:
            transactions = tracker.history(user_id, asset_id)
        except LedgerError as e:
            console.print(f"[red]Error: {e}[/red]")
            sys.exit(1)

    if not transactions:
        console.print(f"[dim]No transactions for {asset_id}.[/dim]")
        return
    console.print(create_history_table(asset_id, transactions))
