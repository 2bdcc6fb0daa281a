"""Rich table formatters for CLI output."""

from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, localcontext

from rich.table import Table

from cryptofolio.assets import get_asset, price_display_decimals
from cryptofolio.services.portfolio.models import Transaction, TransactionKind
from cryptofolio.services.pricing.models import PriceQuote
from cryptofolio.services.tracker.models import PortfolioReport


def _quantize(value: Decimal, places: int) -> Decimal:
    with localcontext() as ctx:
        # quantize needs every integer digit plus the requested places
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_price(price: Decimal) -> str:
    """
    Format a price as dollars.

    Args:
        price: Price per unit

    Returns:
        "$64,250.12", or "$0.061234" for sub-dollar prices
    """
    places = price_display_decimals(price)
    return f"${_quantize(price, places):,.{places}f}"


def format_money(amount: Decimal) -> str:
    """Signed dollar amount with 2 decimals."""
    quantized = _quantize(amount, 2)
    if quantized < 0:
        return f"-${-quantized:,.2f}"
    return f"${quantized:,.2f}"


def format_change(change: Decimal) -> str:
    """
    Format a percent change with explicit sign.

    Args:
        change: Percent value (e.g. Decimal("-1.5"))

    Returns:
        "+2.10%" / "-1.50%"
    """
    quantized = _quantize(change, 2)
    sign = "+" if quantized >= 0 else ""
    return f"{sign}{quantized:.2f}%"


def _colored(text: str, value: Decimal) -> str:
    color = "green" if value >= 0 else "red"
    return f"[{color}]{text}[/{color}]"


def create_prices_table(quotes: Mapping[str, PriceQuote]) -> Table:
    """
    Create a Rich table of current market prices.

    Args:
        quotes: asset_id -> PriceQuote, in display order

    Returns:
        Configured Rich Table
    """
    table = Table(title="Crypto Prices")
    table.add_column("Coin", style="cyan", no_wrap=True)
    table.add_column("Symbol", style="dim")
    table.add_column("Price", justify="right")
    table.add_column("24h", justify="right")

    for asset_id, quote in quotes.items():
        asset = get_asset(asset_id)
        table.add_row(
            asset.name,
            asset.symbol,
            format_price(quote.price),
            _colored(format_change(quote.change_24h), quote.change_24h),
        )
    return table


def create_portfolio_table(report: PortfolioReport) -> Table:
    """
    Create a Rich table of open positions.

    Args:
        report: Portfolio refresh result

    Returns:
        Configured Rich Table
    """
    table = Table(title=f"Portfolio - {report.user_id}")
    table.add_column("Coin", style="cyan", no_wrap=True)
    table.add_column("Quantity", justify="right", style="magenta")
    table.add_column("Avg Buy", justify="right")
    table.add_column("Current Price", justify="right")
    table.add_column("Cost Basis", justify="right", style="dim")
    table.add_column("Total Value", justify="right", style="yellow")
    table.add_column("P/L", justify="right")

    for asset_id, position in sorted(report.positions.items()):
        table.add_row(
            get_asset(asset_id).name,
            f"{_quantize(position.open_quantity, 4):f}",
            format_money(position.average_cost),
            format_money(position.current_price),
            format_money(position.cost_basis),
            format_money(position.market_value),
            _colored(format_change(position.unrealized_pnl_percent), position.unrealized_pnl_percent),
        )
    return table


def format_net_pnl(report: PortfolioReport) -> str:
    """Net Profit/Loss line, e.g. "$30.00 (+10.00%)" in green."""
    summary = report.summary
    text = f"{format_money(summary.net_pnl)} ({format_change(summary.net_pnl_percent)})"
    return _colored(text, summary.net_pnl)


def create_history_table(asset_id: str, transactions: list[Transaction]) -> Table:
    """
    Create a Rich table of one asset's transactions.

    Args:
        asset_id: Asset identifier
        transactions: History, oldest first

    Returns:
        Configured Rich Table
    """
    table = Table(title=f"Transactions - {get_asset(asset_id).name}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", no_wrap=True)
    table.add_column("Quantity", justify="right", style="magenta")
    table.add_column("Price", justify="right")
    table.add_column("Recorded", style="dim")

    for index, tx in enumerate(transactions, start=1):
        kind = "[green]BUY[/green]" if tx.kind == TransactionKind.BUY else "[red]SELL[/red]"
        if tx.timestamp > 0:
            recorded = datetime.fromtimestamp(tx.timestamp // 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        else:
            recorded = "-"
        table.add_row(str(index), kind, f"{tx.quantity:f}", format_price(tx.price), recorded)
    return table
