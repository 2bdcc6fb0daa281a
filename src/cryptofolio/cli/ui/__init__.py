"""CLI UI components - Rich table formatters."""

from cryptofolio.cli.ui.formatters import (
    create_history_table,
    create_portfolio_table,
    create_prices_table,
    format_change,
    format_price,
)

__all__ = [
    "create_history_table",
    "create_portfolio_table",
    "create_prices_table",
    "format_change",
    "format_price",
]
