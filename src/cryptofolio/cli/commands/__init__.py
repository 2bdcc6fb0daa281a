"""Commands __init__ - exports all command groups."""

from cryptofolio.cli.commands.portfolio import portfolio_group
from cryptofolio.cli.commands.prices import prices_command

__all__ = ["portfolio_group", "prices_command"]
