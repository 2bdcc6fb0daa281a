"""Cryptofolio CLI main entry point."""

import click

from cryptofolio import __version__
from cryptofolio.cli.commands import portfolio_group, prices_command
from cryptofolio.system import LoggerFactory
from cryptofolio.system.config import get_system_config


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to cryptofolio.yaml (defaults: ./config/cryptofolio.yaml, ~/.cryptofolio/cryptofolio.yaml)",
)
@click.pass_context
def main(ctx: click.Context, config_path: str | None):
    """Cryptofolio - Crypto Portfolio Tracker"""
    config = get_system_config(config_path)
    LoggerFactory.configure(config.logging.to_logger_config())
    ctx.obj = config


main.add_command(prices_command)
main.add_command(portfolio_group)


if __name__ == "__main__":
    main()
