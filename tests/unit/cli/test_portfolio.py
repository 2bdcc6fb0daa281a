"""
Unit tests for cryptofolio.cli.commands.portfolio.

Tests cover:
- buy / sell / history / show against a temporary JSON ledger
- Oversell rejection and --allow-oversell
- Input validation and ledger error exit codes
"""

import json
from decimal import Decimal
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from cryptofolio.cli.main import main
from cryptofolio.services.pricing.static import StaticPriceSource


@pytest.fixture
def cli_runner():
    """Fixture providing Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Config with file logging off and a ledger inside tmp_path."""
    config = tmp_path / "cryptofolio.yaml"
    config.write_text(
        f"""
ledger:
  path: {tmp_path / "ledger.json"}
  max_backoff_seconds: 0

tracker:
  default_user: alice

logging:
  level: ERROR
  enable_file: false
""",
        encoding="utf-8",
    )
    return config


@pytest.fixture
def static_prices():
    """Replace the CoinGecko client with fixed prices."""
    source = StaticPriceSource({"bitcoin": Decimal("150"), "ethereum": Decimal("180")})
    with patch("cryptofolio.cli.wiring.build_price_source", return_value=source):
        yield source


def run(cli_runner, config_file, *args):
    return cli_runner.invoke(main, ["--config", str(config_file), "portfolio", *args])


class TestBuy:
    """Test the buy command."""

    def test_buy_writes_ledger(self, cli_runner, config_file, tmp_path, static_prices):
        result = run(cli_runner, config_file, "buy", "bitcoin", "0.5", "45000")

        assert result.exit_code == 0, result.output
        assert "Bought 0.5 bitcoin @ $45,000.00" in result.output
        data = json.loads((tmp_path / "ledger.json").read_text(encoding="utf-8"))
        record = data["alice"]["bitcoin"]["transactions"][0]
        assert record["type"] == "buy"
        assert record["quantity"] == "0.5"
        assert record["price"] == "45000"

    def test_user_option(self, cli_runner, config_file, tmp_path, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "1", "--user", "bob")

        data = json.loads((tmp_path / "ledger.json").read_text(encoding="utf-8"))
        assert list(data) == ["bob"]

    def test_ledger_path_option(self, cli_runner, config_file, tmp_path, static_prices):
        other = tmp_path / "other" / "ledger.json"

        result = run(cli_runner, config_file, "buy", "bitcoin", "1", "1", "--ledger-path", str(other))

        assert result.exit_code == 0, result.output
        assert other.exists()
        assert not (tmp_path / "ledger.json").exists()

    @pytest.mark.parametrize(("quantity", "price"), [("0", "10"), ("abc", "10"), ("1", "-1")])
    def test_invalid_input_exit_code(self, cli_runner, config_file, static_prices, quantity, price):
        result = run(cli_runner, config_file, "buy", "bitcoin", quantity, price)

        assert result.exit_code == 2
        assert "Invalid transaction" in result.output

    def test_corrupt_ledger_exit_code(self, cli_runner, config_file, tmp_path, static_prices):
        (tmp_path / "ledger.json").write_text("[]", encoding="utf-8")

        result = run(cli_runner, config_file, "buy", "bitcoin", "1", "1")

        assert result.exit_code == 1
        assert "Error" in result.output


class TestSell:
    """Test the sell command."""

    def test_sell_prints_realized_pnl(self, cli_runner, config_file, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "2", "10")
        run(cli_runner, config_file, "buy", "bitcoin", "3", "20")

        result = run(cli_runner, config_file, "sell", "bitcoin", "2", "25")

        assert result.exit_code == 0, result.output
        assert "Sold 2 bitcoin" in result.output
        assert "Realized P/L: $18.00" in result.output

    def test_oversell_rejected(self, cli_runner, config_file, tmp_path, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "100")

        result = run(cli_runner, config_file, "sell", "bitcoin", "2", "120")

        assert result.exit_code == 2
        assert "Insufficient bitcoin quantity" in result.output
        data = json.loads((tmp_path / "ledger.json").read_text(encoding="utf-8"))
        assert len(data["alice"]["bitcoin"]["transactions"]) == 1

    def test_allow_oversell(self, cli_runner, config_file, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "100")

        result = run(cli_runner, config_file, "sell", "bitcoin", "2", "120", "--allow-oversell")

        assert result.exit_code == 0, result.output
        assert "excess ignored" in result.output

    def test_loss_is_negative(self, cli_runner, config_file, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "100")

        result = run(cli_runner, config_file, "sell", "bitcoin", "1", "90")

        assert "Realized P/L: -$10.00" in result.output


class TestShow:
    """Test the show command."""

    def test_no_transactions(self, cli_runner, config_file, static_prices):
        result = run(cli_runner, config_file, "show")

        assert result.exit_code == 0
        assert "No transactions yet." in result.output

    def test_net_pnl_line(self, cli_runner, config_file, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "100")
        run(cli_runner, config_file, "buy", "ethereum", "1", "200")

        result = run(cli_runner, config_file, "show")

        assert result.exit_code == 0, result.output
        assert "Net Profit/Loss: $30.00 (+10.00%)" in result.output
        assert "Portfolio - alice" in result.output

    def test_all_positions_closed(self, cli_runner, config_file, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "100")
        run(cli_runner, config_file, "sell", "bitcoin", "1", "120")

        result = run(cli_runner, config_file, "show")

        assert "Net Profit/Loss: $0.00 (+0.00%)" in result.output
        assert "No open positions." in result.output

    def test_price_failure_warns(self, cli_runner, config_file):
        class Down:
            def get_quotes(self, asset_ids):
                from cryptofolio.exceptions import PriceSourceError

                raise PriceSourceError("Rate limit exceeded", status_code=429)

            def close(self):
                pass

        with patch("cryptofolio.cli.wiring.build_price_source", return_value=Down()):
            run(cli_runner, config_file, "buy", "bitcoin", "1", "100")
            result = run(cli_runner, config_file, "show")

        assert result.exit_code == 0, result.output
        assert "Warning: Failed to fetch crypto prices" in result.output
        assert "-$100.00" in result.output


    def test_price_source_closed_after_command(self, cli_runner, config_file):
        class Tracked(StaticPriceSource):
            closed = False

            def close(self):
                self.closed = True

        source = Tracked({"bitcoin": Decimal("150")})
        with patch("cryptofolio.cli.wiring.build_price_source", return_value=source):
            result = run(cli_runner, config_file, "show")

        assert result.exit_code == 0, result.output
        assert source.closed


class TestHistory:
    """Test the history command."""

    def test_empty(self, cli_runner, config_file, static_prices):
        result = run(cli_runner, config_file, "history", "bitcoin")

        assert "No transactions for bitcoin." in result.output

    def test_lists_transactions(self, cli_runner, config_file, static_prices):
        run(cli_runner, config_file, "buy", "bitcoin", "1", "100")
        run(cli_runner, config_file, "sell", "bitcoin", "0.5", "120")

        result = run(cli_runner, config_file, "history", "bitcoin")

        assert result.exit_code == 0, result.output
        assert "BUY" in result.output
        assert "SELL" in result.output
        assert "Transactions - Bitcoin" in result.output
