"""Builds application services from SystemConfig."""

from pathlib import Path

from cryptofolio.services.ledger import JsonFileLedgerStore, LedgerService
from cryptofolio.services.pricing import CoinGeckoPriceSource
from cryptofolio.services.tracker import PortfolioTracker
from cryptofolio.system.config import SystemConfig


def build_price_source(config: SystemConfig) -> CoinGeckoPriceSource:
    """CoinGecko client configured from the pricing section."""
    return CoinGeckoPriceSource(
        base_url=config.pricing.base_url,
        vs_currency=config.pricing.vs_currency,
        timeout=config.pricing.timeout_seconds,
        max_retries=config.pricing.max_retries,
        backoff_seconds=config.pricing.backoff_seconds,
    )


def build_tracker(config: SystemConfig, ledger_path: str | Path | None = None) -> PortfolioTracker:
    """
    Tracker over a JSON-file ledger and the CoinGecko price source.

    Args:
        config: System configuration
        ledger_path: Overrides config.ledger.path

    Returns:
        PortfolioTracker; use it as a context manager so the HTTP client is closed
    """
    store = JsonFileLedgerStore(ledger_path or config.ledger.path)
    ledger = LedgerService(
        store,
        max_attempts=config.ledger.max_append_attempts,
        max_backoff_seconds=config.ledger.max_backoff_seconds,
    )
    return PortfolioTracker(
        ledger,
        build_price_source(config),
        allow_oversell=config.tracker.allow_oversell,
    )
