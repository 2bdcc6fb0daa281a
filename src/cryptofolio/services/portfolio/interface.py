"""Portfolio engine interface (Protocol).

Defines the contract that accounting engine implementations must satisfy.
Enables dependency injection and makes the tracker independently testable.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Protocol

from cryptofolio.services.portfolio.models import AssetPosition, PortfolioSummary, SellReport, Transaction


class IPortfolioEngine(Protocol):
    """
    Accounting engine interface for FIFO lot accounting.

    Core responsibilities:
    - Replay an asset's transaction history through a FIFO lot queue
    - Derive position statistics at a supplied market price
    - Aggregate open positions into portfolio totals
    - Report realized P&L for a sell before it is recorded

    Does NOT:
    - Read or write the ledger
    - Fetch prices
    - Keep state between calls

    Example:
        >>> engine: IPortfolioEngine = PortfolioEngine()
        >>> position = engine.compute_position(transactions, Decimal("150"), asset_id="bitcoin")
        >>> summary = engine.compute_portfolio({"bitcoin": position})
    """

    def compute_position(
        self,
        transactions: Iterable[Transaction | Mapping[str, Any]],
        current_price: Decimal,
        asset_id: str = "",
    ) -> AssetPosition:
        """
        Compute one asset's position from its ordered transaction history.

        Args:
            transactions: Ordered history, oldest first
            current_price: Market price per unit
            asset_id: Asset identifier

        Returns:
            AssetPosition (never raises on malformed records)
        """
        ...

    def compute_positions(
        self,
        ledger: Mapping[str, Iterable[Transaction | Mapping[str, Any]]],
        prices: Mapping[str, Decimal],
    ) -> dict[str, AssetPosition]:
        """
        Compute positions for all assets, dropping closed ones.

        Args:
            ledger: asset_id -> ordered history
            prices: asset_id -> price (missing reads as 0)

        Returns:
            Open positions by asset_id
        """
        ...

    def compute_portfolio(self, positions: Mapping[str, AssetPosition]) -> PortfolioSummary:
        """
        Aggregate open positions into portfolio totals.

        Args:
            positions: asset_id -> AssetPosition

        Returns:
            PortfolioSummary
        """
        ...

    def preview_sell(
        self,
        transactions: Iterable[Transaction | Mapping[str, Any]],
        quantity: Decimal,
        price: Decimal,
        asset_id: str = "",
    ) -> SellReport:
        """
        Report realized P&L of a sell against the history before it.

        Args:
            transactions: History before the sell
            quantity: Units to sell
            price: Execution price

        Returns:
            SellReport
        """
        ...
