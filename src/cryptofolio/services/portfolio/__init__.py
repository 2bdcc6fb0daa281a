"""Portfolio accounting engine.

FIFO lot matching over per-asset transaction histories, position statistics at
a supplied price, and portfolio-wide aggregation.

Key components:
- compute_position / compute_positions / compute_portfolio / preview_sell
- PortfolioEngine: Object form of the above
- IPortfolioEngine: Protocol interface
- LotTracker: FIFO lot queue
- Models: Transaction, Lot, AssetPosition, PortfolioSummary, SellReport

Example:
    >>> from decimal import Decimal
    >>> from cryptofolio.services.portfolio import Transaction, compute_position
    >>>
    >>> history = [
    ...     Transaction.buy(Decimal("2"), Decimal("10")),
    ...     Transaction.buy(Decimal("3"), Decimal("20")),
    ...     Transaction.sell(Decimal("2"), Decimal("25")),
    ... ]
    >>> position = compute_position(history, Decimal("30"), asset_id="bitcoin")
    >>> position.open_quantity, position.cost_basis, position.average_cost
    (Decimal('3'), Decimal('60'), Decimal('20'))
"""

from cryptofolio.services.portfolio.engine import (
    PortfolioEngine,
    compute_portfolio,
    compute_position,
    compute_positions,
    preview_sell,
)
from cryptofolio.services.portfolio.interface import IPortfolioEngine
from cryptofolio.services.portfolio.lot_tracker import LotTracker
from cryptofolio.services.portfolio.models import (
    AssetPosition,
    Lot,
    PortfolioSummary,
    SellReport,
    Transaction,
    TransactionKind,
)

__all__ = [
    # Engine
    "IPortfolioEngine",
    "PortfolioEngine",
    "compute_position",
    "compute_positions",
    "compute_portfolio",
    "preview_sell",
    "LotTracker",
    # Models
    "Transaction",
    "TransactionKind",
    "Lot",
    "AssetPosition",
    "PortfolioSummary",
    "SellReport",
]
