"""Lot-matching accounting engine.

Pure functions over in-memory inputs: a transaction list plus a current price
in, derived statistics out. Nothing is cached between calls and no input is
mutated, so calls for different assets can run in any order or concurrently.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

import structlog

from cryptofolio.services.portfolio.lot_tracker import LotTracker
from cryptofolio.services.portfolio.models import (
    ZERO,
    AssetPosition,
    PortfolioSummary,
    SellReport,
    Transaction,
    TransactionKind,
    to_decimal,
)

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


def safe_percent(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator * 100, or 0 when the denominator is zero."""
    if denominator == 0:
        return ZERO
    return numerator / denominator * HUNDRED


def _replay(transactions: Iterable[Transaction | Mapping[str, Any]]) -> LotTracker:
    """Fold a transaction list through a fresh LotTracker, in recorded order."""
    tracker = LotTracker()
    for index, raw in enumerate(transactions):
        tx = Transaction.from_record(raw)
        if tx is None:
            logger.debug("engine.transaction_skipped", index=index)
            continue
        if tx.kind == TransactionKind.BUY:
            tracker.add_buy(tx.quantity, tx.price, opened_at=tx.timestamp)
        else:
            tracker.match_sell(tx.quantity)
    return tracker


def compute_position(
    transactions: Iterable[Transaction | Mapping[str, Any]],
    current_price: Decimal | float | int | str | None,
    asset_id: str = "",
) -> AssetPosition:
    """
    Compute the position of one asset from its full transaction history.

    Transactions are processed in the order given. Records that cannot be
    interpreted as a buy or sell are skipped; non-numeric quantities and prices
    count as zero. Oversells are clamped at zero.

    Args:
        transactions: Ordered transaction history (may be empty)
        current_price: Market price per unit (anything non-numeric reads as 0)
        asset_id: Asset identifier to stamp on the result

    Returns:
        AssetPosition

    Example:
        >>> position = compute_position([Transaction.buy(Decimal("1"), Decimal("100"))], Decimal("150"))
        >>> position.market_value, position.unrealized_pnl_percent
        (Decimal('150'), Decimal('50.0'))
    """
    tracker = _replay(transactions)
    price = to_decimal(current_price)

    open_quantity = tracker.open_quantity
    cost_basis = tracker.cost_basis
    average_cost = tracker.average_cost
    market_value = open_quantity * price

    if open_quantity > 0:
        unrealized_pnl_percent = safe_percent(price - average_cost, average_cost)
    else:
        unrealized_pnl_percent = ZERO

    return AssetPosition(
        asset_id=asset_id,
        open_quantity=open_quantity,
        cost_basis=cost_basis,
        average_cost=average_cost,
        current_price=price,
        market_value=market_value,
        unrealized_pnl=market_value - cost_basis,
        unrealized_pnl_percent=unrealized_pnl_percent,
        lots=tracker.get_lots(),
    )


def compute_positions(
    ledger: Mapping[str, Iterable[Transaction | Mapping[str, Any]]],
    prices: Mapping[str, Decimal],
) -> dict[str, AssetPosition]:
    """
    Compute positions for every asset in a ledger, keeping only open ones.

    Assets without a price are valued at zero. Fully closed positions are
    dropped together with their historical cost.

    Args:
        ledger: asset_id -> ordered transaction history
        prices: asset_id -> current price

    Returns:
        asset_id -> AssetPosition for positions with open_quantity > 0
    """
    positions: dict[str, AssetPosition] = {}
    for asset_id, transactions in ledger.items():
        position = compute_position(transactions, prices.get(asset_id, ZERO), asset_id=asset_id)
        if position.is_open:
            positions[asset_id] = position
    return positions


def compute_portfolio(positions: Mapping[str, AssetPosition]) -> PortfolioSummary:
    """
    Fold positions into portfolio totals.

    Only positions with open_quantity > 0 count.

    Args:
        positions: asset_id -> AssetPosition

    Returns:
        PortfolioSummary

    Example:
        >>> summary = compute_portfolio({"a": pos_a, "b": pos_b})  # cost 100/200, value 150/180
        >>> summary.net_pnl, summary.net_pnl_percent
        (Decimal('30'), Decimal('10.0'))
    """
    total_cost = ZERO
    total_value = ZERO
    count = 0

    for position in positions.values():
        if position.open_quantity > 0:
            total_cost += position.cost_basis
            total_value += position.market_value
            count += 1

    net_pnl = total_value - total_cost
    return PortfolioSummary(
        total_cost_basis=total_cost,
        total_market_value=total_value,
        net_pnl=net_pnl,
        net_pnl_percent=safe_percent(net_pnl, total_cost),
        open_positions=count,
    )


def preview_sell(
    transactions: Iterable[Transaction | Mapping[str, Any]],
    quantity: Decimal,
    price: Decimal,
    asset_id: str = "",
) -> SellReport:
    """
    Realized P&L report for a sell that has not been recorded yet.

    The reported realized_pnl uses the average cost over the history before
    the sell: (price - average_cost_before) * quantity. The FIFO-matched figure
    is returned alongside in fifo_realized_pnl.

    Args:
        transactions: History strictly before the sell
        quantity: Units to sell (read like a stored amount: invalid reads as 0)
        price: Execution price per unit (same reading as quantity)
        asset_id: Asset identifier

    Returns:
        SellReport
    """
    quantity = to_decimal(quantity)
    price = to_decimal(price)
    tracker = _replay(transactions)
    average_cost_before = tracker.average_cost
    open_quantity_before = tracker.open_quantity

    matches = tracker.match_sell(quantity)
    matched_quantity = sum((matched for _, matched in matches), start=ZERO)
    matched_cost = sum((lot.unit_price * matched for lot, matched in matches), start=ZERO)

    return SellReport(
        asset_id=asset_id,
        quantity=quantity,
        price=price,
        average_cost_before=average_cost_before,
        open_quantity_before=open_quantity_before,
        realized_pnl=(price - average_cost_before) * quantity,
        fifo_realized_pnl=matched_quantity * price - matched_cost,
        exceeds_position=quantity > open_quantity_before,
    )


class PortfolioEngine:
    """
    Stateless engine satisfying IPortfolioEngine.

    Thin object wrapper over the module functions so callers can inject an
    engine the same way they inject stores and price sources.
    """

    def compute_position(
        self,
        transactions: Iterable[Transaction | Mapping[str, Any]],
        current_price: Decimal,
        asset_id: str = "",
    ) -> AssetPosition:
        return compute_position(transactions, current_price, asset_id=asset_id)

    def compute_positions(
        self,
        ledger: Mapping[str, Iterable[Transaction | Mapping[str, Any]]],
        prices: Mapping[str, Decimal],
    ) -> dict[str, AssetPosition]:
        return compute_positions(ledger, prices)

    def compute_portfolio(self, positions: Mapping[str, AssetPosition]) -> PortfolioSummary:
        return compute_portfolio(positions)

    def preview_sell(
        self,
        transactions: Iterable[Transaction | Mapping[str, Any]],
        quantity: Decimal,
        price: Decimal,
        asset_id: str = "",
    ) -> SellReport:
        return preview_sell(transactions, quantity, price, asset_id=asset_id)
