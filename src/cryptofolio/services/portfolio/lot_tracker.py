"""Lot tracker for FIFO position accounting.

Buys append lots to the back of a queue; sells consume lots from the front
(oldest first). Selling more than is open drains the queue and the unmatched
remainder is discarded: positions never go short.
"""

from collections import deque
from decimal import Decimal

from cryptofolio.services.portfolio.models import ZERO, Lot


class LotTracker:
    """
    Tracker for lot-based position accounting of a single asset.

    Maintains the FIFO queue of open lots plus running open-quantity and
    cost-basis totals. One tracker lives for exactly one computation pass.

    Example:
        >>> tracker = LotTracker()
        >>> tracker.add_buy(Decimal("2"), Decimal("10"))
        >>> tracker.add_buy(Decimal("3"), Decimal("20"))
        >>> matches = tracker.match_sell(Decimal("2"))
        >>> tracker.open_quantity, tracker.cost_basis
        (Decimal('3'), Decimal('60'))
    """

    def __init__(self) -> None:
        """Initialize lot tracker."""
        self._lots: deque[Lot] = deque()
        self._open_quantity: Decimal = ZERO
        self._cost_basis: Decimal = ZERO

    @property
    def open_quantity(self) -> Decimal:
        """Sum of remaining lot quantities."""
        return self._open_quantity

    @property
    def cost_basis(self) -> Decimal:
        """Sum of remaining quantity * unit price."""
        return self._cost_basis

    @property
    def average_cost(self) -> Decimal:
        """cost_basis / open_quantity, or 0 when nothing is open."""
        if self._open_quantity > 0:
            return self._cost_basis / self._open_quantity
        return ZERO

    def add_buy(self, quantity: Decimal, price: Decimal, opened_at: int = 0) -> None:
        """
        Append a lot to the back of the queue.

        A zero-quantity buy adds an empty lot that contributes nothing.

        Args:
            quantity: Units bought
            price: Price per unit
            opened_at: Timestamp of the buy
        """
        self._lots.append(Lot(quantity=quantity, unit_price=price, opened_at=opened_at))
        self._open_quantity += quantity
        self._cost_basis += quantity * price

    def match_sell(self, quantity: Decimal) -> list[tuple[Lot, Decimal]]:
        """
        Match quantity against open lots using FIFO (First In, First Out).

        Consumes oldest lots first. A lot whose remaining quantity fits in the
        remaining sell quantity is removed entirely; otherwise it is reduced in
        place. Any quantity left once the queue is empty is discarded.

        Args:
            quantity: Units sold

        Returns:
            List of (lot, quantity_matched) tuples in match order. Each lot is a
            copy taken before the match, so unit_price is that of the consumed lot.

        Example:
            >>> # Sell 150 from [100@$150, 100@$155]
            >>> matches = tracker.match_sell(Decimal("150"))
            >>> # Returns: [(Lot(100@$150), 100), (Lot(100@$155), 50)]
            >>> # Leaves: [Lot(50@$155)]
        """
        matches: list[tuple[Lot, Decimal]] = []
        remaining_to_sell = quantity

        while remaining_to_sell > 0 and self._lots:
            lot = self._lots[0]  # Peek at oldest lot

            if lot.quantity <= remaining_to_sell:
                # Full lot consumed
                self._lots.popleft()
                matches.append((lot, lot.quantity))
                remaining_to_sell -= lot.quantity
                self._open_quantity -= lot.quantity
                self._cost_basis -= lot.cost
            else:
                # Partial: reduce front lot in place
                matches.append((lot.model_copy(), remaining_to_sell))
                lot.quantity -= remaining_to_sell
                self._open_quantity -= remaining_to_sell
                self._cost_basis -= remaining_to_sell * lot.unit_price
                remaining_to_sell = ZERO

        if not self._lots:
            # Oversell or exact close: pin totals to exact zero
            self._open_quantity = ZERO
            self._cost_basis = ZERO
        elif self._cost_basis < 0:
            # Rounding beyond Decimal context precision
            self._cost_basis = ZERO

        return matches

    def get_lots(self) -> list[Lot]:
        """
        Get copies of all open lots.

        Returns:
            Lots ordered oldest first
        """
        return [lot.model_copy() for lot in self._lots]
