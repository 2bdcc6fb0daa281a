"""Data models for portfolio accounting.

Defines all core entities for FIFO lot accounting:
- Transaction: One recorded buy or sell (the only persisted entity)
- Lot: Open buy position, exists only during a computation
- AssetPosition: Derived per-asset statistics
- PortfolioSummary: Derived portfolio-wide totals
- SellReport: Point-in-time feedback for a sell about to be recorded
"""

import math
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ZERO = Decimal("0")

# Amounts outside 1e-30 .. 1e30 cannot be stored; products and ratios of
# in-range amounts stay far inside the default decimal context.
MAX_EXPONENT = 30

# Last millisecond of year 9999, the datetime upper bound
MAX_TIMESTAMP_MS = 253_402_300_799_999


class TransactionKind(str, Enum):
    """Kind of transaction."""

    BUY = "buy"
    SELL = "sell"


def in_range(value: Decimal) -> bool:
    """True for zero and finite amounts whose magnitude lies within 1e-MAX_EXPONENT .. 1e+MAX_EXPONENT."""
    if not value.is_finite():
        return False
    return value.is_zero() or -MAX_EXPONENT <= value.adjusted() <= MAX_EXPONENT


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a loosely typed storage value to a non-negative finite Decimal.

    Anything that is not a number (None, bool, garbage strings, NaN, infinity),
    any negative number and any magnitude outside in_range() becomes zero.

    Args:
        value: Raw value from a stored record

    Returns:
        Non-negative Decimal

    Example:
        >>> to_decimal("1.5")
        Decimal('1.5')
        >>> to_decimal(None)
        Decimal('0')
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            return ZERO
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            return ZERO
    else:
        return ZERO

    if not in_range(result) or result < 0:
        return ZERO
    return result


class Transaction(BaseModel):
    """
    One recorded buy or sell for a single asset.

    Order of a transaction list is the FIFO order. The timestamp is carried
    for display only; lists are never re-sorted by it.

    Attributes:
        kind: Buy or sell (stored under the key ``type``)
        quantity: Asset units (>= 0)
        price: Quote-currency price per unit (>= 0)
        timestamp: Milliseconds since epoch when recorded

    Example:
        >>> tx = Transaction.buy(Decimal("0.5"), Decimal("45000"), timestamp=1700000000000)
        >>> tx.to_record()["type"]
        'buy'
    """

    kind: TransactionKind = Field(alias="type")
    quantity: Decimal = Field(ge=0)
    price: Decimal = Field(ge=0)
    timestamp: int = Field(default=0, ge=0, le=MAX_TIMESTAMP_MS)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("quantity", "price")
    @classmethod
    def _check_magnitude(cls, value: Decimal) -> Decimal:
        if not in_range(value):
            raise ValueError(f"amount out of range: {value}")
        return value

    @classmethod
    def buy(cls, quantity: Decimal, price: Decimal, timestamp: int = 0) -> "Transaction":
        """Create a buy transaction."""
        return cls(kind=TransactionKind.BUY, quantity=quantity, price=price, timestamp=timestamp)

    @classmethod
    def sell(cls, quantity: Decimal, price: Decimal, timestamp: int = 0) -> "Transaction":
        """Create a sell transaction."""
        return cls(kind=TransactionKind.SELL, quantity=quantity, price=price, timestamp=timestamp)

    @classmethod
    def from_record(cls, record: Any) -> "Transaction | None":
        """
        Normalize a stored record into a Transaction.

        Lenient toward stored data: missing or non-numeric quantity
        and price read as zero, as do amounts outside in_range(). A missing or
        out-of-range timestamp reads as zero. A record whose
        kind cannot be determined is uninterpretable and yields None.

        Args:
            record: Transaction instance or mapping with keys type/quantity/price/timestamp

        Returns:
            Transaction, or None if the record is not a buy or sell
        """
        if isinstance(record, Transaction):
            return record
        if not isinstance(record, Mapping):
            return None

        raw_kind = record.get("type", record.get("kind"))
        if isinstance(raw_kind, TransactionKind):
            kind = raw_kind
        elif isinstance(raw_kind, str):
            try:
                kind = TransactionKind(raw_kind.strip().lower())
            except ValueError:
                return None
        else:
            return None

        raw_timestamp = record.get("timestamp")
        if isinstance(raw_timestamp, bool):
            timestamp = 0
        elif (
            isinstance(raw_timestamp, (int, float))
            and math.isfinite(raw_timestamp)
            and 0 <= raw_timestamp <= MAX_TIMESTAMP_MS
        ):
            timestamp = int(raw_timestamp)
        else:
            timestamp = 0

        return cls(
            kind=kind,
            quantity=to_decimal(record.get("quantity")),
            price=to_decimal(record.get("price")),
            timestamp=timestamp,
        )

    def to_record(self) -> dict[str, Any]:
        """Dump to the ledger storage shape (decimals as strings)."""
        return {
            "type": self.kind.value,
            "quantity": str(self.quantity),
            "price": str(self.price),
            "timestamp": self.timestamp,
        }


class Lot(BaseModel):
    """
    Open buy position.

    Created by a buy and consumed oldest-first by later sells.
    Never persisted.

    Attributes:
        quantity: Units still open
        unit_price: Price paid per unit
        opened_at: Timestamp of the buy that created the lot
    """

    quantity: Decimal
    unit_price: Decimal
    opened_at: int = 0

    @property
    def cost(self) -> Decimal:
        """Remaining cost of the lot (quantity * unit_price)."""
        return self.quantity * self.unit_price


class AssetPosition(BaseModel):
    """
    Derived statistics for one asset.

    Attributes:
        asset_id: Asset identifier (e.g. "bitcoin")
        open_quantity: Sum of remaining lot quantities
        cost_basis: Sum of remaining quantity * unit price
        average_cost: cost_basis / open_quantity (0 when flat)
        current_price: Externally supplied market price
        market_value: open_quantity * current_price
        unrealized_pnl: market_value - cost_basis
        unrealized_pnl_percent: (current_price - average_cost) / average_cost * 100 (0 when undefined)
        lots: Open lots, oldest first
    """

    asset_id: str = ""
    open_quantity: Decimal = ZERO
    cost_basis: Decimal = ZERO
    average_cost: Decimal = ZERO
    current_price: Decimal = ZERO
    market_value: Decimal = ZERO
    unrealized_pnl: Decimal = ZERO
    unrealized_pnl_percent: Decimal = ZERO
    lots: list[Lot] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def is_open(self) -> bool:
        """True when any quantity remains open."""
        return self.open_quantity > 0


class PortfolioSummary(BaseModel):
    """
    Portfolio-wide totals over open positions.

    Attributes:
        total_cost_basis: Sum of cost_basis over open positions
        total_market_value: Sum of market_value over open positions
        net_pnl: total_market_value - total_cost_basis
        net_pnl_percent: net_pnl / total_cost_basis * 100 (0 when no cost basis)
        open_positions: Number of positions counted
    """

    total_cost_basis: Decimal = ZERO
    total_market_value: Decimal = ZERO
    net_pnl: Decimal = ZERO
    net_pnl_percent: Decimal = ZERO
    open_positions: int = 0

    model_config = ConfigDict(frozen=True)


class SellReport(BaseModel):
    """
    One-shot realized P&L feedback for a sell.

    realized_pnl uses the average cost before the sale, not the FIFO-matched
    lots. fifo_realized_pnl is the lot-matched figure for comparison; the two
    differ when lots were bought at different prices.

    Attributes:
        asset_id: Asset being sold
        quantity: Units sold
        price: Execution price per unit
        average_cost_before: Average cost over history strictly before the sell
        open_quantity_before: Open quantity before the sell
        realized_pnl: (price - average_cost_before) * quantity
        fifo_realized_pnl: Proceeds of the matched quantity minus matched lot cost
        exceeds_position: Sell quantity is larger than open_quantity_before
    """

    asset_id: str = ""
    quantity: Decimal
    price: Decimal
    average_cost_before: Decimal
    open_quantity_before: Decimal
    realized_pnl: Decimal
    fifo_realized_pnl: Decimal
    exceeds_position: bool = False

    model_config = ConfigDict(frozen=True)
