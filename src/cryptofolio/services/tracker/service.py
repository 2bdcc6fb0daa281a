"""Portfolio tracker - orchestrates ledger, price source and engine.

Control flow of a refresh:
1. Read every transaction history of the user from the ledger
2. Fetch a quote per asset from the price source
3. Run the engine per asset and aggregate the open positions

Recording a sell applies the caller-side oversell policy: a sell larger than
the open position is rejected before it reaches the ledger unless oversell is
allowed, in which case the engine clamps it when replaying.
"""

import time
from collections.abc import Callable, Iterable
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from cryptofolio.assets import DEFAULT_ASSETS
from cryptofolio.exceptions import InvalidTransactionError, OversellError, PriceSourceError
from cryptofolio.services.ledger.service import LedgerService
from cryptofolio.services.portfolio.engine import PortfolioEngine
from cryptofolio.services.portfolio.interface import IPortfolioEngine
from cryptofolio.services.portfolio.models import MAX_EXPONENT, MAX_TIMESTAMP_MS, SellReport, Transaction, in_range
from cryptofolio.services.pricing.interface import IPriceSource
from cryptofolio.services.pricing.models import PriceQuote
from cryptofolio.services.tracker.models import PortfolioReport

logger = structlog.get_logger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _parse_amount(value: Any, field: str) -> Decimal:
    """Strictly parse user input into a finite Decimal."""
    if isinstance(value, bool):
        raise InvalidTransactionError(f"{field} must be a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidTransactionError(f"{field} must be a number, got {value!r}") from e
    if not amount.is_finite():
        raise InvalidTransactionError(f"{field} must be finite, got {value!r}")
    if not in_range(amount):
        raise InvalidTransactionError(f"{field} must be between 1e-{MAX_EXPONENT} and 1e{MAX_EXPONENT}, got {value!r}")
    return amount


class PortfolioTracker:
    """
    Application service for one or many users' crypto portfolios.

    The user is an explicit argument of every operation; the tracker holds no
    per-user state.

    Example:
        >>> tracker = PortfolioTracker(LedgerService(InMemoryLedgerStore()), StaticPriceSource({"bitcoin": Decimal("150")}))
        >>> tracker.record_buy("alice", "bitcoin", Decimal("1"), Decimal("100"))
        >>> report = tracker.refresh("alice")
        >>> report.summary.net_pnl
        Decimal('50')
    """

    def __init__(
        self,
        ledger: LedgerService,
        prices: IPriceSource,
        engine: IPortfolioEngine | None = None,
        clock: Callable[[], int] | None = None,
        allow_oversell: bool = False,
    ) -> None:
        """
        Initialize tracker.

        Args:
            ledger: Transaction ledger
            prices: Price source, closed by close()
            engine: Accounting engine (defaults to PortfolioEngine)
            clock: Returns the current time in epoch milliseconds
            allow_oversell: Default policy for sells larger than the open position
        """
        self._ledger = ledger
        self._prices = prices
        self._engine: IPortfolioEngine = engine or PortfolioEngine()
        self._clock = clock or _now_ms
        self._allow_oversell = allow_oversell

    def __enter__(self) -> "PortfolioTracker":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the price source. The tracker owns the source it was given."""
        self._prices.close()

    def _fetch_quotes(self, asset_ids: Iterable[str], errors: list[str]) -> dict[str, PriceQuote]:
        ids = list(asset_ids)
        if not ids:
            return {}
        try:
            return self._prices.get_quotes(ids)
        except PriceSourceError as e:
            logger.warning("tracker.price_fetch_failed", assets=len(ids), error=str(e))
            errors.append(f"Failed to fetch crypto prices: {e}")
            return {}

    def refresh(self, user_id: str) -> PortfolioReport:
        """
        Recompute a user's portfolio from the full ledger.

        A price-source failure is reported in PortfolioReport.errors and the
        affected assets are valued at zero.

        Args:
            user_id: User identity

        Returns:
            PortfolioReport

        Raises:
            LedgerUnavailableError: If the ledger cannot be read
        """
        errors: list[str] = []
        ledger = self._ledger.read(user_id)
        quotes = self._fetch_quotes(ledger.keys(), errors)
        prices = {asset_id: quote.price for asset_id, quote in quotes.items()}

        positions = self._engine.compute_positions(ledger, prices)
        summary = self._engine.compute_portfolio(positions)

        logger.info(
            "tracker.portfolio_refreshed",
            user_id=user_id,
            assets=len(ledger),
            open_positions=summary.open_positions,
            net_pnl=str(summary.net_pnl),
        )
        return PortfolioReport(
            user_id=user_id,
            positions=positions,
            summary=summary,
            quotes=quotes,
            errors=errors,
            has_transactions=bool(ledger),
        )

    def history(self, user_id: str, asset_id: str) -> list[Transaction]:
        """Recorded transactions of one asset, oldest first."""
        return self._ledger.history(user_id, asset_id)

    def _build(self, kind: str, quantity: Any, price: Any, timestamp: int | None) -> Transaction:
        qty = _parse_amount(quantity, "quantity")
        px = _parse_amount(price, "price")
        if qty <= 0:
            raise InvalidTransactionError(f"quantity must be positive, got {qty}")
        if px < 0:
            raise InvalidTransactionError(f"price must be non-negative, got {px}")
        ts = self._clock() if timestamp is None else timestamp
        if not 0 <= ts <= MAX_TIMESTAMP_MS:
            raise InvalidTransactionError(f"timestamp out of range, got {ts}")
        if kind == "buy":
            return Transaction.buy(qty, px, timestamp=ts)
        return Transaction.sell(qty, px, timestamp=ts)

    def record_buy(
        self,
        user_id: str,
        asset_id: str,
        quantity: Decimal | str | float,
        price: Decimal | str | float,
        timestamp: int | None = None,
    ) -> Transaction:
        """
        Record a buy.

        Args:
            user_id: User identity
            asset_id: Asset identifier
            quantity: Units bought (> 0)
            price: Price per unit (>= 0)
            timestamp: Epoch milliseconds (defaults to now)

        Returns:
            The recorded Transaction

        Raises:
            InvalidTransactionError: If quantity/price are invalid
            LedgerError: If the ledger append fails
        """
        transaction = self._build("buy", quantity, price, timestamp)
        self._ledger.append(user_id, asset_id, transaction)
        return transaction

    def record_sell(
        self,
        user_id: str,
        asset_id: str,
        quantity: Decimal | str | float,
        price: Decimal | str | float,
        timestamp: int | None = None,
        allow_oversell: bool | None = None,
    ) -> SellReport:
        """
        Record a sell and report its realized P&L.

        The report is computed from the history before this sell, using the
        average cost at that point. It is returned, not stored.

        The oversell check and the append are two separate ledger operations.
        Callers must be the only writer of sells for (user_id, asset_id): two
        concurrent sells can both pass the check, in which case the engine
        clamps the excess when replaying.

        Args:
            user_id: User identity
            asset_id: Asset identifier
            quantity: Units sold (> 0)
            price: Execution price per unit (>= 0)
            timestamp: Epoch milliseconds (defaults to now)
            allow_oversell: Override the tracker's oversell policy for this call

        Returns:
            SellReport

        Raises:
            InvalidTransactionError: If quantity/price are invalid
            OversellError: If quantity exceeds the open quantity and oversell is not allowed
            LedgerError: If the ledger read or append fails
        """
        transaction = self._build("sell", quantity, price, timestamp)
        history = self._ledger.history(user_id, asset_id)
        report = self._engine.preview_sell(history, transaction.quantity, transaction.price, asset_id=asset_id)

        allowed = self._allow_oversell if allow_oversell is None else allow_oversell
        if report.exceeds_position and not allowed:
            logger.warning(
                "tracker.sell_rejected.oversell",
                user_id=user_id,
                asset_id=asset_id,
                requested=str(transaction.quantity),
                available=str(report.open_quantity_before),
            )
            raise OversellError(asset_id, transaction.quantity, report.open_quantity_before)

        self._ledger.append(user_id, asset_id, transaction)
        logger.info(
            "tracker.sell_recorded",
            user_id=user_id,
            asset_id=asset_id,
            realized_pnl=str(report.realized_pnl),
            exceeds_position=report.exceeds_position,
        )
        return report

    def market_snapshot(self, asset_ids: Iterable[str] | None = None) -> dict[str, PriceQuote]:
        """
        Current quotes for the tracked coin catalog.

        Coins the source does not price get a zero quote.

        Args:
            asset_ids: Coins to quote (defaults to the built-in catalog)

        Returns:
            asset_id -> PriceQuote, in the order requested

        Raises:
            PriceSourceError: If the price source fails
        """
        ids = list(asset_ids) if asset_ids is not None else [asset.asset_id for asset in DEFAULT_ASSETS]
        quotes = self._prices.get_quotes(ids)
        return {asset_id: quotes.get(asset_id, PriceQuote(asset_id=asset_id)) for asset_id in ids}
