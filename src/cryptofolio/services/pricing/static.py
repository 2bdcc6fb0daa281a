"""Mapping-backed price source for offline use and tests."""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from cryptofolio.services.pricing.models import PriceQuote


class StaticPriceSource:
    """Serves fixed prices from a mapping."""

    def __init__(
        self,
        prices: Mapping[str, Decimal],
        changes: Mapping[str, Decimal] | None = None,
    ) -> None:
        self._prices = dict(prices)
        self._changes = dict(changes or {})

    def get_quotes(self, asset_ids: Iterable[str]) -> dict[str, PriceQuote]:
        return {
            asset_id: PriceQuote(
                asset_id=asset_id,
                price=self._prices[asset_id],
                change_24h=self._changes.get(asset_id, Decimal("0")),
            )
            for asset_id in asset_ids
            if asset_id in self._prices
        }

    def close(self) -> None:
        """Nothing to release."""
