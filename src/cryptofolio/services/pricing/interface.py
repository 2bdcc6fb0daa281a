"""Price source interface (Protocol).

The accounting engine never calls a price source; the tracker fetches quotes
and passes plain prices into the engine.
"""

from collections.abc import Iterable
from typing import Protocol

from cryptofolio.services.pricing.models import PriceQuote


class IPriceSource(Protocol):
    """
    Source of current market prices.

    Examples:
        >>> source: IPriceSource = CoinGeckoPriceSource()
        >>> quotes = source.get_quotes(["bitcoin", "ethereum"])
        >>> quotes["bitcoin"].price
        Decimal('64250.12')
    """

    def get_quotes(self, asset_ids: Iterable[str]) -> dict[str, PriceQuote]:
        """
        Fetch current quotes.

        Args:
            asset_ids: Asset identifiers to price

        Returns:
            asset_id -> PriceQuote; assets the source does not know are absent

        Raises:
            PriceSourceError: If the source is unreachable or returns an error
        """
        ...

    def close(self) -> None:
        """Release connections held by the source."""
        ...
