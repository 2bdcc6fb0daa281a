"""Data models for price quotes."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class PriceQuote(BaseModel):
    """
    Current market quote for one asset.

    Attributes:
        asset_id: Asset identifier (e.g. "bitcoin")
        price: Price per unit in the quote currency
        change_24h: 24-hour percent change (0 if not reported)
    """

    asset_id: str
    price: Decimal = Decimal("0")
    change_24h: Decimal = Decimal("0")

    model_config = ConfigDict(frozen=True)
