"""Data models for tracker results."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from cryptofolio.services.portfolio.models import AssetPosition, PortfolioSummary
from cryptofolio.services.pricing.models import PriceQuote


class PortfolioReport(BaseModel):
    """
    Result of one portfolio refresh.

    Attributes:
        user_id: Whose portfolio
        positions: Open positions by asset_id (closed positions are absent)
        summary: Portfolio totals over the open positions
        quotes: Quotes used for valuation
        errors: Reportable boundary failures (e.g. price source down)
        refreshed_at: When the refresh ran
        has_transactions: True if the user has any ledger entries at all
    """

    user_id: str
    positions: dict[str, AssetPosition] = Field(default_factory=dict)
    summary: PortfolioSummary = Field(default_factory=PortfolioSummary)
    quotes: dict[str, PriceQuote] = Field(default_factory=dict)
    errors: list[str] = Field(default_factory=list)
    refreshed_at: datetime = Field(default_factory=datetime.now)
    has_transactions: bool = False

    model_config = ConfigDict(frozen=True)
