"""Catalog of tracked coins.

Asset ids are CoinGecko coin ids; the ledger and price source both key on them.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class AssetInfo(BaseModel):
    """Display metadata for one coin."""

    asset_id: str
    name: str
    symbol: str

    model_config = ConfigDict(frozen=True)


DEFAULT_ASSETS: tuple[AssetInfo, ...] = (
    AssetInfo(asset_id="bitcoin", name="Bitcoin", symbol="BTC"),
    AssetInfo(asset_id="ethereum", name="Ethereum", symbol="ETH"),
    AssetInfo(asset_id="cardano", name="Cardano", symbol="ADA"),
    AssetInfo(asset_id="solana", name="Solana", symbol="SOL"),
    AssetInfo(asset_id="polkadot", name="Polkadot", symbol="DOT"),
    AssetInfo(asset_id="ripple", name="Ripple", symbol="XRP"),
    AssetInfo(asset_id="binancecoin", name="Binance Coin", symbol="BNB"),
    AssetInfo(asset_id="dogecoin", name="Dogecoin", symbol="DOGE"),
    AssetInfo(asset_id="litecoin", name="Litecoin", symbol="LTC"),
    AssetInfo(asset_id="tron", name="Tron", symbol="TRX"),
)

_BY_ID = {asset.asset_id: asset for asset in DEFAULT_ASSETS}


def get_asset(asset_id: str) -> AssetInfo:
    """
    Look up catalog metadata, falling back to the id itself for unknown coins.

    Args:
        asset_id: CoinGecko coin id

    Returns:
        AssetInfo
    """
    known = _BY_ID.get(asset_id)
    if known is not None:
        return known
    return AssetInfo(asset_id=asset_id, name=asset_id.replace("-", " ").title(), symbol=asset_id.upper()[:5])


def price_display_decimals(price: Decimal) -> int:
    """Sub-unit prices show 6 decimals, everything else 2."""
    return 6 if price < 1 else 2
