"""CoinGecko simple-price client.

Fetches USD (or other vs-currency) prices and 24-hour change for a set of
CoinGecko coin ids in one request:

    GET {base_url}/simple/price?ids=bitcoin,ethereum&vs_currencies=usd&include_24hr_change=true

    {"bitcoin": {"usd": 64250.12, "usd_24h_change": -1.53}, ...}
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

import httpx
import structlog
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from cryptofolio.exceptions import PriceSourceError
from cryptofolio.services.portfolio.models import to_decimal
from cryptofolio.services.pricing.models import PriceQuote

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"


class _RateLimited(Exception):
    """HTTP 429 from the price API."""


class CoinGeckoPriceSource:
    """
    Price source backed by the CoinGecko public API.

    Network errors, timeouts and HTTP 429 are retried with exponential
    backoff; anything else (and exhausted retries) surfaces as PriceSourceError.

    Example:
        >>> with CoinGeckoPriceSource() as source:
        ...     quotes = source.get_quotes(["bitcoin"])
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        vs_currency: str = "usd",
        timeout: float = 10.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize client.

        Args:
            base_url: API root
            vs_currency: Quote currency code as CoinGecko spells it
            timeout: Request timeout in seconds
            max_retries: Attempts for retryable failures
            backoff_seconds: Exponential backoff multiplier
            client: Pre-built httpx client (tests inject a MockTransport here)
        """
        self._vs_currency = vs_currency.lower()
        self._max_retries = max_retries
        self._backoff_seconds = backoff_seconds
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    def __enter__(self) -> "CoinGeckoPriceSource":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            self._client.close()

    def _request(self, ids: list[str]) -> dict[str, Any]:
        params = {
            "ids": ",".join(ids),
            "vs_currencies": self._vs_currency,
            "include_24hr_change": "true",
        }
        response = self._client.get("/simple/price", params=params)

        if response.status_code == 429:
            raise _RateLimited(response.text or "Rate limit exceeded")
        if response.status_code >= 400:
            raise PriceSourceError(response.text or "Failed to fetch crypto prices", status_code=response.status_code)

        payload = response.json()
        if not isinstance(payload, dict):
            raise PriceSourceError("Unexpected response shape from price API")
        return payload

    def get_quotes(self, asset_ids: Iterable[str]) -> dict[str, PriceQuote]:
        """
        Fetch quotes for the given CoinGecko coin ids.

        Ids the API does not return are absent from the result. Missing or
        non-numeric price fields read as 0.

        Raises:
            PriceSourceError: On HTTP errors or when retries are exhausted
        """
        ids = sorted(set(asset_ids))
        if not ids:
            return {}

        try:
            for attempt in Retrying(
                retry=retry_if_exception_type((_RateLimited, httpx.NetworkError, httpx.TimeoutException)),
                stop=stop_after_attempt(self._max_retries),
                wait=wait_exponential(multiplier=self._backoff_seconds, max=30),
                reraise=True,
            ):
                with attempt:
                    payload = self._request(ids)
        except PriceSourceError:
            raise
        except _RateLimited as e:
            raise PriceSourceError(str(e), status_code=429) from e
        except (httpx.HTTPError, ValueError) as e:
            raise PriceSourceError(str(e) or type(e).__name__) from e

        change_key = f"{self._vs_currency}_24h_change"
        quotes: dict[str, PriceQuote] = {}
        for asset_id in ids:
            entry = payload.get(asset_id)
            if not isinstance(entry, dict):
                continue
            quotes[asset_id] = PriceQuote(
                asset_id=asset_id,
                price=to_decimal(entry.get(self._vs_currency)),
                change_24h=_signed_decimal(entry.get(change_key)),
            )

        logger.debug("pricing.quotes_fetched", requested=len(ids), received=len(quotes))
        return quotes


def _signed_decimal(value: Any) -> Decimal:
    """Like to_decimal but keeps negative values (percent changes can be negative)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value < 0:
        return -to_decimal(-value)
    return to_decimal(value)
