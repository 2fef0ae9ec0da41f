"""HTTP price lookup against an AwesomeAPI-style quotation service."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import httpx

from settlement.core.exceptions import PriceLookupError

logger = logging.getLogger(__name__)


class HttpCurrencyGateway:
    """Fetches ``{base_url}/{FROM}-{TO}`` and reads ``body[FROM+TO]["ask"]``."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None

    async def get_price(self, from_currency: str, to_currency: str) -> Decimal:
        logger.info("Getting currency price for %s to %s", from_currency, to_currency)
        url = f"{self._base_url}/{from_currency}-{to_currency}"

        try:
            response = await self._http().get(url, headers={"Accept": "application/json"})
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Currency API request to %s failed: %s", url, exc)
            raise PriceLookupError(f"Error fetching currency price: {exc}") from exc

        quote = data.get(f"{from_currency}{to_currency}") if isinstance(data, dict) else None
        if not isinstance(quote, dict) or "ask" not in quote:
            raise PriceLookupError(f"Currency API returned no quote for {from_currency}-{to_currency}")

        try:
            # str() first so a JSON float never passes through binary rounding
            price = Decimal(str(quote["ask"]))
        except (InvalidOperation, TypeError) as exc:
            raise PriceLookupError(f"Invalid price {quote['ask']!r}") from exc

        if price <= 0:
            raise PriceLookupError(f"Non-positive price {price} for {from_currency}-{to_currency}")
        return price

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client
