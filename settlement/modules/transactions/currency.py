"""Currency conversion into the settlement currency."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol

from settlement.core.results import ErrorCode, Result

from .models import round_money

logger = logging.getLogger(__name__)


class PriceLookup(Protocol):
    async def get_price(self, from_currency: str, to_currency: str) -> Decimal:
        """Price of one unit of ``from_currency`` in ``to_currency``.

        Raises on any failure; it never returns a sentinel.
        """
        ...


class CurrencyConversionService:
    def __init__(self, price_lookup: PriceLookup) -> None:
        self._price_lookup = price_lookup

    async def convert_currency(self, amount: Decimal, currency: str, target_currency: str) -> Result[Decimal]:
        logger.info("Converting currency from %s to %s", currency, target_currency)

        try:
            price = await self._price_lookup.get_price(currency, target_currency)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error("Error fetching currency price for %s-%s: %s", currency, target_currency, exc)
            return Result.failure(ErrorCode.PRICE_LOOKUP_FAILED, "Error fetching currency price")

        converted = round_money(amount * price)
        logger.info("Converted value: %s", converted)
        return Result.success(converted)
