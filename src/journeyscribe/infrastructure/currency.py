"""Currency conversion against a latest-rates API"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple, Union

from journeyscribe.domain.models.conversion import Conversion
from journeyscribe.infrastructure.errors import ConversionError
from journeyscribe.infrastructure.http_client import RequestOptions, ResilientFetcher

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

Amount = Union[Decimal, float, int, str]


def _to_decimal(value: Amount, what: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ConversionError(f"Invalid {what}: {value!r}") from e
    if not result.is_finite():
        raise ConversionError(f"Invalid {what}: {value!r}")
    return result


class CurrencyConverter:
    """Converts amounts between currencies using mid-market rates"""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        base_url: str = "https://hexarate.paikama.co/api/rates/latest",
    ):
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")

    async def rate(self, from_currency: str, to_currency: str) -> Tuple[Decimal, Optional[str]]:
        """Fetch the mid rate and its timestamp

        Raises:
            ConversionError: If the API fails or the payload has no rate
        """
        response = await self.fetcher.fetch(
            f"{self.base_url}/{from_currency}",
            RequestOptions(params={"target": to_currency}),
        )
        if not response.is_success:
            logger.error(f"Currency conversion API failed with status: {response.status_code}")
            raise ConversionError(f"Currency conversion API failed with status: {response.status_code}")

        try:
            data = response.json().get("data") or {}
        except (ValueError, AttributeError) as e:
            raise ConversionError(f"Invalid currency API response: {e}") from e
        if not isinstance(data, dict) or data.get("mid") is None:
            raise ConversionError("Rate data missing from API response")
        return _to_decimal(data["mid"], "rate"), data.get("timestamp")

    async def convert(self, amount: Amount, from_currency: str, to_currency: str) -> Conversion:
        """Convert an amount

        Args:
            amount: Amount in from_currency
            from_currency: ISO 4217 source code
            to_currency: ISO 4217 target code

        Returns:
            Conversion with the amount rounded half-up to 2 decimal places
        """
        if not from_currency or not to_currency:
            raise ConversionError('Missing "from" or "to" currency')
        value = _to_decimal(amount, "amount")
        from_currency = from_currency.upper()
        to_currency = to_currency.upper()

        if from_currency == to_currency:
            rate, timestamp = Decimal(1), None
        else:
            rate, timestamp = await self.rate(from_currency, to_currency)

        converted = (value * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
        logger.debug(f"Converted {value} {from_currency} -> {converted} {to_currency} (rate {rate})")
        return Conversion(
            amount=value,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            converted_amount=converted,
            timestamp=timestamp,
        )
