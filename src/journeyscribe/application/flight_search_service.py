"""Flight search with prices converted into the traveller's currency"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from journeyscribe.domain.models.flight import FlightSearch
from journeyscribe.infrastructure.amadeus.client import AmadeusClient
from journeyscribe.infrastructure.currency import CurrencyConverter
from journeyscribe.infrastructure.errors import ConversionError, FetchError

logger = logging.getLogger(__name__)


class FlightSearchService:
    """Searches flight offers and adds a converted total to each price"""

    def __init__(
        self,
        amadeus: AmadeusClient,
        converter: CurrencyConverter,
        target_currency: str = "BDT",
    ):
        self.amadeus = amadeus
        self.converter = converter
        self.target_currency = target_currency

    async def search(self, search: FlightSearch) -> List[Dict[str, Any]]:
        """Search flight offers

        Each offer's ``price`` gains ``totalConverted`` (string with 2 decimals, or
        None if the conversion failed) and ``convertedCurrency``. A failed
        conversion never fails the search.

        Raises:
            UpstreamError: If the flight search itself is rejected
            FetchError: If the flight search cannot be completed
        """
        offers = await self.amadeus.search_flight_offers(search)
        logger.info(f"Received {len(offers)} flight offers")
        return list(await asyncio.gather(*(self._with_converted_price(offer) for offer in offers)))

    async def _with_converted_price(self, offer: Dict[str, Any]) -> Dict[str, Any]:
        price = dict(offer.get("price") or {})
        price["totalConverted"] = await self._convert(price.get("total"), price.get("currency"))
        price["convertedCurrency"] = self.target_currency
        return {**offer, "price": price}

    async def _convert(self, amount: Any, currency: Optional[str]) -> Optional[str]:
        if amount is None or not currency:
            return None
        try:
            conversion = await self.converter.convert(amount, currency, self.target_currency)
        except (ConversionError, FetchError) as e:
            logger.error(f"Error during currency conversion of {amount} {currency}: {e}")
            return None
        return str(conversion.converted_amount)
