"""Hotel room offers flattened for display"""

import logging
from typing import Any, Dict, List, Optional

from journeyscribe.domain.models.hotel import HotelOffer, HotelOfferSearch
from journeyscribe.infrastructure.amadeus.client import AmadeusClient
from journeyscribe.infrastructure.currency import CurrencyConverter
from journeyscribe.infrastructure.errors import ConversionError, FetchError

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"


class HotelOfferService:
    """Lists hotels and their room offers with converted prices"""

    def __init__(
        self,
        amadeus: AmadeusClient,
        converter: CurrencyConverter,
        target_currency: str = "BDT",
    ):
        self.amadeus = amadeus
        self.converter = converter
        self.target_currency = target_currency

    async def list_hotels(self, city_code: str, **filters: Any) -> List[Dict[str, Any]]:
        """List hotels in a city without checking availability"""
        return await self.amadeus.list_hotels(city_code, **filters)

    async def offers(self, search: HotelOfferSearch) -> List[HotelOffer]:
        """Fetch and flatten every room offer of the requested hotel"""
        results: List[HotelOffer] = []
        for item in await self.amadeus.hotel_offers(search):
            hotel = item.get("hotel") or {}
            for offer in item.get("offers") or []:
                results.append(await self._to_hotel_offer(hotel, offer))
        logger.info(f"Found {len(results)} offers for hotel {search.hotel_id}")
        return results

    async def _to_hotel_offer(self, hotel: Dict[str, Any], offer: Dict[str, Any]) -> HotelOffer:
        original_price: Optional[str] = None
        converted_price: Optional[str] = None
        price = offer.get("price")
        if price:
            total = price.get("total")
            currency = price.get("currency")
            original_price = f"{total} {currency}"
            converted_price = await self._convert(total, currency)

        room = offer.get("room") or {}
        estimated = room.get("typeEstimated") or {}
        policies = offer.get("policies") or {}
        cancellation = ((policies.get("cancellation") or {}).get("description") or {}).get("text")

        return HotelOffer(
            hotel_id=hotel.get("hotelId") or NOT_AVAILABLE,
            name=hotel.get("name") or "Unknown Hotel",
            offer_id=offer.get("id"),
            original_price=original_price,
            converted_price=converted_price,
            guests=(offer.get("guests") or {}).get("adults"),
            category=estimated.get("category") or NOT_AVAILABLE,
            room_description=(room.get("description") or {}).get("text") or "No description available.",
            bed_type=estimated.get("bedType") or NOT_AVAILABLE,
            beds=estimated.get("beds") or NOT_AVAILABLE,
            payment_type=policies.get("paymentType") or NOT_AVAILABLE,
            cancellation_policy=cancellation or "No cancellation details provided.",
        )

    async def _convert(self, amount: Any, currency: Optional[str]) -> str:
        if amount is None or not currency:
            return NOT_AVAILABLE
        try:
            conversion = await self.converter.convert(amount, currency, self.target_currency)
        except (ConversionError, FetchError) as e:
            logger.warning(f"Price conversion failed for {amount} {currency}: {e}")
            return NOT_AVAILABLE
        return f"{conversion.converted_amount} {self.target_currency}"
