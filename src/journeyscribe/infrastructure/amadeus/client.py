"""Amadeus self-service API client"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

import httpx

from journeyscribe.domain.models.flight import FlightSearch
from journeyscribe.domain.models.hotel import HotelOfferSearch
from journeyscribe.domain.models.location import City, Location
from journeyscribe.infrastructure.amadeus.token_cache import AccessTokenCache
from journeyscribe.infrastructure.errors import UpstreamError
from journeyscribe.infrastructure.http_client import RequestOptions, ResilientFetcher

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 2


def _error_detail(response: httpx.Response, fallback: str) -> str:
    """Extract errors[0].detail from an Amadeus error body"""
    try:
        body = response.json()
    except ValueError:
        return fallback
    errors = (body.get("errors") or []) if isinstance(body, dict) else []
    if errors and isinstance(errors[0], dict) and errors[0].get("detail"):
        return str(errors[0]["detail"])
    return fallback


class AmadeusClient:
    """Client for Amadeus reference-data and shopping APIs"""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        token_cache: AccessTokenCache,
        base_url: str = "https://test.api.amadeus.com",
    ):
        """Initialize Amadeus client

        Args:
            fetcher: Retrying fetcher used for every request
            token_cache: Source of bearer tokens
            base_url: API host
        """
        self.fetcher = fetcher
        self.token_cache = token_cache
        self.base_url = base_url.rstrip("/")

    @classmethod
    def create(
        cls,
        fetcher: ResilientFetcher,
        api_key: Optional[str],
        api_secret: Optional[str],
        base_url: str = "https://test.api.amadeus.com",
        refresh_margin: float = 60.0,
    ) -> "AmadeusClient":
        """Create a client together with its token cache"""
        base_url = base_url.rstrip("/")
        token_cache = AccessTokenCache(
            fetcher,
            f"{base_url}/v1/security/oauth2/token",
            api_key,
            api_secret,
            refresh_margin=refresh_margin,
        )
        return cls(fetcher, token_cache, base_url)

    async def _get(self, path: str, params: Dict[str, Any], error_message: str) -> Dict[str, Any]:
        return await self._request("GET", path, error_message, params=params)

    async def _request(
        self,
        method: str,
        path: str,
        error_message: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> Dict[str, Any]:
        """Call an endpoint and return its decoded JSON body

        Raises:
            UpstreamError: If Amadeus answers with a non-retryable error
        """
        token = await self.token_cache.get_token()
        response = await self.fetcher.fetch(
            f"{self.base_url}{path}",
            RequestOptions(
                method=method,
                headers={"Authorization": f"Bearer {token}"},
                params=params,
                json=json,
            ),
        )

        if not response.is_success:
            detail = _error_detail(response, error_message)
            logger.error(f"Amadeus API error on {path} ({response.status_code}): {detail}")
            if response.status_code == 401:
                # Token revoked or expired early, next call fetches a fresh one
                self.token_cache.invalidate()
            raise UpstreamError("Amadeus", response.status_code, detail)

        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamError("Amadeus", response.status_code, f"Invalid JSON response: {e}") from e
        if not isinstance(body, dict):
            raise UpstreamError("Amadeus", response.status_code, "Unexpected response shape")
        return body

    async def search_cities(self, keyword: str) -> List[City]:
        """Search cities by name prefix

        Args:
            keyword: Search text, at least 2 characters

        Returns:
            Matching cities (empty for short keywords, without calling the API)
        """
        keyword = str(keyword or "")
        if len(keyword) < MIN_KEYWORD_LENGTH:
            return []
        data = await self._get(
            "/v1/reference-data/locations/cities",
            {"keyword": keyword},
            "Failed to fetch city suggestions",
        )
        return [City.from_api(city) for city in data.get("data") or []]

    async def search_locations(
        self, keyword: str, sub_types: Iterable[str] = ("CITY", "AIRPORT")
    ) -> List[Location]:
        """Search cities, airports or points of interest

        Args:
            keyword: Search text, at least 2 characters
            sub_types: Location sub types to include

        Returns:
            Matching locations
        """
        keyword = str(keyword or "")
        if len(keyword) < MIN_KEYWORD_LENGTH:
            return []
        data = await self._get(
            "/v1/reference-data/locations",
            {"keyword": keyword, "subType": ",".join(sub_types)},
            "Failed to fetch location suggestions",
        )
        return [Location.from_api(location) for location in data.get("data") or []]

    async def city_geocode(self, city_code: str) -> Tuple[float, float]:
        """Resolve a city keyword or IATA code to (latitude, longitude)

        Raises:
            UpstreamError: With status 404 if no city matches
        """
        data = await self._get(
            "/v1/reference-data/locations",
            {"subType": "CITY", "keyword": city_code},
            "City not found or API error",
        )
        for location in data.get("data") or []:
            geo = location.get("geoCode") or {}
            if geo.get("latitude") is not None and geo.get("longitude") is not None:
                return float(geo["latitude"]), float(geo["longitude"])
        raise UpstreamError("Amadeus", 404, f"City not found: {city_code}")

    async def list_hotels(
        self,
        city_code: str,
        *,
        ratings: Optional[str] = None,
        amenities: Optional[str] = None,
        radius: int = 10,
        radius_unit: str = "KM",
    ) -> List[Dict[str, Any]]:
        """List hotels in a city

        Args:
            city_code: IATA city code
            ratings: Comma-separated star ratings filter
            amenities: Comma-separated amenities filter
            radius: Search radius around the city center
            radius_unit: KM or MILE

        Returns:
            Hotel records as returned by the API
        """
        if not city_code:
            raise ValueError("Missing required parameter: cityCode")
        params: Dict[str, Any] = {
            "cityCode": city_code,
            "hotelSource": "ALL",
            "radius": str(radius),
            "radiusUnit": radius_unit,
        }
        if ratings:
            params["ratings"] = ratings
        if amenities:
            params["amenities"] = amenities
        data = await self._get(
            "/v1/reference-data/locations/hotels/by-city", params, "Failed to fetch hotel list"
        )
        return list(data.get("data") or [])

    async def search_flight_offers(self, search: FlightSearch) -> List[Dict[str, Any]]:
        """Search flight offers"""
        logger.info(f"Searching flights {search.origin} -> {search.destination} on {search.departure_date}")
        data = await self._get("/v2/shopping/flight-offers", search.to_params(), "Failed to fetch flights.")
        return list(data.get("data") or [])

    async def price_flight_offer(self, flight_offer: Dict[str, Any]) -> Dict[str, Any]:
        """Re-price a flight offer returned by search_flight_offers

        Args:
            flight_offer: Offer object exactly as returned by the search

        Returns:
            The confirmed offer with current pricing

        Raises:
            ValueError: If flight_offer is empty
            UpstreamError: If pricing is rejected or the response has no offer
        """
        if not flight_offer:
            raise ValueError("Missing flight offer.")
        payload = {"data": {"type": "flight-offers-pricing", "flightOffers": [flight_offer]}}
        data = await self._request(
            "POST",
            "/v1/shopping/flight-offers/pricing",
            "Failed to re-price flight offer.",
            json=payload,
        )
        pricing = data.get("data")
        offers = (pricing.get("flightOffers") if isinstance(pricing, dict) else None) or []
        if not offers:
            raise UpstreamError("Amadeus", 502, "Pricing response contained no flight offer")
        return offers[0]

    async def hotel_offers(self, search: HotelOfferSearch) -> List[Dict[str, Any]]:
        """Fetch room offers for a hotel"""
        data = await self._get("/v3/shopping/hotel-offers", search.to_params(), "Failed to fetch hotel offers")
        return list(data.get("data") or [])

    async def activities_by_square(
        self, latitude: float, longitude: float, delta: float = 0.1
    ) -> List[Dict[str, Any]]:
        """Fetch tours and activities inside a lat/lon square around a point"""
        params = {
            "north": str(latitude + delta),
            "west": str(longitude - delta),
            "south": str(latitude - delta),
            "east": str(longitude + delta),
        }
        data = await self._get(
            "/v1/shopping/activities/by-square", params, "Failed to fetch activities from Amadeus"
        )
        return list(data.get("data") or [])
