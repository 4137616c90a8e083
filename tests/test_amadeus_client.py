"""Tests for the Amadeus API client"""

import asyncio
import json

import httpx
import pytest

from journeyscribe.domain.models.flight import FlightSearch
from journeyscribe.domain.models.hotel import HotelOfferSearch
from journeyscribe.domain.models.location import City, Location
from journeyscribe.infrastructure.amadeus.client import AmadeusClient
from journeyscribe.infrastructure.errors import AuthenticationError, NetworkExhausted, UpstreamError

BASE_URL = "https://test.api.amadeus.com"
TOKEN_PATH = "/v1/security/oauth2/token"


@pytest.fixture
def token_router(router):
    issued = iter(f"token-{n}" for n in range(1, 10))
    router.add(TOKEN_PATH, lambda r: httpx.Response(200, json={"access_token": next(issued), "expires_in": 1799}))
    return router


def _call(make_fetcher, fn, api_key="key", api_secret="secret"):
    async def _main():
        async with make_fetcher() as fetcher:
            amadeus = AmadeusClient.create(fetcher, api_key, api_secret, base_url=BASE_URL + "/")
            return await fn(amadeus)

    return asyncio.run(_main())


class TestCitySearch:
    """Tests for city and location search"""

    def test_search_cities(self, token_router, make_fetcher):
        """Test cities are mapped from the API payload"""
        token_router.add(
            "/v1/reference-data/locations/cities",
            lambda r: httpx.Response(
                200,
                json={"data": [{"name": "DHAKA", "iataCode": "DAC"}, {"name": "DHAKAR"}]},
            ),
        )

        cities = _call(make_fetcher, lambda a: a.search_cities("Dha"))

        assert cities == [City(name="DHAKA", iata_code="DAC"), City(name="DHAKAR", iata_code=None)]
        request = token_router.calls("/v1/reference-data/locations/cities")[0]
        assert request.url.params["keyword"] == "Dha"
        assert request.headers["Authorization"] == "Bearer token-1"

    def test_short_keyword_skips_request(self, token_router, make_fetcher):
        """Test keywords under 2 characters return nothing without calling the API"""
        assert _call(make_fetcher, lambda a: a.search_cities("D")) == []
        assert token_router.requests == []

    def test_search_locations(self, token_router, make_fetcher):
        """Test location search with airports"""
        token_router.add(
            "/v1/reference-data/locations",
            lambda r: httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": "ADAC",
                            "name": "SHAHJALAL INTL",
                            "subType": "AIRPORT",
                            "iataCode": "DAC",
                            "geoCode": {"latitude": 23.84, "longitude": 90.4},
                            "address": {"countryCode": "BD"},
                        }
                    ]
                },
            ),
        )

        locations = _call(make_fetcher, lambda a: a.search_locations("Dhaka"))

        assert locations == [
            Location(
                id="ADAC",
                name="SHAHJALAL INTL",
                sub_type="AIRPORT",
                iata_code="DAC",
                latitude=23.84,
                longitude=90.4,
                address={"countryCode": "BD"},
            )
        ]
        request = token_router.calls("/v1/reference-data/locations")[0]
        assert request.url.params["subType"] == "CITY,AIRPORT"

    def test_token_reused_across_calls(self, token_router, make_fetcher):
        """Test one token serves several API calls"""
        token_router.add(
            "/v1/reference-data/locations/cities", lambda r: httpx.Response(200, json={"data": []})
        )

        async def scenario(amadeus):
            await amadeus.search_cities("Paris")
            await amadeus.search_cities("London")

        _call(make_fetcher, scenario)

        assert len(token_router.calls(TOKEN_PATH)) == 1
        assert len(token_router.calls("/v1/reference-data/locations/cities")) == 2

    def test_missing_credentials(self, router, make_fetcher):
        """Test missing credentials surface as AuthenticationError"""
        with pytest.raises(AuthenticationError):
            _call(make_fetcher, lambda a: a.search_cities("Paris"), api_key=None)


class TestErrorHandling:
    """Tests for upstream error mapping"""

    def test_error_detail_extracted(self, token_router, make_fetcher):
        """Test errors[0].detail is used as the error detail"""
        token_router.add(
            "/v1/reference-data/locations/cities",
            lambda r: httpx.Response(400, json={"errors": [{"status": 400, "detail": "Invalid keyword"}]}),
        )

        with pytest.raises(UpstreamError) as exc_info:
            _call(make_fetcher, lambda a: a.search_cities("??"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Invalid keyword"
        assert "Amadeus API error (400): Invalid keyword" in str(exc_info.value)

    def test_fallback_detail(self, token_router, make_fetcher):
        """Test a non-JSON error body falls back to the default message"""
        token_router.add("/v2/shopping/flight-offers", lambda r: httpx.Response(500, text="boom"))
        search = FlightSearch(origin="DAC", destination="CGP", departure_date="2026-12-01")

        with pytest.raises(UpstreamError, match="Failed to fetch flights."):
            _call(make_fetcher, lambda a: a.search_flight_offers(search))

    def test_unauthorized_invalidates_token(self, token_router, make_fetcher):
        """Test a 401 drops the cached token so the next call refreshes it"""
        responses = iter(
            [
                httpx.Response(401, json={"errors": [{"detail": "Access token expired"}]}),
                httpx.Response(200, json={"data": []}),
            ]
        )
        token_router.add("/v1/reference-data/locations/cities", lambda r: next(responses))

        async def scenario(amadeus):
            with pytest.raises(UpstreamError):
                await amadeus.search_cities("Paris")
            return await amadeus.search_cities("Paris")

        assert _call(make_fetcher, scenario) == []
        calls = token_router.calls("/v1/reference-data/locations/cities")
        assert [c.headers["Authorization"] for c in calls] == ["Bearer token-1", "Bearer token-2"]

    def test_rate_limit_body_retried(self, token_router, make_fetcher):
        """Test the Amadeus rate-limit message is retried"""
        responses = iter(
            [
                httpx.Response(429, json={"errors": [{"detail": "Too many requests"}]}),
                httpx.Response(200, json={"data": [{"name": "PARIS", "iataCode": "PAR"}]}),
            ]
        )
        token_router.add("/v1/reference-data/locations/cities", lambda r: next(responses))

        assert _call(make_fetcher, lambda a: a.search_cities("Paris")) == [City("PARIS", "PAR")]

    def test_persistent_rate_limit(self, token_router, make_fetcher):
        """Test persistent rate limiting surfaces as NetworkExhausted"""
        token_router.add(
            "/v1/reference-data/locations/cities",
            lambda r: httpx.Response(500, text="network rate limit is exceeded"),
        )

        with pytest.raises(NetworkExhausted) as exc_info:
            _call(make_fetcher, lambda a: a.search_cities("Paris"))
        assert exc_info.value.attempts == 3

    def test_non_object_body(self, token_router, make_fetcher):
        """Test a JSON body that is not an object"""
        token_router.add("/v1/reference-data/locations/cities", lambda r: httpx.Response(200, json=[1, 2]))

        with pytest.raises(UpstreamError, match="Unexpected response shape"):
            _call(make_fetcher, lambda a: a.search_cities("Paris"))


class TestShopping:
    """Tests for hotel, flight and activity endpoints"""

    def test_city_geocode(self, token_router, make_fetcher):
        """Test first location with coordinates wins"""
        token_router.add(
            "/v1/reference-data/locations",
            lambda r: httpx.Response(
                200,
                json={"data": [{"name": "X"}, {"geoCode": {"latitude": 48.85, "longitude": 2.35}}]},
            ),
        )

        assert _call(make_fetcher, lambda a: a.city_geocode("PAR")) == (48.85, 2.35)
        request = token_router.calls("/v1/reference-data/locations")[0]
        assert request.url.params["subType"] == "CITY"
        assert request.url.params["keyword"] == "PAR"

    def test_city_geocode_not_found(self, token_router, make_fetcher):
        """Test an empty result is reported as 404"""
        token_router.add("/v1/reference-data/locations", lambda r: httpx.Response(200, json={"data": []}))

        with pytest.raises(UpstreamError) as exc_info:
            _call(make_fetcher, lambda a: a.city_geocode("Atlantis"))
        assert exc_info.value.status_code == 404
        assert "City not found: Atlantis" in str(exc_info.value)

    def test_list_hotels_params(self, token_router, make_fetcher):
        """Test hotel list filters"""
        token_router.add(
            "/v1/reference-data/locations/hotels/by-city",
            lambda r: httpx.Response(200, json={"data": [{"hotelId": "H1"}]}),
        )

        hotels = _call(make_fetcher, lambda a: a.list_hotels("PAR", ratings="4,5", radius=5))

        assert hotels == [{"hotelId": "H1"}]
        params = token_router.calls("/v1/reference-data/locations/hotels/by-city")[0].url.params
        assert params["cityCode"] == "PAR"
        assert params["hotelSource"] == "ALL"
        assert params["ratings"] == "4,5"
        assert params["radius"] == "5"
        assert params["radiusUnit"] == "KM"
        assert "amenities" not in params

    def test_list_hotels_requires_city(self, token_router, make_fetcher):
        with pytest.raises(ValueError, match="cityCode"):
            _call(make_fetcher, lambda a: a.list_hotels(""))

    def test_flight_offer_params(self, token_router, make_fetcher):
        """Test flight search parameters"""
        token_router.add("/v2/shopping/flight-offers", lambda r: httpx.Response(200, json={"data": [{"id": "1"}]}))
        search = FlightSearch(
            origin="DAC",
            destination="DXB",
            departure_date="2026-12-01",
            return_date="2026-12-10",
            adults=2,
            travel_class="BUSINESS",
            nonstop=True,
        )

        assert _call(make_fetcher, lambda a: a.search_flight_offers(search)) == [{"id": "1"}]
        params = token_router.calls("/v2/shopping/flight-offers")[0].url.params
        assert params["originLocationCode"] == "DAC"
        assert params["returnDate"] == "2026-12-10"
        assert params["adults"] == "2"
        assert params["travelClass"] == "BUSINESS"
        assert params["nonStop"] == "true"
        assert params["max"] == "10"
        assert "children" not in params

    def test_hotel_offer_params(self, token_router, make_fetcher):
        token_router.add("/v3/shopping/hotel-offers", lambda r: httpx.Response(200, json={"data": []}))
        search = HotelOfferSearch(hotel_id="H1", check_in_date="2026-12-01", check_out_date="2026-12-03")

        assert _call(make_fetcher, lambda a: a.hotel_offers(search)) == []
        params = token_router.calls("/v3/shopping/hotel-offers")[0].url.params
        assert params["hotelIds"] == "H1"
        assert params["view"] == "FULL_ALL_PRICES"
        assert "includeClosed" not in params

    def test_activities_by_square(self, token_router, make_fetcher):
        """Test the bounding square around a point"""
        token_router.add(
            "/v1/shopping/activities/by-square", lambda r: httpx.Response(200, json={"data": [{"id": "A1"}]})
        )

        assert _call(make_fetcher, lambda a: a.activities_by_square(10.0, 20.0, delta=0.5)) == [{"id": "A1"}]
        params = token_router.calls("/v1/shopping/activities/by-square")[0].url.params
        assert (params["north"], params["south"]) == ("10.5", "9.5")
        assert (params["west"], params["east"]) == ("19.5", "20.5")


class TestFlightPricing:
    """Tests for flight offer re-pricing"""

    OFFER = {"type": "flight-offer", "id": "1", "price": {"total": "100.00", "currency": "USD"}}

    def test_price_flight_offer(self, token_router, make_fetcher):
        """Test the offer is posted wrapped in a pricing payload"""
        priced = {**self.OFFER, "price": {"total": "104.20", "currency": "USD"}}
        token_router.add(
            "/v1/shopping/flight-offers/pricing",
            lambda r: httpx.Response(200, json={"data": {"type": "flight-offers-pricing", "flightOffers": [priced]}}),
        )

        assert _call(make_fetcher, lambda a: a.price_flight_offer(self.OFFER)) == priced
        request = token_router.calls("/v1/shopping/flight-offers/pricing")[0]
        assert request.method == "POST"
        assert request.headers["Authorization"] == "Bearer token-1"
        assert request.headers["Content-Type"] == "application/json"
        assert json.loads(request.content) == {
            "data": {"type": "flight-offers-pricing", "flightOffers": [self.OFFER]}
        }

    def test_rate_limited_pricing_resends_same_body(self, token_router, make_fetcher):
        responses = iter(
            [
                httpx.Response(429, json={"errors": [{"detail": "Too many requests"}]}),
                httpx.Response(200, json={"data": {"flightOffers": [self.OFFER]}}),
            ]
        )
        token_router.add("/v1/shopping/flight-offers/pricing", lambda r: next(responses))

        assert _call(make_fetcher, lambda a: a.price_flight_offer(self.OFFER)) == self.OFFER
        calls = token_router.calls("/v1/shopping/flight-offers/pricing")
        assert len(calls) == 2
        assert calls[0].content == calls[1].content

    def test_pricing_error_detail(self, token_router, make_fetcher):
        token_router.add(
            "/v1/shopping/flight-offers/pricing",
            lambda r: httpx.Response(400, json={"errors": [{"detail": "Segment sold out"}]}),
        )

        with pytest.raises(UpstreamError, match="Segment sold out"):
            _call(make_fetcher, lambda a: a.price_flight_offer(self.OFFER))

    def test_pricing_without_offer(self, token_router, make_fetcher):
        token_router.add(
            "/v1/shopping/flight-offers/pricing", lambda r: httpx.Response(200, json={"data": {}})
        )

        with pytest.raises(UpstreamError, match="no flight offer"):
            _call(make_fetcher, lambda a: a.price_flight_offer(self.OFFER))

    def test_missing_offer(self, token_router, make_fetcher):
        with pytest.raises(ValueError, match="Missing flight offer"):
            _call(make_fetcher, lambda a: a.price_flight_offer({}))
        assert token_router.requests == []
