"""Points of interest near a coordinate via Google Places"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from journeyscribe.infrastructure.errors import UpstreamError
from journeyscribe.infrastructure.http_client import RequestOptions, ResilientFetcher

logger = logging.getLogger(__name__)

# Statuses that carry usable results
OK_STATUSES = ("OK", "ZERO_RESULTS")


class PlacesClient:
    """Nearby search around a latitude/longitude"""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        api_key: Optional[str],
        base_url: str = "https://maps.googleapis.com/maps/api/place/nearbysearch/json",
        radius: int = 2000,
        default_type: str = "restaurant",
    ):
        self.fetcher = fetcher
        self.api_key = api_key
        self.base_url = base_url
        self.radius = radius
        self.default_type = default_type

    async def nearby(
        self, latitude: Optional[float], longitude: Optional[float], place_type: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Find places of a type near a point

        Args:
            latitude: Center latitude
            longitude: Center longitude
            place_type: Google place type (defaults to default_type)

        Returns:
            Place results as returned by the API, empty on ZERO_RESULTS

        Raises:
            ValueError: If coordinates or the API key are missing
            UpstreamError: If the API reports any other status
        """
        if latitude is None or longitude is None:
            raise ValueError("Latitude and longitude are required")
        if not self.api_key:
            raise ValueError(
                "Google Maps API key is required. "
                "Set GOOGLE_MAPS_API_KEY environment variable or provide it in config."
            )

        params = {
            "location": f"{latitude},{longitude}",
            "radius": str(self.radius),
            "type": place_type or self.default_type,
            "key": self.api_key,
        }
        response = await self.fetcher.fetch(self.base_url, RequestOptions(params=params))
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Google Places", response.status_code, f"Invalid JSON response: {e}"
            ) from e
        if not isinstance(data, dict):
            raise UpstreamError("Google Places", response.status_code, "Unexpected response shape")

        status = data.get("status")
        if status not in OK_STATUSES:
            detail = data.get("error_message") or status or "Unknown error"
            logger.error(f"Google Places error ({status}): {detail}")
            raise UpstreamError("Google Places", response.status_code, detail)

        results = list(data.get("results") or [])
        logger.info(f"Found {len(results)} places of type {params['type']} near {latitude},{longitude}")
        return results
