"""Tours and activities around a city"""

import logging
from typing import List, Optional

from journeyscribe.domain.models.activity import Activity
from journeyscribe.infrastructure.amadeus.client import AmadeusClient

logger = logging.getLogger(__name__)


class ActivityService:
    """Finds activities near a city, optionally filtered by keyword"""

    def __init__(self, amadeus: AmadeusClient, square_delta: float = 0.1):
        self.amadeus = amadeus
        self.square_delta = square_delta

    async def find(self, city_code: str, keyword: Optional[str] = None, limit: int = 30) -> List[Activity]:
        """Find activities

        Args:
            city_code: City keyword or IATA code used to locate the city
            keyword: Case-insensitive filter on the activity name
            limit: Maximum number of activities returned

        Returns:
            Activities in API order, at most ``limit``

        Raises:
            ValueError: If city_code is empty
            UpstreamError: If the city cannot be found (404) or the API fails
        """
        if not city_code:
            raise ValueError("Missing required parameter: cityCode")

        latitude, longitude = await self.amadeus.city_geocode(city_code)
        raw = await self.amadeus.activities_by_square(latitude, longitude, self.square_delta)

        if keyword:
            needle = keyword.lower()
            raw = [item for item in raw if needle in (item.get("name") or "").lower()]

        activities = [Activity.from_api(item) for item in raw[:limit]]
        logger.info(f"Found {len(activities)} activities near {city_code}")
        return activities
