"""Timezone conversion via TimeZoneDB"""

from __future__ import annotations

import logging
from typing import Optional

from journeyscribe.domain.models.conversion import TimeConversion
from journeyscribe.infrastructure.errors import ConversionError
from journeyscribe.infrastructure.http_client import RequestOptions, ResilientFetcher

logger = logging.getLogger(__name__)


class TimezoneConverter:
    """Converts times between zones and looks up the zone of a coordinate"""

    def __init__(
        self,
        fetcher: ResilientFetcher,
        api_key: Optional[str],
        base_url: str = "http://api.timezonedb.com/v2.1/convert-time-zone",
        position_url: str = "http://api.timezonedb.com/v2.1/get-time-zone",
    ):
        self.fetcher = fetcher
        self.api_key = api_key
        self.base_url = base_url
        self.position_url = position_url

    async def convert(self, from_zone: str, to_zone: str, at: Optional[int] = None) -> TimeConversion:
        """Convert a unix timestamp between zones

        Args:
            from_zone: Source zone name or abbreviation (e.g. "Asia/Dhaka")
            to_zone: Target zone name or abbreviation
            at: Unix timestamp in from_zone (None = now)

        Raises:
            ConversionError: If parameters are missing or the API reports a failure
        """
        if not from_zone or not to_zone or not self.api_key:
            raise ConversionError("Missing required parameters or API key")

        params = {"key": self.api_key, "format": "json", "from": from_zone, "to": to_zone}
        if at is not None:
            params["time"] = str(at)

        response = await self.fetcher.fetch(self.base_url, RequestOptions(params=params))
        try:
            data = response.json()
        except ValueError as e:
            raise ConversionError(f"Invalid timezone API response (HTTP {response.status_code})") from e

        if not isinstance(data, dict) or data.get("status") != "OK":
            message = data.get("message") if isinstance(data, dict) else None
            logger.error(f"TimeZoneDB error: {message or response.status_code}")
            raise ConversionError(message or "Time zone conversion failed")

        try:
            return TimeConversion(
                from_zone=data["fromZoneName"],
                to_zone=data["toZoneName"],
                from_abbreviation=data.get("fromAbbreviation", ""),
                to_abbreviation=data.get("toAbbreviation", ""),
                from_timestamp=int(data["fromTimestamp"]),
                to_timestamp=int(data["toTimestamp"]),
                offset=int(data.get("offset", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConversionError(f"Incomplete timezone API response: {e}") from e

    async def zone_for_position(self, latitude: Optional[float], longitude: Optional[float]) -> str:
        """Look up the zone name (e.g. "Asia/Dhaka") of a coordinate

        Raises:
            ConversionError: If parameters are missing or the API reports a failure
        """
        if latitude is None or longitude is None or not self.api_key:
            raise ConversionError("Missing required parameters or API key")

        params = {
            "key": self.api_key,
            "format": "json",
            "by": "position",
            "lat": str(latitude),
            "lng": str(longitude),
        }
        response = await self.fetcher.fetch(self.position_url, RequestOptions(params=params))
        try:
            data = response.json()
        except ValueError as e:
            raise ConversionError(f"Invalid timezone API response (HTTP {response.status_code})") from e

        if not isinstance(data, dict) or data.get("status") != "OK" or not data.get("zoneName"):
            message = data.get("message") if isinstance(data, dict) else None
            logger.error(f"TimeZoneDB get-time-zone error: {message or response.status_code}")
            raise ConversionError(message or "Failed to get time zone")
        return data["zoneName"]
