"""Timezone conversion configuration model."""

from typing import Optional

from pydantic import BaseModel


class TimezoneConfig(BaseModel):
    """Configuration for TimeZoneDB.

    Attributes:
        base_url: convert-time-zone endpoint
        position_url: get-time-zone endpoint, used to look up the zone of a coordinate
        api_key: API key (None = from TIMEZONEDB_API_KEY env)
    """

    base_url: str = "http://api.timezonedb.com/v2.1/convert-time-zone"
    position_url: str = "http://api.timezonedb.com/v2.1/get-time-zone"
    api_key: Optional[str] = None
