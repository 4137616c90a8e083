"""Location models - cities and airports returned by location search"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class City:
    """City suggestion"""

    name: str
    iata_code: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "City":
        return cls(name=data.get("name", ""), iata_code=data.get("iataCode"))


@dataclass(frozen=True)
class Location:
    """City, airport or point of interest"""

    id: Optional[str]
    name: str
    sub_type: Optional[str] = None  # CITY, AIRPORT, POINT_OF_INTEREST
    iata_code: Optional[str] = None  # Only for CITY/AIRPORT
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[Dict[str, Any]] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Location":
        geo = data.get("geoCode") or {}
        return cls(
            id=data.get("id"),
            name=data.get("name", ""),
            sub_type=data.get("subType"),
            iata_code=data.get("iataCode") or None,
            latitude=geo.get("latitude"),
            longitude=geo.get("longitude"),
            address=data.get("address") or None,
        )
