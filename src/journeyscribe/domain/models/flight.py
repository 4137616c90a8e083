"""Flight search request model"""

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class FlightSearch:
    """Flight offer search criteria"""

    origin: str  # IATA code
    destination: str  # IATA code
    departure_date: str  # YYYY-MM-DD
    return_date: Optional[str] = None
    adults: int = 1
    children: Optional[int] = None
    infants: Optional[int] = None
    travel_class: Optional[str] = None  # ECONOMY, PREMIUM_ECONOMY, BUSINESS, FIRST
    nonstop: bool = False
    max_offers: int = 10

    def __post_init__(self):
        """Validate search criteria"""
        if not self.origin or not self.destination or not self.departure_date:
            raise ValueError("Missing required search parameters")
        if self.adults < 1:
            raise ValueError("At least one adult is required")

    def to_params(self) -> Dict[str, str]:
        """Query parameters for the flight-offers endpoint"""
        params = {
            "originLocationCode": self.origin,
            "destinationLocationCode": self.destination,
            "departureDate": self.departure_date,
            "adults": str(self.adults),
            "max": str(self.max_offers),
        }
        if self.return_date:
            params["returnDate"] = self.return_date
        if self.children:
            params["children"] = str(self.children)
        if self.infants:
            params["infants"] = str(self.infants)
        if self.travel_class:
            params["travelClass"] = self.travel_class
        if self.nonstop:
            params["nonStop"] = "true"
        return params
