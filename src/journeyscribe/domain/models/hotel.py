"""Hotel offer models"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class HotelOfferSearch:
    """Hotel offer search criteria"""

    hotel_id: str
    check_in_date: str  # YYYY-MM-DD
    check_out_date: str  # YYYY-MM-DD
    adults: int = 1
    room_quantity: int = 1
    board_type: Optional[str] = None
    include_closed: Optional[bool] = None

    def __post_init__(self):
        if not self.hotel_id or not self.check_in_date or not self.check_out_date:
            raise ValueError("Missing required parameters")

    def to_params(self) -> Dict[str, str]:
        params = {
            "hotelIds": self.hotel_id,
            "checkInDate": self.check_in_date,
            "checkOutDate": self.check_out_date,
            "adults": str(self.adults),
            "roomQuantity": str(self.room_quantity),
            "view": "FULL_ALL_PRICES",
        }
        if self.board_type:
            params["boardType"] = self.board_type
        if self.include_closed is not None:
            params["includeClosed"] = "true" if self.include_closed else "false"
        return params


@dataclass
class HotelOffer:
    """Flattened hotel room offer"""

    hotel_id: str
    name: str
    offer_id: Optional[str]
    original_price: Optional[str]  # e.g. "120.5 EUR"
    converted_price: Optional[str]  # e.g. "15802.34 BDT", "N/A" when conversion failed
    guests: Optional[int] = None
    category: str = "N/A"
    room_description: str = "No description available."
    bed_type: str = "N/A"
    beds: Any = "N/A"
    payment_type: str = "N/A"
    cancellation_policy: str = "No cancellation details provided."

    @property
    def is_refundable(self) -> bool:
        return "NON-REFUNDABLE" not in self.cancellation_policy.upper()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hotelId": self.hotel_id,
            "name": self.name,
            "offerId": self.offer_id,
            "originalPrice": self.original_price,
            "convertedPrice": self.converted_price,
            "guests": self.guests,
            "category": self.category,
            "roomDescription": self.room_description,
            "bedType": self.bed_type,
            "beds": self.beds,
            "paymentType": self.payment_type,
            "cancellationPolicy": self.cancellation_policy,
            "isRefundable": self.is_refundable,
        }
