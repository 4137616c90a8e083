"""Conversion results - currency amounts and wall-clock times"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Conversion:
    """Currency conversion result"""

    amount: Decimal
    from_currency: str
    to_currency: str
    rate: Decimal
    converted_amount: Decimal  # Rounded to 2 decimal places
    timestamp: Optional[str] = None  # Rate timestamp reported by the provider


@dataclass(frozen=True)
class TimeConversion:
    """Timezone conversion result"""

    from_zone: str
    to_zone: str
    from_abbreviation: str
    to_abbreviation: str
    from_timestamp: int
    to_timestamp: int
    offset: int  # Seconds between the two zones

    @property
    def from_iso(self) -> str:
        return datetime.fromtimestamp(self.from_timestamp, tz=timezone.utc).isoformat()

    @property
    def to_iso(self) -> str:
        return datetime.fromtimestamp(self.to_timestamp, tz=timezone.utc).isoformat()
