"""Activity model - tours and activities near a city"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Activity:
    """Bookable tour or activity"""

    id: str
    name: str
    description: Optional[str] = None
    category: str = "Activity"
    cost: float = 0.0
    pictures: List[str] = field(default_factory=list)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Activity":
        tags = data.get("tags") or []
        category = data.get("category") or (tags[0] if tags else "Activity")
        try:
            cost = float((data.get("price") or {}).get("amount"))
        except (TypeError, ValueError):
            cost = 0.0
        geo = data.get("geoCode") or {}
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            description=data.get("description") or None,
            category=category,
            cost=cost,
            pictures=list(data.get("pictures") or []),
            latitude=geo.get("latitude"),
            longitude=geo.get("longitude"),
        )
