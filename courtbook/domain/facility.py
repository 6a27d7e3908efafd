"""
Facility and sport category domain models.

Facilities are read-only from the booking logic's point of view; they are
maintained in the remote document store and loaded by the catalog.
"""

import re
from dataclasses import dataclass, asdict
from decimal import Decimal
from typing import Dict, Any, List, Optional


# Category names in display order; the first one is selected by default
BADMINTON = "Badminton"
PING_PONG = "Ping-Pong"
BASKETBALL = "Basketball"

CATEGORY_NAMES = [BADMINTON, PING_PONG, BASKETBALL]

# Keywords matched against a normalized facility name
_CATEGORY_KEYWORDS = {
    BADMINTON: ("badminton",),
    PING_PONG: ("pingpong", "tabletennis"),
    BASKETBALL: ("basketball",),
}


def normalize_name(name: str) -> str:
    """Lower-case a facility name and strip whitespace, digits and hyphens."""
    return re.sub(r"[\s\d\-_]+", "", name or "").lower()


def category_for_name(name: str) -> Optional[str]:
    """
    Resolve the sport category of a facility from its name.

    Example:
        >>> category_for_name("Ping-Pong Table 3")
        "Ping-Pong"
        >>> category_for_name("Squash Court 1") is None
        True
    """
    normalized = normalize_name(name)
    for category, keywords in _CATEGORY_KEYWORDS.items():
        if any(keyword in normalized for keyword in keywords):
            return category
    return None


def canonical_category(name: Optional[str]) -> Optional[str]:
    """Known category name matching `name` case-insensitively, else None."""
    wanted = normalize_name(name or "")
    return next((c for c in CATEGORY_NAMES if normalize_name(c) == wanted), None) if wanted else None


@dataclass
class Facility:
    """
    Bookable sports venue.

    Attributes:
        name: Display name, unique per facility (e.g. "Badminton Court 1")
        location: Where the facility is (e.g. "UTS Indoor Hall")
        image_url: Image reference shown in listings
        price: Listed hourly price
        rating: Average user rating (0-5)
        category: Sport type; derived from the name when not stored
    """

    name: str
    location: str = ""
    image_url: str = ""
    price: float = 0.0
    rating: float = 0.0
    category: str = ""

    def __post_init__(self):
        if not self.category:
            self.category = category_for_name(self.name) or ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Facility":
        """
        Create Facility from a stored document.

        Accepts both snake_case keys and the camelCase keys written by the
        mobile client ("facilityName", "imageUrl").
        """
        name = data.get("name") or data.get("facilityName") or ""
        return cls(
            name=name,
            location=data.get("location", ""),
            image_url=data.get("image_url") or data.get("imageUrl") or "",
            price=float(data.get("price", 0) or 0),
            rating=float(data.get("rating", 0) or 0),
            category=data.get("category", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Document for storage; floats become Decimal for DynamoDB."""
        data = asdict(self)
        data["price"] = Decimal(str(self.price))
        data["rating"] = Decimal(str(self.rating))
        return data


@dataclass
class SportCategory:
    """Category tab with a single-selection flag."""

    name: str
    icon: str = ""
    is_selected: bool = False


def default_categories() -> List[SportCategory]:
    """The known categories with the first one selected."""
    return [
        SportCategory(name=name, is_selected=(index == 0))
        for index, name in enumerate(CATEGORY_NAMES)
    ]
