"""
Facility rule table: opening days, slot hours, base prices and the student
discount.

The defaults below match config/facility_rules.yaml; Settings can load a
different table from YAML.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Any, Optional

from courtbook.domain.facility import BADMINTON, PING_PONG, BASKETBALL

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _default_open_days() -> Dict[str, List[str]]:
    return {
        BADMINTON: ["Monday", "Thursday", "Friday"],
        PING_PONG: ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"],
        BASKETBALL: ["Tuesday", "Wednesday", "Saturday", "Sunday"],
    }


def _default_base_prices() -> Dict[str, Decimal]:
    return {
        BADMINTON: Decimal("25.00"),
        PING_PONG: Decimal("15.00"),
        BASKETBALL: Decimal("30.00"),
    }


@dataclass
class FacilityRules:
    """
    Booking rules per sport category.

    Attributes:
        open_days: Category -> weekday names it can be booked on
        base_prices: Category -> price per slot before discounts
        default_price: Price for facilities matching no category
        discount_rate: Fraction taken off for qualifying student IDs
        discount_min_id_length: Student IDs longer than this qualify
        first_hour: Start hour of the first slot
        last_hour: End hour of the last slot
        currency_prefix: Prefix of formatted prices
    """

    open_days: Dict[str, List[str]] = field(default_factory=_default_open_days)
    base_prices: Dict[str, Decimal] = field(default_factory=_default_base_prices)
    default_price: Decimal = Decimal("20.00")
    discount_rate: Decimal = Decimal("0.10")
    discount_min_id_length: int = 5
    first_hour: int = 8
    last_hour: int = 22
    currency_prefix: str = "RM"

    def __post_init__(self):
        if self.first_hour >= self.last_hour:
            raise ValueError(
                f"slots.first_hour ({self.first_hour}) must be before slots.last_hour ({self.last_hour})"
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "FacilityRules":
        """
        Build rules from a validated facility_rules.yaml mapping.

        Prices go through str() so YAML floats become exact decimals.
        """
        defaults = cls()
        slots = config.get("slots", {})
        discount = config.get("student_discount", {})
        return cls(
            open_days={name: list(days) for name, days in config.get("open_days", {}).items()},
            base_prices={
                name: Decimal(str(price)) for name, price in config.get("base_prices", {}).items()
            },
            default_price=Decimal(str(config.get("default_price", defaults.default_price))),
            discount_rate=Decimal(str(discount.get("rate", defaults.discount_rate))),
            discount_min_id_length=int(
                discount.get("min_id_length", defaults.discount_min_id_length)
            ),
            first_hour=int(slots.get("first_hour", defaults.first_hour)),
            last_hour=int(slots.get("last_hour", defaults.last_hour)),
            currency_prefix=config.get("currency_prefix", defaults.currency_prefix),
        )

    def open_days_for(self, category: Optional[str]) -> Optional[List[str]]:
        """
        Open weekday names, or None when the category is open every day.

        Category names match case-insensitively.
        """
        if not category:
            return None
        wanted = category.strip().lower()
        return next((days for name, days in self.open_days.items() if name.lower() == wanted), None)

    def is_open(self, category: Optional[str], on_date: date) -> bool:
        days = self.open_days_for(category)
        if days is None:
            return True
        return WEEKDAYS[on_date.weekday()] in days
