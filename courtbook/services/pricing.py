"""
Price calculation for a booking.

Looks up the base price of the facility's category, applies the student
discount and formats the result for display.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from courtbook.domain.facility import category_for_name
from courtbook.services.rules import FacilityRules
from courtbook.utils.logger import get_logger, mask_student_id

logger = get_logger(__name__)

CENTS = Decimal("0.01")


def base_price_for(facility_id: str, rules: Optional[FacilityRules] = None) -> Decimal:
    """
    Base price of the category a facility identifier resolves to.

    Unrecognized identifiers get the default price.
    """
    rules = rules or FacilityRules()
    category = category_for_name(facility_id)
    if category is None or category not in rules.base_prices:
        return rules.default_price
    return rules.base_prices[category]


def qualifies_for_discount(student_id: Optional[str], rules: Optional[FacilityRules] = None) -> bool:
    rules = rules or FacilityRules()
    return bool(student_id) and len(student_id) > rules.discount_min_id_length


def format_price(amount: Decimal, currency_prefix: str = "RM") -> str:
    """
    Format an amount with two decimals and a thousands separator.

    Example:
        >>> format_price(Decimal("1234.5"))
        "RM 1,234.50"
    """
    rounded = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    return f"{currency_prefix} {rounded:,.2f}"


def final_cost(facility_id: str, student_id: Optional[str], rules: Optional[FacilityRules] = None) -> Decimal:
    """Discounted price rounded half-up to cents."""
    rules = rules or FacilityRules()
    cost = base_price_for(facility_id, rules)

    if qualifies_for_discount(student_id, rules):
        cost = cost * (Decimal("1") - rules.discount_rate)
        logger.debug(
            "Applied student discount",
            operation="calculate_final_cost",
            context={
                "student_id_masked": mask_student_id(student_id),
                "rate": str(rules.discount_rate),
            },
        )

    return cost.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_final_cost(
    facility_id: str,
    time_slot: str,
    student_id: Optional[str],
    rules: Optional[FacilityRules] = None,
) -> str:
    """
    Formatted price for booking a facility slot.

    Args:
        facility_id: Facility name or identifier, e.g. "Badminton Court 1"
        time_slot: Slot label; every slot is priced the same
        student_id: Student ID entered on the confirmation form

    Returns:
        Price string such as "RM 22.50"
    """
    rules = rules or FacilityRules()
    return format_price(final_cost(facility_id, student_id, rules), rules.currency_prefix)
