#!/usr/bin/env python3
"""
Print the loaded facility rule table.

Usage:
    python scripts/print_schedule.py [--rules PATH] [--schema PATH]

Output:
    Opening days, slot hours, base prices (with the discounted price) and
    the student discount settings.
"""

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from courtbook.config.settings import Settings, RULES_FILE, RULES_SCHEMA_FILE
from courtbook.services.pricing import format_price
from courtbook.services.rules import FacilityRules, WEEKDAYS
from courtbook.services.schedule import master_time_slots

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def print_schedule_summary(rules: FacilityRules) -> None:
    """Print the rule table as a readable summary."""
    print("\n" + "=" * 80)
    print("FACILITY RULES SUMMARY")
    print("=" * 80)

    slots = master_time_slots(rules)
    print(f"\nDaily slots: {len(slots)} ({slots[0].slot_name} ... {slots[-1].slot_name})")

    print("\n" + "-" * 80)
    print("OPENING DAYS")
    print("-" * 80)
    for category, days in sorted(rules.open_days.items()):
        marks = " ".join(day[:3] if day in days else "---" for day in WEEKDAYS)
        print(f"  {category:<12} {marks}")

    print("\n" + "-" * 80)
    print("PRICES")
    print("-" * 80)
    discount_factor = Decimal("1") - rules.discount_rate
    for category, price in sorted(rules.base_prices.items()):
        print(
            f"  {category:<12} {format_price(price, rules.currency_prefix):>12}"
            f"   student {format_price(price * discount_factor, rules.currency_prefix):>12}"
        )
    print(f"  {'(default)':<12} {format_price(rules.default_price, rules.currency_prefix):>12}")

    print(
        f"\nStudent discount: {rules.discount_rate * 100:.0f}% "
        f"for IDs longer than {rules.discount_min_id_length} characters"
    )
    print("\n" + "=" * 80 + "\n")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Print the facility rule table")
    parser.add_argument("--rules", default=str(RULES_FILE), help="Path to facility_rules.yaml")
    parser.add_argument("--schema", default=str(RULES_SCHEMA_FILE), help="Path to the JSON schema")
    args = parser.parse_args()

    try:
        logger.info(f"Loading rules from: {args.rules}")
        rules = Settings().load_rules(args.rules, args.schema)
        print_schedule_summary(rules)
        return 0
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Validation error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
