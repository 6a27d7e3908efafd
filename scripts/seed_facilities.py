#!/usr/bin/env python3
"""
Load facility documents from YAML into the facilities table.

Usage:
    python scripts/seed_facilities.py [--file config/facilities.yaml] [--dry-run]
"""

import argparse
import logging
import sys
from pathlib import Path

import boto3
import yaml

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from courtbook.config.settings import Settings, CONFIG_DIR
from courtbook.database.dynamodb_client import FacilityRepository
from courtbook.database.exceptions import RemoteStoreError
from courtbook.domain.facility import Facility


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def load_facilities(path: Path) -> list:
    """Parse the YAML file into Facility objects."""
    with path.open("r", encoding="utf-8") as f:
        content = yaml.safe_load(f) or {}
    return [Facility.from_dict(item) for item in content.get("facilities", [])]


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the facilities table")
    parser.add_argument("--file", default=str(CONFIG_DIR / "facilities.yaml"))
    parser.add_argument("--dry-run", action="store_true", help="Print, do not write")
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        facilities = load_facilities(Path(args.file))
    except (FileNotFoundError, yaml.YAMLError) as e:
        logger.error(f"Could not read {args.file}: {e}")
        return 1

    if args.dry_run:
        for facility in facilities:
            logger.info(f"[dry-run] {facility.name} ({facility.category or 'uncategorized'})")
        return 0

    settings = Settings()
    repo = FacilityRepository(
        settings.facilities_table,
        dynamodb_resource=boto3.resource("dynamodb", region_name=settings.region_name),
    )

    try:
        for facility in facilities:
            repo.put_facility(facility)
    except RemoteStoreError as e:
        logger.error(f"Seeding stopped: {e}")
        return 1

    logger.info(f"Seeded {len(facilities)} facilities into {settings.facilities_table}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
