"""Facility listing grouped by sport category."""

from typing import List, Optional

from courtbook.domain.facility import Facility, SportCategory, default_categories
from courtbook.utils.logger import get_logger

logger = get_logger(__name__)


class FacilityCatalog:
    """
    Facilities loaded from the remote store, filtered by the selected category.

    Args:
        facility_repo: Object with list_facilities(), e.g. FacilityRepository
    """

    def __init__(self, facility_repo):
        self.facility_repo = facility_repo
        self.categories: List[SportCategory] = default_categories()
        self._all_facilities: List[Facility] = []

    def load(self) -> List[Facility]:
        """Fetch every facility from the store and keep them for filtering."""
        self._all_facilities = self.facility_repo.list_facilities()
        logger.info(
            f"Catalog loaded {len(self._all_facilities)} facilities",
            operation="load_facilities",
        )
        return list(self._all_facilities)

    @property
    def selected_category(self) -> Optional[str]:
        return next((c.name for c in self.categories if c.is_selected), None)

    def select_category(self, name: str) -> List[Facility]:
        """
        Select a category tab and return its facilities.

        Raises:
            ValueError: If the category is unknown
        """
        match = next((c for c in self.categories if c.name.lower() == name.lower()), None)
        if match is None:
            raise ValueError(f"Unknown category: {name}")

        for category in self.categories:
            category.is_selected = category is match

        return self.facilities_for(match.name)

    def facilities_for(self, category: str) -> List[Facility]:
        return [f for f in self._all_facilities if f.category.lower() == category.lower()]

    def find(self, name: str) -> Optional[Facility]:
        return next((f for f in self._all_facilities if f.name == name), None)
