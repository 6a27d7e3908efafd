"""
Offline-first booking history.

Cached bookings are read first; when the network is reachable the remote
list replaces them and is written back to the cache.
"""

from typing import List

from courtbook.database.exceptions import RemoteStoreError
from courtbook.domain.booking import Booking
from courtbook.utils.logger import get_logger

logger = get_logger(__name__)


class HistoryService:
    """
    Args:
        booking_service: BookingService used for the online fetch
        local_cache: LocalDataService holding the offline copy
    """

    def __init__(self, booking_service, local_cache):
        self.booking_service = booking_service
        self.local_cache = local_cache

    def load_history(self, user_id: str, online: bool = True) -> List[Booking]:
        """
        A user's bookings, from the remote store when online, else from cache.

        A remote failure while online falls back to the cached list; it is
        logged, not raised.
        """
        cached = self.local_cache.get_booking_history(user_id)
        context = {"user_id": user_id, "cached": len(cached)}
        logger.debug("Loaded cached booking history", operation="load_history", context=context)

        if not online:
            logger.info("Offline, serving cached history", operation="load_history", context=context)
            return cached

        try:
            remote = self.booking_service.get_user_bookings(user_id)
        except RemoteStoreError as e:
            logger.warning(
                "History sync failed, serving cached history",
                operation="load_history",
                context=context,
                error=str(e),
            )
            return cached

        for booking in remote:
            self.local_cache.save_booking(booking)

        logger.info(
            f"Synced {len(remote)} bookings",
            operation="load_history",
            context=context,
        )
        return remote
