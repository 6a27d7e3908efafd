"""Database module - remote DynamoDB repositories and the local sqlite cache."""

from .dynamodb_client import BookingRepository, FacilityRepository, UserRepository
from .local_cache import LocalDataService
from .exceptions import (
    RemoteStoreError,
    NotFoundError,
    ThrottlingError,
    NetworkError,
    AccessDeniedError,
)

__all__ = [
    "BookingRepository",
    "FacilityRepository",
    "UserRepository",
    "LocalDataService",
    "RemoteStoreError",
    "NotFoundError",
    "ThrottlingError",
    "NetworkError",
    "AccessDeniedError",
]
