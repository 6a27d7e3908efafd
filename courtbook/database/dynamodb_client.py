"""
DynamoDB repository implementations for facilities, bookings and user profiles.

This module provides a thin abstraction over the remote document store with
dependency injection for testability, retry on throttling, exception
translation and structured logging.
"""

import time
from typing import Optional, Dict, Any, List, Callable, Iterable, Tuple

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError, BotoCoreError

from courtbook.domain.booking import Booking, parse_date
from courtbook.domain.facility import Facility
from courtbook.domain.user import User
from courtbook.utils.logger import get_logger, mask_email
from .exceptions import (
    RemoteStoreError,
    ThrottlingError,
    NetworkError,
    AccessDeniedError,
)


logger = get_logger(__name__)

THROTTLING_CODES = {"ProvisionedThroughputExceededException", "ThrottlingException"}


class _DynamoRepository:
    """
    Shared plumbing for table-backed repositories.

    Subclasses set `key_name` and call `_execute` around every table call so
    retries and error translation behave the same for all tables.
    """

    key_name = "id"

    def __init__(
        self,
        table_name: str,
        dynamodb_resource: Optional[Any] = None,
        max_retries: int = 3,
        backoff_base: float = 1.0,
    ):
        """
        Args:
            table_name: DynamoDB table name
            dynamodb_resource: boto3 DynamoDB resource (default: creates new)
            max_retries: Number of attempts for throttled calls
            backoff_base: Base exponential backoff multiplier (seconds)
        """
        self.table_name = table_name
        self.dynamodb = dynamodb_resource or boto3.resource("dynamodb")
        self.table = self.dynamodb.Table(table_name)
        self.max_retries = max_retries
        self.backoff_base = backoff_base

    def _execute(
        self,
        operation: str,
        context: Dict[str, Any],
        call: Callable[[], Any],
        passthrough_codes: Iterable[str] = (),
    ) -> Any:
        """
        Run a table call with retry on throttling and exception translation.

        Args:
            operation: Operation name for logs
            context: Log context
            call: Zero-argument callable performing the table request
            passthrough_codes: Error codes re-raised as the original ClientError

        Returns:
            Whatever `call` returns

        Raises:
            ThrottlingError: If throttled after max retries
            AccessDeniedError: If IAM permissions insufficient
            NetworkError: If the connection fails
            RemoteStoreError: For any other DynamoDB error
        """
        for attempt in range(self.max_retries):
            try:
                start_time = time.time()
                result = call()
                duration_ms = (time.time() - start_time) * 1000
                logger.debug(
                    f"{operation} finished",
                    operation=operation,
                    context={**context, "duration_ms": round(duration_ms, 2)},
                )
                return result

            except ClientError as e:
                error_code = e.response.get("Error", {}).get("Code", "Unknown")

                if error_code in passthrough_codes:
                    raise

                if error_code in THROTTLING_CODES:
                    if attempt < self.max_retries - 1:
                        wait_time = self.backoff_base * (2**attempt)
                        logger.warning(
                            f"Throttled, retrying after {wait_time}s",
                            operation=operation,
                            context=context,
                            error=error_code,
                        )
                        time.sleep(wait_time)
                        continue
                    logger.error(
                        "Throttling after max retries",
                        operation=operation,
                        context=context,
                        error=error_code,
                    )
                    raise ThrottlingError(
                        f"DynamoDB throttled after {self.max_retries} retries"
                    ) from e

                if error_code == "AccessDeniedException":
                    logger.error(
                        "Permission denied",
                        operation=operation,
                        context=context,
                        error=error_code,
                    )
                    raise AccessDeniedError(f"Insufficient IAM permissions: {error_code}") from e

                logger.error(
                    "DynamoDB error",
                    operation=operation,
                    context=context,
                    error=str(e),
                )
                raise RemoteStoreError(f"DynamoDB error: {e}") from e

            except (BotoCoreError, OSError) as e:
                logger.error(
                    "Network error",
                    operation=operation,
                    context=context,
                    error=str(e),
                )
                raise NetworkError(f"Network error: {e}") from e

        raise ThrottlingError(f"DynamoDB throttled after {self.max_retries} retries")

    def _get_item(self, operation: str, key_value: str) -> Optional[Dict[str, Any]]:
        context = {self.key_name: key_value}
        response = self._execute(
            operation,
            context,
            lambda: self.table.get_item(Key={self.key_name: key_value}),
        )
        item = response.get("Item")
        if item is None:
            logger.debug("Item not found", operation=operation, context=context)
            return None
        return dict(item)

    def _scan(self, operation: str, context: Dict[str, Any], filter_expression=None) -> List[Dict[str, Any]]:
        """Scan the table following LastEvaluatedKey until exhausted."""
        items: List[Dict[str, Any]] = []
        scan_kwargs: Dict[str, Any] = {}
        if filter_expression is not None:
            scan_kwargs["FilterExpression"] = filter_expression

        while True:
            response = self._execute(operation, context, lambda: self.table.scan(**scan_kwargs))
            items.extend(dict(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            scan_kwargs["ExclusiveStartKey"] = last_key

        return items


class FacilityRepository(_DynamoRepository):
    """
    Facility documents.

    Table Schema:
        Partition Key: name (e.g., "Badminton Court 1")
    """

    key_name = "name"

    def __init__(self, table_name: str = "facilities", **kwargs):
        super().__init__(table_name, **kwargs)

    def list_facilities(self) -> List[Facility]:
        """Every facility, sorted by name."""
        items = self._scan("list_facilities", {"table": self.table_name})
        facilities = sorted((Facility.from_dict(item) for item in items), key=lambda f: f.name)
        logger.info(
            f"Loaded {len(facilities)} facilities",
            operation="list_facilities",
        )
        return facilities

    def get_facility(self, name: str) -> Optional[Facility]:
        item = self._get_item("get_facility", name)
        return Facility.from_dict(item) if item else None

    def put_facility(self, facility: Facility) -> bool:
        """Create or overwrite a facility document."""
        self._execute(
            "put_facility",
            {"name": facility.name},
            lambda: self.table.put_item(Item=facility.to_dict()),
        )
        logger.info("Facility saved", operation="put_facility", context={"name": facility.name})
        return True


class BookingRepository(_DynamoRepository):
    """
    Booking documents.

    Implements the booking store interface used by BookingService, so the
    remote table can replace the process-local list.

    Table Schema:
        Partition Key: id (e.g., "3F9A1C07")
    """

    def __init__(self, table_name: str = "bookings", **kwargs):
        super().__init__(table_name, **kwargs)

    def add(self, booking: Booking) -> Booking:
        """Write a new booking document."""
        record = {key: value for key, value in booking.to_dict().items() if value is not None}

        required = {"id", "user_id", "facility_name", "date", "time_slot"}
        missing = {key for key in required if not record.get(key)}
        if missing:
            raise RemoteStoreError(f"Missing required fields: {sorted(missing)}")

        context = {
            "booking_id": booking.id,
            "facility": booking.facility_name,
            "date": record["date"],
            "time_slot": booking.time_slot,
        }
        self._execute("create_booking", context, lambda: self.table.put_item(Item=record))
        logger.info("Booking created", operation="create_booking", context=context)
        return booking

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        item = self._get_item("get_booking", booking_id)
        return Booking.from_dict(item) if item else None

    def find_bookings(self, facility_name: str, on_date) -> List[Booking]:
        """
        All bookings (any status) for a facility on a date.

        Args:
            facility_name: Facility display name
            on_date: date, datetime or ISO string

        Returns:
            List of Booking
        """
        day = parse_date(on_date)
        iso_day = day.isoformat() if day else ""
        context = {"facility": facility_name, "date": iso_day}
        items = self._scan(
            "find_bookings",
            context,
            Attr("facility_name").eq(facility_name) & Attr("date").eq(iso_day),
        )
        return [Booking.from_dict(item) for item in items]

    def list_user_bookings(self, user_id: str) -> List[Booking]:
        """A user's bookings ordered by date."""
        items = self._scan("list_user_bookings", {"user_id": user_id}, Attr("user_id").eq(user_id))
        bookings = [Booking.from_dict(item) for item in items]
        return sorted(bookings, key=_booking_sort_key)

    def update_status(self, booking_id: str, status: str) -> bool:
        """
        Set the status of an existing booking.

        Returns:
            True if the booking existed and was updated, False otherwise
        """
        context = {"booking_id": booking_id, "status": status}
        try:
            self._execute(
                "update_status",
                context,
                lambda: self.table.update_item(
                    Key={"id": booking_id},
                    UpdateExpression="SET #st = :status",
                    ConditionExpression="attribute_exists(id)",
                    ExpressionAttributeNames={"#st": "status"},
                    ExpressionAttributeValues={":status": status},
                ),
                passthrough_codes=("ConditionalCheckFailedException",),
            )
        except ClientError:
            logger.info("Booking not found for status update", operation="update_status", context=context)
            return False

        logger.info("Booking status updated", operation="update_status", context=context)
        return True


class UserRepository(_DynamoRepository):
    """
    User profile documents.

    Table Schema:
        Partition Key: id (identity provider uid)
    """

    def __init__(self, table_name: str = "users", **kwargs):
        super().__init__(table_name, **kwargs)

    def get_user(self, user_id: str) -> Optional[User]:
        item = self._get_item("get_user", user_id)
        return User.from_dict(item) if item else None

    def save_user(self, user: User) -> bool:
        """Create or overwrite a profile document."""
        context = {"user_id": user.id, "email_masked": mask_email(user.email)}
        self._execute("save_user", context, lambda: self.table.put_item(Item=user.to_dict()))
        logger.info("User profile saved", operation="save_user", context=context)
        return True


def _booking_sort_key(booking: Booking) -> Tuple[str, str]:
    return (booking.date.isoformat() if booking.date else "", booking.time_slot)
