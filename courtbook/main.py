"""
Handler - entry point for booking requests.

Wires settings, repositories and services once per process, dispatches an
event's "action" to the matching operation and turns every failure into a
user-facing title and message.
"""

import json
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Optional

import boto3

from courtbook.auth.auth_service import AuthService
from courtbook.auth.identity_client import AuthError, IdentityClient
from courtbook.config.settings import ConfigurationError, Settings, setup_logging_redaction
from courtbook.database.dynamodb_client import BookingRepository, FacilityRepository, UserRepository
from courtbook.database.exceptions import NotFoundError, RemoteStoreError
from courtbook.database.local_cache import LocalDataService
from courtbook.domain.booking import Booking, parse_date
from courtbook.domain.user import User
from courtbook.services.booking_service import BookingService
from courtbook.services.booking_store import InMemoryBookingStore
from courtbook.services.catalog import FacilityCatalog
from courtbook.services.errors import BookingValidationError, InvalidBookingDateError
from courtbook.services.history import HistoryService
from courtbook.services.schedule import validate_booking_date
from courtbook.utils.logger import get_logger
from courtbook.utils.timezone import today_local

logger = get_logger(__name__)


@dataclass
class App:
    """Service graph shared by every request in a process."""

    booking_service: BookingService
    catalog: FacilityCatalog
    history: HistoryService
    auth: Optional[AuthService] = None

    def current_user(self) -> Optional[User]:
        return self.auth.get_current_user() if self.auth else None


class BookingRejected(Exception):
    """The requested slot was taken between selection and confirmation."""


def build_app(settings: Optional[Settings] = None) -> App:
    """
    Build the service graph from settings.

    Bookings live in the process-local list unless BOOKING_STORE=dynamodb.
    """
    settings = settings or Settings()
    rules = settings.load_rules()
    dynamodb = boto3.resource("dynamodb", region_name=settings.region_name)

    if settings.uses_remote_bookings():
        store = BookingRepository(settings.bookings_table, dynamodb_resource=dynamodb)
    else:
        store = InMemoryBookingStore()

    booking_service = BookingService(store=store, rules=rules)
    local_cache = LocalDataService(settings.local_cache_path)
    user_repo = UserRepository(settings.users_table, dynamodb_resource=dynamodb)

    try:
        identity = IdentityClient(settings.load_identity_api_key(), timeout=settings.identity_timeout)
        auth: Optional[AuthService] = AuthService(identity, user_repo, local_cache)
    except ConfigurationError as e:
        logger.warning("Identity provider not configured; sign-in disabled", operation="build_app", error=str(e))
        auth = None

    return App(
        booking_service=booking_service,
        catalog=FacilityCatalog(FacilityRepository(settings.facilities_table, dynamodb_resource=dynamodb)),
        history=HistoryService(booking_service, local_cache),
        auth=auth,
    )


_APP: Optional[App] = None


def _get_app() -> App:
    global _APP
    if _APP is None:
        # One Settings instance, so the identity key is looked up once
        settings = Settings()
        setup_logging_redaction(settings)
        _APP = build_app(settings)
    return _APP


# ------------------------------------------------------------------ #
# Actions
# ------------------------------------------------------------------ #


def _require(event: Dict[str, Any], *names: str) -> None:
    missing = [name for name in names if event.get(name) in (None, "")]
    if missing:
        raise BookingValidationError(f"Missing required fields: {', '.join(missing)}")


def _require_user(app: App) -> User:
    user = app.current_user()
    if user is None or not user.id:
        raise AuthError("You must be logged in to book.")
    return user


def _requested_date(event: Dict[str, Any]) -> date:
    try:
        requested = parse_date(event.get("date"))
    except ValueError as e:
        raise BookingValidationError(f"Invalid date: {event.get('date')}") from e
    if requested is None:
        raise BookingValidationError("Missing required fields: date")
    return validate_booking_date(requested, today_local())


def _list_facilities(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    facilities = app.catalog.load()
    category = event.get("category")
    if category:
        try:
            facilities = app.catalog.select_category(category)
        except ValueError as e:
            raise BookingValidationError(str(e)) from e
    return {
        "categories": [
            {"name": c.name, "is_selected": c.is_selected} for c in app.catalog.categories
        ],
        "facilities": [
            {
                "name": f.name,
                "location": f.location,
                "image_url": f.image_url,
                "price": f.price,
                "rating": f.rating,
                "category": f.category,
            }
            for f in facilities
        ],
    }


def _get_time_slots(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    _require(event, "facility", "date")
    on_date = _requested_date(event)
    slots, message = app.booking_service.get_available_time_slots(
        event["facility"], on_date, category=event.get("category")
    )
    return {
        "facility": event["facility"],
        "date": on_date.isoformat(),
        "slots": [slot.to_dict() for slot in slots],
        "message": message,
    }


def _quote(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    _require(event, "facility")
    total_cost = app.booking_service.calculate_final_cost(
        event["facility"], event.get("time_slot", ""), event.get("student_id") or ""
    )
    return {"total_cost": total_cost}


def _confirm_booking(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    user = _require_user(app)

    if not event.get("booking_data"):
        _require(event, "booking")
    try:
        if event.get("booking_data"):
            booking = Booking.from_json(event["booking_data"])
        else:
            booking = Booking.from_dict(event["booking"])
    except (ValueError, TypeError) as e:
        raise BookingValidationError("Booking data could not be read.") from e

    booking.user_id = user.id
    if booking.date is None:
        raise BookingValidationError("Missing required fields: date")
    validate_booking_date(booking.date, today_local())

    confirmed = app.booking_service.process_and_confirm_booking(booking)
    if confirmed is None:
        raise BookingRejected(
            "The selected time slot is no longer available, or the transaction failed."
        )
    return {"booking": confirmed.to_dict()}


def _flag(value: Any, default: bool) -> bool:
    """Read a boolean event field; JSON clients may send "false" or 0."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ("true", "1", "yes", "on"):
        return True
    if text in ("false", "0", "no", "off", ""):
        return False
    raise BookingValidationError(f"Invalid boolean value: {value}")


def _history(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    user = _require_user(app)
    bookings = app.history.load_history(user.id, online=_flag(event.get("online"), True))
    return {"bookings": [b.to_dict() for b in bookings]}


def _cancel_booking(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    user = _require_user(app)
    _require(event, "booking_id")
    booking_id = event["booking_id"]

    # Someone else's booking is reported as missing
    booking = app.booking_service.get_booking(booking_id)
    if booking is None or booking.user_id != user.id:
        raise NotFoundError(f"Booking {booking_id} not found.")

    if not app.booking_service.cancel_booking(booking_id):
        raise NotFoundError(f"Booking {booking_id} not found.")
    return {"booking_id": booking_id, "status": "Cancelled"}


def _require_auth(app: App) -> AuthService:
    if app.auth is None:
        raise AuthError("Sign-in is not available right now.")
    return app.auth


def _user_payload(user: User) -> Dict[str, Any]:
    return {"user": user.to_dict(), "id_token": user.id_token}


def _login(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    user = _require_auth(app).login(event.get("email", ""), event.get("password", ""))
    return _user_payload(user)


def _sign_up(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    user = _require_auth(app).sign_up(
        event.get("email", ""),
        event.get("password", ""),
        event.get("name", ""),
        event.get("student_id", ""),
    )
    return _user_payload(user)


def _logout(app: App, event: Dict[str, Any]) -> Dict[str, Any]:
    _require_auth(app).logout()
    return {"signed_out": True}


ACTIONS: Dict[str, Callable[[App, Dict[str, Any]], Dict[str, Any]]] = {
    "list_facilities": _list_facilities,
    "get_time_slots": _get_time_slots,
    "quote": _quote,
    "confirm_booking": _confirm_booking,
    "history": _history,
    "cancel_booking": _cancel_booking,
    "login": _login,
    "sign_up": _sign_up,
    "logout": _logout,
}


# ------------------------------------------------------------------ #
# Handler
# ------------------------------------------------------------------ #


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {"statusCode": status_code, "body": json.dumps(body, ensure_ascii=False, default=str)}


def _alert(status_code: int, title: str, message: str) -> Dict[str, Any]:
    return _response(status_code, {"title": title, "message": message})


def handler(event: Dict[str, Any], context: Any = None, app: Optional[App] = None) -> Dict[str, Any]:
    """
    Dispatch one request.

    Args:
        event: {"action": <name>, ...action fields}
        context: Runtime context (unused beyond logging)
        app: Service graph; built from the environment on first use when None

    Returns:
        {"statusCode": int, "body": JSON string}; error bodies carry
        "title" and "message" for an alert dialog
    """
    start_time = time.time()
    action = (event or {}).get("action", "")
    log_context = {
        "action": action,
        "request_id": getattr(context, "aws_request_id", "local") if context else "local",
    }

    operation = ACTIONS.get(action)
    if operation is None:
        logger.warning("Unknown action", operation="handler", context=log_context)
        return _alert(400, "Invalid Request", f"Unknown action: {action or '(none)'}")

    try:
        app = app or _get_app()
        body = operation(app, event)
    except InvalidBookingDateError as e:
        logger.info("Rejected past date", operation="handler", context=log_context)
        return _alert(400, "Invalid Date", str(e))
    except BookingValidationError as e:
        logger.warning("Invalid request", operation="handler", context=log_context, error=str(e))
        return _alert(400, "Invalid Request", str(e))
    except AuthError as e:
        logger.warning("Authentication failed", operation="handler", context=log_context, error=str(e))
        return _alert(401, "Error", str(e))
    except NotFoundError as e:
        logger.warning("Not found", operation="handler", context=log_context, error=str(e))
        return _alert(404, "Not Found", str(e))
    except BookingRejected as e:
        logger.warning("Booking rejected", operation="handler", context=log_context, error=str(e))
        return _alert(409, "Booking Failed", str(e))
    except RemoteStoreError as e:
        logger.error("Remote store failure", operation="handler", context=log_context, error=str(e))
        return _alert(502, "Error", "The booking service is unavailable. Please try again.")
    except Exception as e:
        logger.error(
            "Unhandled error",
            operation="handler",
            context=log_context,
            error=f"{type(e).__name__}: {e}",
            duration_ms=(time.time() - start_time) * 1000,
        )
        return _alert(500, "Error", f"Request failed: {e}")

    logger.info(
        "Request completed",
        operation="handler",
        context=log_context,
        duration_ms=(time.time() - start_time) * 1000,
    )
    return _response(200, body)
