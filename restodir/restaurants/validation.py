"""Validation of untrusted restaurant payloads.

A payload is checked one field at a time in a fixed order (see
``RESTAURANT_FIELDS``). The first violation raises a
:class:`RestaurantServiceError` carrying the matching error kind; later fields
are never looked at.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Callable, Dict, Mapping, NoReturn, Optional, Tuple

from restodir.constants import ErrorKind, validate_price_tier
from restodir.restaurants.exceptions import RestaurantServiceError
from restodir.restaurants.settings import RestaurantSettings

MAX_HOUR = 23
MAX_MINUTE = 59


@dataclass(frozen=True)
class Point:
    """GeoJSON point; coordinates are ``(longitude, latitude)``."""

    coordinates: Tuple[float, float]
    type: str = "Point"

    def to_document(self) -> Dict[str, Any]:
        return {"type": self.type, "coordinates": [self.coordinates[0], self.coordinates[1]]}


@dataclass(frozen=True)
class TimeOfDay:
    hour: int
    minute: int

    def to_document(self) -> Dict[str, int]:
        return {"hour": self.hour, "minute": self.minute}


@dataclass(frozen=True)
class DailySchedule:
    """Opening interval for one day. ``end`` may be earlier than ``start`` for overnight hours."""

    start: TimeOfDay
    end: TimeOfDay

    def to_document(self) -> Dict[str, Any]:
        return {"start": self.start.to_document(), "end": self.end.to_document()}


@dataclass(frozen=True)
class Contact:
    name: Any
    value: Any

    def to_document(self) -> Dict[str, Any]:
        return {"name": self.name, "value": self.value}


@dataclass(frozen=True)
class RestaurantDraft:
    """A validated restaurant, before server-managed fields are added."""

    name: str
    type: str
    price: str
    location: Point
    schedule: Mapping[str, DailySchedule] = field(default_factory=dict)
    contacts: Tuple[Contact, ...] = ()

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "price": self.price,
            "location": self.location.to_document(),
            "schedule": {day: daily.to_document() for day, daily in self.schedule.items()},
            "contacts": [contact.to_document() for contact in self.contacts],
        }


def _fail(kind: ErrorKind, detail: str) -> NoReturn:
    raise RestaurantServiceError(kind, detail)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _as_int(value: Any) -> Optional[int]:
    """Return ``value`` as an int if it is integral (``9`` or ``9.0``), else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _require(obj: Mapping[str, Any], key: str, where: str = "") -> Any:
    if key not in obj:
        _fail(ErrorKind.INCOMPLETE_JSON, f"missing {where}{key}")
    return obj[key]


def _require_object(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        _fail(ErrorKind.INCORRECT_VALUE_TYPE, f"{what} must be an object")
    return value


def _require_members(value: Any, keys: Tuple[str, ...], what: str) -> Mapping[str, Any]:
    """Return ``value`` if it is an object holding every key in ``keys``.

    A non-object has none of the keys, so it is reported as incomplete too.
    """
    if not isinstance(value, dict) or any(key not in value for key in keys):
        _fail(ErrorKind.INCOMPLETE_JSON, f"{what} needs {' and '.join(keys)}")
    return value


def _require_string(obj: Mapping[str, Any], key: str) -> str:
    value = _require(obj, key)
    if not isinstance(value, str):
        _fail(ErrorKind.INCORRECT_VALUE_TYPE, f"{key} must be a string")
    return value


def validate_name(obj: Mapping[str, Any], settings: RestaurantSettings) -> str:
    return _require_string(obj, "name")


def validate_type(obj: Mapping[str, Any], settings: RestaurantSettings) -> str:
    return _require_string(obj, "type")


def validate_price(obj: Mapping[str, Any], settings: RestaurantSettings) -> str:
    price = _require_string(obj, "price")
    if not validate_price_tier(price, settings.price_tiers):
        _fail(ErrorKind.UNKNOWN_PRICE, f"unknown price tier {price!r}")
    return price


def validate_point(location: Any, settings: RestaurantSettings) -> Point:
    """Validate a GeoJSON point, dropping any extra members."""
    location = _require_members(location, ("type", "coordinates"), "location")
    if location["type"] != settings.point_type:
        _fail(ErrorKind.LOCATION_TYPE_NOT_POINT, f"location type must be {settings.point_type}")

    coordinates = location["coordinates"]
    if not isinstance(coordinates, list):
        _fail(ErrorKind.INCORRECT_VALUE_TYPE, "coordinates must be an array")
    if len(coordinates) != 2:
        _fail(ErrorKind.COORDINATES_OUT_OF_BOUNDS, "coordinates must hold exactly two values")
    longitude, latitude = coordinates
    if not is_number(longitude) or not is_number(latitude):
        _fail(ErrorKind.INCORRECT_VALUE_TYPE, "coordinates must be numbers")
    return Point(coordinates=(longitude, latitude), type=settings.point_type)


def validate_location(obj: Mapping[str, Any], settings: RestaurantSettings) -> Point:
    return validate_point(_require(obj, "location"), settings)


def _time_of_day(value: Mapping[str, Any], label: str) -> TimeOfDay:
    hour = _as_int(value["hour"])
    minute = _as_int(value["minute"])
    if hour is None or minute is None:
        _fail(ErrorKind.INCORRECT_VALUE_TYPE, f"{label} hour and minute must be integers")
    return TimeOfDay(hour=hour, minute=minute)


def validate_daily_schedule(value: Any) -> DailySchedule:
    """Validate one day's ``{"start": {hour, minute}, "end": {hour, minute}}``.

    Start and end are not compared, so intervals past midnight are allowed.
    """
    value = _require_members(value, ("start", "end"), "daily schedule")
    start = _require_members(value["start"], ("hour", "minute"), "start")
    end = _require_members(value["end"], ("hour", "minute"), "end")

    opens = _time_of_day(start, "start")
    closes = _time_of_day(end, "end")
    for time in (opens, closes):
        if not (0 <= time.hour <= MAX_HOUR and 0 <= time.minute <= MAX_MINUTE):
            _fail(ErrorKind.SCHEDULE_OUT_OF_BOUNDS, f"{time.hour:02d}:{time.minute:02d} is not a time of day")
    return DailySchedule(start=opens, end=closes)


def validate_schedule(obj: Mapping[str, Any], settings: RestaurantSettings) -> Dict[str, DailySchedule]:
    schedule = _require_object(_require(obj, "schedule"), "schedule")
    # Keys that are not weekdays are ignored
    return {day: validate_daily_schedule(schedule[day]) for day in settings.weekdays if day in schedule}


def validate_contacts(obj: Mapping[str, Any], settings: RestaurantSettings) -> Tuple[Contact, ...]:
    contacts = _require(obj, "contacts")
    if not isinstance(contacts, list):
        _fail(ErrorKind.INCORRECT_VALUE_TYPE, "contacts must be an array")

    validated = []
    for contact in contacts:
        contact = _require_members(contact, ("name", "value"), "contact")
        validated.append(Contact(name=contact["name"], value=contact["value"]))
    return tuple(validated)


FieldValidator = Callable[[Mapping[str, Any], RestaurantSettings], Any]

# Validation order is significant: the first failing field is the one reported
RESTAURANT_FIELDS: Tuple[Tuple[str, FieldValidator], ...] = (
    ("name", validate_name),
    ("type", validate_type),
    ("price", validate_price),
    ("location", validate_location),
    ("schedule", validate_schedule),
    ("contacts", validate_contacts),
)

UPDATABLE_FIELDS = tuple(name for name, _ in RESTAURANT_FIELDS)


def validate_restaurant(payload: Any, settings: RestaurantSettings) -> RestaurantDraft:
    """Validate a complete restaurant payload.

    Raises:
        RestaurantServiceError: On the first field that is missing or invalid
    """
    payload = _require_object(payload, "restaurant")
    values = {name: validator(payload, settings) for name, validator in RESTAURANT_FIELDS}
    return RestaurantDraft(**values)


def validate_restaurant_update(payload: Any, settings: RestaurantSettings) -> Dict[str, Any]:
    """Validate the updatable fields present in ``payload``.

    Returns:
        The store representation of each present field, in validation order

    Raises:
        RestaurantServiceError: On the first invalid field, or INCOMPLETE_JSON
            when no updatable field is present
    """
    payload = _require_object(payload, "restaurant")
    changes: Dict[str, Any] = {}
    for name, validator in RESTAURANT_FIELDS:
        if name not in payload:
            continue
        value = validator(payload, settings)
        if isinstance(value, Point):
            value = value.to_document()
        elif name == "schedule":
            value = {day: daily.to_document() for day, daily in value.items()}
        elif name == "contacts":
            value = [contact.to_document() for contact in value]
        changes[name] = value

    if not changes:
        _fail(ErrorKind.INCOMPLETE_JSON, f"expected at least one of {', '.join(UPDATABLE_FIELDS)}")
    return changes
