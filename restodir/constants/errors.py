"""Error catalog for restaurant operations.

Every failure reported by the restaurant service is one of these kinds. The
catalog pairs each kind with a human readable message and the HTTP status the
API responds with.
"""

from enum import Enum
from typing import Dict, Tuple


class ErrorKind(str, Enum):
    """Flat enumeration of the failures the service reports."""

    UNPARSABLE_JSON = "UNPARSABLE_JSON"
    INCOMPLETE_JSON = "INCOMPLETE_JSON"
    INCORRECT_VALUE_TYPE = "INCORRECT_VALUE_TYPE"
    UNKNOWN_PRICE = "UNKNOWN_PRICE"
    LOCATION_TYPE_NOT_POINT = "LOCATION_TYPE_NOT_POINT"
    COORDINATES_OUT_OF_BOUNDS = "COORDINATES_OUT_OF_BOUNDS"
    SCHEDULE_OUT_OF_BOUNDS = "SCHEDULE_OUT_OF_BOUNDS"
    SCORE_OUT_OF_BOUNDS = "SCORE_OUT_OF_BOUNDS"
    UNKNOWN_RESTAURANT_ID = "UNKNOWN_RESTAURANT_ID"
    IMAGE_ERROR = "IMAGE_ERROR"
    DB_ERROR = "DB_ERROR"


ERROR_CATALOG: Dict[ErrorKind, Tuple[str, int]] = {
    ErrorKind.UNPARSABLE_JSON: ("The request body is not valid JSON", 400),
    ErrorKind.INCOMPLETE_JSON: ("A required field is missing", 400),
    ErrorKind.INCORRECT_VALUE_TYPE: ("A field has the wrong type", 400),
    ErrorKind.UNKNOWN_PRICE: ("Unknown price tier", 400),
    ErrorKind.LOCATION_TYPE_NOT_POINT: ("Location type must be Point", 400),
    ErrorKind.COORDINATES_OUT_OF_BOUNDS: ("Coordinates must be a [longitude, latitude] pair", 400),
    ErrorKind.SCHEDULE_OUT_OF_BOUNDS: ("Schedule hours must be 0-23 and minutes 0-59", 400),
    ErrorKind.SCORE_OUT_OF_BOUNDS: ("Score must be between 0 and 5", 400),
    ErrorKind.UNKNOWN_RESTAURANT_ID: ("Restaurant not found", 404),
    ErrorKind.IMAGE_ERROR: ("Image upload failed", 502),
    ErrorKind.DB_ERROR: ("Database error", 500),
}


def get_error_message(kind: ErrorKind) -> str:
    """Return the catalog message for an error kind."""
    return ERROR_CATALOG[kind][0]


def get_error_status(kind: ErrorKind) -> int:
    """Return the HTTP status for an error kind."""
    return ERROR_CATALOG[kind][1]
