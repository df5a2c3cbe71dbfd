"""Constants package for the restaurant directory."""

from .errors import ERROR_CATALOG, ErrorKind, get_error_message, get_error_status
from .geo import DEFAULT_MAX_DISTANCE_METERS, POINT
from .prices import PRICE_TIERS, validate_price_tier
from .weekdays import WEEKDAYS

__all__ = [
    "DEFAULT_MAX_DISTANCE_METERS",
    "ERROR_CATALOG",
    "ErrorKind",
    "POINT",
    "PRICE_TIERS",
    "WEEKDAYS",
    "get_error_message",
    "get_error_status",
    "validate_price_tier",
]
