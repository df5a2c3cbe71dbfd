"""Custom exceptions for restaurant operations."""

from typing import Optional

from restodir.constants.errors import ErrorKind, get_error_message, get_error_status


class RestaurantServiceError(Exception):
    """Raised when a restaurant operation fails with a cataloged error kind."""

    def __init__(self, kind: ErrorKind, detail: str | None = None):
        self.kind = kind
        self.detail = detail
        self.message = get_error_message(kind)
        super().__init__(f"{self.message}: {detail}" if detail else self.message)

    @property
    def status_code(self) -> int:
        return get_error_status(self.kind)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for API responses."""
        payload = {
            "status": "error",
            "code": self.kind.value,
            "message": self.message,
        }
        if self.detail:
            payload["detail"] = self.detail
        return payload


class RestaurantNotFoundError(RestaurantServiceError):
    """Raised when a restaurant ID is malformed or does not exist."""

    def __init__(self, restaurant_id: Optional[object] = None):
        self.restaurant_id = restaurant_id
        detail = f"Restaurant with ID {restaurant_id} not found" if restaurant_id is not None else None
        super().__init__(ErrorKind.UNKNOWN_RESTAURANT_ID, detail)
