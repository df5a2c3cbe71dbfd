"""Document-style data-access layer."""

from .data_access import (
    COLLECTIONS,
    COMMENTS,
    RESTAURANTS,
    SCORES,
    DataAccess,
    StoreError,
    UpdateResult,
)

__all__ = [
    "COLLECTIONS",
    "COMMENTS",
    "RESTAURANTS",
    "SCORES",
    "DataAccess",
    "StoreError",
    "UpdateResult",
]
