"""Database models package."""

from .base import BaseModel
from .documents import CommentRecord, RestaurantRecord, ScoreRecord

__all__ = ["BaseModel", "CommentRecord", "RestaurantRecord", "ScoreRecord"]
