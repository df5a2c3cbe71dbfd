"""Tables backing the restaurant, score and comment collections."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from restodir.extensions import db
from restodir.models.base import BaseModel


class RestaurantRecord(BaseModel):
    """A restaurant listed in the directory.

    Attributes:
        name: Name of the restaurant
        type: Kind of restaurant or cuisine
        price: Price tier
        score: Running average of all user scores
        score_count: Number of distinct users the average is taken over
        location: GeoJSON point, ``{"type": "Point", "coordinates": [lng, lat]}``
        schedule: Mapping of weekday name to ``{"start": {...}, "end": {...}}``
        contacts: Ordered list of ``{"name", "value"}`` pairs
        images: Ordered list of image URLs
        added_by: Identity of the user who listed the restaurant
        added: When the restaurant was listed
        deleted: Soft-delete flag
    """

    __tablename__ = "restaurants"

    name: Mapped[str] = mapped_column(db.String(200), nullable=False)
    type: Mapped[str] = mapped_column(db.String(100), nullable=False)
    price: Mapped[str] = mapped_column(db.String(20), nullable=False, index=True)
    score: Mapped[float] = mapped_column(db.Float, nullable=False, default=0.0)
    score_count: Mapped[int] = mapped_column(db.Integer, nullable=False, default=0)
    location: Mapped[dict[str, Any]] = mapped_column(db.JSON, nullable=False)
    schedule: Mapped[dict[str, Any]] = mapped_column(db.JSON, nullable=False, default=dict)
    contacts: Mapped[list[Any]] = mapped_column(db.JSON, nullable=False, default=list)
    images: Mapped[list[str]] = mapped_column(db.JSON, nullable=False, default=list)
    added_by: Mapped[str] = mapped_column(db.String(255), nullable=False)
    added: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)
    deleted: Mapped[bool] = mapped_column(db.Boolean, nullable=False, default=False, index=True)

    def __repr__(self) -> str:
        return f"<RestaurantRecord {self.id} {self.name!r}>"


class ScoreRecord(BaseModel):
    """One user's score for a restaurant; at most one per user."""

    __tablename__ = "scores"
    __table_args__ = (UniqueConstraint("restaurant_id", "added_by", name="uix_score_restaurant_author"),)

    restaurant_id: Mapped[int] = mapped_column(db.ForeignKey("restaurants.id"), nullable=False, index=True)
    score: Mapped[float] = mapped_column(db.Float, nullable=False)
    added_by: Mapped[str] = mapped_column(db.String(255), nullable=False)
    added: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)


class CommentRecord(BaseModel):
    """A free-text comment on a restaurant."""

    __tablename__ = "comments"

    restaurant_id: Mapped[int] = mapped_column(db.ForeignKey("restaurants.id"), nullable=False, index=True)
    text: Mapped[Optional[str]] = mapped_column(db.Text)
    added_by: Mapped[str] = mapped_column(db.String(255), nullable=False)
    added: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), nullable=False)
