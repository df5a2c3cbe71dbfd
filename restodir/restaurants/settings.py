"""Immutable restaurant rules, loaded once from application configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, FrozenSet, Mapping, Tuple

from restodir.constants import DEFAULT_MAX_DISTANCE_METERS, POINT, PRICE_TIERS, WEEKDAYS


@dataclass(frozen=True)
class RestaurantSettings:
    """Rules the restaurant service validates and scores against."""

    price_tiers: FrozenSet[str] = frozenset(PRICE_TIERS)
    weekdays: Tuple[str, ...] = WEEKDAYS
    point_type: str = POINT
    default_max_distance: float = DEFAULT_MAX_DISTANCE_METERS
    min_score: float = 0.0
    max_score: float = 5.0
    score_update_retries: int = 5

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RestaurantSettings":
        """Freeze the relevant Flask configuration values."""
        return cls(
            price_tiers=frozenset(config.get("RESTAURANT_PRICE_TIERS", PRICE_TIERS)),
            weekdays=tuple(config.get("RESTAURANT_WEEKDAYS", WEEKDAYS)),
            default_max_distance=float(config.get("RESTAURANT_DEFAULT_MAX_DISTANCE", DEFAULT_MAX_DISTANCE_METERS)),
            score_update_retries=max(1, int(config.get("SCORE_UPDATE_RETRIES", 5))),
        )
