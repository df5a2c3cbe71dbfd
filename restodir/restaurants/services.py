"""Service layer for restaurant-related operations.

Every public operation of :class:`RestaurantService` returns a
:class:`~restodir.restaurants.results.Result`. Domain failures are raised
internally as :class:`RestaurantServiceError`; store and image host failures
are mapped to ``DB_ERROR`` and ``IMAGE_ERROR`` at the same boundary, with the
original exception kept as the result's cause.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from functools import wraps
import json
import logging
import math
from typing import Any, Dict, List, Optional, TypeVar, cast

from flask import Flask, current_app

from restodir.constants.errors import ErrorKind
from restodir.images import ImageHost, ImageUploadError, get_image_host
from restodir.restaurants.exceptions import RestaurantNotFoundError, RestaurantServiceError
from restodir.restaurants.results import Result
from restodir.restaurants.settings import RestaurantSettings
from restodir.restaurants.validation import (
    Point,
    is_number,
    validate_location,
    validate_restaurant,
    validate_restaurant_update,
)
from restodir.store import COMMENTS, RESTAURANTS, SCORES, DataAccess, StoreError

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _returns_result(method: F) -> F:
    """Run a service method and fold its outcome into a Result."""

    @wraps(method)
    def wrapper(self: "RestaurantService", *args: Any, **kwargs: Any) -> Result[Any]:
        try:
            return Result.success(method(self, *args, **kwargs))
        except RestaurantServiceError as e:
            if e.kind in (ErrorKind.DB_ERROR, ErrorKind.IMAGE_ERROR):
                logger.error(f"{method.__name__} failed: {e}")
            else:
                logger.debug(f"{method.__name__} rejected: {e}")
            return Result.failure(e.kind, e.__cause__ or e)
        except StoreError as e:
            logger.error(f"{method.__name__} failed on the database: {e}")
            return Result.failure(ErrorKind.DB_ERROR, e)
        except ImageUploadError as e:
            logger.error(f"{method.__name__} failed on the image host: {e}")
            return Result.failure(ErrorKind.IMAGE_ERROR, e)

    return cast(F, wrapper)


def running_average(current: float, score: float, count: int, previous: Optional[float] = None) -> float:
    """Fold one score into an average of ``count`` scores.

    Args:
        current: The average before this score
        score: The submitted score
        count: Number of scores already recorded, one per author
        previous: The author's earlier score when they are resubmitting

    Returns:
        The new average. A resubmission replaces the author's earlier score
        instead of adding another one, so ``count`` stays the same.
    """
    if previous is None or count < 1:
        return current + (score - current) / (count + 1)
    return current + (score - previous) / count


def near_sphere_clause(point: Point, max_distance: float) -> Dict[str, Any]:
    """Geospatial filter matching documents within ``max_distance`` metres, nearest first."""
    return {
        "$nearSphere": {
            "$geometry": point.to_document(),
            "$minDistance": 0,
            "$maxDistance": max_distance,
        }
    }


class RestaurantService:
    """Validation and orchestration for restaurants, scores, comments and images."""

    def __init__(
        self,
        store: DataAccess,
        image_host: Optional[ImageHost],
        settings: RestaurantSettings,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.image_host = image_host
        self.settings = settings
        self._clock = clock or (lambda: datetime.now(UTC))

    # -------------------------------------------------------------- helpers

    @staticmethod
    def _parse_json(data: Any) -> Any:
        if isinstance(data, (dict, list)):
            return data
        try:
            return json.loads(data)
        except (TypeError, ValueError) as e:
            raise RestaurantServiceError(ErrorKind.UNPARSABLE_JSON, str(e)) from e

    def _resolve_id(self, restaurant_id: Any) -> int:
        _id = self.store.get_object_id(restaurant_id)
        if _id is None:
            raise RestaurantNotFoundError(restaurant_id)
        return _id

    def _require_restaurant(self, _id: int) -> Dict[str, Any]:
        restaurant = self.store.get(RESTAURANTS, {"_id": _id})
        if restaurant is None:
            raise RestaurantNotFoundError(_id)
        return restaurant

    def _coerce_score(self, raw_score: Any) -> float:
        if isinstance(raw_score, bool) or raw_score is None:
            raise RestaurantServiceError(ErrorKind.INCORRECT_VALUE_TYPE, "score must be a number")
        try:
            score = float(raw_score.strip() if isinstance(raw_score, str) else raw_score)
        except (TypeError, ValueError) as e:
            raise RestaurantServiceError(ErrorKind.INCORRECT_VALUE_TYPE, "score must be a number") from e
        if math.isnan(score):
            raise RestaurantServiceError(ErrorKind.INCORRECT_VALUE_TYPE, "score must be a number")
        if not self.settings.min_score <= score <= self.settings.max_score:
            raise RestaurantServiceError(
                ErrorKind.SCORE_OUT_OF_BOUNDS,
                f"score must be between {self.settings.min_score:g} and {self.settings.max_score:g}",
            )
        return score

    # ---------------------------------------------------------- restaurants

    @_returns_result
    def add(self, payload: Any, author: str) -> int:
        """Validate and store a new restaurant, returning its ID."""
        draft = validate_restaurant(self._parse_json(payload), self.settings)
        document = draft.to_document()
        document.update(
            score=0.0,
            score_count=0,
            images=[],
            added_by=author,
            added=self._clock(),
            deleted=False,
        )
        restaurant_id = self.store.add(RESTAURANTS, document)
        logger.info(f"Restaurant {restaurant_id} added by {author}")
        return restaurant_id

    @_returns_result
    def get(self, restaurant_id: Any) -> Dict[str, Any]:
        """Return the stored restaurant, soft-deleted ones included."""
        return self._require_restaurant(self._resolve_id(restaurant_id))

    @_returns_result
    def get_all(self, include_deleted: bool = True) -> Dict[str, List[Dict[str, Any]]]:
        flt = {} if include_deleted else {"deleted": False}
        return {"restaurants": self.store.query(RESTAURANTS, flt)}

    def build_query_filter(self, filter_json: Any) -> Dict[str, Any]:
        """Turn a client filter into a store filter.

        ``_id`` is resolved to a store key and ``location`` becomes a
        nearest-first geospatial clause bounded by ``maxDistance`` metres.
        Any other field is passed through as given.

        Raises:
            RestaurantServiceError: If the filter or its location is invalid
        """
        flt = self._parse_json(filter_json)
        if not isinstance(flt, dict):
            raise RestaurantServiceError(ErrorKind.INCORRECT_VALUE_TYPE, "filter must be an object")
        flt = dict(flt)

        if "_id" in flt:
            flt["_id"] = self._resolve_id(flt["_id"])

        max_distance = flt.pop("maxDistance", None)
        if "location" in flt:
            point = validate_location(flt, self.settings)
            if max_distance is not None and not is_number(max_distance):
                raise RestaurantServiceError(ErrorKind.INCORRECT_VALUE_TYPE, "maxDistance must be a number")
            flt["location"] = near_sphere_clause(point, max_distance or self.settings.default_max_distance)
        return flt

    @_returns_result
    def query(self, filter_json: Any) -> Dict[str, List[Dict[str, Any]]]:
        return {"restaurants": self.store.query(RESTAURANTS, self.build_query_filter(filter_json))}

    @_returns_result
    def update(self, restaurant_id: Any, data: Any) -> Dict[str, Any]:
        """Replace the given descriptive fields of a restaurant.

        Only name, type, price, location, schedule and contacts can change;
        score, images, authorship and the deleted flag are managed elsewhere.
        """
        payload = self._parse_json(data)
        _id = self._resolve_id(restaurant_id)
        changes = validate_restaurant_update(payload, self.settings)

        result = self.store.update(RESTAURANTS, {"_id": _id}, {"$set": changes})
        if result.matched_count == 0:
            raise RestaurantNotFoundError(_id)
        logger.info(f"Restaurant {_id} updated: {', '.join(changes)}")
        return changes

    @_returns_result
    def delete(self, restaurant_id: Any) -> None:
        """Soft-delete a restaurant; the record stays readable through get."""
        _id = self._resolve_id(restaurant_id)
        result = self.store.update(RESTAURANTS, {"_id": _id}, {"$set": {"deleted": True}})
        if result.matched_count == 0:
            raise RestaurantNotFoundError(_id)
        logger.info(f"Restaurant {_id} marked as deleted")

    # --------------------------------------------------------------- scores

    @_returns_result
    def add_score(self, restaurant_id: Any, raw_score: Any, author: str) -> float:
        """Record an author's score and fold it into the restaurant's average.

        The average and the number of scores it covers live on the restaurant
        and are written together with a conditional update on the pair that
        was read. If another submission got there first nothing matches and
        the computation is redone, up to ``score_update_retries`` times.

        Returns:
            The restaurant's new average score
        """
        score = self._coerce_score(raw_score)
        _id = self._resolve_id(restaurant_id)

        for attempt in range(1, self.settings.score_update_retries + 1):
            restaurant = self._require_restaurant(_id)
            count = restaurant["score_count"]
            previous = self.store.get(SCORES, {"restaurant_id": _id, "added_by": author})
            replacing = previous is not None and count > 0
            average = running_average(
                float(restaurant["score"]),
                score,
                count,
                float(previous["score"]) if replacing else None,
            )

            result = self.store.update(
                RESTAURANTS,
                {"_id": _id, "score": restaurant["score"], "score_count": count},
                {"$set": {"score": average, "score_count": count if replacing else count + 1}},
            )
            if result.matched_count:
                break
            logger.warning(f"Score of restaurant {_id} changed concurrently, retrying ({attempt})")
        else:
            raise RestaurantServiceError(ErrorKind.DB_ERROR, f"could not update score of restaurant {_id}")

        self.store.add_or_update(
            SCORES,
            {"restaurant_id": _id, "added_by": author},
            {
                "$set": {
                    "restaurant_id": _id,
                    "score": score,
                    "added_by": author,
                    "added": self._clock(),
                }
            },
        )
        return average

    @_returns_result
    def get_score(self, restaurant_id: Any, author: str) -> Dict[str, Optional[Dict[str, Any]]]:
        _id = self._resolve_id(restaurant_id)
        return {"score": self.store.get(SCORES, {"restaurant_id": _id, "added_by": author})}

    @_returns_result
    def get_scores(self, restaurant_id: Any) -> Dict[str, List[Dict[str, Any]]]:
        _id = self._resolve_id(restaurant_id)
        return {"scores": self.store.query(SCORES, {"restaurant_id": _id})}

    # ------------------------------------------------------------- comments

    @_returns_result
    def add_comment(self, restaurant_id: Any, text: Any, author: str) -> int:
        _id = self._resolve_id(restaurant_id)
        self._require_restaurant(_id)
        comment = {
            "restaurant_id": _id,
            "text": text,
            "added_by": author,
            "added": self._clock(),
        }
        return self.store.add(COMMENTS, comment)

    @_returns_result
    def get_comments(self, restaurant_id: Any) -> Dict[str, List[Dict[str, Any]]]:
        _id = self._resolve_id(restaurant_id)
        return {"comments": self.store.query(COMMENTS, {"restaurant_id": _id})}

    # --------------------------------------------------------------- images

    @_returns_result
    def add_image(self, restaurant_id: Any, image: bytes, content_type: Optional[str] = None) -> str:
        """Upload an image and append its URL to the restaurant."""
        _id = self._resolve_id(restaurant_id)
        self._require_restaurant(_id)
        if self.image_host is None:
            raise RestaurantServiceError(ErrorKind.IMAGE_ERROR, "no image host configured")

        url = self.image_host.upload(image, content_type)
        result = self.store.update(RESTAURANTS, {"_id": _id}, {"$push": {"images": url}})
        if result.matched_count == 0:
            raise RestaurantNotFoundError(_id)
        return url


def init_app(app: Flask) -> None:
    """Create the restaurant service for this application."""
    settings = RestaurantSettings.from_config(app.config)
    image_host = get_image_host(app.config)
    if image_host is None:
        app.logger.warning("IMAGE_BUCKET is not configured; image uploads will fail")
    app.extensions["restaurant_service"] = RestaurantService(DataAccess(), image_host, settings)


def get_restaurant_service() -> RestaurantService:
    """Return the restaurant service of the current application."""
    return cast(RestaurantService, current_app.extensions["restaurant_service"])
