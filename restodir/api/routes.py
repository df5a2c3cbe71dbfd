from __future__ import annotations

from typing import Any, Tuple, cast

from flask import Response, current_app, jsonify, request

from restodir.constants.errors import ErrorKind, get_error_status
from restodir.restaurants.results import Result
from restodir.restaurants.schemas import (
    comments_schema,
    restaurant_schema,
    restaurants_schema,
    score_schema,
    scores_schema,
)
from restodir.restaurants.services import get_restaurant_service

from . import bp, require_author


def _create_api_response(
    data: Any = None, message: str = "Success", status: str = "success", code: int = 200
) -> Tuple[Response, int]:
    """Create a standardized API response."""
    response_data = {"status": status, "message": message}
    if data is not None:
        response_data["data"] = data
    return jsonify(response_data), code


def _handle_result_error(result: Result[Any], operation: str) -> Tuple[Response, int]:
    """Render a failed service result."""
    error = cast(ErrorKind, result.error)
    status_code = get_error_status(error)
    if status_code >= 500:
        current_app.logger.error(f"Error in {operation}: {result.cause}")
    return (
        jsonify({"status": "error", "message": result.message, "code": error.value}),
        status_code,
    )


# Health Check
@bp.route("/health")
def health_check() -> Response:
    """API Health Check"""
    return jsonify({"status": "healthy"})


# Restaurants
@bp.route("/restaurants", methods=["POST"])
@require_author
def create_restaurant(author: str) -> Tuple[Response, int]:
    """Create a new restaurant from the raw JSON body."""
    result = get_restaurant_service().add(request.get_data(as_text=True), author)
    if not result.ok:
        return _handle_result_error(result, "create restaurant")
    return _create_api_response(data={"_id": result.value}, message="Restaurant created successfully", code=201)


@bp.route("/restaurants", methods=["GET"])
def get_restaurants() -> Tuple[Response, int]:
    """Get all restaurants, soft-deleted ones included unless include_deleted=false."""
    include_deleted = request.args.get("include_deleted", "true").lower() != "false"
    result = get_restaurant_service().get_all(include_deleted=include_deleted)
    if not result.ok:
        return _handle_result_error(result, "retrieve restaurants")
    data = {"restaurants": restaurants_schema.dump(result.value["restaurants"])}
    return _create_api_response(data=data, message="Restaurants retrieved successfully")


@bp.route("/restaurants/search", methods=["GET"])
def search_restaurants() -> Tuple[Response, int]:
    """Query restaurants with a JSON filter passed as the ``filter`` argument."""
    result = get_restaurant_service().query(request.args.get("filter", "{}"))
    if not result.ok:
        return _handle_result_error(result, "search restaurants")
    data = {"restaurants": restaurants_schema.dump(result.value["restaurants"])}
    return _create_api_response(data=data, message="Restaurants retrieved successfully")


@bp.route("/restaurants/<restaurant_id>", methods=["GET"])
def get_restaurant(restaurant_id: str) -> Tuple[Response, int]:
    result = get_restaurant_service().get(restaurant_id)
    if not result.ok:
        return _handle_result_error(result, "retrieve restaurant")
    return _create_api_response(data=restaurant_schema.dump(result.value), message="Restaurant retrieved successfully")


@bp.route("/restaurants/<restaurant_id>", methods=["PUT"])
def update_restaurant(restaurant_id: str) -> Tuple[Response, int]:
    result = get_restaurant_service().update(restaurant_id, request.get_data(as_text=True))
    if not result.ok:
        return _handle_result_error(result, "update restaurant")
    return _create_api_response(data={"updated": list(result.value)}, message="Restaurant updated successfully")


@bp.route("/restaurants/<restaurant_id>", methods=["DELETE"])
def delete_restaurant(restaurant_id: str) -> Tuple[Response, int]:
    result = get_restaurant_service().delete(restaurant_id)
    if not result.ok:
        return _handle_result_error(result, "delete restaurant")
    return _create_api_response(message="Restaurant deleted successfully")


# Scores
@bp.route("/restaurants/<restaurant_id>/scores", methods=["POST"])
@require_author
def add_score(restaurant_id: str, author: str) -> Tuple[Response, int]:
    body = request.get_json(silent=True)
    raw_score = body.get("score") if isinstance(body, dict) else None
    result = get_restaurant_service().add_score(restaurant_id, raw_score, author)
    if not result.ok:
        return _handle_result_error(result, "add score")
    return _create_api_response(data={"score": result.value}, message="Score recorded successfully", code=201)


@bp.route("/restaurants/<restaurant_id>/scores", methods=["GET"])
def get_scores(restaurant_id: str) -> Tuple[Response, int]:
    result = get_restaurant_service().get_scores(restaurant_id)
    if not result.ok:
        return _handle_result_error(result, "retrieve scores")
    return _create_api_response(
        data={"scores": scores_schema.dump(result.value["scores"])}, message="Scores retrieved successfully"
    )


@bp.route("/restaurants/<restaurant_id>/scores/mine", methods=["GET"])
@require_author
def get_my_score(restaurant_id: str, author: str) -> Tuple[Response, int]:
    result = get_restaurant_service().get_score(restaurant_id, author)
    if not result.ok:
        return _handle_result_error(result, "retrieve score")
    score = result.value["score"]
    data = {"score": score_schema.dump(score) if score is not None else None}
    return _create_api_response(data=data, message="Score retrieved successfully")


# Comments
@bp.route("/restaurants/<restaurant_id>/comments", methods=["POST"])
@require_author
def add_comment(restaurant_id: str, author: str) -> Tuple[Response, int]:
    body = request.get_json(silent=True)
    text = body.get("text") if isinstance(body, dict) else None
    result = get_restaurant_service().add_comment(restaurant_id, text, author)
    if not result.ok:
        return _handle_result_error(result, "add comment")
    return _create_api_response(data={"_id": result.value}, message="Comment added successfully", code=201)


@bp.route("/restaurants/<restaurant_id>/comments", methods=["GET"])
def get_comments(restaurant_id: str) -> Tuple[Response, int]:
    result = get_restaurant_service().get_comments(restaurant_id)
    if not result.ok:
        return _handle_result_error(result, "retrieve comments")
    return _create_api_response(
        data={"comments": comments_schema.dump(result.value["comments"])}, message="Comments retrieved successfully"
    )


# Images
@bp.route("/restaurants/<restaurant_id>/images", methods=["POST"])
def add_image(restaurant_id: str) -> Tuple[Response, int]:
    """Upload an image, either as multipart field ``image`` or as the raw body."""
    upload = request.files.get("image")
    if upload is not None:
        image, content_type = upload.read(), upload.mimetype
    else:
        image, content_type = request.get_data(), request.mimetype
    result = get_restaurant_service().add_image(restaurant_id, image, content_type or None)
    if not result.ok:
        return _handle_result_error(result, "add image")
    return _create_api_response(data={"url": result.value}, message="Image added successfully", code=201)
