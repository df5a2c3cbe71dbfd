"""Tests for the restaurant service."""

from datetime import datetime, timezone
import json
from unittest.mock import MagicMock

import pytest

from restodir.constants.errors import ErrorKind
from restodir.images import ImageUploadError
from restodir.restaurants.exceptions import RestaurantServiceError
from restodir.restaurants.results import Result
from restodir.restaurants.services import RestaurantService, near_sphere_clause
from restodir.restaurants.settings import RestaurantSettings
from restodir.restaurants.validation import Point
from restodir.store import DataAccess, StoreError

AUTHOR = "owner@example.com"

# Baixa and Chiado are about 300m apart, Belem about 6km west
BAIXA = [-9.1393, 38.7107]
CHIADO = [-9.1427, 38.7110]
BELEM = [-9.2060, 38.6970]


class TestAddRestaurant:
    """Creating restaurants."""

    def test_add_returns_id_and_stores_managed_fields(self, app, restaurant_payload):
        fixed = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        service = RestaurantService(DataAccess(), None, RestaurantSettings(), clock=lambda: fixed)

        result = service.add(json.dumps(restaurant_payload), AUTHOR)

        assert result.ok
        stored = service.get(result.value).value
        assert stored["_id"] == result.value
        assert stored["name"] == "Tasca do Chico"
        assert stored["score"] == 0.0
        assert stored["score_count"] == 0
        assert stored["images"] == []
        assert stored["deleted"] is False
        assert stored["added_by"] == AUTHOR
        assert stored["added"].replace(tzinfo=timezone.utc) == fixed

    def test_add_accepts_a_decoded_payload(self, service, restaurant_payload):
        assert service.add(restaurant_payload, AUTHOR).ok

    def test_ids_are_distinct(self, service, restaurant_payload):
        first = service.add(json.dumps(restaurant_payload), AUTHOR).value
        second = service.add(json.dumps(restaurant_payload), AUTHOR).value

        assert first != second

    @pytest.mark.parametrize("body", ["{not json", "", None])
    def test_unparsable_body(self, service, body):
        result = service.add(body, AUTHOR)

        assert result.error == ErrorKind.UNPARSABLE_JSON
        assert service.get_all().value["restaurants"] == []

    def test_invalid_payload_is_not_stored(self, service, make_payload):
        result = service.add(json.dumps(make_payload(price="free")), AUTHOR)

        assert result.error == ErrorKind.UNKNOWN_PRICE
        assert result.message == "Unknown price tier"
        assert service.get_all().value["restaurants"] == []

    def test_store_failure_is_db_error(self, restaurant_payload):
        store = MagicMock(spec=DataAccess)
        store.add.side_effect = StoreError("connection lost")
        service = RestaurantService(store, None, RestaurantSettings())

        result = service.add(json.dumps(restaurant_payload), AUTHOR)

        assert result.error == ErrorKind.DB_ERROR
        assert isinstance(result.cause, StoreError)


class TestGetRestaurants:
    """Reading restaurants back."""

    @pytest.mark.parametrize("bad_id", ["abc", "-1", "0", "", None, 3.5])
    def test_get_malformed_id(self, service, bad_id):
        assert service.get(bad_id).error == ErrorKind.UNKNOWN_RESTAURANT_ID

    def test_get_missing_id(self, service, restaurant_id):
        assert service.get(restaurant_id + 100).error == ErrorKind.UNKNOWN_RESTAURANT_ID

    def test_get_accepts_string_id(self, service, restaurant_id):
        assert service.get(str(restaurant_id)).value["_id"] == restaurant_id

    def test_id_beyond_the_key_range_is_unknown(self, service, restaurant_id):
        huge = "99999999999999999999"

        assert service.get(huge).error == ErrorKind.UNKNOWN_RESTAURANT_ID
        assert service.delete(huge).error == ErrorKind.UNKNOWN_RESTAURANT_ID
        assert service.add_score(huge, 4, AUTHOR).error == ErrorKind.UNKNOWN_RESTAURANT_ID
        assert service.get(2**63).error == ErrorKind.UNKNOWN_RESTAURANT_ID

    def test_get_all(self, service, make_payload):
        service.add(make_payload(name="One"), AUTHOR)
        service.add(make_payload(name="Two"), AUTHOR)

        names = [r["name"] for r in service.get_all().value["restaurants"]]

        assert names == ["One", "Two"]

    def test_get_all_empty(self, service):
        assert service.get_all().value == {"restaurants": []}


class TestQueryRestaurants:
    """Client filters and geospatial search."""

    @pytest.fixture
    def lisbon(self, service, make_payload):
        ids = {}
        for name, coordinates, price in (("Baixa", BAIXA, "$"), ("Chiado", CHIADO, "$$"), ("Belem", BELEM, "$$")):
            location = {"type": "Point", "coordinates": coordinates}
            ids[name] = service.add(make_payload(name=name, location=location, price=price), AUTHOR).value
        return ids

    def _names(self, result):
        assert result.ok, result.error
        return [r["name"] for r in result.value["restaurants"]]

    def test_empty_filter_returns_everything(self, service, lisbon):
        assert sorted(self._names(service.query("{}"))) == ["Baixa", "Belem", "Chiado"]

    def test_equality_filter(self, service, lisbon):
        assert sorted(self._names(service.query(json.dumps({"price": "$$"})))) == ["Belem", "Chiado"]

    def test_id_filter_is_resolved(self, service, lisbon):
        flt = json.dumps({"_id": str(lisbon["Chiado"])})

        assert self._names(service.query(flt)) == ["Chiado"]

    def test_malformed_id_filter(self, service, lisbon):
        assert service.query(json.dumps({"_id": "nope"})).error == ErrorKind.UNKNOWN_RESTAURANT_ID

    def test_unknown_field_matches_nothing(self, service, lisbon):
        assert self._names(service.query(json.dumps({"owner": "someone"}))) == []

    def test_location_filter_sorts_nearest_first(self, service, lisbon):
        flt = {"location": {"type": "Point", "coordinates": CHIADO}, "maxDistance": 10000}

        assert self._names(service.query(json.dumps(flt))) == ["Chiado", "Baixa", "Belem"]

    def test_max_distance_excludes_far_restaurants(self, service, lisbon):
        flt = {"location": {"type": "Point", "coordinates": BAIXA}, "maxDistance": 1000}

        assert self._names(service.query(json.dumps(flt))) == ["Baixa", "Chiado"]

    def test_default_max_distance(self, service, lisbon):
        far_away = {"location": {"type": "Point", "coordinates": [-8.6291, 41.1579]}}

        assert self._names(service.query(json.dumps(far_away))) == []

    def test_max_distance_without_location_is_ignored(self, service, lisbon):
        assert len(self._names(service.query(json.dumps({"maxDistance": 1})))) == 3

    @pytest.mark.parametrize(
        "flt,expected",
        [
            ('"just a string"', ErrorKind.INCORRECT_VALUE_TYPE),
            ("{broken", ErrorKind.UNPARSABLE_JSON),
            ('{"location": {"type": "Polygon", "coordinates": [0, 0]}}', ErrorKind.LOCATION_TYPE_NOT_POINT),
            (
                '{"location": {"type": "Point", "coordinates": [0, 0]}, "maxDistance": "far"}',
                ErrorKind.INCORRECT_VALUE_TYPE,
            ),
        ],
    )
    def test_invalid_filters(self, service, flt, expected):
        assert service.query(flt).error == expected

    def test_build_query_filter(self, service):
        flt = service.build_query_filter({"location": {"type": "Point", "coordinates": [1, 2]}, "name": "x"})

        assert flt == {
            "name": "x",
            "location": near_sphere_clause(Point(coordinates=(1, 2)), service.settings.default_max_distance),
        }

    def test_build_query_filter_does_not_mutate_input(self, service):
        original = {"location": {"type": "Point", "coordinates": [1, 2]}, "maxDistance": 50}

        service.build_query_filter(original)

        assert original["maxDistance"] == 50
        assert original["location"] == {"type": "Point", "coordinates": [1, 2]}


class TestUpdateRestaurant:
    """Partial updates."""

    def test_update_changes_only_given_fields(self, service, restaurant_id):
        result = service.update(restaurant_id, json.dumps({"name": "Tasca Nova", "price": "$$$"}))

        assert result.value == {"name": "Tasca Nova", "price": "$$$"}
        stored = service.get(restaurant_id).value
        assert stored["name"] == "Tasca Nova"
        assert stored["price"] == "$$$"
        assert stored["type"] == "Portuguese"

    def test_update_location(self, service, restaurant_id):
        service.update(restaurant_id, {"location": {"type": "Point", "coordinates": [2.35, 48.85]}})

        assert service.get(restaurant_id).value["location"]["coordinates"] == [2.35, 48.85]

    def test_invalid_update_leaves_record_untouched(self, service, restaurant_id):
        result = service.update(restaurant_id, json.dumps({"name": "Other", "price": "free"}))

        assert result.error == ErrorKind.UNKNOWN_PRICE
        assert service.get(restaurant_id).value["name"] == "Tasca do Chico"

    def test_update_unknown_restaurant(self, service):
        assert service.update(42, {"name": "x"}).error == ErrorKind.UNKNOWN_RESTAURANT_ID

    def test_update_without_updatable_fields(self, service, restaurant_id):
        assert service.update(restaurant_id, {"score": 5}).error == ErrorKind.INCOMPLETE_JSON

    def test_update_unparsable(self, service, restaurant_id):
        assert service.update(restaurant_id, "{").error == ErrorKind.UNPARSABLE_JSON


class TestDeleteRestaurant:
    """Soft deletion."""

    def test_delete_marks_record(self, service, restaurant_id):
        assert service.delete(restaurant_id).ok

        stored = service.get(restaurant_id)
        assert stored.ok
        assert stored.value["deleted"] is True

    def test_deleted_restaurants_can_be_excluded(self, service, restaurant_id, restaurant_payload):
        other = service.add(restaurant_payload, AUTHOR).value
        service.delete(restaurant_id)

        everything = [r["_id"] for r in service.get_all().value["restaurants"]]
        active = [r["_id"] for r in service.get_all(include_deleted=False).value["restaurants"]]

        assert everything == [restaurant_id, other]
        assert active == [other]

    def test_delete_is_idempotent(self, service, restaurant_id):
        assert service.delete(restaurant_id).ok
        assert service.delete(restaurant_id).ok

    def test_delete_unknown(self, service):
        assert service.delete("12345").error == ErrorKind.UNKNOWN_RESTAURANT_ID


class TestComments:
    """Free-text comments."""

    def test_add_and_list_comments(self, service, restaurant_id):
        first = service.add_comment(restaurant_id, "Great bacalhau", "alice@example.com")
        second = service.add_comment(restaurant_id, "Too loud", "bob@example.com")

        assert first.ok and second.ok
        comments = service.get_comments(restaurant_id).value["comments"]
        assert [(c["text"], c["added_by"]) for c in comments] == [
            ("Great bacalhau", "alice@example.com"),
            ("Too loud", "bob@example.com"),
        ]
        assert comments[0]["_id"] == first.value

    def test_comments_are_per_restaurant(self, service, restaurant_id, restaurant_payload):
        other = service.add(restaurant_payload, AUTHOR).value
        service.add_comment(restaurant_id, "Here", AUTHOR)

        assert service.get_comments(other).value["comments"] == []

    def test_comment_on_unknown_restaurant(self, service):
        assert service.add_comment(999, "Hello", AUTHOR).error == ErrorKind.UNKNOWN_RESTAURANT_ID

    def test_list_comments_with_malformed_id(self, service):
        assert service.get_comments("abc").error == ErrorKind.UNKNOWN_RESTAURANT_ID


class TestImages:
    """Image uploads."""

    def test_add_image_appends_url(self, service, image_host, restaurant_id):
        first = service.add_image(restaurant_id, b"\x89PNG...", "image/png")
        second = service.add_image(restaurant_id, b"\xff\xd8...", "image/jpeg")

        assert first.ok and second.ok
        assert service.get(restaurant_id).value["images"] == [first.value, second.value]
        assert image_host.uploads == [(b"\x89PNG...", "image/png"), (b"\xff\xd8...", "image/jpeg")]

    def test_upload_failure_is_image_error(self, service, image_host, restaurant_id):
        image_host.fail = True

        result = service.add_image(restaurant_id, b"data")

        assert result.error == ErrorKind.IMAGE_ERROR
        assert isinstance(result.cause, ImageUploadError)
        assert service.get(restaurant_id).value["images"] == []

    def test_unknown_restaurant_is_not_uploaded(self, service, image_host):
        result = service.add_image(404, b"data")

        assert result.error == ErrorKind.UNKNOWN_RESTAURANT_ID
        assert image_host.uploads == []

    def test_missing_image_host(self, app, restaurant_id):
        service = RestaurantService(DataAccess(), None, RestaurantSettings())

        assert service.add_image(restaurant_id, b"data").error == ErrorKind.IMAGE_ERROR


class TestResult:
    """The result envelope."""

    def test_success(self):
        result = Result.success(3)

        assert result.ok
        assert result.unwrap() == 3
        assert result.message is None

    def test_failure_unwrap_raises_with_cause(self):
        cause = StoreError("boom")
        result = Result.failure(ErrorKind.DB_ERROR, cause)

        with pytest.raises(RestaurantServiceError) as exc_info:
            result.unwrap()
        assert exc_info.value.kind == ErrorKind.DB_ERROR
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.status_code == 500


def test_near_sphere_clause():
    clause = near_sphere_clause(Point(coordinates=(1.0, 2.0)), 500)

    assert clause == {
        "$nearSphere": {
            "$geometry": {"type": "Point", "coordinates": [1.0, 2.0]},
            "$minDistance": 0,
            "$maxDistance": 500,
        }
    }
