"""Document-style data access over the SQLAlchemy tables.

Callers work with plain dictionaries and MongoDB-flavoured filters and update
operators; this module translates them onto the ``restaurants``, ``scores`` and
``comments`` tables. Scalar columns are filtered in SQL, JSON columns and
geospatial clauses are evaluated on the loaded rows.

Supported filter forms::

    {"name": "Tasca"}                          # equality
    {"score": {"$gte": 3, "$lt": 5}}           # $ne $in $gt $gte $lt $lte
    {"location": {"$nearSphere": {"$geometry": {...}, "$maxDistance": 500}}}

Supported update operators: ``$set`` and ``$push``.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import operator
from typing import Any, Callable, Dict, List, Optional, Tuple, Type

from sqlalchemy import JSON, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session
from sqlalchemy.sql.elements import ColumnElement

from restodir.extensions import db
from restodir.models import BaseModel, CommentRecord, RestaurantRecord, ScoreRecord
from restodir.utils.geo_utils import point_distance_m, validate_coordinates

logger = logging.getLogger(__name__)

RESTAURANTS = "restaurants"
SCORES = "scores"
COMMENTS = "comments"

COLLECTIONS: Dict[str, Type[BaseModel]] = {
    RESTAURANTS: RestaurantRecord,
    SCORES: ScoreRecord,
    COMMENTS: CommentRecord,
}

_COMPARISONS: Dict[str, Callable[[Any, Any], Any]] = {
    "$ne": operator.ne,
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}

Predicate = Callable[[Dict[str, Any]], bool]

# Largest key a signed 64-bit INTEGER primary key can hold
MAX_OBJECT_ID = 2**63 - 1


class StoreError(Exception):
    """Raised when the underlying database rejects an operation."""


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of an update or upsert."""

    matched_count: int
    modified_count: int
    upserted_id: Optional[int] = None


@dataclass(frozen=True)
class _NearSphere:
    field: str
    coordinates: Tuple[float, float]
    min_distance: float
    max_distance: Optional[float]


@dataclass
class _CompiledFilter:
    clauses: List[ColumnElement]
    predicates: List[Predicate]
    near: Optional[_NearSphere] = None
    impossible: bool = False


def _is_operator_dict(value: Any) -> bool:
    return isinstance(value, dict) and bool(value) and all(str(k).startswith("$") for k in value)


def _python_condition(field: str, condition: Any) -> Predicate:
    """Build an in-memory predicate for a JSON column."""
    if not _is_operator_dict(condition):
        return lambda doc: doc.get(field) == condition

    checks: List[Predicate] = []
    for op, operand in condition.items():
        if op == "$in":
            if not isinstance(operand, list):
                raise StoreError("$in expects a list")
            checks.append(lambda doc, operand=operand: doc.get(field) in operand)
        elif op == "$ne":
            checks.append(lambda doc, operand=operand: doc.get(field) != operand)
        else:
            raise StoreError(f"Operator {op} is not supported on field {field}")
    return lambda doc: all(check(doc) for check in checks)


def _parse_near_sphere(field: str, operand: Any) -> _NearSphere:
    if not isinstance(operand, dict) or not isinstance(operand.get("$geometry"), dict):
        raise StoreError("$nearSphere expects a $geometry document")
    coordinates = operand["$geometry"].get("coordinates")
    if not isinstance(coordinates, (list, tuple)) or len(coordinates) != 2:
        raise StoreError("$nearSphere geometry must be a point")
    max_distance = operand.get("$maxDistance")
    return _NearSphere(
        field=field,
        coordinates=(float(coordinates[0]), float(coordinates[1])),
        min_distance=float(operand.get("$minDistance", 0) or 0),
        max_distance=float(max_distance) if max_distance is not None else None,
    )


class DataAccess:
    """Generic add/get/query/update/count operations over named collections."""

    def __init__(self, session: Optional[scoped_session] = None) -> None:
        self._session = session

    @property
    def session(self) -> scoped_session:
        return self._session if self._session is not None else db.session

    # ------------------------------------------------------------------ ids

    @staticmethod
    def get_object_id(value: Any) -> Optional[int]:
        """Resolve an external identifier to a store key, or None if malformed."""
        if isinstance(value, bool):
            return None
        if isinstance(value, str):
            value = value.strip()
            if not (value.isdigit() and value.isascii()) or len(value.lstrip("0")) > len(str(MAX_OBJECT_ID)):
                return None
            value = int(value)
        if isinstance(value, int):
            return value if 0 < value <= MAX_OBJECT_ID else None
        return None

    # -------------------------------------------------------------- helpers

    @staticmethod
    def _model(collection: str) -> Type[BaseModel]:
        try:
            return COLLECTIONS[collection]
        except KeyError:
            raise StoreError(f"Unknown collection: {collection}") from None

    def _compile(self, model: Type[BaseModel], flt: Optional[Dict[str, Any]]) -> _CompiledFilter:
        compiled = _CompiledFilter(clauses=[], predicates=[])
        if not flt:
            return compiled
        if not isinstance(flt, dict):
            raise StoreError("Filter must be a document")

        columns = model.__table__.columns
        for field, condition in flt.items():
            column_name = "id" if field == "_id" else field
            if column_name not in columns:
                # Documents never carry unknown fields, so nothing can match
                compiled.impossible = True
                continue

            column = getattr(model, column_name)
            is_json = isinstance(columns[column_name].type, JSON)

            if _is_operator_dict(condition) and "$nearSphere" in condition:
                if compiled.near is not None:
                    raise StoreError("Only one $nearSphere clause is allowed")
                compiled.near = _parse_near_sphere(field, condition["$nearSphere"])
                continue

            if is_json:
                compiled.predicates.append(_python_condition(field, condition))
            elif _is_operator_dict(condition):
                for op, operand in condition.items():
                    if op == "$in":
                        if not isinstance(operand, list):
                            raise StoreError("$in expects a list")
                        compiled.clauses.append(column.in_(operand))
                    elif op in _COMPARISONS:
                        compiled.clauses.append(_COMPARISONS[op](column, operand))
                    else:
                        raise StoreError(f"Unsupported operator: {op}")
            elif condition is None:
                compiled.clauses.append(column.is_(None))
            else:
                compiled.clauses.append(column == condition)
        return compiled

    def _find(
        self, collection: str, flt: Optional[Dict[str, Any]], limit: Optional[int] = None
    ) -> List[Tuple[BaseModel, Dict[str, Any]]]:
        """Return matching (record, document) pairs in store order."""
        model = self._model(collection)
        compiled = self._compile(model, flt)
        if compiled.impossible:
            return []

        stmt = select(model).where(*compiled.clauses).order_by(model.id)
        try:
            records = list(self.session.execute(stmt).scalars())
        except (SQLAlchemyError, OverflowError) as e:
            self.session.rollback()
            logger.error(f"Query on {collection} failed: {e}")
            raise StoreError(f"Query on {collection} failed") from e

        pairs = [(record, record.to_dict()) for record in records]
        pairs = [(r, d) for r, d in pairs if all(p(d) for p in compiled.predicates)]

        near = compiled.near
        if near is not None:
            ranked = []
            for record, doc in pairs:
                point = (doc.get(near.field) or {}).get("coordinates")
                if not isinstance(point, list) or len(point) != 2 or not validate_coordinates(point[1], point[0]):
                    continue
                distance = point_distance_m(near.coordinates, point)
                if distance < near.min_distance:
                    continue
                if near.max_distance is not None and distance > near.max_distance:
                    continue
                ranked.append((distance, record, doc))
            ranked.sort(key=lambda item: item[0])
            pairs = [(record, doc) for _, record, doc in ranked]

        return pairs[:limit] if limit is not None else pairs

    def _commit(self, action: str) -> None:
        try:
            self.session.commit()
        except (SQLAlchemyError, OverflowError) as e:
            self.session.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(f"Failed to {action}") from e

    @staticmethod
    def _apply_update(model: Type[BaseModel], record: BaseModel, update: Dict[str, Any]) -> None:
        if not isinstance(update, dict) or not update:
            raise StoreError("Update must be a non-empty document")
        fields = model.field_names()
        for op, changes in update.items():
            if op not in ("$set", "$push"):
                raise StoreError(f"Unsupported update operator: {op}")
            if not isinstance(changes, dict):
                raise StoreError(f"{op} expects a document")
            for field, value in changes.items():
                if field not in fields:
                    raise StoreError(f"Cannot {op} unknown field: {field}")
                if op == "$set":
                    setattr(record, field, value)
                else:
                    current = getattr(record, field)
                    if current is not None and not isinstance(current, list):
                        raise StoreError(f"Cannot $push to non-array field: {field}")
                    # Assign a new list so the JSON column is flagged dirty
                    setattr(record, field, list(current or []) + [value])

    # ----------------------------------------------------------- operations

    def add(self, collection: str, document: Dict[str, Any]) -> int:
        """Insert a document and return its new ID."""
        model = self._model(collection)
        try:
            record = model.from_dict(document)
        except (KeyError, TypeError) as e:
            raise StoreError(str(e)) from e
        self.session.add(record)
        self._commit(f"add to {collection}")
        logger.debug(f"Added document {record.id} to {collection}")
        return record.id

    def get(self, collection: str, flt: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Return the first document matching the filter, or None."""
        found = self._find(collection, flt, limit=1)
        return found[0][1] if found else None

    def query(self, collection: str, flt: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return every document matching the filter."""
        return [doc for _, doc in self._find(collection, flt)]

    def count(self, collection: str, flt: Optional[Dict[str, Any]] = None) -> int:
        """Count documents matching the filter."""
        return len(self._find(collection, flt))

    def update(self, collection: str, flt: Dict[str, Any], update: Dict[str, Any]) -> UpdateResult:
        """Apply an update to the first document matching the filter."""
        model = self._model(collection)
        found = self._find(collection, flt, limit=1)
        if not found:
            return UpdateResult(matched_count=0, modified_count=0)

        record, before = found[0]
        self._apply_update(model, record, update)
        self._commit(f"update {collection}")
        modified = int(record.to_dict() != before)
        return UpdateResult(matched_count=1, modified_count=modified)

    def add_or_update(self, collection: str, flt: Dict[str, Any], update: Dict[str, Any]) -> UpdateResult:
        """Update the first match, or insert a document built from the filter and ``$set``."""
        model = self._model(collection)
        found = self._find(collection, flt, limit=1)
        if found:
            record, before = found[0]
            self._apply_update(model, record, update)
            self._commit(f"update {collection}")
            return UpdateResult(matched_count=1, modified_count=int(record.to_dict() != before))

        seed = {k: v for k, v in (flt or {}).items() if k != "_id" and not _is_operator_dict(v)}
        seed.update(update.get("$set", {}))
        for field, value in update.get("$push", {}).items():
            seed[field] = [value]
        try:
            record = model.from_dict(seed)
        except (KeyError, TypeError) as e:
            raise StoreError(str(e)) from e
        self.session.add(record)
        self._commit(f"upsert into {collection}")
        return UpdateResult(matched_count=0, modified_count=0, upserted_id=record.id)
