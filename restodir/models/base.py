"""Base model class with SQLAlchemy type hints."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, TypeVar, cast

from flask_sqlalchemy.model import DefaultMeta
from sqlalchemy.orm import Mapped, mapped_column

from ..extensions import db as _db

# Type variable for model classes
ModelType = TypeVar("ModelType", bound="BaseModel")

# Type for SQLAlchemy model base
if TYPE_CHECKING:
    Model = _db.Model
else:
    # At runtime, use the actual model
    Model = cast(DefaultMeta, _db.Model)


class BaseModel(Model):  # type: ignore
    """Base model class with common functionality for all models.

    Rows are exchanged with the data-access layer as plain documents, so the
    base class only knows how to go to and from dictionaries.
    """

    __abstract__ = True

    # Common columns for all models
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    @_db.declared_attr
    def __tablename__(cls) -> str:
        """Generate __tablename__ automatically.

        Converts CamelCase class names to snake_case table names.

        Returns:
            str: The table name in snake_case based on the class name
        """
        name = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", cls.__name__)
        return re.sub("([a-z0-9])([A-Z])", r"\1_\2", name).lower()

    @classmethod
    def field_names(cls) -> set[str]:
        """Return the document field names backed by a column (``id`` excluded)."""
        return {c.name for c in cls.__table__.columns} - {"id"}

    def to_dict(self) -> dict[str, Any]:
        """Convert model to a document.

        The primary key is exposed as ``_id``; other values are returned as
        stored so callers get datetimes and nested JSON untouched.
        """
        result: dict[str, Any] = {"_id": self.id}
        for column in self.__table__.columns:
            if column.name == "id":
                continue
            result[column.name] = getattr(self, column.name)
        return result

    @classmethod
    def from_dict(cls: type[ModelType], data: dict[str, Any]) -> ModelType:
        """Create model instance from a document.

        Raises:
            KeyError: If the document carries a field the table does not have
        """
        columns = cls.field_names()
        unknown = set(data) - columns - {"_id"}
        if unknown:
            raise KeyError(f"Unknown fields for {cls.__tablename__}: {sorted(unknown)}")
        values = {k: v for k, v in data.items() if k in columns}
        if data.get("_id") is not None:
            values["id"] = data["_id"]
        return cls(**values)
