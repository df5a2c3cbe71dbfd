from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar, cast

from flask import Blueprint, jsonify, request

bp = Blueprint("api", __name__)

F = TypeVar("F", bound=Callable[..., Any])

AUTHOR_HEADER = "X-User-Email"


def require_author(f: F) -> F:
    """Decorator passing the caller's identity from the X-User-Email header.

    The header is trusted as given; it only records who added what.
    """

    @wraps(f)
    def decorated_function(*args: Any, **kwargs: Any) -> Any:
        author = (request.headers.get(AUTHOR_HEADER) or "").strip()
        if not author:
            return (
                jsonify(
                    {
                        "status": "error",
                        "message": f"{AUTHOR_HEADER} header is required",
                        "code": 400,
                    }
                ),
                400,
            )
        return f(*args, author=author, **kwargs)

    return cast(F, decorated_function)


# Import routes to register them with the blueprint
from . import routes  # noqa: E402, F401
