"""Shared pydantic configuration and helpers for wire models."""
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mindspace.services.exceptions import RemoteError, ValidationError

M = TypeVar("M", bound=BaseModel)


class CamelModel(BaseModel):
    """
    Base model for backend payloads.

    The backend speaks camelCase JSON (``likeCount``, ``isAnonymous``);
    Python code uses snake_case attribute names. Both spellings are accepted
    on input; ``model_dump(by_alias=True)`` produces the wire format.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


def validate_input(model: type[M], data: Any) -> M:
    """
    Validate caller-supplied input, raising the client's ValidationError.

    Only the first problem is reported; it names the offending field so the
    caller can highlight it.
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[-1]) if loc else None
        message = first.get("msg", "Invalid input").removeprefix("Value error, ")
        raise ValidationError(message, field=field) from e


def parse_response(model: type[M], data: Any) -> M:
    """
    Parse a backend payload.

    A body that doesn't match the expected shape is reported as a 502-style
    RemoteError rather than leaking pydantic internals to the caller.
    """
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise RemoteError(502, f"Unexpected response from server ({model.__name__})") from e
