"""
API error parsing for the forum REST backend.

The parsing extracts semantic meaning from HTTP errors. Callers turn the
parsed result into the typed errors in ``mindspace.services.exceptions``.
"""

from dataclasses import dataclass
from typing import Literal

import httpx

from mindspace.services.exceptions import (
    ForumError,
    Forbidden,
    NotFound,
    RemoteError,
    RemoteUnavailable,
    Unauthenticated,
)

ErrorCategory = Literal[
    "auth",       # 401 - Missing, invalid or expired token
    "forbidden",  # 403 - Not the author / not allowed
    "not_found",  # 404 - Stale identifier
    "remote",     # Any other non-success status
]


@dataclass
class ParsedApiError:
    """Parsed API error with semantic category and message."""

    category: ErrorCategory
    status: int
    message: str | None


def parse_http_error(
    e: httpx.HTTPStatusError,
    entity_type: str = "",
    entity_id: str = "",
) -> ParsedApiError:
    """
    Parse HTTP error into semantic categories.

    Args:
        e: The HTTP status error from httpx
        entity_type: Type of entity (e.g., "thread", "comment") for error messages
        entity_id: ID of the entity for error messages

    Returns:
        ParsedApiError with category, status and the server's message (if any)
    """
    status = e.response.status_code
    server_message = extract_error_message(e.response)

    if status == 401:
        return ParsedApiError("auth", status, server_message)

    if status == 403:
        return ParsedApiError("forbidden", status, server_message)

    if status == 404:
        if server_message:
            msg = server_message
        elif entity_id:
            msg = f"{entity_type.title()} '{entity_id}' not found" if entity_type else f"'{entity_id}' not found"  # noqa: E501
        else:
            msg = f"{entity_type.title()} not found" if entity_type else None
        return ParsedApiError("not_found", status, msg)

    return ParsedApiError("remote", status, server_message)


def extract_error_message(response: httpx.Response) -> str | None:
    """
    Pull a human-readable message out of an error body.

    The backend reports ``{"error": "..."}``; ``message`` and FastAPI-style
    ``detail`` (string, dict or list of validation errors) are accepted too.
    """
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None

    for key in ("error", "message"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, dict):
        message = detail.get("message")
        return message if isinstance(message, str) and message else None
    if isinstance(detail, list):
        messages = []
        for err in detail:
            if isinstance(err, dict):
                loc = err.get("loc", ["unknown"])
                field = loc[-1] if loc else "unknown"
                msg = err.get("msg", "invalid")
                messages.append(f"{field}: {msg}")
        return "; ".join(messages) if messages else None
    return None


_ERROR_TYPES: dict[ErrorCategory, type[ForumError]] = {
    "auth": Unauthenticated,
    "forbidden": Forbidden,
    "not_found": NotFound,
}


def to_forum_error(
    e: httpx.HTTPError,
    entity_type: str = "",
    entity_id: str = "",
) -> ForumError:
    """Translate an httpx error into the client's error taxonomy."""
    if isinstance(e, httpx.HTTPStatusError):
        info = parse_http_error(e, entity_type=entity_type, entity_id=entity_id)
        error_type = _ERROR_TYPES.get(info.category)
        if error_type is not None:
            return error_type(info.message)
        return RemoteError(info.status, info.message)
    return RemoteUnavailable(_describe_transport_error(e))


def _describe_transport_error(e: httpx.HTTPError) -> str:
    if isinstance(e, httpx.TimeoutException):
        return "The server took too long to respond"
    return f"API unavailable: {e}" if str(e) else RemoteUnavailable.default_message

