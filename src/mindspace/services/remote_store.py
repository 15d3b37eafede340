"""
Typed client for the forum's thread and comment endpoints.

Every operation is a single attempt: no retries or backoff. Failures are
raised as the typed errors in ``mindspace.services.exceptions``; retry
policy, if any, belongs to the caller.
"""
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

import httpx

from mindspace.api_client import api_delete, api_get, api_post, unwrap
from mindspace.schemas.base import parse_response, validate_input
from mindspace.schemas.thread import (
    Category,
    Comment,
    CommentCreate,
    Thread,
    ThreadCreate,
    ThreadDetail,
)
from mindspace.schemas.user import Session
from mindspace.services.exceptions import RemoteError, ValidationError
from mindspace.services.session_store import require_session
from mindspace.shared.api_errors import to_forum_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def call_api(
    request: Awaitable[T],
    entity_type: str = "",
    entity_id: str = "",
) -> T:
    """Await an API request, translating httpx errors into forum errors."""
    try:
        return await request
    except httpx.HTTPError as e:
        error = to_forum_error(e, entity_type=entity_type, entity_id=entity_id)
        logger.info(
            "api_error type=%s entity=%s id=%s message=%s",
            type(error).__name__,
            entity_type,
            entity_id,
            error.message,
        )
        raise error from e


def parse_list(model: type[T], body: Any, key: str) -> list[T]:
    """Parse an (optionally enveloped) list payload."""
    items = unwrap(body, key)
    if not isinstance(items, list):
        raise RemoteError(502, f"Unexpected response from server (expected {key})")
    return [parse_response(model, item) for item in items]


def _token(session: Session | None) -> str | None:
    return session.token if session else None


def _require_id(value: str | None, name: str) -> str:
    if value is None:
        raise ValidationError(f"{name} is required", field=name)
    value = str(value).strip()
    if not value:
        raise ValidationError(f"{name} is required", field=name)
    return value


class RemoteStoreClient:
    """Thread and comment operations against the REST backend."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    async def list_threads(
        self, category: Category | None = None, session: Session | None = None,
    ) -> list[Thread]:
        """
        List threads, optionally restricted to one category.

        Args:
            category: Canonical category, or None for every category.
            session: When given, the backend fills in the viewer's ``is_liked``.

        Returns:
            Threads in the order the backend returned them.
        """
        params = {"category": category.value} if category else None
        body = await call_api(
            api_get(self._client, "/threads", _token(session), params), "thread",
        )
        threads = parse_list(Thread, body, "threads")
        logger.debug("list_threads category=%s count=%d", category, len(threads))
        return threads

    async def get_thread(
        self, thread_id: str, session: Session | None = None,
    ) -> ThreadDetail:
        """
        Get one thread with its comments, as seen by ``session`` if given.

        Raises:
            NotFound: If the backend has no such thread.
        """
        thread_id = _require_id(thread_id, "thread_id")
        body = await call_api(
            api_get(self._client, f"/threads/{thread_id}", _token(session)),
            "thread",
            thread_id,
        )
        if isinstance(body, dict) and "thread" not in body:
            # Bare thread body; comments come from their own endpoint
            thread = parse_response(Thread, body)
            comments = await self.list_comments(thread_id, session)
            return ThreadDetail(thread=thread, comments=comments)
        return parse_response(ThreadDetail, body)

    async def create_thread(
        self, payload: ThreadCreate | dict[str, Any], session: Session | None,
    ) -> Thread:
        """
        Create a thread.

        The payload is validated locally first; a ValidationError means nothing
        was sent.
        """
        data = payload if isinstance(payload, ThreadCreate) else validate_input(ThreadCreate, payload)  # noqa: E501
        session = require_session(session)
        body = await call_api(
            api_post(
                self._client,
                "/threads",
                session.token,
                data.model_dump(mode="json", by_alias=True),
            ),
            "thread",
        )
        thread = parse_response(Thread, unwrap(body, "thread"))
        logger.info("thread_created id=%s category=%s", thread.id, thread.category)
        return thread

    async def like_thread(self, thread_id: str, session: Session | None) -> None:
        """
        Toggle the session's like on a thread.

        Raises:
            Unauthenticated: If there is no session (nothing is sent).
            NotFound: If the thread does not exist.
        """
        session = require_session(session)
        thread_id = _require_id(thread_id, "thread_id")
        await call_api(
            api_post(self._client, f"/threads/{thread_id}/like", session.token),
            "thread",
            thread_id,
        )

    async def delete_thread(self, thread_id: str, session: Session | None) -> None:
        """
        Delete a thread.

        Raises:
            Forbidden: If the session is not the thread's author.
        """
        session = require_session(session)
        thread_id = _require_id(thread_id, "thread_id")
        await call_api(
            api_delete(self._client, f"/threads/{thread_id}", session.token),
            "thread",
            thread_id,
        )
        logger.info("thread_deleted id=%s", thread_id)

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def list_comments(
        self, thread_id: str, session: Session | None = None,
    ) -> list[Comment]:
        """List a thread's comments in posting order."""
        thread_id = _require_id(thread_id, "thread_id")
        body = await call_api(
            api_get(self._client, f"/comments/thread/{thread_id}", _token(session)),
            "thread",
            thread_id,
        )
        return parse_list(Comment, body, "comments")

    async def create_comment(
        self, thread_id: str, content: str, session: Session | None,
    ) -> Comment:
        """
        Post a comment on a thread.

        Raises:
            ValidationError: If the content is empty after trimming (nothing is sent).
        """
        data = validate_input(CommentCreate, {"thread_id": thread_id, "content": content})
        session = require_session(session)
        body = await call_api(
            api_post(
                self._client,
                "/comments",
                session.token,
                {"thread": data.thread_id, "content": data.content},
            ),
            "thread",
            data.thread_id,
        )
        comment = parse_response(Comment, unwrap(body, "comment"))
        logger.info("comment_created id=%s thread_id=%s", comment.id, comment.thread_id)
        return comment

    async def like_comment(self, comment_id: str, session: Session | None) -> None:
        """Toggle the session's like on a comment."""
        session = require_session(session)
        comment_id = _require_id(comment_id, "comment_id")
        await call_api(
            api_post(self._client, f"/comments/{comment_id}/like", session.token),
            "comment",
            comment_id,
        )

    async def delete_comment(self, comment_id: str, session: Session | None) -> None:
        """
        Delete a comment.

        Raises:
            Forbidden: If the session is not the comment's author.
        """
        session = require_session(session)
        comment_id = _require_id(comment_id, "comment_id")
        await call_api(
            api_delete(self._client, f"/comments/{comment_id}", session.token),
            "comment",
            comment_id,
        )
        logger.info("comment_deleted id=%s", comment_id)
