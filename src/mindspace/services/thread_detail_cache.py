"""
The single open thread and its comments.

Every mutation is followed by a full re-fetch of the thread. Reply and like
counts shown here always come from the backend, never from local arithmetic.
"""
import logging
from collections.abc import Awaitable
from enum import StrEnum
from typing import Any

from mindspace.schemas.thread import Comment, Thread, ThreadDetail
from mindspace.schemas.user import Session
from mindspace.services.exceptions import ForumError, ValidationError
from mindspace.services.notifications import NotificationChannel
from mindspace.services.remote_store import RemoteStoreClient
from mindspace.services.session_store import require_session
from mindspace.services.thread_list_cache import ThreadListCache

logger = logging.getLogger(__name__)


class DetailState(StrEnum):
    """Lifecycle of the detail view."""

    CLOSED = "closed"
    OPTIMISTIC = "optimistic"  # Tentative data from the list summary
    RECONCILED = "reconciled"  # Authoritative data from the backend


class ThreadDetailCache:
    """Holds one open thread plus its ordered comment list."""

    def __init__(
        self,
        remote: RemoteStoreClient,
        thread_list: ThreadListCache,
        notifications: NotificationChannel,
    ) -> None:
        self._remote = remote
        self._list = thread_list
        self._notifications = notifications
        self._thread: Thread | None = None
        self._comments: list[Comment] = []
        self._state = DetailState.CLOSED
        self._refresh_error: ForumError | None = None

    @property
    def state(self) -> DetailState:
        """Current lifecycle state."""
        return self._state

    @property
    def thread(self) -> Thread | None:
        """The open thread (tentative or authoritative), or None when closed."""
        return self._thread

    @property
    def comments(self) -> list[Comment]:
        """The open thread's comments in posting order."""
        return list(self._comments)

    @property
    def thread_id(self) -> str | None:
        """Id of the open thread, or None when closed."""
        return self._thread.id if self._thread else None

    @property
    def refresh_error(self) -> ForumError | None:
        """
        Why the re-fetch after the last successful mutation failed, if it did.

        The mutation itself went through; the view keeps its previous data
        until the next refresh.
        """
        return self._refresh_error

    async def open(
        self, thread: Thread, session: Session | None = None,
    ) -> ThreadDetail | None:
        """
        Show a thread immediately from its summary, then reconcile.

        If the fetch fails the tentative data stays visible, an error
        notification is raised and the error propagates.

        Returns:
            The authoritative detail, or None if another thread was opened
            (or the view closed) before the response arrived.
        """
        self._thread = thread
        self._comments = []
        self._state = DetailState.OPTIMISTIC
        logger.debug("detail_open thread_id=%s", thread.id)
        try:
            return await self._reconcile(thread.id, session)
        except ForumError as e:
            if self.thread_id == thread.id:
                self._notifications.notify_error(e, "Couldn't load this discussion")
            raise

    def show(self, detail: ThreadDetail) -> None:
        """Open a thread whose authoritative detail has already been fetched."""
        self._apply(detail)

    def close(self) -> None:
        """Leave the detail view. Late responses for the old thread are ignored."""
        self._thread = None
        self._comments = []
        self._state = DetailState.CLOSED

    async def refresh(self, session: Session | None = None) -> ThreadDetail | None:
        """Re-fetch the open thread."""
        return await self._reconcile(self._require_open(), session)

    async def post_comment(self, content: str, session: Session | None) -> Comment:
        """
        Post a comment on the open thread, then re-fetch it.

        Raises:
            ValidationError: If the content is empty after trimming, or no
                thread is open.
            Unauthenticated: If there is no session.
        """
        thread_id = self._require_open()
        comment = await self._remote.create_comment(thread_id, content, session)
        await self._refetch(self._reconcile(thread_id, session))
        return comment

    async def like(self, session: Session | None) -> Thread | None:
        """
        Toggle the like on the open thread, then re-fetch it.

        Uses the list cache's optimistic like when the thread is listed, so
        both views flip together; otherwise the open copy is updated
        optimistically on its own. Either way the list cache's in-flight
        guard applies.
        """
        thread_id = self._require_open()
        session = require_session(session)
        if self._list.get(thread_id) is not None:
            await self._list.apply_optimistic_like(thread_id, session)
        else:
            await self._list.toggle_like(self._thread, session)
        await self._refetch(self._reconcile(thread_id, session))
        return self._thread if self.thread_id == thread_id else None

    async def delete_comment(self, comment_id: str, session: Session | None) -> None:
        """Delete a comment on the open thread, then re-fetch it."""
        thread_id = self._require_open()
        await self._remote.delete_comment(comment_id, session)
        await self._refetch(self._reconcile(thread_id, session))

    async def delete_thread(self, session: Session | None) -> None:
        """Delete the open thread, close the view and refresh the list."""
        thread_id = self._require_open()
        await self._remote.delete_thread(thread_id, session)
        if self.thread_id == thread_id:
            self.close()
        self._list.remove(thread_id)
        await self._refetch(self._list.refresh(session))

    async def _refetch(self, refetch: Awaitable[Any]) -> None:
        """Run the re-fetch that follows a mutation, recording rather than raising failure."""
        try:
            await refetch
        except ForumError as e:
            logger.warning("refetch_failed thread_id=%s error=%s", self.thread_id, e.message)
            self._refresh_error = e
        else:
            self._refresh_error = None

    async def _reconcile(
        self, thread_id: str, session: Session | None,
    ) -> ThreadDetail | None:
        detail = await self._remote.get_thread(thread_id, session)
        if self.thread_id != thread_id:
            logger.debug("detail_stale_response thread_id=%s open=%s", thread_id, self.thread_id)
            return None
        self._apply(detail)
        return detail

    def _apply(self, detail: ThreadDetail) -> None:
        self._thread = detail.thread
        self._comments = list(detail.comments)
        self._state = DetailState.RECONCILED
        self._list.replace(detail.thread)
        logger.debug(
            "detail_reconciled thread_id=%s replies=%d comments=%d",
            detail.thread.id,
            detail.thread.reply_count,
            len(detail.comments),
        )

    def _require_open(self) -> str:
        if self._thread is None:
            raise ValidationError("No discussion is open")
        return self._thread.id
