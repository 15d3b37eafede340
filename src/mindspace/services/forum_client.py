"""
Consumer-facing call surface.

``ForumClient`` owns one instance of every component and passes the session
explicitly to each operation that needs it. It is the seam the view layer
calls: every operation reports its outcome through the notification channel
and re-raises typed errors so the caller can react (e.g. show the login
dialog on Unauthenticated).
"""
import logging
from collections.abc import Awaitable
from types import TracebackType
from typing import Any, TypeVar

import httpx

from mindspace.api_client import create_http_client
from mindspace.core.config import Settings, get_settings
from mindspace.schemas.journal import JournalEntry, MoodTrend
from mindspace.schemas.thread import Category, Comment, Thread, ThreadCreate, ThreadDetail
from mindspace.schemas.user import Session, User, UserUpdate
from mindspace.services.auth_service import AuthClient
from mindspace.services.exceptions import ForumError
from mindspace.services.journal_service import JournalClient
from mindspace.services.notifications import NotificationChannel
from mindspace.services.remote_store import RemoteStoreClient
from mindspace.services.session_store import SessionStore, Theme
from mindspace.services.thread_detail_cache import ThreadDetailCache
from mindspace.services.thread_list_cache import ThreadListCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ForumClient:
    """
    One client instance: its own HTTP connection pool, caches and session.

    Use as an async context manager so the HTTP client is closed:

        async with ForumClient() as forum:
            forum.restore_session()
            await forum.refresh()
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
        session_store: SessionStore | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._owns_http_client = http_client is None
        self._http_client = http_client or create_http_client(self.settings)

        self.remote = RemoteStoreClient(self._http_client)
        self.auth = AuthClient(self._http_client)
        self.journal = JournalClient(self._http_client)
        self.session_store = session_store or SessionStore(self.settings)
        self.notifications = NotificationChannel(ttl=self.settings.notification_ttl)
        self.threads = ThreadListCache(self.remote)
        self.detail = ThreadDetailCache(self.remote, self.threads, self.notifications)
        self.session: Session | None = None

    async def __aenter__(self) -> "ForumClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    @property
    def is_authenticated(self) -> bool:
        """True when a session is held."""
        return self.session is not None

    async def _report(
        self,
        operation: Awaitable[T],
        success: str | None,
        failure: str,
    ) -> T:
        """Await an operation, turning its outcome into a notification."""
        try:
            result = await operation
        except ForumError as e:
            self.notifications.notify_error(e, failure)
            raise
        if success:
            self.notifications.notify(success)
        return result

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def restore_session(self) -> Session | None:
        """Load the persisted session, if any, into this client."""
        self.session = self.session_store.load()
        return self.session

    async def login(self, email: str, password: str) -> Session:
        """Log in and persist the session."""
        session = await self._report(
            self.auth.login(email, password), "Welcome back!", "Login failed",
        )
        self._start_session(session)
        return session

    async def register(self, name: str, email: str, password: str) -> Session:
        """Create an account, log in and persist the session."""
        session = await self._report(
            self.auth.register(name, email, password),
            "Welcome to MindSpace!",
            "Registration failed",
        )
        self._start_session(session)
        return session

    async def logout(self) -> None:
        """
        End the session.

        Local session data is removed even when the backend can't be told,
        so no identifier survives a logout.
        """
        session = self.session
        self.session = None
        self.session_store.clear()
        if session is not None:
            try:
                await self.auth.logout(session)
            except ForumError as e:
                logger.warning("logout_remote_failed user_id=%s error=%s", session.user.id, e)
        self.notifications.notify("You've been logged out")

    async def update_profile(self, updates: UserUpdate | dict[str, Any]) -> User:
        """Update the profile and re-persist the session with the new user record."""
        user = await self._report(
            self.auth.update_profile(self.session, updates),
            "Profile updated",
            "Couldn't update your profile",
        )
        self._start_session(Session(user=user, token=self.session.token))
        return user

    def _start_session(self, session: Session) -> None:
        self.session = session
        self.session_store.save(session)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    @property
    def theme(self) -> Theme:
        """The persisted theme preference."""
        return self.session_store.load_theme()

    def set_theme(self, theme: Theme) -> None:
        """Persist the theme preference."""
        self.session_store.save_theme(theme)

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    async def set_filter(self, category: str | Category | None) -> list[Thread]:
        """Switch the category filter ("all" for none) and refetch."""
        return await self._report(
            self.threads.set_filter(category, self.session), None, "Couldn't load discussions",
        )

    async def refresh(self) -> list[Thread]:
        """Refetch the thread list for the current filter."""
        return await self._report(
            self.threads.refresh(self.session), None, "Couldn't load discussions",
        )

    async def create_thread(self, payload: ThreadCreate | dict[str, Any]) -> Thread:
        """Post a new thread and put it at the head of the list."""
        thread = await self._report(
            self.remote.create_thread(payload, self.session),
            "Discussion posted!",
            "Failed to create thread",
        )
        self.threads.prepend(thread)
        return thread

    async def like_thread(self, thread_id: str) -> Thread | None:
        """
        Toggle a like.

        Goes through the detail view when the thread is open there so both
        views stay in step.
        """
        if self.detail.thread_id != thread_id:
            return await self._report(
                self.threads.apply_optimistic_like(thread_id, self.session),
                None,
                "Couldn't update like",
            )
        thread = await self._report(self.detail.like(self.session), None, "Couldn't update like")
        self._report_stale(self.detail.refresh_error)
        return thread

    async def delete_thread(self, thread_id: str) -> None:
        """
        Delete a thread, from the detail view or straight from the list.

        Once the backend has deleted it, a failing list refresh is reported
        separately and never as a failed delete.
        """
        if self.detail.thread_id == thread_id:
            await self._report(
                self.detail.delete_thread(self.session),
                "Discussion deleted",
                "Failed to delete thread",
            )
            self._report_stale(self.detail.refresh_error)
            return

        await self._report(
            self.remote.delete_thread(thread_id, self.session),
            "Discussion deleted",
            "Failed to delete thread",
        )
        self.threads.remove(thread_id)
        try:
            await self.threads.refresh(self.session)
        except ForumError as e:
            logger.warning("refetch_failed after=delete_thread error=%s", e.message)
            self._report_stale(e)

    async def open_thread(self, thread: Thread | str) -> ThreadDetail | None:
        """
        Open a thread in the detail view.

        Accepts a cached summary or an id. An id that isn't cached is fetched
        once and shown straight from that response.
        """
        if isinstance(thread, str):
            summary = self.threads.get(thread)
            if summary is None:
                detail = await self._report(
                    self.remote.get_thread(thread, self.session),
                    None,
                    "Couldn't load this discussion",
                )
                self.detail.show(detail)
                return detail
            thread = summary
        # The detail cache raises its own error notification
        return await self.detail.open(thread, self.session)

    def close_thread(self) -> None:
        """Leave the detail view."""
        self.detail.close()

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    async def post_comment(self, content: str) -> Comment:
        """Comment on the open thread."""
        comment = await self._report(
            self.detail.post_comment(content, self.session),
            "Reply posted!",
            "Failed to post reply",
        )
        self._report_stale(self.detail.refresh_error)
        return comment

    async def delete_comment(self, comment_id: str) -> None:
        """Delete a comment on the open thread."""
        await self._report(
            self.detail.delete_comment(comment_id, self.session),
            "Reply deleted",
            "Failed to delete reply",
        )
        self._report_stale(self.detail.refresh_error)

    def _report_stale(self, error: ForumError | None) -> None:
        """Announce that a change was saved but the view couldn't be re-fetched."""
        if error is not None:
            self.notifications.notify(f"Saved, but couldn't refresh: {error.message}", "error")

    # ------------------------------------------------------------------
    # Journal
    # ------------------------------------------------------------------

    async def journal_entries(self) -> list[JournalEntry]:
        """List the member's journal entries."""
        return await self._report(
            self.journal.list_entries(self.session), None, "Couldn't load your journal",
        )

    async def add_journal_entry(self, payload: dict[str, Any]) -> JournalEntry:
        """Write a journal entry."""
        return await self._report(
            self.journal.create_entry(self.session, payload),
            "Journal entry saved",
            "Couldn't save your entry",
        )

    async def mood_trends(self, days: int = 7) -> list[MoodTrend]:
        """Daily average mood over the last ``days`` days."""
        return await self._report(
            self.journal.mood_trends(self.session, days), None, "Couldn't load mood trends",
        )
