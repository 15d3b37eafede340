"""In-memory, ordered cache of thread summaries."""
import logging

from mindspace.schemas.thread import Category, Thread, normalize_category
from mindspace.schemas.user import Session
from mindspace.services.exceptions import MutationInProgress, NotFound, ValidationError
from mindspace.services.optimistic import OptimisticUpdate
from mindspace.services.remote_store import RemoteStoreClient
from mindspace.services.session_store import require_session

logger = logging.getLogger(__name__)


class ThreadListCache:
    """
    The thread list for the active category filter.

    The cache never assumes it holds every category: each filter change is a
    full refetch, and refresh() replaces the contents wholesale. Order is the
    backend's order, with threads created in this session prepended.

    The cache also owns the in-flight guard for like toggles, shared with the
    detail view, so one thread never has two toggles pending at once.
    """

    def __init__(self, remote: RemoteStoreClient) -> None:
        self._remote = remote
        self._threads: list[Thread] = []
        self._filter: Category | None = None
        self._generation = 0
        self._likes_in_flight: set[str] = set()

    @property
    def threads(self) -> list[Thread]:
        """The visible threads, in display order."""
        return list(self._threads)

    @property
    def filter(self) -> Category | None:
        """The active category, or None for all categories."""
        return self._filter

    def get(self, thread_id: str) -> Thread | None:
        """Return the cached thread with this id, if present."""
        for thread in self._threads:
            if thread.id == thread_id:
                return thread
        return None

    async def set_filter(
        self, category: str | Category | None, session: Session | None = None,
    ) -> list[Thread]:
        """
        Change the category filter and refetch.

        The new filter takes effect only once its threads have been fetched;
        on failure both the filter and the visible threads stay as they were.

        Args:
            category: Any casing of a category name, or "all"/None.
            session: Passed along so the backend can fill in ``is_liked``.

        Raises:
            ValidationError: If the category is unknown.
        """
        try:
            normalized = normalize_category(category)
        except ValueError as e:
            raise ValidationError(str(e), field="category") from e
        return await self._load(normalized, session)

    async def refresh(self, session: Session | None = None) -> list[Thread]:
        """
        Refetch the current filter's threads and replace the cache contents.

        When refreshes overlap, only the most recently issued one is applied,
        so a slow earlier response cannot overwrite a newer list.
        """
        return await self._load(self._filter, session)

    async def _load(self, category: Category | None, session: Session | None) -> list[Thread]:
        self._generation += 1
        generation = self._generation
        threads = await self._remote.list_threads(category, session)
        if generation != self._generation:
            logger.debug(
                "refresh_discarded generation=%d latest=%d", generation, self._generation,
            )
            return self.threads
        self._filter = category
        self._threads = threads
        logger.debug("refresh_applied category=%s count=%d", category, len(threads))
        return self.threads

    def prepend(self, thread: Thread) -> None:
        """Insert a newly created thread at the head of the list."""
        self._threads.insert(0, thread)

    def remove(self, thread_id: str) -> Thread | None:
        """Drop a thread from the cache. Returns the removed thread, if any."""
        for index, thread in enumerate(self._threads):
            if thread.id == thread_id:
                return self._threads.pop(index)
        return None

    def replace(self, thread: Thread) -> None:
        """Swap in an authoritative copy of a cached thread, keeping its position."""
        for index, cached in enumerate(self._threads):
            if cached.id == thread.id:
                self._threads[index] = thread
                return

    def begin_like(self, thread_id: str) -> None:
        """
        Mark a like toggle on this thread as in flight.

        Raises:
            MutationInProgress: If one is already pending.
        """
        if thread_id in self._likes_in_flight:
            raise MutationInProgress(thread_id)
        self._likes_in_flight.add(thread_id)

    def end_like(self, thread_id: str) -> None:
        """Clear the in-flight mark set by begin_like()."""
        self._likes_in_flight.discard(thread_id)

    def like_in_flight(self, thread_id: str) -> bool:
        """True while a like toggle on this thread awaits the backend."""
        return thread_id in self._likes_in_flight

    async def apply_optimistic_like(self, thread_id: str, session: Session | None) -> Thread:
        """
        Toggle the like on a cached thread before the backend confirms it.

        The thread's ``is_liked``/``like_count`` flip immediately; if the
        backend call fails they are restored to their prior values and the
        error propagates.

        Raises:
            Unauthenticated: If there is no session (nothing changes).
            NotFound: If the thread is not in the cache.
            MutationInProgress: If a like on this thread is still in flight.
        """
        session = require_session(session)
        thread = self.get(thread_id)
        if thread is None:
            raise NotFound(f"Thread '{thread_id}' not found")
        await self.toggle_like(thread, session)
        return thread

    async def toggle_like(self, thread: Thread, session: Session) -> None:
        """
        Flip ``thread``'s like state, confirm it remotely, roll back on failure.

        ``thread`` need not be listed (the detail view passes its own copy);
        either way the toggle goes through this cache's in-flight guard.
        """
        self.begin_like(thread.id)
        liked = not thread.is_liked
        count = thread.like_count + 1 if liked else max(thread.like_count - 1, 0)
        try:
            with OptimisticUpdate(thread, is_liked=liked, like_count=count):
                await self._remote.like_thread(thread.id, session)
        finally:
            self.end_like(thread.id)
        logger.debug("like_confirmed thread_id=%s liked=%s", thread.id, liked)
