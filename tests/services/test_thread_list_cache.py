"""Tests for the thread list cache."""
import asyncio

import httpx
import pytest
import respx

from conftest import make_thread_json
from mindspace.schemas.thread import Category, Thread
from mindspace.schemas.user import Session
from mindspace.services.exceptions import (
    MutationInProgress,
    NotFound,
    RemoteUnavailable,
    Unauthenticated,
    ValidationError,
)
from mindspace.services.thread_list_cache import ThreadListCache


def _threads_response(*ids: str, **overrides: object) -> httpx.Response:
    return httpx.Response(
        200, json={"threads": [make_thread_json(i, **overrides) for i in ids]},
    )


class TestRefresh:
    """Tests for refresh and set_filter."""

    async def test__refresh__replaces_contents(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """refresh() replaces the list with the backend's order."""
        mock_api.get("/threads").mock(
            side_effect=[_threads_response("t1", "t2"), _threads_response("t3")],
        )

        await thread_list.refresh()
        assert [t.id for t in thread_list.threads] == ["t1", "t2"]

        await thread_list.refresh()
        assert [t.id for t in thread_list.threads] == ["t3"]

    async def test__refresh__failure_keeps_contents(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """A failed refresh leaves the previous list in place."""
        mock_api.get("/threads").mock(
            side_effect=[_threads_response("t1"), httpx.ConnectError("down")],
        )
        await thread_list.refresh()

        with pytest.raises(RemoteUnavailable):
            await thread_list.refresh()

        assert [t.id for t in thread_list.threads] == ["t1"]

    async def test__set_filter__case_insensitive(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """Any casing selects the canonical category."""
        route = mock_api.get("/threads").mock(return_value=_threads_response("t1"))

        await thread_list.set_filter("anxiety")

        assert thread_list.filter is Category.ANXIETY
        assert route.calls.last.request.url.params["category"] == "Anxiety"

    async def test__set_filter__idempotent(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """Setting the same filter twice yields the same list."""
        mock_api.get("/threads").mock(return_value=_threads_response("t1", "t2"))

        first = await thread_list.set_filter("Stress")
        second = await thread_list.set_filter("STRESS")

        assert [t.id for t in first] == [t.id for t in second]

    async def test__set_filter__all_clears_filter(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """'all' removes the category parameter."""
        route = mock_api.get("/threads").mock(return_value=_threads_response())

        await thread_list.set_filter("Stress")
        await thread_list.set_filter("all")

        assert thread_list.filter is None
        assert "category" not in route.calls.last.request.url.params

    async def test__set_filter__unknown_category(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """An unknown category is rejected and the filter stays put."""
        route = mock_api.get("/threads")

        with pytest.raises(ValidationError, match="Unknown category"):
            await thread_list.set_filter("Cooking")

        assert thread_list.filter is None
        assert not route.called

    async def test__refresh__latest_request_wins(self, sample_thread: Thread) -> None:
        """A slow earlier refresh never overwrites a newer one."""
        slow_release = asyncio.Event()
        older = [sample_thread.model_copy(update={"id": "old"})]
        newer = [sample_thread.model_copy(update={"id": "new"})]

        class SlowFirstRemote:
            calls = 0

            async def list_threads(
                self, category: Category | None = None, session: Session | None = None,
            ) -> list[Thread]:
                self.calls += 1
                if self.calls == 1:
                    await slow_release.wait()
                    return older
                return newer

        thread_list = ThreadListCache(SlowFirstRemote())

        first = asyncio.create_task(thread_list.refresh())
        await asyncio.sleep(0)
        await thread_list.refresh()
        assert [t.id for t in thread_list.threads] == ["new"]

        slow_release.set()
        await first

        assert [t.id for t in thread_list.threads] == ["new"]

    async def test__set_filter__failure_keeps_previous_filter(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter,
    ) -> None:
        """A failed filter change leaves both the filter and the threads as they were."""
        route = mock_api.get("/threads").mock(
            side_effect=[
                _threads_response("t1", category="General"),
                httpx.ConnectError("down"),
                _threads_response("t1", category="General"),
            ],
        )
        await thread_list.set_filter("all")

        with pytest.raises(RemoteUnavailable):
            await thread_list.set_filter("anxiety")

        assert thread_list.filter is None
        assert [t.id for t in thread_list.threads] == ["t1"]

        await thread_list.refresh()
        assert "category" not in route.calls.last.request.url.params

    async def test__refresh__sends_session_token(
        self, thread_list: ThreadListCache, mock_api: respx.MockRouter, session: Session,
    ) -> None:
        """With a session the list is fetched as that viewer, so is_liked survives."""
        route = mock_api.get("/threads").mock(
            return_value=_threads_response("t1", likeCount=1, isLiked=True),
        )

        await thread_list.refresh(session)

        assert route.calls.last.request.headers["Authorization"] == "Bearer tok_u1"
        assert thread_list.get("t1").is_liked is True


class TestLocalEdits:
    """Tests for prepend/remove/replace."""

    def test__prepend_then_remove__restores_list(
        self, thread_list: ThreadListCache, sample_thread: Thread,
    ) -> None:
        """remove() undoes prepend()."""
        other = sample_thread.model_copy(update={"id": "t2"})
        thread_list.prepend(sample_thread)
        before = [t.id for t in thread_list.threads]

        thread_list.prepend(other)
        assert thread_list.threads[0].id == "t2"

        removed = thread_list.remove("t2")
        assert removed is other
        assert [t.id for t in thread_list.threads] == before

    def test__remove__missing_is_noop(self, thread_list: ThreadListCache) -> None:
        """Removing an unknown id returns None."""
        assert thread_list.remove("nope") is None

    def test__replace__keeps_position(
        self, thread_list: ThreadListCache, sample_thread: Thread,
    ) -> None:
        """replace() swaps the copy in place."""
        thread_list.prepend(sample_thread.model_copy(update={"id": "t2"}))
        thread_list.prepend(sample_thread)
        updated = sample_thread.model_copy(update={"reply_count": 9})

        thread_list.replace(updated)

        assert thread_list.threads[0] is updated
        assert thread_list.threads[1].id == "t2"

    def test__threads__returns_copy(
        self, thread_list: ThreadListCache, sample_thread: Thread,
    ) -> None:
        """Mutating the returned list leaves the cache alone."""
        thread_list.prepend(sample_thread)
        thread_list.threads.clear()

        assert len(thread_list.threads) == 1


class TestOptimisticLike:
    """Tests for apply_optimistic_like."""

    async def test__like__success_keeps_flip(
        self,
        thread_list: ThreadListCache,
        sample_thread: Thread,
        mock_api: respx.MockRouter,
        session: Session,
    ) -> None:
        """A confirmed like keeps the new state."""
        thread_list.prepend(sample_thread)
        mock_api.post("/threads/t1/like").mock(return_value=httpx.Response(200, json={}))

        thread = await thread_list.apply_optimistic_like("t1", session)

        assert thread.is_liked is True
        assert thread.like_count == 5

    async def test__like__unlike_decrements(
        self,
        thread_list: ThreadListCache,
        sample_thread: Thread,
        mock_api: respx.MockRouter,
        session: Session,
    ) -> None:
        """Toggling off a like decrements the count."""
        sample_thread.is_liked = True
        thread_list.prepend(sample_thread)
        mock_api.post("/threads/t1/like").mock(return_value=httpx.Response(200, json={}))

        thread = await thread_list.apply_optimistic_like("t1", session)

        assert thread.is_liked is False
        assert thread.like_count == 3

    async def test__like__visible_before_confirmation(
        self,
        thread_list: ThreadListCache,
        sample_thread: Thread,
        mock_api: respx.MockRouter,
        session: Session,
    ) -> None:
        """The flip is applied before the backend answers."""
        thread_list.prepend(sample_thread)
        observed: list[tuple[bool, int]] = []

        def respond(request: httpx.Request) -> httpx.Response:
            cached = thread_list.get("t1")
            observed.append((cached.is_liked, cached.like_count))
            return httpx.Response(200, json={})

        mock_api.post("/threads/t1/like").mock(side_effect=respond)

        await thread_list.apply_optimistic_like("t1", session)

        assert observed == [(True, 5)]

    async def test__like__failure_rolls_back(
        self,
        thread_list: ThreadListCache,
        sample_thread: Thread,
        mock_api: respx.MockRouter,
        session: Session,
    ) -> None:
        """A rejected like restores the prior values exactly."""
        thread_list.prepend(sample_thread)
        mock_api.post("/threads/t1/like").mock(side_effect=httpx.ConnectError("down"))

        with pytest.raises(RemoteUnavailable):
            await thread_list.apply_optimistic_like("t1", session)

        cached = thread_list.get("t1")
        assert cached.is_liked is False
        assert cached.like_count == 4
        assert not thread_list.like_in_flight("t1")

    async def test__like__unauthenticated_changes_nothing(
        self,
        thread_list: ThreadListCache,
        sample_thread: Thread,
        mock_api: respx.MockRouter,
    ) -> None:
        """Without a session nothing changes and nothing is sent."""
        thread_list.prepend(sample_thread)
        route = mock_api.post("/threads/t1/like")

        with pytest.raises(Unauthenticated):
            await thread_list.apply_optimistic_like("t1", None)

        assert thread_list.get("t1").like_count == 4
        assert not route.called

    async def test__like__not_cached(
        self, thread_list: ThreadListCache, session: Session,
    ) -> None:
        """Liking a thread the list doesn't hold is NotFound."""
        with pytest.raises(NotFound):
            await thread_list.apply_optimistic_like("t1", session)

    async def test__like__zero_count_never_negative(
        self,
        thread_list: ThreadListCache,
        mock_api: respx.MockRouter,
        session: Session,
    ) -> None:
        """Unliking at zero keeps the count at zero."""
        thread = Thread.model_validate(make_thread_json(likeCount=0, isLiked=True))
        thread_list.prepend(thread)
        mock_api.post("/threads/t1/like").mock(return_value=httpx.Response(200, json={}))

        await thread_list.apply_optimistic_like("t1", session)

        assert thread.like_count == 0

    async def test__like__overlapping_rejected(
        self,
        thread_list: ThreadListCache,
        sample_thread: Thread,
        session: Session,
    ) -> None:
        """A second like while one is in flight raises MutationInProgress."""
        release = asyncio.Event()

        class SlowRemote:
            async def like_thread(self, thread_id: str, session: Session | None) -> None:
                await release.wait()

        thread_list = ThreadListCache(SlowRemote())
        thread_list.prepend(sample_thread)

        first = asyncio.create_task(thread_list.apply_optimistic_like("t1", session))
        await asyncio.sleep(0)
        assert thread_list.like_in_flight("t1")

        with pytest.raises(MutationInProgress):
            await thread_list.apply_optimistic_like("t1", session)

        release.set()
        await first
        assert sample_thread.like_count == 5
        assert not thread_list.like_in_flight("t1")
