"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

from fake_backend import ForumState, create_app
from mindspace.core.config import Settings
from mindspace.schemas.thread import Thread
from mindspace.schemas.user import Session, User
from mindspace.services.forum_client import ForumClient
from mindspace.services.notifications import NotificationChannel
from mindspace.services.remote_store import RemoteStoreClient
from mindspace.services.session_store import SessionStore
from mindspace.services.thread_detail_cache import ThreadDetailCache
from mindspace.services.thread_list_cache import ThreadListCache

API_URL = "http://forum.test"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at the mocked API and a per-test state directory."""
    return Settings(
        _env_file=None,
        MINDSPACE_API_URL=API_URL,
        MINDSPACE_STATE_DIR=str(tmp_path / "state"),
        MINDSPACE_NOTIFICATION_TTL=0.5,
    )


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter, None, None]:
    """Context manager for mocking API responses."""
    with respx.mock(base_url=API_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def http_client(mock_api: respx.MockRouter) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client created inside the respx context so requests are captured."""
    async with httpx.AsyncClient(base_url=API_URL) as client:
        yield client


@pytest.fixture
def remote(http_client: httpx.AsyncClient) -> RemoteStoreClient:
    """Remote store client over the mocked API."""
    return RemoteStoreClient(http_client)


@pytest.fixture
def notifications() -> NotificationChannel:
    """Notification channel with a long TTL so messages stay put during a test."""
    return NotificationChannel(ttl=60)


@pytest.fixture
def thread_list(remote: RemoteStoreClient) -> ThreadListCache:
    """Empty thread list cache."""
    return ThreadListCache(remote)


@pytest.fixture
def thread_detail(
    remote: RemoteStoreClient,
    thread_list: ThreadListCache,
    notifications: NotificationChannel,
) -> ThreadDetailCache:
    """Closed thread detail cache wired to the list cache."""
    return ThreadDetailCache(remote, thread_list, notifications)


@pytest.fixture
def session_store(settings: Settings) -> SessionStore:
    """Session store writing under the test's temp directory."""
    return SessionStore(settings)


@pytest.fixture
def user() -> User:
    """The logged-in member, U1."""
    return User(id="U1", name="River", email="river@example.com")


@pytest.fixture
def session(user: User) -> Session:
    """A live session for U1."""
    return Session(user=user, token="tok_u1")


def make_thread_json(thread_id: str = "t1", **overrides: Any) -> dict[str, Any]:
    """Thread payload in the backend's camelCase wire format."""
    body = {
        "_id": thread_id,
        "title": "Finding calm",
        "content": "Breathing helped me today",
        "category": "Anxiety",
        "author": {"_id": "U1", "name": "River", "email": "river@example.com"},
        "isAnonymous": False,
        "tags": [],
        "likeCount": 0,
        "isLiked": False,
        "replyCount": 0,
        "viewCount": 0,
        "createdAt": "2025-01-01T00:00:00Z",
    }
    body.update(overrides)
    return body


def make_comment_json(comment_id: str = "c1", thread_id: str = "t1", **overrides: Any) -> dict[str, Any]:  # noqa: E501
    """Comment payload in the backend's wire format."""
    body = {
        "_id": comment_id,
        "thread": thread_id,
        "author": {"_id": "U1", "name": "River"},
        "content": "Thank you for sharing",
        "createdAt": "2025-01-01T01:00:00Z",
    }
    body.update(overrides)
    return body


@pytest.fixture
def sample_thread() -> Thread:
    """A parsed thread summary."""
    return Thread.model_validate(make_thread_json(likeCount=4))


@pytest.fixture
def backend_state() -> ForumState:
    """State for the in-memory backend, seeded with two members."""
    state = ForumState()
    state.add_user("River", "river@example.com", "pw-river", user_id="U1")
    state.add_user("Sky", "sky@example.com", "pw-sky", user_id="U2")
    return state


@pytest.fixture
async def forum(
    settings: Settings, backend_state: ForumState,
) -> AsyncGenerator[ForumClient, None]:
    """A ForumClient talking to the in-memory backend through ASGITransport."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=create_app(backend_state)),
        base_url="http://test",
    ) as client:
        async with ForumClient(settings=settings, http_client=client) as forum_client:
            yield forum_client
