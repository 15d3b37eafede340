"""Client for the private mood journal endpoints."""
from typing import Any

import httpx

from mindspace.api_client import api_get, api_post, unwrap
from mindspace.schemas.base import parse_response, validate_input
from mindspace.schemas.journal import JournalEntry, JournalEntryCreate, MoodTrend
from mindspace.schemas.user import Session
from mindspace.services.exceptions import ValidationError
from mindspace.services.remote_store import call_api, parse_list
from mindspace.services.session_store import require_session


class JournalClient:
    """Journal entries are private, so every call needs a session."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def list_entries(self, session: Session | None) -> list[JournalEntry]:
        """List the session's journal entries, newest first as the backend orders them."""
        session = require_session(session)
        body = await call_api(api_get(self._client, "/journal", session.token), "entry")
        return parse_list(JournalEntry, body, "entries")

    async def create_entry(
        self, session: Session | None, payload: JournalEntryCreate | dict[str, Any],
    ) -> JournalEntry:
        """Write a journal entry."""
        data = payload if isinstance(payload, JournalEntryCreate) else validate_input(JournalEntryCreate, payload)  # noqa: E501
        session = require_session(session)
        body = await call_api(
            api_post(
                self._client,
                "/journal",
                session.token,
                data.model_dump(mode="json", by_alias=True),
            ),
            "entry",
        )
        return parse_response(JournalEntry, unwrap(body, "entry"))

    async def mood_trends(self, session: Session | None, days: int = 7) -> list[MoodTrend]:
        """Daily average mood over the last ``days`` days."""
        if days < 1:
            raise ValidationError("days must be at least 1", field="days")
        session = require_session(session)
        body = await call_api(
            api_get(self._client, "/journal/stats/trends", session.token, {"days": days}),
        )
        return parse_list(MoodTrend, body, "trends")
