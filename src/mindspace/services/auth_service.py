"""Client for the backend's authentication and profile endpoints."""
import logging
from typing import Any

import httpx

from mindspace.api_client import api_get, api_post, api_put, unwrap
from mindspace.schemas.base import parse_response, validate_input
from mindspace.schemas.user import Credentials, Registration, Session, User, UserUpdate
from mindspace.services.exceptions import ValidationError
from mindspace.services.remote_store import call_api
from mindspace.services.session_store import require_session

logger = logging.getLogger(__name__)


class AuthClient:
    """
    Login, registration and profile operations.

    Password handling and token issuance happen on the backend; this client
    only forwards the form input and wraps the returned ``{user, token}``.
    """

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._client = http_client

    async def login(self, email: str, password: str) -> Session:
        """Exchange credentials for a session."""
        data = validate_input(Credentials, {"email": email, "password": password})
        body = await call_api(
            api_post(self._client, "/auth/login", json=data.model_dump()),
        )
        session = parse_response(Session, body)
        logger.info("login user_id=%s", session.user.id)
        return session

    async def register(self, name: str, email: str, password: str) -> Session:
        """Create an account and return its session."""
        data = validate_input(
            Registration, {"name": name, "email": email, "password": password},
        )
        body = await call_api(
            api_post(self._client, "/auth/register", json=data.model_dump()),
        )
        session = parse_response(Session, body)
        logger.info("register user_id=%s", session.user.id)
        return session

    async def logout(self, session: Session) -> None:
        """Tell the backend to revoke the session's token."""
        await call_api(api_post(self._client, "/auth/logout", session.token))
        logger.info("logout user_id=%s", session.user.id)

    async def me(self, session: Session | None) -> User:
        """Fetch the session's current user record."""
        session = require_session(session)
        body = await call_api(api_get(self._client, "/auth/me", session.token), "user")
        return parse_response(User, unwrap(body, "user"))

    async def update_profile(
        self, session: Session | None, updates: UserUpdate | dict[str, Any],
    ) -> User:
        """
        Update profile fields.

        Only the fields present in ``updates`` are sent.

        Raises:
            ValidationError: If no fields were given or a field is invalid.
        """
        session = require_session(session)
        data = updates if isinstance(updates, UserUpdate) else validate_input(UserUpdate, updates)  # noqa: E501
        payload = data.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if not payload:
            raise ValidationError("Nothing to update")
        body = await call_api(
            api_put(self._client, "/auth/profile", session.token, payload), "user",
        )
        user = parse_response(User, unwrap(body, "user"))
        logger.info("profile_updated user_id=%s fields=%s", user.id, sorted(payload))
        return user
