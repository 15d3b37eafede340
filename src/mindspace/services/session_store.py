"""Persisted session identity and theme preference."""
import json
import logging
from pathlib import Path
from typing import Literal

import pydantic

from mindspace.core.config import Settings, get_settings
from mindspace.schemas.user import Session
from mindspace.services.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

Theme = Literal["light", "dark"]
DEFAULT_THEME: Theme = "light"

# Bump when the persisted Session shape changes; older files are discarded on load.
SESSION_SCHEMA_VERSION = 1


def require_session(session: Session | None) -> Session:
    """
    Return the session, or raise Unauthenticated when there is none.

    Raised before any local mutation or network request so the caller can
    route to the login flow.
    """
    if session is None:
        raise Unauthenticated()
    return session


class SessionStore:
    """
    Local key-value persistence for the authenticated identity.

    The session and the theme preference live in separate files so that
    clearing the session on logout never touches preferences. Forum content
    is never stored here; the remote store is its only authority.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._session_path = settings.session_path
        self._preferences_path = settings.preferences_path

    def load(self) -> Session | None:
        """
        Load the persisted session.

        Returns:
            The Session, or None if nothing is stored. Corrupt or outdated
            data is treated as absent and deleted.
        """
        data = self._read_json(self._session_path)
        if data is None:
            return None

        if data.get("version") != SESSION_SCHEMA_VERSION:
            logger.warning(
                "session_discarded reason=version path=%s", self._session_path,
            )
            self.clear()
            return None

        try:
            session = Session.model_validate(data.get("session"))
        except pydantic.ValidationError:
            logger.warning(
                "session_discarded reason=invalid path=%s", self._session_path,
            )
            self.clear()
            return None

        logger.debug("session_loaded user_id=%s", session.user.id)
        return session

    def save(self, session: Session) -> None:
        """Persist the session, replacing whatever was stored."""
        payload = {
            "version": SESSION_SCHEMA_VERSION,
            "session": session.model_dump(mode="json", by_alias=True),
        }
        self._write_json(self._session_path, payload)
        logger.debug("session_saved user_id=%s", session.user.id)

    def clear(self) -> None:
        """Remove all persisted session data. Safe to call when nothing is stored."""
        self._session_path.unlink(missing_ok=True)
        logger.debug("session_cleared path=%s", self._session_path)

    def load_theme(self) -> Theme:
        """Return the stored theme, defaulting to light."""
        data = self._read_json(self._preferences_path) or {}
        theme = data.get("theme")
        return theme if theme in ("light", "dark") else DEFAULT_THEME

    def save_theme(self, theme: Theme) -> None:
        """Persist the theme preference."""
        if theme not in ("light", "dark"):
            raise ValueError(f"Unknown theme: '{theme}'")
        data = self._read_json(self._preferences_path) or {}
        data["theme"] = theme
        self._write_json(self._preferences_path, data)

    def _read_json(self, path: Path) -> dict | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            logger.warning("state_file_unreadable path=%s", path)
            path.unlink(missing_ok=True)
            return None
        if not isinstance(data, dict):
            logger.warning("state_file_unreadable path=%s", path)
            path.unlink(missing_ok=True)
            return None
        return data

    def _write_json(self, path: Path, data: dict) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(path)
