"""Error taxonomy shared by every client-side operation."""


class ForumError(Exception):
    """
    Base class for all errors raised by the data-service layer.

    Every subclass carries a human-readable ``message``. The notification
    channel shows it verbatim, falling back to a generic text when empty.
    """

    default_message = "Something went wrong"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ForumError):
    """
    Raised locally, before any network attempt, when input is invalid.

    The caller can correct the input and try again.
    """

    default_message = "Invalid input"

    def __init__(self, message: str | None = None, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class Unauthenticated(ForumError):
    """Raised when an operation needs a session and none is present (or it expired)."""

    default_message = "Please log in to continue"


class Forbidden(ForumError):
    """Raised when the session lacks rights for the operation. Not retryable."""

    default_message = "You don't have permission to do that"


class NotFound(ForumError):
    """Raised when the remote store has no such entity."""

    default_message = "Not found"


class RemoteUnavailable(ForumError):
    """Raised when the remote store cannot be reached. Retryable by caller policy."""

    default_message = "Service unavailable, please try again"


class RemoteError(ForumError):
    """Raised when the remote store answers with a non-success status."""

    def __init__(self, status: int, message: str | None = None) -> None:
        self.status = status
        super().__init__(message or f"API error {status}")


class MutationInProgress(ForumError):
    """Raised when an optimistic mutation overlaps one still in flight on the same entity."""

    default_message = "Please wait for the previous action to finish"

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__()
