"""Optimistic update with rollback."""
import logging
from types import TracebackType
from typing import Any

logger = logging.getLogger(__name__)


class OptimisticUpdate:
    """
    Apply speculative attribute values to an object, restoring them on failure.

    Used as a context manager around the remote call that confirms the change:

        with OptimisticUpdate(thread, is_liked=True, like_count=thread.like_count + 1):
            await remote.like_thread(thread.id, session)

    On entry the current values are snapshotted and the speculative values
    applied. If the block raises, the snapshot is restored and the exception
    propagates. On success the snapshot is discarded.
    """

    def __init__(self, target: Any, **speculative: Any) -> None:
        if not speculative:
            raise ValueError("OptimisticUpdate needs at least one attribute to change")
        self.target = target
        self.speculative = speculative
        self._snapshot: dict[str, Any] | None = None

    @property
    def active(self) -> bool:
        """True between apply() and commit()/rollback()."""
        return self._snapshot is not None

    def apply(self) -> None:
        """Snapshot the current values and write the speculative ones."""
        if self._snapshot is not None:
            raise RuntimeError("Optimistic update already applied")
        self._snapshot = {name: getattr(self.target, name) for name in self.speculative}
        for name, value in self.speculative.items():
            setattr(self.target, name, value)

    def commit(self) -> None:
        """Keep the speculative values and forget the snapshot."""
        self._snapshot = None

    def rollback(self) -> None:
        """Restore the snapshotted values."""
        if self._snapshot is None:
            return
        for name, value in self._snapshot.items():
            setattr(self.target, name, value)
        self._snapshot = None

    def __enter__(self) -> "OptimisticUpdate":
        self.apply()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            self.commit()
            return
        logger.debug(
            "optimistic_rollback target=%s attrs=%s error=%s",
            type(self.target).__name__,
            sorted(self.speculative),
            exc_type.__name__,
        )
        self.rollback()
