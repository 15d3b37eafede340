"""Pydantic schemas for the private mood journal."""
from datetime import date, datetime

from pydantic import AliasChoices, Field, field_validator

from mindspace.schemas.base import CamelModel

MIN_MOOD = 1
MAX_MOOD = 10


class JournalEntry(CamelModel):
    """A single journal entry."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str | None = None
    content: str
    mood: int = Field(ge=MIN_MOOD, le=MAX_MOOD)
    tags: list[str] = []
    created_at: datetime | None = None


class JournalEntryCreate(CamelModel):
    """Payload for writing a journal entry."""

    title: str | None = None
    content: str
    mood: int = Field(ge=MIN_MOOD, le=MAX_MOOD)
    tags: list[str] = []

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Entries must have text after trimming."""
        v = v.strip()
        if not v:
            raise ValueError("Journal entry cannot be empty")
        return v


class MoodTrend(CamelModel):
    """Average mood for one day."""

    day: date = Field(validation_alias=AliasChoices("date", "day", "_id"))
    average_mood: float = Field(validation_alias=AliasChoices("averageMood", "avgMood", "average_mood"))  # noqa: E501
    entry_count: int = Field(default=0, validation_alias=AliasChoices("entryCount", "count", "entry_count"))  # noqa: E501
