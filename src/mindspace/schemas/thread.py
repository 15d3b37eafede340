"""Pydantic schemas for threads and comments."""
from datetime import datetime
from enum import StrEnum

from pydantic import AliasChoices, Field, ValidationInfo, field_validator

from mindspace.schemas.base import CamelModel
from mindspace.schemas.user import User

ALL_CATEGORIES = "all"


class Category(StrEnum):
    """Fixed set of discussion categories, in their canonical spelling."""

    GENERAL = "General"
    ANXIETY = "Anxiety"
    DEPRESSION = "Depression"
    STRESS = "Stress"
    RELATIONSHIPS = "Relationships"
    SELF_CARE = "Self-Care"
    RECOVERY = "Recovery"
    MOTIVATION = "Motivation"


def _fold(value: str) -> str:
    return value.strip().casefold().replace("_", "-").replace(" ", "-")


_CATEGORY_LOOKUP = {_fold(c.value): c for c in Category}


def normalize_category(value: str | Category | None) -> Category | None:
    """
    Case-fold a category filter to its canonical spelling.

    Returns None for "all" (or None), meaning no filter.

    Raises:
        ValueError: If the value is not a known category.
    """
    if value is None or isinstance(value, Category):
        return value
    folded = _fold(value)
    if folded == ALL_CATEGORIES:
        return None
    try:
        return _CATEGORY_LOOKUP[folded]
    except KeyError:
        raise ValueError(f"Unknown category: '{value}'") from None


class Thread(CamelModel):
    """
    A top-level forum post.

    ``like_count``/``is_liked`` are mutated in place by optimistic likes;
    everything else is replaced wholesale on reconciliation.
    """

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str
    content: str
    # Unknown categories from the server are kept as-is rather than rejected
    category: Category | str = Category.GENERAL
    image: str | None = None
    author: User | None = None
    is_anonymous: bool = False
    tags: list[str] = []
    like_count: int = Field(default=0, ge=0)
    is_liked: bool = False
    reply_count: int = Field(default=0, ge=0)
    view_count: int = Field(default=0, ge=0)
    created_at: datetime | None = None

    @field_validator("category", mode="before")
    @classmethod
    def canonical_category(cls, v: object) -> object:
        """Map known categories to the enum regardless of case."""
        if isinstance(v, str):
            try:
                return normalize_category(v) or v
            except ValueError:
                return v
        return v

    @field_validator("author", mode="before")
    @classmethod
    def author_reference(cls, v: object) -> object:
        """Accept an unpopulated author reference (a bare id)."""
        if isinstance(v, str | int):
            return {"id": v}
        return v


class ThreadCreate(CamelModel):
    """Payload for creating a thread. Validated before anything is sent."""

    title: str
    content: str
    category: Category = Category.GENERAL
    tags: list[str] = []
    is_anonymous: bool = Field(default=False, validation_alias=AliasChoices("is_anonymous", "isAnonymous", "anonymous"))  # noqa: E501
    image: str | None = None

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v: str, info: ValidationInfo) -> str:
        """Title and content must have text after trimming."""
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name.title()} cannot be empty")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def canonical_category(cls, v: object) -> object:
        """Case-fold the category; "all" is not a postable category."""
        if isinstance(v, str):
            category = normalize_category(v)
            if category is None:
                raise ValueError("Choose a category for your post")
            return category
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v: object) -> list[str]:
        """Trim and lowercase tags, dropping empties and duplicates."""
        if v is None:
            return []
        if not isinstance(v, list | tuple):
            raise ValueError("Tags must be a list")
        seen: list[str] = []
        for tag in v:
            if not isinstance(tag, str):
                raise ValueError("Tags must be text")
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class Comment(CamelModel):
    """A reply attached to exactly one thread."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    thread_id: str = Field(
        validation_alias=AliasChoices("thread", "threadId", "thread_id"),
        serialization_alias="thread",
    )
    author: User | None = None
    content: str
    like_count: int = Field(default=0, ge=0)
    created_at: datetime | None = None

    @field_validator("author", mode="before")
    @classmethod
    def author_reference(cls, v: object) -> object:
        """Accept an unpopulated author reference (a bare id)."""
        if isinstance(v, str | int):
            return {"id": v}
        return v


class CommentCreate(CamelModel):
    """Payload for posting a comment."""

    thread_id: str = Field(serialization_alias="thread")
    content: str

    @field_validator("content")
    @classmethod
    def not_blank(cls, v: str) -> str:
        """Comments must have text after trimming."""
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class ThreadDetail(CamelModel):
    """One thread with its ordered comment list."""

    thread: Thread
    comments: list[Comment] = []
