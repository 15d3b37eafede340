"""Pydantic schemas for users and sessions."""
from datetime import date

from pydantic import AliasChoices, Field, field_validator

from mindspace.schemas.base import CamelModel


class User(CamelModel):
    """A forum member as returned by the backend."""

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    email: str | None = None
    bio: str | None = None
    age: int | None = None
    date_of_birth: date | None = None
    location: str | None = None
    interests: list[str] = []
    profile_image: str | None = None


class UserUpdate(CamelModel):
    """Profile fields a member may change. Unset fields are left untouched."""

    name: str | None = None
    bio: str | None = None
    age: int | None = Field(default=None, ge=13, le=120)
    date_of_birth: date | None = None
    location: str | None = None
    interests: list[str] | None = None
    profile_image: str | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str | None) -> str | None:
        """Display names cannot be blank."""
        if v is not None:
            v = v.strip()
            if not v:
                raise ValueError("Name cannot be empty")
        return v

    @field_validator("interests")
    @classmethod
    def clean_interests(cls, v: list[str] | None) -> list[str] | None:
        """Trim interests and drop empty ones."""
        if v is None:
            return None
        return [item.strip() for item in v if item.strip()]


class Session(CamelModel):
    """
    The authenticated identity held by one client instance.

    Passed explicitly to every operation that needs authentication.
    """

    user: User
    token: str

    @field_validator("token")
    @classmethod
    def token_not_empty(cls, v: str) -> str:
        """A session without a credential is not a session."""
        if not v.strip():
            raise ValueError("Token cannot be empty")
        return v


class Credentials(CamelModel):
    """Login form input."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Trim and lowercase the email; require an @."""
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Enter a valid email address")
        return v

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Passwords are sent as typed but must not be empty."""
        if not v:
            raise ValueError("Password cannot be empty")
        return v


class Registration(Credentials):
    """Sign-up form input."""

    name: str

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Display names cannot be blank."""
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be empty")
        return v
