from typing import ClassVar

from pydantic import Field

from elucidario.db.types import PropertyConstraint
from elucidario.models.base import (
    EntityInput,
    EntityModel,
    EntityRead,
    unique_constraints,
)

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
USERNAME_PATTERN = r"^[A-Za-z0-9_.-]+$"


class UserCreate(EntityInput):
    """Payload for creating a user."""

    email: str = Field(min_length=3, max_length=254, pattern=EMAIL_PATTERN)
    username: str = Field(min_length=3, max_length=50, pattern=USERNAME_PATTERN)
    name: str | None = Field(default=None, max_length=200)
    password: str = Field(min_length=8, max_length=128)


class UserUpdate(EntityInput):
    """Partial user update; omitted fields keep their stored value."""

    email: str | None = Field(default=None, min_length=3, max_length=254, pattern=EMAIL_PATTERN)
    username: str | None = Field(
        default=None, min_length=3, max_length=50, pattern=USERNAME_PATTERN
    )
    name: str | None = Field(default=None, max_length=200)
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserRead(EntityRead):
    """Public view of a user; the password hash never leaves the service."""

    email: str
    username: str
    name: str | None = None


class User(EntityModel):
    name = "user"
    label = "User"
    create_schema = UserCreate
    update_schema = UserUpdate
    read_schema = UserRead
    constraints: ClassVar[list[PropertyConstraint]] = unique_constraints(
        "User", "uuid", "email", "username"
    )
