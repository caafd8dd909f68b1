"""The singleton main configuration of an installation."""

from typing import ClassVar

from pydantic import Field

from elucidario.db.types import PropertyConstraint
from elucidario.models.base import (
    EntityInput,
    EntityModel,
    EntityRead,
    unique_constraints,
)
from elucidario.models.user import UserCreate, UserRead

# Every MainConfig node carries this key; its unique index keeps the config a singleton.
SINGLETON_KEY = "main"


class ConfigCreate(EntityInput):
    name: str = Field(min_length=1, max_length=120)
    sysadmins: list[UserCreate] = Field(min_length=1)


class ConfigUpdate(EntityInput):
    name: str | None = Field(default=None, min_length=1, max_length=120)


class ConfigRead(EntityRead):
    name: str
    sysadmins: list[UserRead] = []


class Config(EntityModel):
    name = "config"
    label = "MainConfig"
    create_schema = ConfigCreate
    update_schema = ConfigUpdate
    read_schema = ConfigRead
    constraints: ClassVar[list[PropertyConstraint]] = unique_constraints(
        "MainConfig", "uuid", "key"
    )

    SYSADMIN_EDGE = "SYSADMIN"
