from typing import ClassVar

from pydantic import Field

from elucidario.db.types import PropertyConstraint
from elucidario.models.base import (
    EntityInput,
    EntityModel,
    EntityRead,
    unique_constraints,
)


class WorkspaceCreate(EntityInput):
    name: str = Field(min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)


class WorkspaceUpdate(EntityInput):
    name: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=2000)


class WorkspaceRead(EntityRead):
    name: str
    description: str | None = None


class Workspace(EntityModel):
    name = "workspace"
    label = "Workspace"
    create_schema = WorkspaceCreate
    update_schema = WorkspaceUpdate
    read_schema = WorkspaceRead
    constraints: ClassVar[list[PropertyConstraint]] = unique_constraints("Workspace", "uuid")
