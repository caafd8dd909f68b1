"""Membership of a user in a workspace.

Stored as its own node so it can carry a role and history:
``(User)-[:HAS_MEMBERSHIP]->(Membership)-[:MEMBER_OF]->(Workspace)``.
The ``user_uuid`` and ``workspace_uuid`` properties mirror the two edges.
"""

from typing import ClassVar

from pydantic import Field

from elucidario.db.types import PropertyConstraint
from elucidario.models.base import (
    EntityInput,
    EntityModel,
    EntityRead,
    unique_constraints,
)


class MembershipCreate(EntityInput):
    user_uuid: str = Field(min_length=1)
    role: str = Field(min_length=1)


class MembershipUpdate(EntityInput):
    role: str | None = Field(default=None, min_length=1)


class MembershipRead(EntityRead):
    user_uuid: str
    workspace_uuid: str
    role: str


class Membership(EntityModel):
    name = "membership"
    label = "Membership"
    create_schema = MembershipCreate
    update_schema = MembershipUpdate
    read_schema = MembershipRead
    constraints: ClassVar[list[PropertyConstraint]] = unique_constraints("Membership", "uuid")

    USER_EDGE = "HAS_MEMBERSHIP"
    WORKSPACE_EDGE = "MEMBER_OF"
