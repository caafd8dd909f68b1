from typing import Any

from pydantic import BaseModel

from elucidario.application.ability import MANAGE, Rule
from elucidario.core.errors import ServiceError, ValidationError
from elucidario.core.schemas import WORKSPACE_PARAM, AuthContext, Role
from elucidario.db.graph import GraphTransaction
from elucidario.hooks import AUTHORIZATION_RULES, HookRegistry
from elucidario.models import Membership
from elucidario.queries import MembershipQuery
from elucidario.services.base import (
    CreateMixin,
    DeleteMixin,
    Entity,
    ListMixin,
    ReadMixin,
    UpdateMixin,
)


def membership_rules(rules: list[Rule], context: AuthContext) -> list[Rule]:
    """Workspace admins manage the memberships of their workspace; members read them."""
    if context.workspace is None:
        return rules

    scoped = {"workspace_uuid": context.workspace_uuid}
    if context.role == Role.ADMIN.value:
        return [*rules, Rule(MANAGE, Membership.label, scoped)]
    return [*rules, Rule("read", Membership.label, scoped)]


class MembershipService(CreateMixin, ReadMixin, ListMixin, UpdateMixin, DeleteMixin):
    """Members of the workspace named by the ``workspaceUUID`` path parameter."""

    model = Membership
    query_class = MembershipQuery
    scope_params = {WORKSPACE_PARAM: "workspace_uuid"}

    @classmethod
    def register(cls, hooks: HookRegistry) -> None:
        hooks.add_filter(AUTHORIZATION_RULES, membership_rules)

    def validate(
        self, schema: type[BaseModel], data: Any, *, partial: bool = False
    ) -> dict[str, Any]:
        payload = super().validate(schema, data, partial=partial)
        role = payload.get("role")
        roles = self.authorization.get_roles()
        if role is not None and role not in roles:
            raise ValidationError(
                errors={"role": [f"Role must be one of: {', '.join(roles)}"]},
                entity=self.model.name,
            )
        return payload

    async def perform_create(
        self, tx: GraphTransaction, payload: dict[str, Any]
    ) -> Entity | None:
        existing = await self.query.find_one(
            {"user_uuid": payload["user_uuid"], "workspace_uuid": payload["workspace_uuid"]},
            tx,
        )
        if existing is not None:
            raise ServiceError("User is already a member of this workspace.", 409)
        return await self.query.create(payload, tx)
