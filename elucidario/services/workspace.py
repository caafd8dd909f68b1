from typing import Any

from elucidario.application.ability import MANAGE, Rule
from elucidario.core.schemas import AuthContext, Role
from elucidario.db.graph import GraphTransaction
from elucidario.hooks import AUTHORIZATION_RULES, HookRegistry
from elucidario.models import Membership, Workspace
from elucidario.queries import MembershipQuery, WorkspaceQuery
from elucidario.services.base import (
    CreateMixin,
    DeleteMixin,
    Entity,
    ListMixin,
    ReadMixin,
    UpdateMixin,
)


def workspace_rules(rules: list[Rule], context: AuthContext) -> list[Rule]:
    """Workspace admins manage their workspace; other members read it."""
    if context.workspace is None:
        return rules

    own = {"uuid": context.workspace_uuid}
    if context.role == Role.ADMIN.value:
        return [*rules, Rule(MANAGE, Workspace.label, own)]
    return [*rules, Rule("read", Workspace.label, own)]


class WorkspaceService(CreateMixin, ReadMixin, ListMixin, UpdateMixin, DeleteMixin):
    model = Workspace
    query_class = WorkspaceQuery

    @classmethod
    def register(cls, hooks: HookRegistry) -> None:
        hooks.add_filter(AUTHORIZATION_RULES, workspace_rules)

    async def perform_create(
        self, tx: GraphTransaction, payload: dict[str, Any]
    ) -> Entity | None:
        """Create the workspace and make its creator an admin member."""
        workspace = await self.query.create(payload, tx)
        if workspace is None or self.context is None:
            return workspace

        membership = await MembershipQuery(self.graph).create(
            {
                "user_uuid": self.context.user_uuid,
                "workspace_uuid": workspace["uuid"],
                "role": Role.ADMIN.value,
            },
            tx,
        )
        if membership is not None:
            await self.record(tx, "create", membership, Membership)
        return workspace
