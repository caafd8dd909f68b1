from collections.abc import Mapping
from typing import Any

from elucidario.db.cypher import Cypher
from elucidario.db.types import CypherQuery
from elucidario.models import Membership, User, Workspace
from elucidario.queries.base import AbstractQuery


class MembershipQuery(AbstractQuery):
    """Memberships are created between an existing user and workspace.

    When either end is missing the MATCH yields no row and ``create`` returns ``None``.
    """

    model = Membership

    def build_create(self, data: Mapping[str, Any]) -> CypherQuery:
        properties = self.new_properties(data)

        def build(c: Cypher):
            user, workspace, membership = c.Node(), c.Node(), c.Node()
            match = (
                c.Match(c.Pattern(user, User.label), c.Pattern(workspace, Workspace.label))
                .where(user, {"uuid": properties["user_uuid"]})
                .where(workspace, {"uuid": properties["workspace_uuid"]})
            )
            create = c.Create(
                c.Pattern(user)
                .related(type=Membership.USER_EDGE)
                .to(membership, Membership.label, properties)
                .related(type=Membership.WORKSPACE_EDGE)
                .to(workspace)
            ).return_(membership)
            return c.concat(match, create)

        return self.cypher.builder(build).build()
