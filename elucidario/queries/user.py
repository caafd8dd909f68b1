from typing import Any

from elucidario.db.cypher import Cypher
from elucidario.db.types import CypherQuery, QueryRunner
from elucidario.models import Config, Membership, User
from elucidario.queries.base import AbstractQuery, Scope, first_node, ignore_result


class UserQuery(AbstractQuery):
    model = User

    def build_sysadmin(self, uuid: str) -> CypherQuery:
        def build(c: Cypher):
            user, config = c.Node(), c.Node()
            return (
                c.Match(
                    c.Pattern(user, User.label)
                    .related(type=Config.SYSADMIN_EDGE)
                    .to(config, Config.label)
                )
                .where(user, {"uuid": uuid})
                .return_(user)
            )

        return self.cypher.builder(build).build()

    def build_delete_memberships(self, uuid: str) -> CypherQuery:
        def build(c: Cypher):
            membership = c.Node()
            return (
                c.Match(c.Pattern(membership, Membership.label))
                .where(membership, {"user_uuid": uuid})
                .detach_delete(membership)
            )

        return self.cypher.builder(build).build()

    async def is_sysadmin(self, uuid: str, runner: QueryRunner | None = None) -> bool:
        query = self.build_sysadmin(uuid)
        user: dict[str, Any] | None = await self._runner(runner).run(
            query, first_node(query.columns[0])
        )
        return user is not None

    async def delete(
        self, uuid: str, runner: QueryRunner | None = None, scope: Scope | None = None
    ) -> bool:
        """Remove the user together with its memberships."""
        runner = self._runner(runner)
        await runner.run(self.build_delete_memberships(uuid), ignore_result)
        return await super().delete(uuid, runner, scope)
