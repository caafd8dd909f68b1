from elucidario.db.cypher import Cypher
from elucidario.db.types import CypherQuery, QueryRunner
from elucidario.models import Membership, Workspace
from elucidario.queries.base import AbstractQuery, Scope, ignore_result


class WorkspaceQuery(AbstractQuery):
    model = Workspace

    def build_delete_memberships(self, uuid: str) -> CypherQuery:
        def build(c: Cypher):
            membership = c.Node()
            return (
                c.Match(c.Pattern(membership, Membership.label))
                .where(membership, {"workspace_uuid": uuid})
                .detach_delete(membership)
            )

        return self.cypher.builder(build).build()

    async def delete(
        self, uuid: str, runner: QueryRunner | None = None, scope: Scope | None = None
    ) -> bool:
        """Remove the workspace together with its memberships."""
        runner = self._runner(runner)
        await runner.run(self.build_delete_memberships(uuid), ignore_result)
        return await super().delete(uuid, runner, scope)
