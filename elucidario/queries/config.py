from collections.abc import Mapping
from typing import Any

from elucidario.db.agtype import parse_node
from elucidario.db.cypher import Cypher
from elucidario.db.types import CypherQuery, QueryRunner, Row
from elucidario.models import Config, User
from elucidario.models.config import SINGLETON_KEY
from elucidario.queries.base import AbstractQuery, ignore_result


class ConfigQuery(AbstractQuery):
    model = Config

    def build_create(self, data: Mapping[str, Any]) -> CypherQuery:
        return super().build_create({**data, "key": SINGLETON_KEY})

    def build_read_main(self) -> CypherQuery:
        def build(c: Cypher):
            config, user = c.Node(), c.Node()
            return c.concat(
                c.Match(c.Pattern(config, Config.label)).where(config, {"key": SINGLETON_KEY}),
                c.OptionalMatch(
                    c.Pattern(user, User.label)
                    .related(type=Config.SYSADMIN_EDGE)
                    .to(config)
                ).return_(config, (c.collect(user), "sysadmins")),
            )

        return self.cypher.builder(build).build()

    def build_add_sysadmin(self, config_uuid: str, user_uuid: str) -> CypherQuery:
        def build(c: Cypher):
            config, user = c.Node(), c.Node()
            return c.concat(
                c.Match(c.Pattern(config, Config.label), c.Pattern(user, User.label))
                .where(config, {"uuid": config_uuid})
                .where(user, {"uuid": user_uuid}),
                c.Create(c.Pattern(user).related(type=Config.SYSADMIN_EDGE).to(config)),
            )

        return self.cypher.builder(build).build()

    async def read_main(self, runner: QueryRunner | None = None) -> dict[str, Any] | None:
        """The main config with its sysadmin users, or ``None`` before setup."""
        query = self.build_read_main()
        config_column, sysadmins_column = query.columns

        def map_result(rows: list[Row]) -> dict[str, Any] | None:
            if not rows:
                return None
            config = parse_node(rows[0][config_column])
            if config is None:
                return None
            config["sysadmins"] = [parse_node(user) for user in rows[0][sysadmins_column] or []]
            return config

        return await self._runner(runner).run(query, map_result)

    async def add_sysadmin(
        self, config_uuid: str, user_uuid: str, runner: QueryRunner | None = None
    ) -> None:
        await self._runner(runner).run(
            self.build_add_sysadmin(config_uuid, user_uuid), ignore_result
        )
