import logging
from typing import Any

from elucidario.core.errors import ServiceError
from elucidario.db.graph import GraphTransaction
from elucidario.models import Config, User
from elucidario.queries import ConfigQuery, ListParams, UserQuery
from elucidario.services.base import AbstractService, Entity
from elucidario.services.user import hash_password

logger = logging.getLogger(__name__)


class ConfigService(AbstractService):
    """The singleton main config.

    Creating it is how an installation is set up, so ``create`` needs no
    authenticated user and also creates the first sysadmin accounts. It can
    only happen once.
    """

    model = Config
    query_class = ConfigQuery
    query: ConfigQuery

    async def create(self, data: dict[str, Any]) -> Entity:
        payload = self.validate(Config.create_schema, data)
        users = UserQuery(self.graph)

        async def work(tx: GraphTransaction) -> Entity:
            if await self.query.read_main(tx) is not None:
                raise ServiceError("Main config already exists.", 409)

            config = await self.query.create({"name": payload["name"]}, tx)
            if config is None:
                raise ServiceError("Main config could not be created.", 500)
            await self.record(tx, "create", config)

            sysadmins = []
            for admin in payload["sysadmins"]:
                user = await users.create(hash_password(admin), tx)
                if user is None:
                    raise ServiceError("Sysadmin user could not be created.", 500)
                await self.query.add_sysadmin(config["uuid"], user["uuid"], tx)
                await self.record(tx, "create", user, User)
                sysadmins.append(user)

            return {**config, "sysadmins": sysadmins}

        result = self.serialize(await self.transaction(work))
        logger.info("Main config created with %d sysadmins", len(result["sysadmins"]))
        self.fire("created", result)
        return result

    async def list(self, params: ListParams | None = None) -> Entity | None:
        """The main config; there is never more than one."""
        self.authorize("read")
        config = await self.query.read_main()
        if config is None:
            return None
        return self.serialize(config)
