"""End-to-end tests against PostgreSQL with Apache AGE.

They run against the test graph named by the settings and are skipped when
the database cannot be reached.
"""

from collections.abc import AsyncGenerator

import asyncpg
import pytest
import pytest_asyncio

from elucidario.core.core import Core, create_core
from elucidario.core.errors import QueryError, ServiceError
from elucidario.core.settings import Settings
from elucidario.db.connection import setup_age_connection
from elucidario.queries import ListParams
from elucidario.services import ConfigService, UserService

pytestmark = pytest.mark.integration


@pytest_asyncio.fixture
async def pool(settings: Settings) -> AsyncGenerator[asyncpg.Pool, None]:
    try:
        pool = await asyncpg.create_pool(
            user=settings.postgres_user,
            password=settings.postgres_password,
            host=settings.postgres_host,
            port=settings.postgres_port,
            database=settings.active_database,
            min_size=1,
            max_size=2,
            init=setup_age_connection,
            timeout=5,
        )
    except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError, TimeoutError) as e:
        pytest.skip(f"PostgreSQL with AGE is not reachable: {e}")

    yield pool

    async with pool.acquire() as conn:
        exists = await conn.fetchval(
            "SELECT 1 FROM ag_catalog.ag_graph WHERE name = $1;", settings.active_graph
        )
        if exists:
            await conn.execute(
                "SELECT ag_catalog.drop_graph($1, true);", settings.active_graph
            )
    await pool.close()


@pytest_asyncio.fixture
async def core(settings: Settings, pool: asyncpg.Pool) -> Core:
    core = create_core(settings, pool=pool)
    await core.graph.setup()
    return core


SYSADMIN = {"email": "root@example.com", "username": "root", "password": "s3cretpass"}


class TestGraphSetup:
    @pytest.mark.asyncio
    async def test_constraints_are_installed(self, core: Core) -> None:
        installed = await core.graph.get_constraints()

        names = {constraint.name for constraint in installed}
        assert {"user_email_unique", "user_username_unique", "mainconfig_key_unique"} <= names

    @pytest.mark.asyncio
    async def test_setup_is_idempotent(self, core: Core) -> None:
        first = await core.graph.get_constraints()

        await core.graph.setup()

        assert await core.graph.get_constraints() == first


class TestLifecycle:
    """A full installation: config setup, then user CRUD as the sysadmin."""

    @pytest.mark.asyncio
    async def test_config_and_user_crud(self, core: Core) -> None:
        config = await ConfigService(core).create({"name": "Museum", "sysadmins": [SYSADMIN]})
        root_uuid = config["sysadmins"][0]["uuid"]

        context = await core.authenticator.authenticate({"uuid": root_uuid})
        assert context.is_superuser

        users = UserService(core, context)
        created = await users.create(
            {"email": "ada@example.com", "username": "ada", "password": "s3cretpass"}
        )
        assert "password" not in created

        updated = await users.update(created["uuid"], {"name": "Ada Lovelace"})
        assert updated["name"] == "Ada Lovelace"
        assert updated["email"] == "ada@example.com"

        listed = await users.list(ListParams(sort=(("username", "ASC"),)))
        assert [u["username"] for u in listed] == ["ada", "root"]

        assert await users.delete(created["uuid"]) is True
        assert await users.read(created["uuid"]) is None
        assert await users.delete(created["uuid"]) is False

    @pytest.mark.asyncio
    async def test_second_config_conflicts(self, core: Core) -> None:
        await ConfigService(core).create({"name": "Museum", "sysadmins": [SYSADMIN]})

        with pytest.raises(ServiceError) as exc_info:
            await ConfigService(core).create(
                {
                    "name": "Other",
                    "sysadmins": [{**SYSADMIN, "email": "x@example.com", "username": "x"}],
                }
            )

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_duplicate_email_conflicts(self, core: Core) -> None:
        config = await ConfigService(core).create({"name": "Museum", "sysadmins": [SYSADMIN]})
        context = await core.authenticator.authenticate(
            {"uuid": config["sysadmins"][0]["uuid"]}
        )

        with pytest.raises(QueryError) as exc_info:
            await UserService(core, context).create(
                {"email": SYSADMIN["email"], "username": "other", "password": "s3cretpass"}
            )

        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_login(self, core: Core) -> None:
        await ConfigService(core).create({"name": "Museum", "sysadmins": [SYSADMIN]})

        token = await core.authenticator.login(SYSADMIN["email"], SYSADMIN["password"])

        assert token
