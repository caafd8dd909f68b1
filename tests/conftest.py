"""Pytest configuration and shared fixtures for all tests.

Unit tests never touch PostgreSQL: the asyncpg pool is replaced by mocks and
services get a graph whose ``write_transaction`` runs the work against a
sentinel transaction. Tests marked ``integration`` use the real database and
are skipped when it cannot be reached.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from elucidario.core.core import Core, Plugin, create_core
from elucidario.core.schemas import AuthContext
from elucidario.core.settings import Settings
from elucidario.hooks import HookRegistry

from tests.helpers import make_connection, make_pool, member


@pytest.fixture
def settings() -> Settings:
    """Provide test settings with testing mode enabled."""
    return Settings(testing=True)


@pytest.fixture
def hooks() -> HookRegistry:
    return HookRegistry()


@pytest.fixture
def connection() -> MagicMock:
    return make_connection()


@pytest.fixture
def pool(connection: MagicMock) -> MagicMock:
    return make_pool(connection)


@pytest.fixture
def tx() -> object:
    """Sentinel handed to service work callbacks in place of a GraphTransaction."""
    return object()


@pytest.fixture
def make_core(settings: Settings, tx: object) -> Callable[..., Core]:
    """Factory for a Core whose write transactions run in memory."""

    def factory(*plugins: Plugin) -> Core:
        core = create_core(settings, plugins=plugins)

        async def write_transaction(work):
            return await work(tx)

        core.graph.write_transaction = AsyncMock(side_effect=write_transaction)
        return core

    return factory


@pytest.fixture
def core(make_core: Callable[..., Core]) -> Core:
    return make_core()


@pytest.fixture
def sysadmin() -> AuthContext:
    return AuthContext(
        user={"uuid": "sys-1", "email": "root@example.com", "username": "root"},
        role="sysadmin",
    )


@pytest.fixture
def workspace() -> dict[str, Any]:
    return {"uuid": "ws-1", "name": "Museum", "type": "Workspace"}


@pytest.fixture
def admin(workspace: dict[str, Any]) -> AuthContext:
    return member("admin", workspace, "admin-1")


@pytest.fixture
def researcher(workspace: dict[str, Any]) -> AuthContext:
    return member("researcher", workspace, "user-1")
