"""Fixtures for HTTP tests: the real app over a Core with mocked graph access."""

from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from elucidario.core.core import Core
from elucidario.core.schemas import AuthContext
from elucidario.core.security import create_access_token
from elucidario.core.settings import Settings
from elucidario.main import create_app


@pytest.fixture
def app(settings: Settings, core: Core) -> FastAPI:
    return create_app(settings, core)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Client without lifespan, so no database connection is opened."""
    return TestClient(app)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': 'sys-1'})}"}


@pytest.fixture
def as_sysadmin(core: Core, sysadmin: AuthContext) -> AsyncMock:
    """Every bearer token resolves to the sysadmin context."""
    core.authenticator.authenticate = AsyncMock(return_value=sysadmin)
    return core.authenticator.authenticate
