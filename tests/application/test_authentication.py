"""Tests for request authentication and login."""

from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock

import pytest
from starlette.requests import Request

from elucidario.application.authentication import Authenticator, bearer_token_strategy
from elucidario.core.core import Core
from elucidario.core.errors import AuthorizationError
from elucidario.core.security import create_access_token, get_password_hash, verify_token

USER_NODE = {
    "type": "User",
    "uuid": "user-1",
    "email": "ada@example.com",
    "username": "ada",
    "password": "hash",
    "created_at": "2024-01-01T00:00:00+00:00",
    "updated_at": "2024-01-01T00:00:00+00:00",
}

WORKSPACE_NODE = {
    "type": "Workspace",
    "uuid": "ws-1",
    "name": "Museum",
    "created_at": "2024-01-01T00:00:00+00:00",
    "updated_at": "2024-01-01T00:00:00+00:00",
}


def make_request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


@pytest.fixture
def authenticator(core: Core) -> Authenticator:
    """Authenticator whose graph lookups are mocked per test."""
    auth = core.authenticator
    auth.users.find_one = AsyncMock(return_value=USER_NODE)
    auth.users.is_sysadmin = AsyncMock(return_value=False)
    auth.workspaces.read = AsyncMock(return_value=WORKSPACE_NODE)
    auth.memberships.find_one = AsyncMock(return_value={"role": "editor"})
    return auth


class TestBearerStrategy:
    @pytest.mark.asyncio
    async def test_no_header(self) -> None:
        assert await bearer_token_strategy(make_request()) is None

    @pytest.mark.asyncio
    async def test_other_scheme_is_ignored(self) -> None:
        request = make_request({"Authorization": "Basic YWxhZGRpbjpvcGVu"})

        assert await bearer_token_strategy(request) is None

    @pytest.mark.asyncio
    async def test_valid_token(self) -> None:
        token = create_access_token({"sub": "user-1"})

        lookup = await bearer_token_strategy(make_request({"Authorization": f"Bearer {token}"}))

        assert lookup == {"uuid": "user-1"}

    @pytest.mark.asyncio
    async def test_forged_token(self) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            await bearer_token_strategy(make_request({"Authorization": "Bearer not.a.jwt"}))

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_token(self) -> None:
        token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=-1))

        with pytest.raises(AuthorizationError, match="Could not validate"):
            await bearer_token_strategy(make_request({"Authorization": f"Bearer {token}"}))

    @pytest.mark.asyncio
    async def test_token_without_subject(self) -> None:
        token = create_access_token({"scope": "x"})

        with pytest.raises(AuthorizationError, match="missing required user"):
            await bearer_token_strategy(make_request({"Authorization": f"Bearer {token}"}))


class TestIdentify:
    @pytest.mark.asyncio
    async def test_first_recognizing_strategy_wins(self, make_core) -> None:
        async def header_strategy(request: Request) -> dict[str, Any] | None:
            user = request.headers.get("X-User")
            return {"uuid": user} if user else None

        core = make_core(lambda hooks: hooks.add_filter(
            "auth.strategies", lambda strategies: [header_strategy, *strategies]
        ))

        lookup = await core.authenticator.identify(make_request({"X-User": "user-9"}))

        assert lookup == {"uuid": "user-9"}

    @pytest.mark.asyncio
    async def test_unrecognized_request(self, core: Core) -> None:
        assert await core.authenticator.identify(make_request()) is None


class TestAuthenticate:
    """Role resolution of a request."""

    @pytest.mark.asyncio
    async def test_member_gets_membership_role(self, authenticator: Authenticator) -> None:
        context = await authenticator.authenticate({"uuid": "user-1"}, "ws-1")

        assert context.role == "editor"
        assert context.workspace_uuid == "ws-1"
        assert "password" not in context.user
        authenticator.memberships.find_one.assert_awaited_once_with(
            {"user_uuid": "user-1", "workspace_uuid": "ws-1"}
        )

    @pytest.mark.asyncio
    async def test_sysadmin_in_workspace(self, authenticator: Authenticator) -> None:
        authenticator.users.is_sysadmin.return_value = True

        context = await authenticator.authenticate({"uuid": "user-1"}, "ws-1")

        assert context.role == "sysadmin"
        assert context.workspace is not None
        authenticator.memberships.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sysadmin_without_workspace(self, authenticator: Authenticator) -> None:
        authenticator.users.is_sysadmin.return_value = True

        context = await authenticator.authenticate({"uuid": "user-1"})

        assert context.is_superuser
        assert context.workspace is None

    @pytest.mark.parametrize(
        ("setup", "workspace", "message"),
        [
            (lambda a: setattr(a.users.find_one, "return_value", None), "ws-1", "User not found."),
            (lambda a: None, None, "A workspace is required for this request."),
            (
                lambda a: setattr(a.workspaces.read, "return_value", None),
                "ws-x",
                "Workspace not found.",
            ),
            (
                lambda a: setattr(a.memberships.find_one, "return_value", None),
                "ws-1",
                "User is not a member of this workspace.",
            ),
        ],
    )
    @pytest.mark.asyncio
    async def test_rejections(self, authenticator: Authenticator, setup, workspace, message) -> None:
        setup(authenticator)

        with pytest.raises(AuthorizationError) as exc_info:
            await authenticator.authenticate({"uuid": "user-1"}, workspace)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == message


class TestLogin:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, authenticator: Authenticator) -> None:
        authenticator.users.find_one.return_value = {
            **USER_NODE,
            "password": get_password_hash("s3cretpass"),
        }

        token = await authenticator.login("ada@example.com", "s3cretpass")

        assert verify_token(token)["sub"] == "user-1"
        authenticator.users.find_one.assert_awaited_once_with({"email": "ada@example.com"})

    @pytest.mark.asyncio
    async def test_wrong_password(self, authenticator: Authenticator) -> None:
        authenticator.users.find_one.return_value = {
            **USER_NODE,
            "password": get_password_hash("s3cretpass"),
        }

        with pytest.raises(AuthorizationError, match="Incorrect email or password"):
            await authenticator.login("ada@example.com", "wrong-password")

    @pytest.mark.asyncio
    async def test_unknown_email(self, authenticator: Authenticator) -> None:
        authenticator.users.find_one.return_value = None

        with pytest.raises(AuthorizationError) as exc_info:
            await authenticator.login("nobody@example.com", "whatever1")

        assert exc_info.value.status_code == 401
