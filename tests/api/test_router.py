"""HTTP tests for the entity routes mounted by the application."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from elucidario.api.router import EntityRouter, RouteOptions
from elucidario.core.errors import AuthorizationError, QueryError
from elucidario.hooks import AUTH_STRATEGIES
from elucidario.main import create_app
from elucidario.models import User
from elucidario.queries import (
    ConfigQuery,
    HistoryQuery,
    ListParams,
    MembershipQuery,
    UserQuery,
)
from elucidario.services import ReadMixin, UserService

STAMP = "2024-01-01T00:00:00+00:00"

USER = {
    "type": "User",
    "uuid": "user-1",
    "email": "ada@example.com",
    "username": "ada",
    "password": "hash",
    "created_at": STAMP,
    "updated_at": STAMP,
}

CONFIG = {
    "type": "MainConfig",
    "uuid": "c-1",
    "name": "Museum",
    "key": "main",
    "created_at": STAMP,
    "updated_at": STAMP,
}


@pytest.fixture(autouse=True)
def no_history():
    with patch.object(HistoryQuery, "record", AsyncMock()) as record:
        yield record


class TestAuthentication:
    def test_missing_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/users")

        assert response.status_code == 401
        assert response.json() == {
            "error": "Unauthorized",
            "message": "Not authenticated",
            "statusCode": 401,
        }
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.get("/api/v1/users", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Could not validate credentials"

    def test_workspace_from_header(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "list", AsyncMock(return_value=[])):
            response = client.get("/api/v1/users", headers={**auth_headers, "X-Workspace": "ws-1"})

        assert response.status_code == 200
        as_sysadmin.assert_awaited_once_with({"uuid": "sys-1"}, "ws-1")

    def test_workspace_from_path(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(MembershipQuery, "list", AsyncMock(return_value=[])) as list_query:
            response = client.get("/api/v1/workspaces/ws-7/members", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"data": []}
        as_sysadmin.assert_awaited_once_with({"uuid": "sys-1"}, "ws-7")
        assert list_query.await_args.kwargs["scope"] == {"workspace_uuid": "ws-7"}


class TestCrudRoutes:
    """Users resource through the generic router."""

    def test_create(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "create", AsyncMock(return_value=USER)):
            response = client.post(
                "/api/v1/users",
                json={"email": "ada@example.com", "username": "ada", "password": "s3cretpass"},
                headers=auth_headers,
            )

        assert response.status_code == 201
        body = response.json()["data"]
        assert body["uuid"] == "user-1"
        assert "password" not in body

    def test_sign_up_needs_no_token(self, client: TestClient, no_history) -> None:
        with patch.object(UserQuery, "create", AsyncMock(return_value=USER)):
            response = client.post(
                "/api/v1/users",
                json={"email": "ada@example.com", "username": "ada", "password": "s3cretpass"},
            )

        assert response.status_code == 201
        assert response.json()["data"]["username"] == "ada"
        assert no_history.await_args.args[-1] is None

    def test_create_invalid(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        response = client.post("/api/v1/users", json={"email": "x"}, headers=auth_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Bad Request"
        assert "password" in body["details"]

    def test_create_with_malformed_json(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        response = client.post(
            "/api/v1/users",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["details"] == {"body": ["Invalid JSON."]}

    def test_duplicate(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        conflict = AsyncMock(side_effect=QueryError("Entity already exists.", 409))
        with patch.object(UserQuery, "create", conflict):
            response = client.post(
                "/api/v1/users",
                json={"email": "ada@example.com", "username": "ada", "password": "s3cretpass"},
                headers=auth_headers,
            )

        assert response.status_code == 409
        assert response.json()["error"] == "Conflict"

    def test_read(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "read", AsyncMock(return_value=USER)):
            response = client.get("/api/v1/users/user-1", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["email"] == "ada@example.com"

    def test_read_missing(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "read", AsyncMock(return_value=None)):
            response = client.get("/api/v1/users/nope", headers=auth_headers)

        assert response.status_code == 404
        assert response.json() == {
            "error": "Not Found",
            "message": "User not found.",
            "statusCode": 404,
        }

    def test_list_params(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "list", AsyncMock(return_value=[USER])) as list_query:
            response = client.get(
                "/api/v1/users",
                params={"limit": 5, "offset": 10, "sort": "-username", "filter": "name:Ada"},
                headers=auth_headers,
            )

        assert response.status_code == 200
        assert len(response.json()["data"]) == 1
        assert list_query.await_args.args[0] == ListParams(
            limit=5, offset=10, sort=(("username", "DESC"),), filters={"name": "Ada"}
        )

    @pytest.mark.parametrize("query", ["limit=0", "limit=101", "offset=-1", "limit=abc"])
    def test_list_rejects_bad_paging(self, client: TestClient, auth_headers, as_sysadmin, query) -> None:
        response = client.get(f"/api/v1/users?{query}", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["statusCode"] == 400

    def test_list_rejects_unknown_sort_field(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        response = client.get("/api/v1/users?sort=password", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["details"] == {"sort": ["Unknown field: password"]}

    def test_update(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        updated = {**USER, "name": "Ada"}
        with (
            patch.object(UserQuery, "read", AsyncMock(return_value=USER)),
            patch.object(UserQuery, "update", AsyncMock(return_value=updated)),
        ):
            response = client.put("/api/v1/users/user-1", json={"name": "Ada"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ada"

    def test_delete(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with (
            patch.object(UserQuery, "read", AsyncMock(return_value=USER)),
            patch.object(UserQuery, "delete", AsyncMock(return_value=True)),
        ):
            response = client.delete("/api/v1/users/user-1", headers=auth_headers)

        assert response.status_code == 204
        assert response.content == b""

    def test_delete_missing(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "read", AsyncMock(return_value=None)):
            response = client.delete("/api/v1/users/nope", headers=auth_headers)

        assert response.status_code == 404

    def test_unexpected_failure(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(UserQuery, "read", AsyncMock(side_effect=RuntimeError("bug"))):
            response = client.get("/api/v1/users/user-1", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred.",
            "statusCode": 500,
        }


class TestConfigRoutes:
    """The singleton config resource."""

    PAYLOAD = {
        "name": "Museum",
        "sysadmins": [{"email": "root@example.com", "username": "root", "password": "s3cretpass"}],
    }

    def test_setup_needs_no_token(self, client: TestClient) -> None:
        with (
            patch.object(ConfigQuery, "read_main", AsyncMock(return_value=None)),
            patch.object(ConfigQuery, "create", AsyncMock(return_value=CONFIG)),
            patch.object(ConfigQuery, "add_sysadmin", AsyncMock(return_value=None)),
            patch.object(UserQuery, "create", AsyncMock(return_value=USER)),
        ):
            response = client.post("/api/v1/config", json=self.PAYLOAD)

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["name"] == "Museum"
        assert data["sysadmins"][0]["username"] == "ada"

    def test_second_setup_conflicts(self, client: TestClient) -> None:
        with patch.object(ConfigQuery, "read_main", AsyncMock(return_value=CONFIG)):
            response = client.post("/api/v1/config", json=self.PAYLOAD)

        assert response.status_code == 409
        assert response.json() == {
            "error": "Conflict",
            "message": "Main config already exists.",
            "statusCode": 409,
        }

    def test_read_requires_authentication(self, client: TestClient) -> None:
        assert client.get("/api/v1/config").status_code == 401

    def test_read(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(ConfigQuery, "read_main", AsyncMock(return_value=CONFIG)):
            response = client.get("/api/v1/config", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["uuid"] == "c-1"

    def test_read_before_setup(self, client: TestClient, auth_headers, as_sysadmin) -> None:
        with patch.object(ConfigQuery, "read_main", AsyncMock(return_value=None)):
            response = client.get("/api/v1/config", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "Main config not found."

    @pytest.mark.parametrize("method", ["PUT", "DELETE"])
    def test_update_and_delete_are_not_allowed(self, client: TestClient, method: str) -> None:
        response = client.request(method, "/api/v1/config/c-1")

        assert response.status_code == 405
        assert response.json()["error"] == "Method Not Allowed"


class TestLogin:
    def test_issues_token(self, client: TestClient, core) -> None:
        core.authenticator.login = AsyncMock(return_value="signed-token")

        response = client.post(
            "/api/v1/auth/login", json={"email": "ada@example.com", "password": "s3cretpass"}
        )

        assert response.status_code == 200
        assert response.json() == {
            "data": {"access_token": "signed-token", "token_type": "bearer"}
        }

    def test_wrong_credentials(self, client: TestClient, core) -> None:
        core.authenticator.login = AsyncMock(
            side_effect=AuthorizationError("Incorrect email or password", 401)
        )

        response = client.post("/api/v1/auth/login", json={"email": "a@b.co", "password": "x"})

        assert response.status_code == 401


class TestUnexpectedDependencyFailure:
    def test_strategy_failure_uses_the_envelope(self, settings, make_core) -> None:
        async def broken(request):
            raise ValueError("strategy bug")

        core = make_core(lambda hooks: hooks.add_filter(AUTH_STRATEGIES, lambda s: [broken, *s]))
        client = TestClient(create_app(settings, core), raise_server_exceptions=False)

        response = client.get("/api/v1/users")

        assert response.status_code == 500
        assert response.json() == {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred.",
            "statusCode": 500,
        }


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "healthy"}


class TestEntityRouter:
    """Route registration follows the capabilities of the service."""

    class ReadOnlyService(ReadMixin):
        model = User
        query_class = UserQuery

    def test_registers_only_supported_routes(self) -> None:
        router = EntityRouter("things", self.ReadOnlyService).register_routes()

        assert isinstance(router, APIRouter)
        routes = {(route.path, tuple(sorted(route.methods))) for route in router.routes}
        assert routes == {("/things/{uuid}", ("GET",))}

    def test_missing_capability(self) -> None:
        with pytest.raises(TypeError, match="does not implement Creatable"):
            EntityRouter("things", self.ReadOnlyService).register_post_route()

    def test_full_service(self) -> None:
        router = EntityRouter("people", UserService).register_routes(
            {"list": RouteOptions(summary="Everyone")}
        )

        methods = sorted(m for route in router.routes for m in route.methods)
        assert methods == ["DELETE", "GET", "GET", "POST", "PUT"]
        summaries = {route.summary for route in router.routes}
        assert "Everyone" in summaries
