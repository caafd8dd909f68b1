"""Test doubles for the asyncpg boundary and auth contexts."""

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from elucidario.core.schemas import AuthContext


class FakeTransaction:
    """Async context manager standing in for ``asyncpg.Connection.transaction()``."""

    def __init__(self) -> None:
        self.committed = False
        self.rolled_back = False

    async def __aenter__(self) -> "FakeTransaction":
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        if exc_type is None:
            self.committed = True
        else:
            self.rolled_back = True
        return False


def make_connection(rows: list[dict[str, Any]] | None = None) -> MagicMock:
    conn = MagicMock()
    conn.fetch = AsyncMock(return_value=rows or [])
    conn.fetchval = AsyncMock(return_value=None)
    conn.execute = AsyncMock(return_value="OK")
    conn.tx = FakeTransaction()
    conn.transaction = MagicMock(return_value=conn.tx)
    return conn


def make_pool(conn: MagicMock) -> MagicMock:
    acquire = MagicMock()
    acquire.__aenter__ = AsyncMock(return_value=conn)
    acquire.__aexit__ = AsyncMock(return_value=False)
    pool = MagicMock()
    pool.acquire = MagicMock(return_value=acquire)
    return pool


def vertex(label: str, properties: dict[str, Any], vertex_id: int = 1) -> str:
    """agtype text of a vertex as AGE returns it."""
    return json.dumps({"id": vertex_id, "label": label, "properties": properties}) + "::vertex"


def member(role: str, workspace: dict[str, Any], user_uuid: str = "user-1") -> AuthContext:
    return AuthContext(
        user={"uuid": user_uuid, "email": f"{user_uuid}@example.com", "username": user_uuid},
        role=role,
        workspace=workspace,
    )


class FakeRunner:
    """QueryRunner that records built queries and answers with canned decoded rows."""

    def __init__(self, *responses: list[dict[str, Any]]):
        self.responses = list(responses)
        self.queries: list[Any] = []

    async def run(self, query: Any, map_result: Any) -> Any:
        self.queries.append(query)
        rows = self.responses.pop(0) if self.responses else []
        return map_result(rows)


def node(label: str, properties: dict[str, Any], node_id: int = 1) -> dict[str, Any]:
    """A vertex as it looks once agtype has been decoded."""
    return {"id": node_id, "label": label, "properties": properties}
