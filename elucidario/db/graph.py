"""Graph engine: query execution, write transactions and constraint setup on Apache AGE."""

import json
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any, TypeVar
from uuid import UUID

import asyncpg

from elucidario.core.errors import ElucidarioError, GraphError, QueryError
from elucidario.core.settings import Settings
from elucidario.db.agtype import parse_agtype, parse_node, parse_relationship
from elucidario.db.connection import close_graph_pool, create_graph_pool
from elucidario.db.cypher import Cypher, identifier
from elucidario.db.types import CypherQuery, PropertyConstraint, ResultMapper, Row
from elucidario.hooks import SET_CONSTRAINTS, HookRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_COLUMNS: tuple[str, ...] = ("result",)
INDEX_SEPARATOR = "__"

_INDEX_PROPERTY = re.compile(r"'\"([A-Za-z_][A-Za-z0-9_]*)\"'::")

_CONNECTION_ERRORS = (
    OSError,
    asyncpg.InterfaceError,
    asyncpg.exceptions.PostgresConnectionError,
)


def _json_default(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class GraphTransaction:
    """Handle given to ``Graph.write_transaction`` callbacks.

    Every statement run through it belongs to the same database transaction.
    """

    def __init__(self, graph: "Graph", conn: asyncpg.Connection):
        self.graph = graph
        self.conn = conn

    async def run(self, query: CypherQuery, map_result: ResultMapper[T]) -> T:
        rows = await self.graph.fetch(self.conn, query.text, query.params, query.columns)
        return map_result(rows)

    async def execute_query(
        self,
        map_result: ResultMapper[T],
        query_text: str,
        params: dict[str, Any] | None = None,
        columns: Sequence[str] = DEFAULT_COLUMNS,
    ) -> T:
        rows = await self.graph.fetch(self.conn, query_text, params, columns)
        return map_result(rows)


class Graph:
    """Owns the graph pool for the process lifetime and runs every query.

    Args:
        hooks: Registry the ``graph.setConstraints`` filter is read from
        cypher: Query builder used by the query objects
        graph_name: Name of the AGE graph
        pool: Ready pool; when omitted ``connect()`` creates the shared one
    """

    parse_node = staticmethod(parse_node)
    parse_relationship = staticmethod(parse_relationship)

    def __init__(
        self,
        hooks: HookRegistry,
        cypher: Cypher,
        graph_name: str,
        pool: asyncpg.Pool | None = None,
    ):
        self.hooks = hooks
        self.cypher = cypher
        self.graph_name = identifier(graph_name, "graph name")
        self.pool = pool
        self._shared_pool = False

    async def connect(self, settings: Settings | None = None) -> None:
        if self.pool is None:
            try:
                self.pool = await create_graph_pool(settings)
            except _CONNECTION_ERRORS as e:
                raise GraphError("Could not connect to the graph store.") from e
            self._shared_pool = True

    async def close(self) -> None:
        """Close the pool in use, whether created by ``connect()`` or handed in."""
        pool, self.pool = self.pool, None
        if self._shared_pool:
            self._shared_pool = False
            await close_graph_pool()
        elif pool is not None:
            await pool.close()
            logger.info("Graph connection pool closed")

    def _require_pool(self) -> asyncpg.Pool:
        if self.pool is None:
            raise GraphError("Graph connection pool is not initialized")
        return self.pool

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def to_sql(self, query_text: str, columns: Sequence[str], with_params: bool) -> str:
        """Wrap Cypher text in the ``cypher()`` call AGE expects."""
        as_clause = ", ".join(
            f'"{identifier(column, "column")}" agtype'
            for column in (columns or DEFAULT_COLUMNS)
        )
        params_arg = ", $1" if with_params else ""
        return (
            f"SELECT * FROM ag_catalog.cypher('{self.graph_name}', "
            f"$$ {query_text} $${params_arg}) AS ({as_clause});"
        )

    async def fetch(
        self,
        conn: asyncpg.Connection,
        query_text: str,
        params: dict[str, Any] | None,
        columns: Sequence[str],
    ) -> list[Row]:
        """Run one Cypher statement on ``conn`` and decode every agtype column."""
        columns = tuple(columns) or DEFAULT_COLUMNS
        sql = self.to_sql(query_text, columns, bool(params))
        args = [json.dumps(params, default=_json_default)] if params else []

        logger.debug("cypher: %s params=%s", query_text, list((params or {}).keys()))
        try:
            records = await conn.fetch(sql, *args)
        except Exception as e:
            raise self.error(e) from e

        return [
            {column: parse_agtype(record[column]) for column in columns}
            for record in records
        ]

    async def execute_query(
        self,
        map_result: ResultMapper[T],
        query_text: str,
        params: dict[str, Any] | None = None,
        columns: Sequence[str] = DEFAULT_COLUMNS,
    ) -> T:
        """Run a single auto-committed query and map its rows.

        Raises:
            QueryError: The store rejected or failed the query
            GraphError: The store could not be reached
        """
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                rows = await self.fetch(conn, query_text, params, columns)
        except ElucidarioError:
            raise
        except _CONNECTION_ERRORS as e:
            raise self.error(e) from e

        return map_result(rows)

    async def run(self, query: CypherQuery, map_result: ResultMapper[T]) -> T:
        return await self.execute_query(map_result, query.text, query.params, query.columns)

    async def write_transaction(
        self, work: Callable[[GraphTransaction], Awaitable[T]]
    ) -> T:
        """Run ``work`` inside one write transaction.

        Commits when ``work`` returns; any exception (or cancellation) rolls
        the transaction back before it propagates.
        """
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    return await work(GraphTransaction(self, conn))
        except ElucidarioError:
            raise
        except (asyncpg.PostgresError, *_CONNECTION_ERRORS) as e:
            raise self.error(e) from e

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    async def setup(self) -> list[PropertyConstraint]:
        """Create the graph if needed and install the constraints from ``graph.setConstraints``.

        Safe to call repeatedly: every statement is a no-op when its object exists.
        """
        constraints = self.hooks.apply_filter(SET_CONSTRAINTS, [])
        if not isinstance(constraints, list):
            raise GraphError(
                "The filter 'graph.setConstraints' must return a list of constraints."
            )

        unique: dict[tuple[tuple[str, ...], str], PropertyConstraint] = {}
        for constraint in constraints:
            if constraint.key in unique:
                logger.warning(
                    "Skipping constraint %s: %s already covers %s on %s",
                    constraint.name,
                    unique[constraint.key].name,
                    constraint.property,
                    ", ".join(constraint.labels),
                )
                continue
            unique[constraint.key] = constraint

        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await self._ensure_graph(conn)
                    for constraint in unique.values():
                        for label in constraint.labels:
                            await self._ensure_label(conn, label)
                            _ = await conn.execute(self.constraint_sql(constraint, label))
        except (asyncpg.PostgresError, *_CONNECTION_ERRORS) as e:
            raise GraphError(f"Failed to set constraints on graph '{self.graph_name}'") from e

        logger.info(
            "Graph '%s' ready with %d constraints", self.graph_name, len(unique)
        )
        return list(unique.values())

    async def _ensure_graph(self, conn: asyncpg.Connection) -> None:
        exists = await conn.fetchval(
            "SELECT 1 FROM ag_catalog.ag_graph WHERE name = $1;", self.graph_name
        )
        if not exists:
            _ = await conn.execute("SELECT ag_catalog.create_graph($1);", self.graph_name)
            logger.info("Created graph '%s'", self.graph_name)

    async def _ensure_label(self, conn: asyncpg.Connection, label: str) -> None:
        exists = await conn.fetchval(
            """
            SELECT 1 FROM ag_catalog.ag_label l
            JOIN ag_catalog.ag_graph g ON l.graph = g.graphid
            WHERE g.name = $1 AND l.name = $2;
            """,
            self.graph_name,
            label,
        )
        if not exists:
            _ = await conn.execute(
                "SELECT ag_catalog.create_vlabel($1, $2);", self.graph_name, label
            )

    def constraint_sql(self, constraint: PropertyConstraint, label: str) -> str:
        """Unique expression index standing in for a property uniqueness constraint."""
        index_name = identifier(
            f"{constraint.name}{INDEX_SEPARATOR}{label}", "constraint name"
        )
        prop = identifier(constraint.property, "property key")
        return (
            f'CREATE UNIQUE INDEX IF NOT EXISTS "{index_name}" '
            f'ON "{self.graph_name}"."{identifier(label, "label")}" '
            f"(ag_catalog.agtype_access_operator(VARIADIC ARRAY[properties, "
            f"'\"{prop}\"'::ag_catalog.agtype]));"
        )

    async def get_constraints(self) -> list[PropertyConstraint]:
        """Constraints currently installed in the store."""
        pool = self._require_pool()
        try:
            async with pool.acquire() as conn:
                records = await conn.fetch(
                    """
                    SELECT indexname, tablename, indexdef FROM pg_indexes
                    WHERE schemaname = $1 AND indexdef LIKE 'CREATE UNIQUE INDEX%'
                    ORDER BY indexname;
                    """,
                    self.graph_name,
                )
        except (asyncpg.PostgresError, *_CONNECTION_ERRORS) as e:
            raise GraphError("Failed to get constraints") from e

        grouped: dict[tuple[str, str], list[str]] = {}
        for record in records:
            match = _INDEX_PROPERTY.search(record["indexdef"])
            if match is None or INDEX_SEPARATOR not in record["indexname"]:
                continue
            name = record["indexname"].rsplit(INDEX_SEPARATOR, 1)[0]
            grouped.setdefault((name, match.group(1)), []).append(record["tablename"])

        return [
            PropertyConstraint(name=name, labels=labels, property=prop)
            for (name, prop), labels in grouped.items()
        ]

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def error(self, err: BaseException) -> ElucidarioError:
        """Translate a driver exception into the framework's taxonomy.

        The caller attaches ``err`` as the cause with ``raise ... from err``.
        """
        if isinstance(err, ElucidarioError):
            return err

        if isinstance(err, asyncpg.UniqueViolationError):
            return QueryError(
                "Entity already exists.",
                409,
                details={"constraint": getattr(err, "constraint_name", None)},
            )

        if isinstance(err, _CONNECTION_ERRORS):
            logger.error("Graph store connection failure: %s", err)
            return GraphError("The graph store is unavailable.")

        if isinstance(err, asyncpg.PostgresError):
            logger.error("Graph query failed: %s", err)
            return QueryError("The graph store could not execute the query.")

        if isinstance(err, TimeoutError):
            logger.error("Graph query timed out")
            return QueryError("The graph query timed out.")

        logger.exception("Unexpected graph failure", exc_info=err)
        return GraphError("Unexpected graph failure.")
