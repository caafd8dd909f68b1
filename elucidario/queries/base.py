"""Create/read/list/update/delete query shapes shared by every entity type.

Each operation comes in two halves: ``build_*`` returns the ``CypherQuery``
and the coroutine of the same name runs it on a ``QueryRunner``, either the
Graph itself (auto-commit) or the ``GraphTransaction`` a service opened.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar
from uuid import uuid4

from elucidario.db.agtype import parse_node
from elucidario.db.cypher import Cypher, SortOrder
from elucidario.db.graph import Graph
from elucidario.db.types import CypherQuery, QueryRunner, ResultMapper, Row
from elucidario.models.base import EntityModel

Scope = Mapping[str, Any]

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def utc_now() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True)
class ListParams:
    """Pagination, ordering and equality filters of a list call."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0
    sort: tuple[tuple[str, SortOrder], ...] = ()
    filters: Mapping[str, Any] = field(default_factory=dict)


def first_node(column: str) -> ResultMapper[dict[str, Any] | None]:
    def map_result(rows: list[Row]) -> dict[str, Any] | None:
        if not rows:
            return None
        return parse_node(rows[0][column])

    return map_result


def all_nodes(column: str) -> ResultMapper[list[dict[str, Any]]]:
    def map_result(rows: list[Row]) -> list[dict[str, Any]]:
        return [node for row in rows if (node := parse_node(row[column])) is not None]

    return map_result


def removed(rows: list[Row]) -> bool:
    return len(rows) == 1 and bool(rows[0]["removed"])


def ignore_result(rows: list[Row]) -> None:
    return None


class AbstractQuery:
    """Query shapes of one entity type, keyed by its model's label."""

    model: ClassVar[type[EntityModel]]

    def __init__(self, graph: Graph):
        self.graph = graph
        self.cypher: Cypher = graph.cypher

    @property
    def label(self) -> str:
        return self.model.label

    def _runner(self, runner: QueryRunner | None) -> QueryRunner:
        return runner if runner is not None else self.graph

    @staticmethod
    def new_properties(data: Mapping[str, Any]) -> dict[str, Any]:
        """``data`` plus a fresh uuid and the timestamp pair."""
        now = utc_now()
        return {**data, "uuid": str(uuid4()), "created_at": now, "updated_at": now}

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    def build_create(self, data: Mapping[str, Any]) -> CypherQuery:
        properties = self.new_properties(data)

        def build(c: Cypher):
            node = c.Node()
            return c.Create(c.Pattern(node, self.label, properties)).return_(node)

        return self.cypher.builder(build).build()

    def build_read(self, uuid: str, scope: Scope | None = None) -> CypherQuery:
        def build(c: Cypher):
            node = c.Node()
            return (
                c.Match(c.Pattern(node, self.label))
                .where(node, {"uuid": uuid, **(scope or {})})
                .return_(node)
            )

        return self.cypher.builder(build).build()

    def build_list(self, params: ListParams, scope: Scope | None = None) -> CypherQuery:
        """Insertion order (internal id) unless ``params.sort`` says otherwise."""

        def build(c: Cypher):
            node = c.Node()
            match = c.Match(c.Pattern(node, self.label))
            filters = {**params.filters, **(scope or {})}
            if filters:
                match.where(node, filters)
            order = [(node.property(key), direction) for key, direction in params.sort]
            return (
                match.return_(node)
                .order_by(*order, c.id(node))
                .skip(params.offset)
                .limit(params.limit)
            )

        return self.cypher.builder(build).build()

    def build_update(
        self, uuid: str, data: Mapping[str, Any], scope: Scope | None = None
    ) -> CypherQuery:
        """SET only the keys present in ``data``; the rest of the node is untouched."""
        changes = {**data, "updated_at": utc_now()}

        def build(c: Cypher):
            node = c.Node()
            return (
                c.Match(c.Pattern(node, self.label))
                .where(node, {"uuid": uuid, **(scope or {})})
                .set(*((node.property(key), value) for key, value in changes.items()))
                .return_(node)
            )

        return self.cypher.builder(build).build()

    def build_delete(self, uuid: str, scope: Scope | None = None) -> CypherQuery:
        def build(c: Cypher):
            node = c.Node()
            return (
                c.Match(c.Pattern(node, self.label))
                .where(node, {"uuid": uuid, **(scope or {})})
                .detach_delete(node)
                .return_((c.Literal(True), "removed"))
            )

        return self.cypher.builder(build).build()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def create(
        self, data: Mapping[str, Any], runner: QueryRunner | None = None
    ) -> dict[str, Any] | None:
        query = self.build_create(data)
        return await self._runner(runner).run(query, first_node(query.columns[0]))

    async def read(
        self, uuid: str, runner: QueryRunner | None = None, scope: Scope | None = None
    ) -> dict[str, Any] | None:
        """The node with ``uuid``, or ``None`` when there is none."""
        query = self.build_read(uuid, scope)
        return await self._runner(runner).run(query, first_node(query.columns[0]))

    async def list(
        self,
        params: ListParams | None = None,
        runner: QueryRunner | None = None,
        scope: Scope | None = None,
    ) -> list[dict[str, Any]]:
        query = self.build_list(params or ListParams(), scope)
        return await self._runner(runner).run(query, all_nodes(query.columns[0]))

    async def find_one(
        self, properties: Mapping[str, Any], runner: QueryRunner | None = None
    ) -> dict[str, Any] | None:
        """First node whose properties equal ``properties``."""
        nodes = await self.list(ListParams(limit=1, filters=properties), runner)
        return nodes[0] if nodes else None

    async def update(
        self,
        uuid: str,
        data: Mapping[str, Any],
        runner: QueryRunner | None = None,
        scope: Scope | None = None,
    ) -> dict[str, Any] | None:
        query = self.build_update(uuid, data, scope)
        return await self._runner(runner).run(query, first_node(query.columns[0]))

    async def delete(
        self, uuid: str, runner: QueryRunner | None = None, scope: Scope | None = None
    ) -> bool:
        """True iff exactly one node was removed; a missing uuid is not an error."""
        return await self._runner(runner).run(self.build_delete(uuid, scope), removed)
