"""Audit history written inside the write transaction of every mutation."""

import json
import logging
from typing import Any

from elucidario.db.cypher import Cypher
from elucidario.db.types import CypherQuery, QueryRunner
from elucidario.models import EntityModel, HistoryEvent, User
from elucidario.models.history import HistoryAction
from elucidario.queries.base import AbstractQuery, first_node, ignore_result, utc_now

logger = logging.getLogger(__name__)


class HistoryQuery(AbstractQuery):
    """Writes ``HistoryEvent`` nodes and their edges.

    ``(event)-[:HISTORY_OF]->(entity)`` while the entity exists,
    ``(user)-[:EXECUTED]->(event)`` for the acting user and
    ``(event)-[:PREVIOUS]->(earlier event)`` chaining the events of one entity.
    """

    model = HistoryEvent

    def build_latest(self, entity_uuid: str) -> CypherQuery:
        def build(c: Cypher):
            event = c.Node()
            return (
                c.Match(c.Pattern(event, HistoryEvent.label))
                .where(event, {"entity_uuid": entity_uuid})
                .return_(event)
                .order_by((c.id(event), "DESC"))
                .limit(1)
            )

        return self.cypher.builder(build).build()

    def build_link(
        self,
        source: tuple[str, str],
        rel_type: str,
        target: tuple[str, str],
    ) -> CypherQuery:
        """``(source)-[:rel_type]->(target)`` between two nodes given as ``(label, uuid)``."""

        def build(c: Cypher):
            start, end = c.Node(), c.Node()
            return c.concat(
                c.Match(c.Pattern(start, source[0]), c.Pattern(end, target[0]))
                .where(start, {"uuid": source[1]})
                .where(end, {"uuid": target[1]}),
                c.Create(c.Pattern(start).related(type=rel_type).to(end)),
            )

        return self.cypher.builder(build).build()

    async def record(
        self,
        runner: QueryRunner,
        action: HistoryAction,
        model: type[EntityModel],
        entity: dict[str, Any],
        user_uuid: str | None = None,
    ) -> dict[str, Any] | None:
        """Write one event for ``entity``; ``runner`` must be the mutation's transaction."""
        entity_uuid = str(entity["uuid"])
        previous = None
        if action != "create":
            query = self.build_latest(entity_uuid)
            previous = await runner.run(query, first_node(query.columns[0]))

        timestamp = utc_now()
        event = await self.create(
            {
                "action": action,
                "entity_uuid": entity_uuid,
                "entity_type": model.label,
                "user_uuid": user_uuid,
                "timestamp": timestamp,
                "snapshot": json.dumps(model.serialize(entity), sort_keys=True),
            },
            runner,
        )
        if event is None:
            return None

        event_ref = (HistoryEvent.label, event["uuid"])
        if action != "delete":
            await runner.run(
                self.build_link(event_ref, HistoryEvent.HISTORY_OF, (model.label, entity_uuid)),
                ignore_result,
            )
        if user_uuid is not None:
            await runner.run(
                self.build_link((User.label, user_uuid), HistoryEvent.EXECUTED, event_ref),
                ignore_result,
            )
        if previous is not None:
            await runner.run(
                self.build_link(
                    event_ref, HistoryEvent.PREVIOUS, (HistoryEvent.label, previous["uuid"])
                ),
                ignore_result,
            )

        logger.debug("History %s recorded for %s %s", action, model.label, entity_uuid)
        return event
