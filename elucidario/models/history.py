"""Audit records written alongside every mutation."""

from typing import ClassVar, Literal

from elucidario.db.types import PropertyConstraint
from elucidario.models.base import EntityModel, EntityRead, unique_constraints

HistoryAction = Literal["create", "update", "delete"]


class HistoryEventRead(EntityRead):
    action: HistoryAction
    entity_uuid: str
    entity_type: str
    user_uuid: str | None = None
    timestamp: str
    snapshot: str


class HistoryEvent(EntityModel):
    """Written by services only; there is no public create/update surface."""

    name = "history"
    label = "HistoryEvent"
    read_schema = HistoryEventRead
    constraints: ClassVar[list[PropertyConstraint]] = unique_constraints(
        "HistoryEvent", "uuid"
    )

    HISTORY_OF = "HISTORY_OF"
    EXECUTED = "EXECUTED"
    PREVIOUS = "PREVIOUS"
