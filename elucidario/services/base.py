"""Per-entity orchestration: validate, authorize, write, record history, notify.

A service is built for one request from the Core and the request's
AuthContext. The CRUD operations live in one mixin each so an entity service
only exposes the capabilities it lists among its bases; the Router inspects
those capabilities through the ``Creatable``..``Deletable`` protocols.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

from elucidario.application.ability import Ability
from elucidario.core.errors import AuthorizationError, NotFoundError, ValidationError
from elucidario.core.schemas import AuthContext
from elucidario.db.graph import GraphTransaction
from elucidario.hooks import HookRegistry, lifecycle
from elucidario.hooks.names import LifecycleEvent, lifecycle_payload
from elucidario.models import EntityModel
from elucidario.models.history import HistoryAction
from elucidario.queries import AbstractQuery, HistoryQuery, ListParams

if TYPE_CHECKING:
    from elucidario.core.core import Core

logger = logging.getLogger(__name__)

T = TypeVar("T")

Entity = dict[str, Any]


@runtime_checkable
class Creatable(Protocol):
    async def create(self, data: dict[str, Any]) -> Entity: ...


@runtime_checkable
class Readable(Protocol):
    async def read(self, uuid: str) -> Entity | None: ...


@runtime_checkable
class Listable(Protocol):
    async def list(self, params: ListParams) -> Any: ...


@runtime_checkable
class Updatable(Protocol):
    async def update(self, uuid: str, data: dict[str, Any]) -> Entity | None: ...


@runtime_checkable
class Deletable(Protocol):
    async def delete(self, uuid: str) -> bool: ...


class AbstractService:
    """Shared plumbing of every entity service.

    Class attributes:
        model: Entity model (schemas, label, constraints)
        query_class: Query object type for the entity
        scope_params: Path parameters that scope every query, mapped to
            the node property they match (``{"workspaceUUID": "workspace_uuid"}``)
        public_actions: Actions allowed without any rule, anonymous callers included
    """

    model: ClassVar[type[EntityModel]]
    query_class: ClassVar[type[AbstractQuery]]
    scope_params: ClassVar[dict[str, str]] = {}
    public_actions: ClassVar[frozenset[str]] = frozenset()

    def __init__(
        self,
        core: "Core",
        context: AuthContext | None = None,
        scope: dict[str, str] | None = None,
    ):
        self.core = core
        self.graph = core.graph
        self.hooks = core.hooks
        self.validator = core.validator
        self.authorization = core.authorization
        self.context = context
        self.scope = dict(scope or {})
        self.query = self.query_class(core.graph)
        self.history = HistoryQuery(core.graph)
        self._ability: Ability | None = None

    @classmethod
    def register(cls, hooks: HookRegistry) -> None:
        """Contribute the service's authorization rules; runs once at boot."""

    @property
    def subject(self) -> str:
        return self.model.label

    @property
    def ability(self) -> Ability:
        if self._ability is None:
            self._ability = self.authorization.permissions(self.context)
        return self._ability

    @property
    def user_uuid(self) -> str | None:
        return self.context.user_uuid if self.context is not None else None

    def validate(
        self, schema: type[BaseModel], data: Any, *, partial: bool = False
    ) -> dict[str, Any]:
        """Parse ``data`` with ``schema`` and return the fields to write.

        Partial payloads keep only the fields the client sent; a null sent for
        a field the entity requires is dropped rather than erasing it.

        Raises:
            ValidationError: with field-level messages
        """
        result = self.validator.validate(schema, data)
        if result.value is None:
            raise ValidationError(errors=result.errors, entity=self.model.name)

        if not partial:
            return result.value.model_dump(exclude_none=True)

        required = {
            name
            for name, info in self.model.create_schema.model_fields.items()
            if info.is_required()
        }
        return {
            key: value
            for key, value in result.value.model_dump(exclude_unset=True).items()
            if value is not None or key not in required
        }

    def authorize(self, action: str, instance: Any = None) -> None:
        if action in self.public_actions or self.ability.can(action, self.subject, instance):
            return
        status = 401 if self.context is None else 403
        raise AuthorizationError(f"You are not allowed to {action} {self.subject}.", status)

    def prepare(self, payload: dict[str, Any], action: HistoryAction) -> dict[str, Any]:
        """Last transformation of a validated payload before it is written."""
        return payload

    def serialize(self, entity: Entity) -> Entity:
        return self.model.serialize(entity)

    async def transaction(self, work: Callable[[GraphTransaction], Awaitable[T]]) -> T:
        return await self.graph.write_transaction(work)

    async def record(
        self,
        tx: GraphTransaction,
        action: HistoryAction,
        entity: Entity,
        model: type[EntityModel] | None = None,
    ) -> None:
        await self.history.record(tx, action, model or self.model, entity, self.user_uuid)

    def fire(self, event: LifecycleEvent, entity: Entity) -> None:
        """Run the ``<entity>.<event>`` action once the transaction has committed."""
        logger.debug("%s.%s %s", self.model.name, event, entity.get("uuid"))
        self.hooks.do_action(
            lifecycle(self.model.name, event), lifecycle_payload(entity), self.context
        )

    def check_list_params(self, params: ListParams) -> ListParams:
        fields = self.model.fields()
        errors: dict[str, list[str]] = {}
        for key, _ in params.sort:
            if key not in fields:
                errors.setdefault("sort", []).append(f"Unknown field: {key}")
        for key in params.filters:
            if key not in fields:
                errors.setdefault("filter", []).append(f"Unknown field: {key}")
        if errors:
            raise ValidationError("Invalid list parameters.", errors, self.model.name)
        return params


class CreateMixin(AbstractService):
    async def perform_create(
        self, tx: GraphTransaction, payload: dict[str, Any]
    ) -> Entity | None:
        return await self.query.create(payload, tx)

    async def create(self, data: dict[str, Any]) -> Entity:
        payload = {**self.validate(self.model.create_schema, data), **self.scope}
        self.authorize("create", payload)
        payload = self.prepare(payload, "create")

        async def work(tx: GraphTransaction) -> Entity:
            entity = await self.perform_create(tx, payload)
            if entity is None:
                raise NotFoundError(
                    f"Could not create {self.subject}: a related entity was not found."
                )
            await self.record(tx, "create", entity)
            return entity

        result = self.serialize(await self.transaction(work))
        self.fire("created", result)
        return result


class ReadMixin(AbstractService):
    async def read(self, uuid: str) -> Entity | None:
        self.authorize("read")
        entity = await self.query.read(uuid, scope=self.scope)
        if entity is None:
            return None
        self.authorize("read", entity)
        return self.serialize(entity)


class ListMixin(AbstractService):
    async def list(self, params: ListParams | None = None) -> list[Entity]:
        """Entities visible to the context; rows failing an instance check are left out."""
        self.authorize("read")
        params = self.check_list_params(params or ListParams())
        entities = await self.query.list(params, scope=self.scope)
        return [
            self.serialize(entity)
            for entity in entities
            if self.ability.can("read", self.subject, entity)
        ]


class UpdateMixin(AbstractService):
    async def update(self, uuid: str, data: dict[str, Any]) -> Entity | None:
        payload = self.validate(self.model.update_schema, data, partial=True)
        self.authorize("update")
        current = await self.query.read(uuid, scope=self.scope)
        if current is None:
            return None
        self.authorize("update", current)
        payload = self.prepare(payload, "update")

        async def work(tx: GraphTransaction) -> Entity | None:
            entity = await self.query.update(uuid, payload, tx, self.scope)
            if entity is not None:
                await self.record(tx, "update", entity)
            return entity

        updated = await self.transaction(work)
        if updated is None:
            return None

        result = self.serialize(updated)
        self.fire("updated", result)
        return result


class DeleteMixin(AbstractService):
    async def delete(self, uuid: str) -> bool:
        self.authorize("delete")
        current = await self.query.read(uuid, scope=self.scope)
        if current is None:
            return False
        self.authorize("delete", current)

        async def work(tx: GraphTransaction) -> bool:
            removed = await self.query.delete(uuid, tx, self.scope)
            if removed:
                await self.record(tx, "delete", current)
            return removed

        removed = await self.transaction(work)
        if removed:
            self.fire("deleted", self.serialize(current))
        return removed
