"""Entity models: the schema collaborator of every entity type.

An entity model names the entity, its node label, the pydantic schemas used to
validate input and serialize output, and the uniqueness constraints it needs
in the graph store.
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from elucidario.db.types import PropertyConstraint
from elucidario.hooks import SET_CONSTRAINTS, HookRegistry


def unique_constraints(label: str, *properties: str) -> list[PropertyConstraint]:
    """One uniqueness constraint per property on ``label``."""
    return [
        PropertyConstraint(
            name=f"{label.lower()}_{prop}_unique", labels=[label], property=prop
        )
        for prop in properties
    ]


class EntityInput(BaseModel):
    """Base of create/update schemas; unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class EntityRead(BaseModel):
    """Fields every stored entity carries."""

    model_config = ConfigDict(extra="ignore")

    uuid: str
    type: str
    created_at: str
    updated_at: str


class EntityModel:
    """Declarative description of one entity type."""

    name: ClassVar[str]
    label: ClassVar[str]
    create_schema: ClassVar[type[BaseModel]]
    update_schema: ClassVar[type[BaseModel]]
    read_schema: ClassVar[type[EntityRead]] = EntityRead
    constraints: ClassVar[list[PropertyConstraint]] = []

    @classmethod
    def register(cls, hooks: HookRegistry) -> None:
        """Contribute the model's constraints to ``graph.setConstraints``."""
        constraints = list(cls.constraints)

        def add_constraints(
            current: list[PropertyConstraint],
        ) -> list[PropertyConstraint]:
            return [*current, *constraints]

        hooks.add_filter(SET_CONSTRAINTS, add_constraints)

    @classmethod
    def json_schema(cls, kind: str = "create") -> dict[str, Any]:
        schemas = {
            "create": cls.create_schema,
            "update": cls.update_schema,
            "read": cls.read_schema,
        }
        return schemas[kind].model_json_schema()

    @classmethod
    def fields(cls) -> frozenset[str]:
        """Names clients may sort and filter on."""
        return frozenset(cls.read_schema.model_fields)

    @classmethod
    def serialize(cls, node: dict[str, Any]) -> dict[str, Any]:
        """Public representation of a stored node; drops fields absent from the read schema."""
        return cls.read_schema.model_validate(node).model_dump(mode="json", exclude_none=True)
