"""Well-known hook names and the payload contract of each one."""

from typing import TYPE_CHECKING, Any, Literal

from elucidario.hooks.registry import ActionHook, FilterHook

if TYPE_CHECKING:
    from elucidario.application.ability import Rule
    from elucidario.application.authentication import AuthStrategy
    from elucidario.db.types import PropertyConstraint

LifecycleEvent = Literal["created", "updated", "deleted"]

# (constraints) -> constraints
SET_CONSTRAINTS: "FilterHook[list[PropertyConstraint]]" = FilterHook(
    "graph.setConstraints",
    "Uniqueness constraints installed by Graph.setup()",
)

# (rules, context: AuthContext) -> rules
AUTHORIZATION_RULES: "FilterHook[list[Rule]]" = FilterHook(
    "authorization.rules",
    "Ability rules granted to one request context",
)

# (roles) -> roles
AUTHORIZATION_ROLES: FilterHook[list[str]] = FilterHook(
    "authorization.roles",
    "Closed set of workspace roles",
)

# (strategies) -> strategies
AUTH_STRATEGIES: "FilterHook[list[AuthStrategy]]" = FilterHook(
    "auth.strategies",
    "Authentication strategies tried in order for each request",
)


def lifecycle(entity: str, event: LifecycleEvent) -> ActionHook:
    """Action fired after a committed mutation: ``(entity: dict, context: AuthContext | None)``."""
    return ActionHook(f"{entity}.{event}")


def lifecycle_payload(entity: dict[str, Any]) -> dict[str, Any]:
    """Copy handed to action callbacks so they cannot mutate the service result."""
    return dict(entity)
