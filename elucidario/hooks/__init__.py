"""Hook registry package."""

from .names import (
    AUTH_STRATEGIES,
    AUTHORIZATION_ROLES,
    AUTHORIZATION_RULES,
    SET_CONSTRAINTS,
    lifecycle,
)
from .registry import (
    DEFAULT_PRIORITY,
    ActionHook,
    Actions,
    FilterHook,
    Filters,
    HookRecord,
    HookRegistry,
)

__all__ = [
    "HookRegistry",
    "Filters",
    "Actions",
    "FilterHook",
    "ActionHook",
    "HookRecord",
    "DEFAULT_PRIORITY",
    # Well-known hooks
    "SET_CONSTRAINTS",
    "AUTHORIZATION_RULES",
    "AUTHORIZATION_ROLES",
    "AUTH_STRATEGIES",
    "lifecycle",
]
