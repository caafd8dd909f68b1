from typing import Any

from elucidario.application.ability import Rule
from elucidario.core.schemas import AuthContext
from elucidario.core.security import get_password_hash
from elucidario.hooks import AUTHORIZATION_RULES, HookRegistry
from elucidario.models import User
from elucidario.models.history import HistoryAction
from elucidario.queries import UserQuery
from elucidario.services.base import (
    CreateMixin,
    DeleteMixin,
    ListMixin,
    ReadMixin,
    UpdateMixin,
)


def hash_password(payload: dict[str, Any]) -> dict[str, Any]:
    """Replace a plain ``password`` with its hash; other fields pass through."""
    if payload.get("password"):
        return {**payload, "password": get_password_hash(payload["password"])}
    return payload


def own_user_rules(rules: list[Rule], context: AuthContext) -> list[Rule]:
    """Every authenticated user may read and update their own account."""
    own = {"uuid": context.user_uuid}
    return [*rules, Rule("read", User.label, own), Rule("update", User.label, own)]


class UserService(CreateMixin, ReadMixin, ListMixin, UpdateMixin, DeleteMixin):
    model = User
    query_class = UserQuery
    # Sign-up is open
    public_actions = frozenset({"create"})

    @classmethod
    def register(cls, hooks: HookRegistry) -> None:
        hooks.add_filter(AUTHORIZATION_RULES, own_user_rules)

    def prepare(self, payload: dict[str, Any], action: HistoryAction) -> dict[str, Any]:
        return hash_password(payload)
